from seitrace_mcp.chains import CANONICAL_MULTICALL3_ADDRESS, CONNECTION_DETAILS
from seitrace_mcp.config import SeitraceConfig, _load_timeout


def test_load_timeout_unset_means_no_timeout(monkeypatch):
    monkeypatch.delenv("SEITRACE_HTTP_TIMEOUT", raising=False)
    assert _load_timeout() is None


def test_load_timeout_invalid_env(monkeypatch):
    monkeypatch.setenv("SEITRACE_HTTP_TIMEOUT", "not-a-number")
    assert _load_timeout() is None  # malformed values fall back to no timeout


def test_load_timeout_valid_env(monkeypatch):
    monkeypatch.setenv("SEITRACE_HTTP_TIMEOUT", "5.5")
    assert _load_timeout() == 5.5


def test_multicall3_address_falls_back_to_canonical():
    config = SeitraceConfig(multicall3_addresses={"pacific-1": "0x" + "ab" * 20})
    assert config.multicall3_address("pacific-1") == "0x" + "ab" * 20
    assert config.multicall3_address("atlantic-2") == CANONICAL_MULTICALL3_ADDRESS


def test_connections_are_copied_per_instance():
    config = SeitraceConfig()
    config.connections["pacific-1"]["evm"]["rpc"].append("https://mutated.example")
    assert "https://mutated.example" not in CONNECTION_DETAILS["pacific-1"]["evm"]["rpc"]
    assert set(config.connections) == {"pacific-1", "atlantic-2", "arctic-1"}
