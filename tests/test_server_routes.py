import json
import logging

import pytest
from fastapi.testclient import TestClient

from seitrace_mcp import server


@pytest.fixture
def client():
    return TestClient(server.app)


def test_health_and_request_id(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}
    assert resp.headers.get("X-Request-ID")


def test_resources_route_records_tool_metrics(client):
    resp = client.get("/resources")
    assert resp.status_code == 200
    assert "smart_contract" in resp.json()["resources"]
    metrics = client.get("/metrics").json()
    assert metrics["tool_success"] == {"list_resources": 1}
    assert metrics["requests"] == 2


def test_resource_actions_route_unknown_resource(client):
    resp = client.get("/resources/missing/actions")
    assert resp.status_code == 200
    assert resp.json()["error"].startswith("Unknown or missing resource 'missing'.")
    metrics = client.get("/metrics").json()
    assert metrics["tool_error"] == {"list_resource_actions": 1}
    assert metrics["tool_error_kinds"] == {"list_resource_actions": {"routing": 1}}


def test_action_schema_route(client):
    resp = client.get("/resources/smart_contract/actions/download_abi/schema")
    body = resp.json()
    assert body["resource"] == "smart_contract"
    assert "contract_address" in body["schema"]["required"]


def test_invoke_route_uses_body_as_payload(client):
    resp = client.post("/resources/general_rpc_lcd/actions/get_connection_details", json={})
    body = resp.json()
    assert body["resource"] == "general_rpc_lcd"
    assert body["action"] == "get_connection_details"
    assert "atlantic-2" in json.loads(body["result"])


def test_invoke_route_without_body_reports_payload_error(client):
    resp = client.post("/resources/general_rpc_lcd/actions/get_connection_details")
    assert resp.json()["error"].startswith("Invalid or missing 'payload' for tool 'invoke_resource_action'.")


def test_invoke_route_with_stub_tool(monkeypatch, client):
    async def fake_tool(resource, action, payload):
        return f"API Response (Status: 200):\n{json.dumps(payload)}"

    monkeypatch.setattr(server, "invoke_resource_action", fake_tool)
    resp = client.post("/resources/insights_erc20/actions/get_erc20_token_info", json={"chain_id": "pacific-1"})
    assert resp.json()["result"] == 'API Response (Status: 200):\n{"chain_id": "pacific-1"}'


def test_snippet_route(client):
    resp = client.post(
        "/resources/general_rpc_lcd/actions/call_evm_rpc/snippet",
        json={"language": "http", "payload": {"chain_id": "arctic-1", "rpc_method": "eth_chainId"}},
    )
    body = resp.json()
    assert body["language"] == "http"
    assert body["snippet"].startswith("POST / HTTP/1.1")
    assert "Host: evm-rpc-arctic-1.sei-apis.com" in body["snippet"]
    assert '"method": "eth_chainId"' in body["snippet"]


def test_snippet_route_unsupported_action(client):
    resp = client.post("/resources/general_faucet/actions/request_faucet/snippet", json={"language": "shell"})
    assert resp.json()["error"] == "SNIPPET_GENERATION_NOT_SUPPORTED"


def test_json_formatter_includes_extras():
    record = logging.LogRecord("seitrace_mcp.test", logging.WARNING, __file__, 1, "tool=%s failed", ("x",), None)
    record.tool = "invoke_resource_action"
    record.resource = "smart_contract"
    record.action = "download_abi"
    record.request_id = "req-1"
    payload = json.loads(server.JsonFormatter().format(record))
    assert payload == {
        "level": "WARNING",
        "message": "tool=x failed",
        "name": "seitrace_mcp.test",
        "tool": "invoke_resource_action",
        "resource": "smart_contract",
        "action": "download_abi",
        "request_id": "req-1",
    }


def test_detailed_resources_route(client):
    resp = client.get("/resources", params={"detailed": "true"})
    entries = resp.json()["resources"]
    assert {"name", "description"} == set(entries[0])
    names = [entry["name"] for entry in entries]
    assert names == client.get("/resources").json()["resources"]


def test_tool_error_log_carries_resource_action_and_kind(client, caplog):
    with caplog.at_level(logging.WARNING, logger="seitrace_mcp.server"):
        client.post("/resources/insights_erc20/actions/get_erc20_token_info", json={})
    (record,) = [r for r in caplog.records if r.name == "seitrace_mcp.server"]
    assert record.tool == "invoke_resource_action"
    assert record.resource == "insights_erc20"
    assert record.action == "get_erc20_token_info"
    assert record.error_kind == "validation"
