import os
import sys

import httpx
import pytest

# Ensure repository root is on sys.path before importing project modules.
repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if repo_root not in sys.path:
    sys.path.insert(0, repo_root)

from seitrace_mcp.auth import CredentialStore  # noqa: E402
from seitrace_mcp.config import SeitraceConfig  # noqa: E402
from seitrace_mcp.dispatcher import Dispatcher  # noqa: E402
from seitrace_mcp.metrics import default_metrics  # noqa: E402

INSIGHTS_BASE = "https://insights.test"


@pytest.fixture(autouse=True)
def reset_metrics():
    default_metrics.reset()
    yield
    default_metrics.reset()


def _no_network(request: httpx.Request) -> httpx.Response:
    raise AssertionError(f"unexpected outbound request to {request.url}")


@pytest.fixture
def make_dispatcher():
    """Build a catalog dispatcher whose HTTP traffic goes to ``handler``."""

    def factory(handler=_no_network, env=None, config=None):
        config = config or SeitraceConfig(insights_base_url=INSIGHTS_BASE)
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return Dispatcher.from_catalog(config, async_client=client, credentials=CredentialStore(env or {}))

    return factory
