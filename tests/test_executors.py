import json

import httpx
import pytest

from seitrace_mcp.config import SeitraceConfig
from seitrace_mcp.errors import ConfigurationError, ExecutorError, NetworkError
from seitrace_mcp.executors import ExecutionContext, get_executor
from seitrace_mcp.types import EndpointDescription, ExecutionParameter, OutboundRequest


def _context(handler, endpoint, payload, *, base_url="https://api.test", request=None, action_name=""):
    return ExecutionContext(
        tool_name="test.action",
        endpoint=endpoint,
        payload=payload,
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        config=SeitraceConfig(),
        base_url=base_url,
        request=request or OutboundRequest(),
        action_name=action_name,
    )


def test_get_executor_defaults_to_api_and_rejects_unknown():
    assert get_executor(None).name == "api"
    assert get_executor("ethers").name == "ethers"
    with pytest.raises(ConfigurationError):
        get_executor("soap")


@pytest.mark.asyncio
async def test_api_executor_builds_path_query_and_credentials():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["request"] = request
        return httpx.Response(200, json={"ok": True, "n": 1})

    endpoint = EndpointDescription(
        name="Thing-getThing",
        description="",
        input_schema={},
        path_template="/things/{thing_id}",
        execution_parameters=(
            ExecutionParameter("thing_id", "path"),
            ExecutionParameter("tags", "query"),
            ExecutionParameter("trace", "header"),
        ),
    )
    request = OutboundRequest(headers={"x-api-key": "secret"}, cookies={"session": "abc"})
    context = _context(handler, endpoint, {"thing_id": "a/b", "tags": ["x", "y"], "trace": "t1"}, request=request)
    result = await get_executor("api").execute(context)

    sent = seen["request"]
    assert sent.method == "GET"
    assert sent.url.raw_path.startswith(b"/things/a%2Fb")
    assert sent.url.params.get_list("tags") == ["x", "y"]
    assert sent.headers["x-api-key"] == "secret"
    assert sent.headers["trace"] == "t1"
    assert sent.headers["cookie"] == "session=abc"
    assert result.status_code == 200
    assert result.body == '{"ok":true,"n":1}'
    assert result.render() == 'API Response (Status: 200):\n{"ok":true,"n":1}'


@pytest.mark.asyncio
async def test_api_executor_sends_json_body_without_routed_fields():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        seen["content_type"] = request.headers["content-type"]
        return httpx.Response(201, text="created")

    endpoint = EndpointDescription(
        name="Faucet-request",
        description="",
        input_schema={},
        method="post",
        path_template="/faucet",
        execution_parameters=(ExecutionParameter("dry_run", "query"),),
        request_body_content_type="application/json",
    )
    context = _context(handler, endpoint, {"wallet_address": "0xabc", "chain_id": "arctic-1", "dry_run": True})
    result = await get_executor("api").execute(context)
    assert seen["body"] == {"wallet_address": "0xabc", "chain_id": "arctic-1"}
    assert seen["content_type"] == "application/json"
    assert result.render() == "API Response (Status: 201):\ncreated"


@pytest.mark.asyncio
async def test_api_executor_unresolved_path_parameter():
    endpoint = EndpointDescription(
        name="Thing-get",
        description="",
        input_schema={},
        path_template="/things/{thing_id}",
        execution_parameters=(ExecutionParameter("thing_id", "path"),),
    )
    context = _context(lambda r: httpx.Response(200), endpoint, {})
    with pytest.raises(ExecutorError):
        await get_executor("api").execute(context)


@pytest.mark.asyncio
async def test_api_executor_status_error_is_truncated():
    endpoint = EndpointDescription(name="T-t", description="", input_schema={}, path_template="/x")
    context = _context(lambda r: httpx.Response(500, text="b" * 500), endpoint, {})
    with pytest.raises(NetworkError) as exc_info:
        await get_executor("api").execute(context)
    error = exc_info.value
    assert error.status_code == 500
    assert error.message.startswith("API Error: Status 500 (Internal Server Error). Response: ")
    assert error.message.endswith("b" * 200 + "...")


@pytest.mark.asyncio
async def test_api_executor_empty_error_body():
    endpoint = EndpointDescription(name="T-t", description="", input_schema={}, path_template="/x")
    context = _context(lambda r: httpx.Response(404), endpoint, {})
    with pytest.raises(NetworkError) as exc_info:
        await get_executor("api").execute(context)
    assert exc_info.value.message == "API Error: Status 404 (Not Found). No response body received."


@pytest.mark.asyncio
async def test_api_executor_unreachable_upstream():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    endpoint = EndpointDescription(name="T-t", description="", input_schema={}, path_template="/x")
    with pytest.raises(NetworkError) as exc_info:
        await get_executor("api").execute(_context(handler, endpoint, {}))
    assert exc_info.value.message == "API Network Error: No response received from server. (Code: ConnectError)"


@pytest.mark.asyncio
async def test_empty_success_body_is_described():
    endpoint = EndpointDescription(name="T-t", description="", input_schema={}, path_template="/x")
    result = await get_executor("api").execute(_context(lambda r: httpx.Response(204), endpoint, {}))
    assert result.body == "(Status: 204 - No body content)"


RPC_ENDPOINT = EndpointDescription(name="RpcLcdController-callEvmRpc", description="", input_schema={}, method="rpc")


@pytest.mark.asyncio
async def test_rpc_executor_uses_first_evm_url_for_chain():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = request.url.host
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": "0x10"})

    context = _context(handler, RPC_ENDPOINT, {"rpc_method": "eth_blockNumber", "chain_id": "atlantic-2"},
                       action_name="call_evm_rpc")
    result = await get_executor("rpc").execute(context)
    assert seen["url"] == "evm-rpc-testnet.sei-apis.com"
    assert seen["body"] == {"jsonrpc": "2.0", "id": 1, "method": "eth_blockNumber", "params": []}
    assert '"result":"0x10"' in result.body


@pytest.mark.asyncio
async def test_rpc_executor_cosmos_action_and_endpoint_override():
    urls = []

    def handler(request: httpx.Request) -> httpx.Response:
        urls.append(request.url.host)
        return httpx.Response(200, json={"result": {}})

    cosmos = EndpointDescription(name="RpcLcdController-callCosmosRpc", description="", input_schema={}, method="rpc")
    await get_executor("rpc").execute(
        _context(handler, cosmos, {"rpc_method": "status", "chain_id": "pacific-1"}, action_name="call_cosmos_rpc")
    )
    await get_executor("rpc").execute(
        _context(handler, RPC_ENDPOINT, {"rpc_method": "eth_chainId", "endpoint": "https://custom.rpc"})
    )
    assert urls == ["rpc.sei-apis.com", "custom.rpc"]


@pytest.mark.asyncio
async def test_rpc_executor_requires_endpoint_or_chain():
    context = _context(lambda r: httpx.Response(200), RPC_ENDPOINT, {"rpc_method": "eth_blockNumber"})
    with pytest.raises(ExecutorError) as exc_info:
        await get_executor("rpc").execute(context)
    assert exc_info.value.message.startswith("Missing 'endpoint' or 'chain_id'.")


@pytest.mark.asyncio
async def test_rpc_executor_unknown_chain():
    context = _context(lambda r: httpx.Response(200), RPC_ENDPOINT, {"rpc_method": "x", "chain_id": "mainnet"})
    with pytest.raises(ExecutorError) as exc_info:
        await get_executor("rpc").execute(context)
    assert "Unknown chain_id 'mainnet'" in exc_info.value.message


LCD_ENDPOINT = EndpointDescription(name="RpcLcdController-callCosmosLcd", description="", input_schema={}, method="lcd")


@pytest.mark.asyncio
async def test_lcd_executor_get_ignores_body():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["request"] = request
        return httpx.Response(200, json={"supply": []})

    payload = {
        "path": "cosmos/bank/v1beta1/supply",
        "method": "GET",
        "query": {"pagination.limit": 5},
        "body": {"ignored": True},
        "chain_id": "pacific-1",
    }
    await get_executor("lcd").execute(_context(handler, LCD_ENDPOINT, payload))
    sent = seen["request"]
    assert sent.method == "GET"
    assert str(sent.url) == "https://rest.sei-apis.com/cosmos/bank/v1beta1/supply?pagination.limit=5"
    assert sent.content == b""


@pytest.mark.asyncio
async def test_lcd_executor_post_sends_body():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["request"] = request
        return httpx.Response(200, json={"tx_response": {}})

    payload = {"path": "/cosmos/tx/v1beta1/simulate", "method": "POST", "body": {"tx_bytes": "AA=="},
               "endpoint": "https://lcd.custom/"}
    await get_executor("lcd").execute(_context(handler, LCD_ENDPOINT, payload))
    sent = seen["request"]
    assert sent.method == "POST"
    assert str(sent.url) == "https://lcd.custom/cosmos/tx/v1beta1/simulate"
    assert json.loads(sent.content) == {"tx_bytes": "AA=="}


@pytest.mark.asyncio
async def test_gateway_executor_routes_by_chain_and_skips_routing_params():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = request.url
        return httpx.Response(200, json={"items": []})

    endpoint = EndpointDescription(
        name="AssetsController-searchTokens",
        description="",
        input_schema={},
        path_template="/api/v1/tokens",
        execution_parameters=(
            ExecutionParameter("chain_id", "query"),
            ExecutionParameter("endpoint", "query"),
            ExecutionParameter("search", "query"),
        ),
        executor="gateway",
    )
    await get_executor("gateway").execute(_context(handler, endpoint, {"chain_id": "arctic-1", "search": "usdc"}))
    assert seen["url"].host == "arctic-1-gateway.seitrace.com"
    assert seen["url"].path == "/api/v1/tokens"
    assert dict(seen["url"].params) == {"search": "usdc"}


@pytest.mark.asyncio
async def test_gateway_executor_requires_endpoint_or_chain():
    endpoint = EndpointDescription(name="X-y", description="", input_schema={}, path_template="/x", executor="gateway")
    with pytest.raises(ExecutorError) as exc_info:
        await get_executor("gateway").execute(_context(lambda r: httpx.Response(200), endpoint, {}))
    assert exc_info.value.message.startswith("Missing 'endpoint' or 'chain_id'.")
