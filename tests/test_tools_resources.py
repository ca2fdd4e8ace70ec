import httpx
import pytest

from seitrace_mcp.tools import (
    ToolError,
    get_resource_action_schema,
    get_resource_action_snippet,
    invoke_resource_action,
    list_resource_actions,
    list_resources,
)


@pytest.mark.asyncio
async def test_list_resources(make_dispatcher):
    result = await list_resources(dispatcher=make_dispatcher())
    assert "smart_contract" in result["resources"]


@pytest.mark.asyncio
async def test_list_resource_actions_unknown_resource(make_dispatcher):
    result = await list_resource_actions("missing", dispatcher=make_dispatcher())
    assert result["error"].startswith("Unknown or missing resource 'missing'.")


@pytest.mark.asyncio
async def test_list_resource_actions_strips_descriptions(make_dispatcher):
    result = await list_resource_actions("general_faucet", dispatcher=make_dispatcher())
    assert result["resource"] == "general_faucet"
    (action,) = result["actions"]
    assert action["name"] == "request_faucet"
    assert action["description"] == action["description"].strip()


@pytest.mark.asyncio
async def test_get_resource_action_schema_unknown_action(make_dispatcher):
    result = await get_resource_action_schema("general_faucet", "nope", dispatcher=make_dispatcher())
    assert result == {
        "error": "Unknown action 'nope' for resource 'general_faucet'. Available actions: request_faucet"
    }


@pytest.mark.asyncio
async def test_invoke_resource_action_success_is_rendered_text(make_dispatcher):
    dispatcher = make_dispatcher(lambda r: httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": "0x1"}))
    result = await invoke_resource_action(
        "general_rpc_lcd",
        "call_evm_rpc",
        {"rpc_method": "eth_blockNumber", "chain_id": "pacific-1"},
        dispatcher=dispatcher,
    )
    assert result == 'API Response (Status: 200):\n{"jsonrpc":"2.0","id":1,"result":"0x1"}'


@pytest.mark.asyncio
async def test_invoke_resource_action_error_is_dict(make_dispatcher):
    result = await invoke_resource_action("insights_erc20", "get_erc20_token_info", {}, dispatcher=make_dispatcher())
    assert isinstance(result, dict)
    assert result["error"].startswith("Invalid arguments for tool 'insights_erc20.get_erc20_token_info'")


@pytest.mark.asyncio
async def test_get_resource_action_snippet(make_dispatcher):
    dispatcher = make_dispatcher()
    ok = await get_resource_action_snippet("general_rpc_lcd", "call_evm_rpc", "shell", dispatcher=dispatcher)
    assert ok["snippet"].startswith("curl -s -X POST")
    missing = await get_resource_action_snippet("nope", "x", "shell", dispatcher=dispatcher)
    assert missing["error"].startswith("Unknown or missing resource 'nope'.")


@pytest.mark.asyncio
async def test_unexpected_error_is_generic(caplog):
    class BrokenDispatcher:
        def list_resources(self):
            raise RuntimeError("boom")

    result = await list_resources(dispatcher=BrokenDispatcher())
    assert result == {"error": "Unexpected error while listing resources."}
    assert "Unexpected error listing resources" in caplog.text


@pytest.mark.asyncio
async def test_list_resources_detailed_includes_descriptions(make_dispatcher):
    dispatcher = make_dispatcher()
    names = (await list_resources(dispatcher=dispatcher))["resources"]
    detailed = (await list_resources(detailed=True, dispatcher=dispatcher))["resources"]
    assert [entry["name"] for entry in detailed] == names
    by_name = {entry["name"]: entry["description"] for entry in detailed}
    assert by_name["general_faucet"].startswith("Request testnet faucet funds")
    assert all(by_name.values())


@pytest.mark.asyncio
async def test_tool_errors_carry_their_kind(make_dispatcher):
    dispatcher = make_dispatcher()
    routing = await list_resource_actions("missing", dispatcher=dispatcher)
    validation = await invoke_resource_action("insights_erc20", "get_erc20_token_info", {}, dispatcher=dispatcher)
    assert isinstance(routing, ToolError)
    assert routing.kind == "routing"
    assert validation.kind == "validation"
    assert set(validation) == {"error"}
