"""JSON-RPC executor for Sei EVM and Cosmos (Tendermint) endpoints."""

from __future__ import annotations

import re

from seitrace_mcp.executors.base import (
    ExecutionContext,
    Executor,
    merged_headers,
    resolve_network_endpoint,
    response_text,
    send,
)
from seitrace_mcp.types import ExecutionResult

_COSMOS_ACTION = re.compile(r"(call_cosmos_rpc|callCosmosRpc)$", re.IGNORECASE)


def is_cosmos_action(action_name: str, endpoint_name: str) -> bool:
    return bool(_COSMOS_ACTION.search(action_name) or _COSMOS_ACTION.search(endpoint_name))


def is_cosmos_call(context: ExecutionContext) -> bool:
    return is_cosmos_action(context.action_name, context.endpoint.name)


class RpcExecutor(Executor):
    name = "rpc"

    async def execute(self, context: ExecutionContext) -> ExecutionResult:
        if is_cosmos_call(context):
            url = resolve_network_endpoint(context, family="cosmos", kind="rpc", label="Cosmos RPC")
        else:
            url = resolve_network_endpoint(context, family="evm", kind="rpc", label="EVM RPC")

        params = context.payload.get("params")
        envelope = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": context.payload.get("rpc_method"),
            "params": params if params is not None else [],
        }
        response = await send(
            context,
            "POST",
            url,
            headers=merged_headers(context, {"Content-Type": "application/json"}),
            json_body=envelope,
        )
        return ExecutionResult(body=response_text(response), status_code=response.status_code)
