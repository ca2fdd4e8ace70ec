"""Seitrace chain gateway executor (GET-only search/read API)."""

from __future__ import annotations

from typing import Any, Dict

from seitrace_mcp.errors import ExecutorError
from seitrace_mcp.executors.base import ExecutionContext, Executor, merged_headers, query_value, response_text, send
from seitrace_mcp.types import ExecutionResult

ROUTING_PARAMETERS = frozenset({"chain_id", "endpoint"})


class GatewayExecutor(Executor):
    name = "gateway"

    def resolve_base_url(self, context: ExecutionContext) -> str:
        endpoint = context.payload.get("endpoint")
        if isinstance(endpoint, str) and endpoint.strip():
            return endpoint.strip().rstrip("/")
        chain_id = context.payload.get("chain_id")
        base = context.config.gateway_urls.get(chain_id) if chain_id else None
        if not base:
            chains = ", ".join(context.config.gateway_urls)
            raise ExecutorError(
                f"Missing 'endpoint' or 'chain_id'. Provide a gateway endpoint or one of: {chains}."
            )
        return base.rstrip("/")

    async def execute(self, context: ExecutionContext) -> ExecutionResult:
        base = self.resolve_base_url(context)
        params: Dict[str, Any] = {}
        for param in context.endpoint.parameters_in("query"):
            if param.name in ROUTING_PARAMETERS:
                continue
            value = context.payload.get(param.name)
            if value is None:
                continue
            params[param.name] = query_value(value)
        params.update(context.request.params)

        response = await send(
            context,
            "GET",
            f"{base}{context.endpoint.path_template}",
            params=params or None,
            headers=merged_headers(context),
        )
        return ExecutionResult(body=response_text(response), status_code=response.status_code)
