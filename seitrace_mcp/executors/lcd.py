"""Cosmos LCD (REST) executor."""

from __future__ import annotations

from typing import Any, Dict

from seitrace_mcp.executors.base import (
    ExecutionContext,
    Executor,
    merged_headers,
    query_value,
    resolve_network_endpoint,
    response_text,
    send,
)
from seitrace_mcp.types import ExecutionResult


class LcdExecutor(Executor):
    name = "lcd"

    async def execute(self, context: ExecutionContext) -> ExecutionResult:
        base = resolve_network_endpoint(context, family="cosmos", kind="lcd", label="Cosmos LCD")
        payload = context.payload

        path = str(payload.get("path") or "/")
        if not path.startswith("/"):
            path = f"/{path}"
        method = str(payload.get("method") or "GET").upper()

        params: Dict[str, Any] = {}
        query = payload.get("query")
        if isinstance(query, dict):
            params = {key: query_value(value) for key, value in query.items() if value is not None}
        params.update(context.request.params)

        headers: Dict[str, str] = {}
        body = payload.get("body") if method != "GET" else None
        if body is not None:
            headers["Content-Type"] = "application/json"

        response = await send(
            context,
            method,
            f"{base.rstrip('/')}{path}",
            params=params or None,
            headers=merged_headers(context, headers),
            json_body=body,
        )
        return ExecutionResult(body=response_text(response), status_code=response.status_code)
