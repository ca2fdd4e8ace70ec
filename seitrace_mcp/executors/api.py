"""REST executor for OpenAPI-described endpoints."""

from __future__ import annotations

from typing import Any, Dict
from urllib.parse import quote

from seitrace_mcp.errors import ExecutorError
from seitrace_mcp.executors.base import ExecutionContext, Executor, merged_headers, query_value, response_text, send
from seitrace_mcp.types import ExecutionResult


def _is_absolute(url: str) -> bool:
    return url.startswith("http://") or url.startswith("https://")


class ApiExecutor(Executor):
    name = "api"

    def build_url(self, context: ExecutionContext) -> str:
        endpoint = context.endpoint
        path = endpoint.path_template
        for param in endpoint.parameters_in("path"):
            value = context.payload.get(param.name)
            if value is not None:
                path = path.replace(f"{{{param.name}}}", quote(str(value), safe=""))
        if "{" in path:
            raise ExecutorError(f"Failed to resolve path parameters: {path}")
        if _is_absolute(path):
            return path
        base = (context.base_url or "").rstrip("/")
        return f"{base}{path}"

    async def execute(self, context: ExecutionContext) -> ExecutionResult:
        endpoint = context.endpoint
        payload = context.payload
        url = self.build_url(context)

        params: Dict[str, Any] = {}
        headers: Dict[str, str] = {}
        for param in endpoint.execution_parameters:
            value = payload.get(param.name)
            if value is None:
                continue
            if param.location == "query":
                params[param.name] = query_value(value)
            elif param.location == "header":
                headers[param.name.lower()] = str(value)
            elif param.location == "cookie":
                context.request.cookies.setdefault(param.name, str(value))
        params.update(context.request.params)

        json_body: Any = None
        if endpoint.request_body_content_type:
            if "requestBody" in payload:
                json_body = payload["requestBody"]
            else:
                routed = {param.name for param in endpoint.execution_parameters}
                json_body = {key: value for key, value in payload.items() if key not in routed}
            headers["Content-Type"] = endpoint.request_body_content_type

        response = await send(
            context,
            endpoint.method,
            url,
            params=params or None,
            headers=merged_headers(context, headers),
            json_body=json_body,
        )
        return ExecutionResult(body=response_text(response), status_code=response.status_code)
