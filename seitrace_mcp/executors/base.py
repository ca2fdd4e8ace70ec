"""Shared executor context, HTTP sending and response/error formatting."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

import httpx

from seitrace_mcp.config import SeitraceConfig
from seitrace_mcp.errors import ExecutorError, NetworkError
from seitrace_mcp.types import EndpointDescription, ExecutionResult, OutboundRequest, SecurityScheme

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ExecutionContext:
    tool_name: str
    endpoint: EndpointDescription
    payload: Dict[str, Any]
    client: httpx.AsyncClient
    config: SeitraceConfig
    security_schemes: Mapping[str, SecurityScheme] = field(default_factory=dict)
    base_url: Optional[str] = None
    request: OutboundRequest = field(default_factory=OutboundRequest)
    action_name: str = ""


class Executor:
    """Base class for protocol executors."""

    name = ""

    async def execute(self, context: ExecutionContext) -> ExecutionResult:
        raise NotImplementedError


def _truncate(text: str, limit: int) -> str:
    if len(text) > limit:
        return f"{text[:limit]}..."
    return text


def response_text(response: httpx.Response) -> str:
    """Normalize a response body to text, re-serializing JSON compactly."""
    if not response.content:
        return f"(Status: {response.status_code} - No body content)"
    content_type = response.headers.get("content-type", "").lower()
    if "application/json" in content_type:
        try:
            return json.dumps(response.json(), separators=(",", ":"), ensure_ascii=False)
        except ValueError:
            return response.text
    return response.text


def format_status_error(response: httpx.Response, snippet_length: int) -> NetworkError:
    reason = response.reason_phrase or "Status text not available"
    message = f"API Error: Status {response.status_code} ({reason}). "
    snippet: Optional[str] = None
    if response.content:
        snippet = _truncate(response_text(response), snippet_length)
        message += f"Response: {snippet}"
    else:
        message += "No response body received."
    return NetworkError(message, status_code=response.status_code, reason=reason, snippet=snippet)


async def send(
    context: ExecutionContext,
    method: str,
    url: str,
    *,
    params: Any = None,
    headers: Optional[Dict[str, str]] = None,
    json_body: Any = None,
    content: Optional[str] = None,
) -> httpx.Response:
    """Issue one request, raising NetworkError for transport failures and non-2xx answers."""
    try:
        response = await context.client.request(
            method.upper(),
            url,
            params=params,
            headers=headers,
            json=json_body,
            content=content,
        )
    except httpx.InvalidURL as exc:
        raise NetworkError(f"API request failed. API Request Setup Error: {exc}") from exc
    except httpx.RequestError as exc:
        logger.warning(
            "Upstream unreachable tool=%s url=%s error=%s",
            context.tool_name,
            url,
            exc.__class__.__name__,
            extra={"tool": context.tool_name, "error": exc.__class__.__name__},
        )
        raise NetworkError(
            f"API Network Error: No response received from server. (Code: {exc.__class__.__name__})",
            code=exc.__class__.__name__,
        ) from exc

    if not 200 <= response.status_code < 300:
        error = format_status_error(response, context.config.error_snippet_length)
        logger.warning(
            "Upstream error tool=%s status=%s",
            context.tool_name,
            response.status_code,
            extra={"tool": context.tool_name, "error": response.status_code},
        )
        raise error
    return response


def merged_headers(context: ExecutionContext, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    headers = {"Accept": "application/json"}
    if extra:
        headers.update(extra)
    headers.update(context.request.headers)
    cookie = context.request.cookie_header()
    if cookie:
        headers["Cookie"] = cookie
    return headers


def query_value(value: Any) -> Any:
    """Shape one query parameter value; lists repeat, mappings are JSON text."""
    if isinstance(value, (list, tuple)):
        return [query_value(item) for item in value]
    if isinstance(value, dict):
        return json.dumps(value, separators=(",", ":"))
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


def resolve_network_endpoint(
    context: ExecutionContext, *, family: str, kind: str, label: str, hint: str = "a custom endpoint"
) -> str:
    """Pick the endpoint override, or the first configured URL for ``chain_id``."""
    endpoint = context.payload.get("endpoint")
    if isinstance(endpoint, str) and endpoint.strip():
        return endpoint.strip()

    connections = context.config.connections
    chains = ", ".join(connections)
    chain_id = context.payload.get("chain_id")
    if not chain_id:
        raise ExecutorError(f"Missing 'endpoint' or 'chain_id'. Provide {hint} or one of: {chains}.")
    details = connections.get(chain_id)
    if details is None:
        raise ExecutorError(f"Unknown chain_id '{chain_id}'. Expected one of: {chains}.")
    urls: List[str] = list((details.get(family) or {}).get(kind) or [])
    if not urls:
        raise ExecutorError(f"No {label} endpoints configured for chain '{chain_id}'.")
    return urls[0]
