"""FastAPI application wiring the Seitrace MCP tools to HTTP routes."""

from __future__ import annotations

import json
import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, Awaitable, Callable, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from seitrace_mcp import mcp
from seitrace_mcp.config import default_config
from seitrace_mcp.dispatcher import close_default_dispatcher
from seitrace_mcp.metrics import default_metrics
from seitrace_mcp.tools import (
    get_resource_action_schema,
    get_resource_action_snippet,
    invoke_resource_action,
    list_resource_actions,
    list_resources,
)

logger = logging.getLogger(__name__)

LOG_EXTRAS = ("tool", "resource", "action", "request_id", "error", "error_kind")


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record.levelname,
            "message": record.getMessage(),
            "name": record.name,
        }
        for key in LOG_EXTRAS:
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        return json.dumps(payload, default=str)


_log_level = getattr(logging, default_config.log_level.upper(), logging.INFO)
if default_config.log_format.lower() == "json":
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    logging.basicConfig(level=_log_level, handlers=[handler])
else:
    logging.basicConfig(level=_log_level)

HEALTH_STATUS = {"status": "ok"}
APP_VERSION = "0.1.0"
MCP_SERVER_NAME = "seitrace-mcp-server"
MCP_SERVER_VERSION = APP_VERSION

# JSON-RPC 2.0 error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602


@asynccontextmanager
async def lifespan(_app: FastAPI):
    yield
    await close_default_dispatcher()


app = FastAPI(
    title="Seitrace MCP Server",
    description="Seitrace insights, gateway and Sei RPC/LCD resources for LLM agents.",
    version=APP_VERSION,
    lifespan=lifespan,
)


@app.middleware("http")
async def add_request_context(request: Request, call_next):
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id
    start = time.time()
    default_metrics.incr_request()
    response = await call_next(request)
    duration_ms = (time.time() - start) * 1000
    default_metrics.record_duration(request_id, duration_ms)
    response.headers["X-Request-ID"] = request_id
    return response


def _error_kind(result: Any) -> Optional[str]:
    if isinstance(result, dict) and result.get("error"):
        return getattr(result, "kind", None) or "tool"
    return None


def _log_tool_result(
    tool_name: str,
    result: Any,
    request_id: Optional[str] = None,
    *,
    resource: Optional[str] = None,
    action: Optional[str] = None,
) -> None:
    extra: Dict[str, Any] = {"tool": tool_name, "request_id": request_id}
    if resource is not None:
        extra["resource"] = resource
    if action is not None:
        extra["action"] = action
    kind = _error_kind(result)
    if kind is not None:
        logger.warning(
            "tool=%s resource=%s action=%s outcome=error kind=%s error=%s",
            tool_name,
            resource,
            action,
            kind,
            result.get("error"),
            extra={**extra, "error": result.get("error"), "error_kind": kind},
        )
        default_metrics.record_tool(tool_name, success=False, kind=kind)
    else:
        logger.info("tool=%s resource=%s action=%s outcome=success", tool_name, resource, action, extra=extra)
        default_metrics.record_tool(tool_name, success=True)


async def _json_body(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        return None


@app.get("/health")
async def health() -> JSONResponse:
    """Lightweight health endpoint for monitoring."""
    return JSONResponse(content=HEALTH_STATUS)


@app.get("/metrics")
async def metrics() -> JSONResponse:
    """Return in-process metrics snapshot."""
    return JSONResponse(content=default_metrics.snapshot())


@app.get("/resources")
async def resources_route(request: Request, detailed: bool = False) -> JSONResponse:
    """Proxy for list_resources tool; ``?detailed=true`` adds resource descriptions."""
    result = await list_resources(detailed=detailed)
    _log_tool_result("list_resources", result, getattr(request.state, "request_id", None))
    return JSONResponse(content=result)


@app.get("/resources/{resource}/actions")
async def resource_actions_route(resource: str, request: Request) -> JSONResponse:
    """Proxy for list_resource_actions tool."""
    result = await list_resource_actions(resource)
    _log_tool_result(
        "list_resource_actions",
        result,
        getattr(request.state, "request_id", None),
        resource=resource,
    )
    return JSONResponse(content=result)


@app.get("/resources/{resource}/actions/{action}/schema")
async def action_schema_route(resource: str, action: str, request: Request) -> JSONResponse:
    """Proxy for get_resource_action_schema tool."""
    result = await get_resource_action_schema(resource, action)
    _log_tool_result(
        "get_resource_action_schema",
        result,
        getattr(request.state, "request_id", None),
        resource=resource,
        action=action,
    )
    return JSONResponse(content=result)


@app.post("/resources/{resource}/actions/{action}")
async def invoke_action_route(resource: str, action: str, request: Request) -> JSONResponse:
    """Proxy for invoke_resource_action tool; the request body is the payload."""
    payload = await _json_body(request)
    result = await invoke_resource_action(resource, action, payload)
    _log_tool_result(
        "invoke_resource_action",
        result,
        getattr(request.state, "request_id", None),
        resource=resource,
        action=action,
    )
    if isinstance(result, dict):
        return JSONResponse(content=result)
    return JSONResponse(content={"resource": resource, "action": action, "result": result})


@app.post("/resources/{resource}/actions/{action}/snippet")
async def action_snippet_route(resource: str, action: str, request: Request) -> JSONResponse:
    """Proxy for get_resource_action_snippet tool; body is ``{"language", "payload"}``."""
    body = await _json_body(request)
    if not isinstance(body, dict):
        body = {}
    payload = body.get("payload")
    result = await get_resource_action_snippet(
        resource,
        action,
        body.get("language"),
        payload if isinstance(payload, dict) else None,
    )
    _log_tool_result(
        "get_resource_action_snippet",
        result,
        getattr(request.state, "request_id", None),
        resource=resource,
        action=action,
    )
    return JSONResponse(content=result)


class JsonRpcError(Exception):
    """A JSON-RPC failure answered with an ``error`` member."""

    def __init__(self, code: int, message: str, *, status_code: int = 200) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code


RpcHandler = Callable[[Dict[str, Any], Optional[str]], Awaitable[Any]]


async def _rpc_initialize(params: Dict[str, Any], request_id: Optional[str]) -> Dict[str, Any]:
    protocol_version = params.get("protocolVersion")
    if not isinstance(protocol_version, str) or not protocol_version:
        raise JsonRpcError(INVALID_PARAMS, "Invalid params")
    logger.debug("mcp initialize protocol=%s", protocol_version, extra={"request_id": request_id})
    return {
        "protocolVersion": protocol_version,
        "serverInfo": {"name": MCP_SERVER_NAME, "version": MCP_SERVER_VERSION},
        "capabilities": {"tools": {"listChanged": False}},
    }


async def _rpc_list_tools(params: Dict[str, Any], request_id: Optional[str]) -> Dict[str, Any]:
    return {"tools": mcp.list_tools()}


async def _rpc_call_tool(params: Dict[str, Any], request_id: Optional[str]) -> Dict[str, Any]:
    """Run one tool; ``params`` carries ``name``/``arguments`` (or ``tool``/``params``)."""
    tool_name = params.get("tool") or params.get("name")
    arguments = params.get("params")
    if arguments is None:
        arguments = params.get("arguments") or {}
    if not isinstance(tool_name, str) or not tool_name.strip() or not isinstance(arguments, dict):
        raise JsonRpcError(INVALID_PARAMS, "Invalid params")

    resource = arguments.get("resource")
    action = arguments.get("action")
    result = await mcp.call_tool(tool_name, arguments)
    _log_tool_result(
        tool_name,
        result,
        request_id,
        resource=resource if isinstance(resource, str) else None,
        action=action if isinstance(action, str) else None,
    )
    return _wrap_tool_result(result)


MCP_METHODS: Dict[str, RpcHandler] = {
    "initialize": _rpc_initialize,
    "list_tools": _rpc_list_tools,
    "tools/list": _rpc_list_tools,
    "call_tool": _rpc_call_tool,
    "tools/call": _rpc_call_tool,
}

# Notifications carry no JSON-RPC response body.
MCP_NOTIFICATIONS = frozenset({"notifications/initialized", "initialized"})


@app.post("/mcp")
async def mcp_gateway(request: Request) -> Response:
    """
    JSON-RPC gateway for MCP clients.

    Methods are looked up in ``MCP_METHODS``; ``MCP_NOTIFICATIONS`` are
    acknowledged with an empty 204. Tool failures stay in-band as
    ``isError`` results; only envelope problems become JSON-RPC errors.
    """
    request_id = getattr(request.state, "request_id", None)
    start_time = time.time()
    rpc_id: Any = None
    method: Any = None

    try:
        try:
            body = await request.json()
        except ValueError:
            raise JsonRpcError(PARSE_ERROR, "Parse error", status_code=400) from None
        if not isinstance(body, dict):
            raise JsonRpcError(INVALID_REQUEST, "Invalid request", status_code=400)

        rpc_id = body.get("id")
        method = body.get("method")
        params = body.get("params")
        if params is None:
            params = {}
        elif not isinstance(params, dict):
            raise JsonRpcError(INVALID_PARAMS, "Invalid params")
        if not isinstance(method, str) or not method:
            raise JsonRpcError(INVALID_REQUEST, "Invalid request")

        if method in MCP_NOTIFICATIONS:
            logger.debug("mcp notification method=%s", method, extra={"request_id": request_id})
            return Response(status_code=204)

        rpc_handler = MCP_METHODS.get(method)
        if rpc_handler is None:
            raise JsonRpcError(METHOD_NOT_FOUND, "Method not found")
        result = await rpc_handler(params, request_id)
    except JsonRpcError as exc:
        logger.debug(
            "mcp method=%s id=%s outcome=error code=%s duration_ms=%.2f",
            method,
            rpc_id,
            exc.code,
            (time.time() - start_time) * 1000,
            extra={"request_id": request_id, "error": exc.code},
        )
        return JSONResponse(status_code=exc.status_code, content=_jsonrpc_error_payload(rpc_id, exc.code, exc.message))

    logger.debug(
        "mcp method=%s id=%s outcome=success duration_ms=%.2f",
        method,
        rpc_id,
        (time.time() - start_time) * 1000,
        extra={"request_id": request_id},
    )
    return JSONResponse(content=_jsonrpc_success_payload(rpc_id, result))


# Run with: uvicorn seitrace_mcp.server:app --reload


def _jsonrpc_success_payload(rpc_id: Any, result: Any) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": rpc_id, "result": result}


def _jsonrpc_error_payload(rpc_id: Any, code: int, message: str) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": rpc_id, "error": {"code": code, "message": message}}


def _wrap_tool_result(result: Any) -> Dict[str, Any]:
    """
    Shape tool outputs into MCP-friendly content array.

    Errors are returned in-band with ``isError`` and the failure kind under
    ``_meta.errorKind``; rendered upstream responses are plain text.
    """
    kind = _error_kind(result)
    if kind is not None:
        return {
            "content": [{"type": "text", "text": str(result["error"])}],
            "isError": True,
            "structuredContent": dict(result),
            "_meta": {"errorKind": kind},
        }

    if isinstance(result, str):
        return {"content": [{"type": "text", "text": result}]}

    return {
        "content": [{"type": "text", "text": json.dumps(result, ensure_ascii=True, default=str)}],
        "structuredContent": result,
    }
