"""
Lightweight JSON-RPC surface for MCP-style tooling.

Five generic tools cover the whole catalog: discover resources, list their
actions, fetch an action's schema, invoke it, and render a client snippet.
Callers must handle authentication to the HTTP server hosting this adapter.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from seitrace_mcp.snippets import SUPPORTED_LANGUAGES
from seitrace_mcp.tools import (
    ToolError,
    get_resource_action_schema,
    get_resource_action_snippet,
    invoke_resource_action,
    list_resource_actions,
    list_resources,
)

logger = logging.getLogger(__name__)

ToolCallable = Callable[..., Awaitable[Any]] | Callable[..., Any]

_RESOURCE = {"type": "string", "description": "Resource name from list_resources"}
_ACTION = {"type": "string", "description": "Action name from list_resource_actions"}


@dataclass(slots=True)
class ToolDefinition:
    name: str
    description: str
    params: Dict[str, Any]
    input_schema: Dict[str, Any]
    callable: ToolCallable


TOOL_REGISTRY: Dict[str, ToolDefinition] = {
    "list_resources": ToolDefinition(
        name="list_resources",
        description="List the Seitrace resources available to this server, optionally with descriptions.",
        params={"detailed": "boolean?"},
        input_schema={
            "type": "object",
            "properties": {
                "detailed": {"type": "boolean", "description": "Include a short description of each resource"},
            },
            "required": [],
            "additionalProperties": False,
        },
        callable=list_resources,
    ),
    "list_resource_actions": ToolDefinition(
        name="list_resource_actions",
        description="List the actions of a resource with short descriptions.",
        params={"resource": "string"},
        input_schema={
            "type": "object",
            "properties": {"resource": _RESOURCE},
            "required": ["resource"],
            "additionalProperties": False,
        },
        callable=list_resource_actions,
    ),
    "get_resource_action_schema": ToolDefinition(
        name="get_resource_action_schema",
        description="Return the JSON schema of an action's payload.",
        params={"resource": "string", "action": "string"},
        input_schema={
            "type": "object",
            "properties": {"resource": _RESOURCE, "action": _ACTION},
            "required": ["resource", "action"],
            "additionalProperties": False,
        },
        callable=get_resource_action_schema,
    ),
    "invoke_resource_action": ToolDefinition(
        name="invoke_resource_action",
        description="Invoke an action with a payload matching its schema and return the upstream response.",
        params={"resource": "string", "action": "string", "payload": "object"},
        input_schema={
            "type": "object",
            "properties": {
                "resource": _RESOURCE,
                "action": _ACTION,
                "payload": {"type": "object", "description": "Arguments matching the action schema"},
            },
            "required": ["resource", "action", "payload"],
            "additionalProperties": False,
        },
        callable=invoke_resource_action,
    ),
    "get_resource_action_snippet": ToolDefinition(
        name="get_resource_action_snippet",
        description="Generate example client code that performs an action.",
        params={"resource": "string", "action": "string", "language": "string", "payload": "object?"},
        input_schema={
            "type": "object",
            "properties": {
                "resource": _RESOURCE,
                "action": _ACTION,
                "language": {"type": "string", "enum": list(SUPPORTED_LANGUAGES)},
                "payload": {"type": "object", "description": "Optional example arguments"},
            },
            "required": ["resource", "action", "language"],
            "additionalProperties": False,
        },
        callable=get_resource_action_snippet,
    ),
}


def list_tools() -> List[Dict[str, Any]]:
    """Return a simple list of available tools."""
    return [
        {
            "name": tool.name,
            "description": tool.description,
            "params": tool.params,
            "inputSchema": tool.input_schema,
        }
        for tool in TOOL_REGISTRY.values()
    ]


async def call_tool(tool_name: str, params: Optional[Dict[str, Any]] = None) -> Any:
    """Dispatch to a tool by name."""
    params = params or {}
    tool = TOOL_REGISTRY.get(tool_name)
    if tool is None:
        return ToolError(f"Unknown tool: {tool_name}", "unknown_tool")
    if any(key not in tool.params for key in params):
        return ToolError("Invalid parameters.", "invalid_params")

    try:
        result = tool.callable(**params)
        if isinstance(result, Awaitable):
            return await result  # type: ignore[return-value]
        return result
    except TypeError:
        return ToolError("Invalid parameters.", "invalid_params")
    except Exception:
        logger.exception("Unexpected error calling tool %s", tool_name, extra={"tool": tool_name})
        return ToolError("Unexpected error while calling tool.", "internal")
