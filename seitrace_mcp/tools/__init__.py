"""LLM-facing tool implementations."""

from .resources import (
    ToolError,
    get_resource_action_schema,
    get_resource_action_snippet,
    invoke_resource_action,
    list_resource_actions,
    list_resources,
)

__all__ = [
    "ToolError",
    "list_resources",
    "list_resource_actions",
    "get_resource_action_schema",
    "invoke_resource_action",
    "get_resource_action_snippet",
]
