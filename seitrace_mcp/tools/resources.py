"""Resource/action tools exposed to LLM agents."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Union

from seitrace_mcp.dispatcher import Dispatcher, get_default_dispatcher
from seitrace_mcp.errors import InputError, RoutingError
from seitrace_mcp.snippets import generate_snippet

logger = logging.getLogger(__name__)


class ToolError(dict):
    """
    ``{"error": message}`` returned by a tool that failed.

    Serializes exactly like the plain error dict; ``kind`` names the failure
    class (routing, input, validation, network, executor, internal) for
    logging and metrics.
    """

    def __init__(self, message: str, kind: str) -> None:
        super().__init__(error=message)
        self.kind = kind


def _resolve(dispatcher: Optional[Dispatcher]) -> Dispatcher:
    return dispatcher if dispatcher is not None else get_default_dispatcher()


async def list_resources(*, detailed: bool = False, dispatcher: Optional[Dispatcher] = None) -> Dict[str, Any]:
    """
    List every resource in the catalog.

    Args:
        detailed: Return ``{"name", "description"}`` entries instead of bare names.
        dispatcher: Dispatcher override for testing.

    Returns:
        ``{"resources": [...]}`` sorted by name.
    """
    try:
        found = _resolve(dispatcher)
        return found.describe_resources() if detailed else found.list_resources()
    except Exception:
        logger.exception("Unexpected error listing resources", extra={"tool": "list_resources"})
        return ToolError("Unexpected error while listing resources.", "internal")


async def list_resource_actions(resource: str, *, dispatcher: Optional[Dispatcher] = None) -> Dict[str, Any]:
    """
    List the actions of one resource with their descriptions.

    Args:
        resource: Resource name as returned by ``list_resources``.
        dispatcher: Dispatcher override for testing.
    """
    try:
        return _resolve(dispatcher).list_resource_actions(resource)
    except RoutingError as exc:
        return ToolError(exc.message, exc.kind)
    except Exception:
        logger.exception("Unexpected error listing actions", extra={"tool": "list_resource_actions", "resource": resource})
        return ToolError("Unexpected error while listing resource actions.", "internal")


async def get_resource_action_schema(
    resource: str,
    action: str,
    *,
    dispatcher: Optional[Dispatcher] = None,
) -> Dict[str, Any]:
    """Return the JSON input schema of one action."""
    try:
        return _resolve(dispatcher).get_resource_action_schema(resource, action)
    except RoutingError as exc:
        return ToolError(exc.message, exc.kind)
    except Exception:
        logger.exception(
            "Unexpected error fetching action schema",
            extra={"tool": "get_resource_action_schema", "resource": resource, "action": action},
        )
        return ToolError("Unexpected error while retrieving the action schema.", "internal")


async def invoke_resource_action(
    resource: str,
    action: str,
    payload: Any = None,
    *,
    dispatcher: Optional[Dispatcher] = None,
) -> Union[str, Dict[str, str]]:
    """
    Run one action against its upstream.

    Args:
        resource: Resource name.
        action: Action name within the resource.
        payload: Object matching the action's input schema.
        dispatcher: Dispatcher override for testing.

    Returns:
        The rendered upstream response text, or ``{"error": ...}`` carrying
        the diagnostic when routing, validation or execution failed.
    """
    result = await _resolve(dispatcher).invoke(resource, action, payload)
    if result.is_error:
        return ToolError(result.body, result.error_kind or "executor")
    return result.render()


async def get_resource_action_snippet(
    resource: str,
    action: str,
    language: Optional[str] = None,
    payload: Optional[Dict[str, Any]] = None,
    *,
    dispatcher: Optional[Dispatcher] = None,
) -> Dict[str, Any]:
    """Return example client code for one action in the requested language."""
    try:
        return generate_snippet(_resolve(dispatcher), resource, action, language, payload)
    except (RoutingError, InputError) as exc:
        return ToolError(exc.message, exc.kind)
    except Exception:
        logger.exception(
            "Unexpected error generating snippet",
            extra={"tool": "get_resource_action_snippet", "resource": resource, "action": action},
        )
        return ToolError("Unexpected error while generating the snippet.", "internal")
