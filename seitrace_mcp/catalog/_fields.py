"""Schema fragments shared by catalog modules."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Tuple

from seitrace_mcp.chains import SUPPORTED_CHAINS
from seitrace_mcp.types import ExecutionParameter

Property = Tuple[str, Dict[str, Any]]

GATEWAY_ENDPOINT_HINT = "https://pacific-1-gateway.seitrace.com"


def chain_id(description: str = "Chain ID", chains: Iterable[str] = SUPPORTED_CHAINS) -> Property:
    return "chain_id", {"enum": list(chains), "type": "string", "description": description}


def string(name: str, description: str, **extra: Any) -> Property:
    return name, {"type": "string", "description": description, **extra}


def string_list(name: str, description: str, **extra: Any) -> Property:
    return name, {"type": "array", "items": {"type": "string"}, "description": description, **extra}


def limit() -> Property:
    return "limit", {"maximum": 50, "type": "number", "description": "Limit of items to be returned, capped at 50"}


def offset() -> Property:
    return "offset", {"maximum": 500000, "type": "number", "description": "Offset"}


def gateway_chain_id() -> Property:
    return chain_id(
        "Chain ID to target (ignored if endpoint override provided). Only used to select the gateway host."
    )


def gateway_endpoint() -> Property:
    return string(
        "endpoint",
        f"Optional base URL override e.g. {GATEWAY_ENDPOINT_HINT}. If provided, chain_id is ignored.",
    )


def object_schema(
    properties: List[Property], required: List[str], *, closed: bool = False, **extra: Any
) -> Dict[str, Any]:
    schema: Dict[str, Any] = {
        "type": "object",
        "properties": dict(properties),
        "required": list(required),
    }
    if closed:
        schema["additionalProperties"] = False
    schema.update(extra)
    return schema


def query_parameters(properties: List[Property]) -> Tuple[ExecutionParameter, ...]:
    return tuple(ExecutionParameter(name, "query") for name, _schema in properties)
