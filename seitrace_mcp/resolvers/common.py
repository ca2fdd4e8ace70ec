"""Helpers shared by result resolvers."""

from __future__ import annotations

import json
from typing import Any, List

from seitrace_mcp.types import ExecutionResult


def load_body(result: ExecutionResult) -> Any:
    """Parse the result body as JSON; malformed bodies raise ValueError."""
    return json.loads(result.body)


def reshape(result: ExecutionResult, data: Any) -> ExecutionResult:
    return ExecutionResult(body=json.dumps(data), status_code=result.status_code)


def list_items(parsed: Any) -> List[Any]:
    if isinstance(parsed, list):
        return parsed
    if isinstance(parsed, dict) and isinstance(parsed.get("items"), list):
        return parsed["items"]
    return []


def upstream_error(parsed: Any) -> bool:
    return isinstance(parsed, dict) and bool(parsed.get("error"))


def clamp_limit(raw: Any, default: int, maximum: int = 50) -> int:
    try:
        limit = int(raw) if raw else default
    except (TypeError, ValueError):
        return default
    return max(1, min(maximum, limit))
