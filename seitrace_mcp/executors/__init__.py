"""Protocol executors keyed by the endpoint description's executor selector."""

from __future__ import annotations

from typing import Dict, Optional

from seitrace_mcp.errors import ConfigurationError

from .api import ApiExecutor
from .base import ExecutionContext, Executor
from .gateway import GatewayExecutor
from .lcd import LcdExecutor
from .multicall import MulticallExecutor
from .rpc import RpcExecutor

EXECUTORS: Dict[str, Executor] = {
    executor.name: executor
    for executor in (ApiExecutor(), RpcExecutor(), LcdExecutor(), GatewayExecutor(), MulticallExecutor())
}


def get_executor(selector: Optional[str]) -> Executor:
    """Return the executor for ``selector``; ``None`` means ``api``."""
    key = selector or "api"
    executor = EXECUTORS.get(key)
    if executor is None:
        raise ConfigurationError(
            f"Unknown executor '{key}'. Known executors: {', '.join(sorted(EXECUTORS))}"
        )
    return executor


__all__ = [
    "EXECUTORS",
    "ExecutionContext",
    "Executor",
    "ApiExecutor",
    "GatewayExecutor",
    "LcdExecutor",
    "MulticallExecutor",
    "RpcExecutor",
    "get_executor",
]
