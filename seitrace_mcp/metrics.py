"""Minimal in-process metrics recorder (not suitable for multi-process aggregation)."""

from __future__ import annotations

from collections import Counter
from threading import Lock
from typing import Dict, Optional


class MetricsRecorder:
    def __init__(self) -> None:
        self._lock = Lock()
        self._requests = 0
        self._request_durations_ms: Dict[str, float] = {}
        self._tool_success: Counter[str] = Counter()
        self._tool_error: Counter[str] = Counter()
        self._tool_error_kinds: Dict[str, Counter[str]] = {}
        self._executor_success: Counter[str] = Counter()
        self._executor_error: Counter[str] = Counter()
        self._oauth_acquired = 0
        self._oauth_cache_hits = 0
        self._resolver_fallbacks: Counter[str] = Counter()

    def incr_request(self) -> None:
        with self._lock:
            self._requests += 1

    def record_duration(self, request_id: str, duration_ms: float) -> None:
        with self._lock:
            self._request_durations_ms[request_id] = duration_ms

    def record_tool(self, tool: str, *, success: bool, kind: Optional[str] = None) -> None:
        with self._lock:
            if success:
                self._tool_success[tool] += 1
            else:
                self._tool_error[tool] += 1
                self._tool_error_kinds.setdefault(tool, Counter())[kind or "tool"] += 1

    def record_executor(self, executor: str, *, success: bool) -> None:
        with self._lock:
            if success:
                self._executor_success[executor] += 1
            else:
                self._executor_error[executor] += 1

    def incr_oauth_acquired(self) -> None:
        with self._lock:
            self._oauth_acquired += 1

    def incr_oauth_cache_hit(self) -> None:
        with self._lock:
            self._oauth_cache_hits += 1

    def record_resolver_fallback(self, resolver: str) -> None:
        with self._lock:
            self._resolver_fallbacks[resolver] += 1

    def snapshot(self) -> Dict[str, object]:
        with self._lock:
            return {
                "requests": self._requests,
                "tool_success": dict(self._tool_success),
                "tool_error": dict(self._tool_error),
                "tool_error_kinds": {tool: dict(kinds) for tool, kinds in self._tool_error_kinds.items()},
                "executor_success": dict(self._executor_success),
                "executor_error": dict(self._executor_error),
                "oauth_tokens_acquired": self._oauth_acquired,
                "oauth_cache_hits": self._oauth_cache_hits,
                "resolver_fallbacks": dict(self._resolver_fallbacks),
                "recent_request_durations_ms": dict(self._request_durations_ms),
            }

    def reset(self) -> None:
        with self._lock:
            self._requests = 0
            self._request_durations_ms.clear()
            self._tool_success.clear()
            self._tool_error.clear()
            self._tool_error_kinds.clear()
            self._executor_success.clear()
            self._executor_error.clear()
            self._oauth_acquired = 0
            self._oauth_cache_hits = 0
            self._resolver_fallbacks.clear()


default_metrics = MetricsRecorder()
