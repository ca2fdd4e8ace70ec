"""
Exception hierarchy for the dispatch engine.

Executors, the router and the validator raise these; the dispatcher catches
them at its boundary and turns them into user-facing diagnostics.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence


class SeitraceMcpError(Exception):
    """Base exception for dispatch errors."""

    kind = "error"

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code


class RoutingError(SeitraceMcpError):
    """Raised when a resource or action name is unknown."""

    kind = "routing"

    def __init__(self, message: str, *, alternatives: Sequence[str] = ()) -> None:
        super().__init__(message, code="NOT_FOUND")
        self.alternatives: List[str] = sorted(alternatives)


class InputError(SeitraceMcpError):
    """Raised when the payload is missing or not an object."""

    kind = "input"


@dataclass(slots=True)
class ValidationIssue:
    path: str
    rule: str
    message: str

    def render(self) -> str:
        return f"{self.path or '(root)'} ({self.rule}): {self.message}"


class SchemaValidationError(SeitraceMcpError):
    """Raised when a payload violates an action's input schema."""

    kind = "validation"

    def __init__(self, issues: Sequence[ValidationIssue]) -> None:
        self.issues: List[ValidationIssue] = list(issues)
        super().__init__(", ".join(issue.render() for issue in self.issues), code="INVALID_ARGUMENTS")


class ConfigurationError(SeitraceMcpError):
    """Raised at start-up for unknown executor or resolver selectors."""

    kind = "configuration"


class ExecutorError(SeitraceMcpError):
    """Raised when executor-specific preconditions are not met."""

    kind = "executor"


class NetworkError(SeitraceMcpError):
    """Raised when the upstream is unreachable or answers with a non-2xx status."""

    kind = "network"

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        reason: Optional[str] = None,
        snippet: Optional[str] = None,
        code: Optional[str] = None,
    ) -> None:
        super().__init__(message, code=code, status_code=status_code)
        self.reason = reason
        self.snippet = snippet
