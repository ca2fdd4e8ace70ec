"""Immutable catalog types and the per-call result shape."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple


@dataclass(frozen=True, slots=True)
class ExecutionParameter:
    name: str
    location: str = "query"


@dataclass(frozen=True, slots=True)
class SecurityRequirement:
    """An AND-group of (scheme name, scopes) pairs."""

    schemes: Tuple[Tuple[str, Tuple[str, ...]], ...] = ()

    @classmethod
    def of(cls, mapping: Mapping[str, Any]) -> "SecurityRequirement":
        return cls(tuple((name, tuple(scopes or ())) for name, scopes in mapping.items()))

    def describe(self) -> str:
        parts = []
        for name, scopes in self.schemes:
            if scopes:
                parts.append(f"{name} (scopes: {', '.join(scopes)})")
            else:
                parts.append(name)
        return f"[{' AND '.join(parts)}]"


@dataclass(frozen=True, slots=True)
class OAuthFlow:
    token_url: Optional[str] = None
    scopes: Tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class SecurityScheme:
    kind: str
    location: Optional[str] = None
    parameter_name: Optional[str] = None
    http_scheme: Optional[str] = None
    flows: Mapping[str, OAuthFlow] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class EndpointDescription:
    name: str
    description: str
    input_schema: Any
    method: str = "get"
    path_template: str = ""
    execution_parameters: Tuple[ExecutionParameter, ...] = ()
    request_body_content_type: Optional[str] = None
    security_requirements: Tuple[SecurityRequirement, ...] = ()
    executor: Optional[str] = None
    resolver: Optional[str] = None
    static_response: Optional[Any] = None
    snippet_generator: Optional[str] = "oas"

    def parameters_in(self, location: str) -> Tuple[ExecutionParameter, ...]:
        return tuple(p for p in self.execution_parameters if p.location == location)


@dataclass(slots=True)
class Resource:
    name: str
    topic: str
    description: str = ""
    actions: Dict[str, EndpointDescription] = field(default_factory=dict)


@dataclass(slots=True)
class Topic:
    """A namespace of resources sharing a base URL and security schemes."""

    key: str
    base_url: str = ""
    chain_routed: bool = False
    security_schemes: Dict[str, SecurityScheme] = field(default_factory=dict)
    resources: Dict[str, Resource] = field(default_factory=dict)


@dataclass(slots=True)
class OutboundRequest:
    """Credential material gathered for one call, merged in by the executor."""

    headers: Dict[str, str] = field(default_factory=dict)
    params: Dict[str, str] = field(default_factory=dict)
    cookies: Dict[str, str] = field(default_factory=dict)

    def cookie_header(self) -> Optional[str]:
        if not self.cookies:
            return None
        return "; ".join(f"{name}={value}" for name, value in self.cookies.items())


@dataclass(slots=True)
class ExecutionResult:
    body: str
    status_code: Optional[int] = None
    is_error: bool = False
    error_kind: Optional[str] = None

    @classmethod
    def error(cls, message: str, kind: str) -> "ExecutionResult":
        return cls(body=message, is_error=True, error_kind=kind)

    def render(self) -> str:
        if self.is_error or self.status_code is None:
            return self.body
        return f"API Response (Status: {self.status_code}):\n{self.body}"
