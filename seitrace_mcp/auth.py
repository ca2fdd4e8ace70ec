"""
Security scheme negotiation and credential injection.

Credentials come from the process environment, one variable family per
scheme kind, keyed by the scheme name uppercased with every
non-alphanumeric character replaced by ``_``:

    SECRET_<KEY>                      apiKey
    BEARER_TOKEN_<KEY>                http bearer
    BASIC_USERNAME_<KEY> / BASIC_PASSWORD_<KEY>
    OAUTH_TOKEN_<KEY>                 pre-issued OAuth2 token
    OAUTH_CLIENT_ID_<KEY> / OAUTH_CLIENT_SECRET_<KEY> / OAUTH_SCOPES_<KEY>
    OPENID_TOKEN_<KEY>

Each variable may instead name a file through ``<VAR>_FILE``.
"""

from __future__ import annotations

import base64
import logging
import os
import re
import time
from dataclasses import dataclass
from pathlib import Path
from threading import Lock
from typing import Callable, Dict, Mapping, Optional, Sequence, Tuple

import httpx

from seitrace_mcp.config import SeitraceConfig, default_config
from seitrace_mcp.metrics import default_metrics
from seitrace_mcp.types import OAuthFlow, OutboundRequest, SecurityRequirement, SecurityScheme

logger = logging.getLogger(__name__)

OAUTH_TOKEN_FLOWS = ("clientCredentials", "password")


def token_flow(scheme: SecurityScheme) -> Optional[OAuthFlow]:
    """First flow with a token URL, preferring clientCredentials over password."""
    for flow_name in OAUTH_TOKEN_FLOWS:
        flow = scheme.flows.get(flow_name)
        if flow is not None and flow.token_url:
            return flow
    return None


class CredentialStore:
    """Read scheme credentials from an environment mapping."""

    def __init__(self, env: Optional[Mapping[str, str]] = None) -> None:
        self._env = env if env is not None else os.environ

    @staticmethod
    def key_for(scheme_name: str) -> str:
        return re.sub(r"[^A-Za-z0-9]", "_", scheme_name).upper()

    def get(self, prefix: str, scheme_name: str) -> Optional[str]:
        variable = f"{prefix}_{self.key_for(scheme_name)}"
        value = self._env.get(variable)
        if value and value.strip():
            return value.strip()
        file_path = self._env.get(f"{variable}_FILE")
        if file_path:
            path = Path(file_path)
            if path.is_file():
                return path.read_text(encoding="utf-8").strip() or None
        return None


@dataclass(slots=True)
class TokenCacheEntry:
    token: str
    expires_at: float


class TokenCache:
    """Process-wide OAuth2 token cache keyed by (scheme name, client id)."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._entries: Dict[Tuple[str, str], TokenCacheEntry] = {}

    def get(self, key: Tuple[str, str], now: float) -> Optional[str]:
        with self._lock:
            entry = self._entries.get(key)
        if entry is None or now >= entry.expires_at:
            return None
        return entry.token

    def put(self, key: Tuple[str, str], token: str, expires_at: float) -> None:
        with self._lock:
            self._entries[key] = TokenCacheEntry(token=token, expires_at=expires_at)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class SecurityNegotiator:
    """Pick the first satisfiable security requirement and inject its credentials."""

    def __init__(
        self,
        credentials: Optional[CredentialStore] = None,
        cache: Optional[TokenCache] = None,
        *,
        config: SeitraceConfig | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.credentials = credentials or CredentialStore()
        self.cache = cache if cache is not None else TokenCache()
        self.config = config or default_config
        self._clock = clock

    def is_satisfiable(self, requirement: SecurityRequirement, schemes: Mapping[str, SecurityScheme]) -> bool:
        for name, _scopes in requirement.schemes:
            scheme = schemes.get(name)
            if scheme is None or not self._scheme_satisfiable(name, scheme):
                return False
        return True

    def _scheme_satisfiable(self, name: str, scheme: SecurityScheme) -> bool:
        creds = self.credentials
        if scheme.kind == "apiKey":
            return creds.get("SECRET", name) is not None
        if scheme.kind == "http":
            http_scheme = (scheme.http_scheme or "").lower()
            if http_scheme == "bearer":
                return creds.get("BEARER_TOKEN", name) is not None
            if http_scheme == "basic":
                return creds.get("BASIC_USERNAME", name) is not None and creds.get("BASIC_PASSWORD", name) is not None
            return False
        if scheme.kind == "oauth2":
            if creds.get("OAUTH_TOKEN", name) is not None:
                return True
            has_client = creds.get("OAUTH_CLIENT_ID", name) is not None and creds.get("OAUTH_CLIENT_SECRET", name) is not None
            return has_client and token_flow(scheme) is not None
        if scheme.kind == "openIdConnect":
            return creds.get("OPENID_TOKEN", name) is not None
        return False

    def select(
        self,
        requirements: Sequence[SecurityRequirement],
        schemes: Mapping[str, SecurityScheme],
        *,
        tool_name: Optional[str] = None,
    ) -> Optional[SecurityRequirement]:
        for requirement in requirements:
            if self.is_satisfiable(requirement, schemes):
                return requirement
        if requirements:
            tried = " OR ".join(requirement.describe() for requirement in requirements)
            logger.warning(
                "No satisfiable security requirement for tool=%s, proceeding unauthenticated. Tried: %s",
                tool_name,
                tried,
                extra={"tool": tool_name},
            )
        return None

    async def apply(
        self,
        requirements: Sequence[SecurityRequirement],
        schemes: Mapping[str, SecurityScheme],
        request: OutboundRequest,
        client: httpx.AsyncClient,
        *,
        tool_name: Optional[str] = None,
    ) -> Optional[SecurityRequirement]:
        selected = self.select(requirements, schemes, tool_name=tool_name)
        if selected is None:
            return None
        for name, _scopes in selected.schemes:
            await self._apply_scheme(name, schemes[name], request, client)
        return selected

    async def _apply_scheme(
        self, name: str, scheme: SecurityScheme, request: OutboundRequest, client: httpx.AsyncClient
    ) -> None:
        creds = self.credentials
        if scheme.kind == "apiKey":
            secret = creds.get("SECRET", name)
            if secret is None or not scheme.parameter_name:
                return
            if scheme.location == "query":
                request.params[scheme.parameter_name] = secret
            elif scheme.location == "cookie":
                request.cookies[scheme.parameter_name] = secret
            else:
                request.headers[scheme.parameter_name] = secret
            return

        if scheme.kind == "http":
            if (scheme.http_scheme or "").lower() == "basic":
                username = creds.get("BASIC_USERNAME", name)
                password = creds.get("BASIC_PASSWORD", name)
                if username is None or password is None:
                    return
                encoded = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
                request.headers["Authorization"] = f"Basic {encoded}"
            else:
                token = creds.get("BEARER_TOKEN", name)
                if token is not None:
                    request.headers["Authorization"] = f"Bearer {token}"
            return

        if scheme.kind == "oauth2":
            token = self._cached_token(name)
            if token is None:
                token = creds.get("OAUTH_TOKEN", name)
            if token is None:
                token = await self.acquire_oauth_token(name, scheme, client)
            if token is not None:
                request.headers["Authorization"] = f"Bearer {token}"
            return

        if scheme.kind == "openIdConnect":
            token = creds.get("OPENID_TOKEN", name)
            if token is not None:
                request.headers["Authorization"] = f"Bearer {token}"

    def _cached_token(self, name: str) -> Optional[str]:
        client_id = self.credentials.get("OAUTH_CLIENT_ID", name)
        if client_id is None:
            return None
        token = self.cache.get((name, client_id), self._clock())
        if token is not None:
            default_metrics.incr_oauth_cache_hit()
        return token

    async def acquire_oauth_token(
        self, name: str, scheme: SecurityScheme, client: httpx.AsyncClient
    ) -> Optional[str]:
        """
        Return a bearer token for an OAuth2 scheme, fetching one when needed.

        Returns None on any failure; the call then proceeds without it.
        """
        client_id = self.credentials.get("OAUTH_CLIENT_ID", name)
        client_secret = self.credentials.get("OAUTH_CLIENT_SECRET", name)
        if client_id is None or client_secret is None:
            logger.warning("OAuth2 scheme %s has no client credentials configured", name)
            return None

        cached = self._cached_token(name)
        if cached is not None:
            return cached

        flow = token_flow(scheme)
        if flow is None:
            logger.warning("OAuth2 scheme %s declares no clientCredentials or password flow", name)
            return None

        form = {"grant_type": "client_credentials"}
        scopes = self.credentials.get("OAUTH_SCOPES", name)
        if scopes:
            form["scope"] = scopes

        try:
            response = await client.post(
                flow.token_url,
                data=form,
                auth=(client_id, client_secret),
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as exc:
            logger.warning("OAuth2 token request for %s failed: %s", name, exc.__class__.__name__)
            return None

        if not 200 <= response.status_code < 300:
            logger.warning("OAuth2 token request for %s returned status %s", name, response.status_code)
            return None
        try:
            token_data = response.json()
        except ValueError:
            logger.warning("OAuth2 token response for %s is not JSON", name)
            return None

        access_token = token_data.get("access_token") if isinstance(token_data, dict) else None
        if not isinstance(access_token, str) or not access_token:
            logger.warning("OAuth2 token response for %s has no access_token", name)
            return None

        try:
            expires_in = float(token_data.get("expires_in") or self.config.oauth_default_lifetime_seconds)
        except (TypeError, ValueError):
            expires_in = float(self.config.oauth_default_lifetime_seconds)
        expires_at = self._clock() + expires_in - self.config.oauth_expiry_margin_seconds
        self.cache.put((name, client_id), access_token, expires_at)
        default_metrics.incr_oauth_acquired()
        logger.info("Acquired OAuth2 token for scheme %s", name)
        return access_token
