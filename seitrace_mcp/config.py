"""
Configuration helpers for the Seitrace MCP server.

This module centralizes base URL selection, chain routing tables, default
timeouts and logging settings. No secrets are stored here; security scheme
credentials are read from the environment by ``seitrace_mcp.auth``.
"""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from seitrace_mcp.chains import (
    CANONICAL_MULTICALL3_ADDRESS,
    CONNECTION_DETAILS,
    EVM_RPC_URLS,
    GATEWAY_URLS,
    MULTICALL3_ADDRESSES,
)

# Default connection settings
DEFAULT_INSIGHTS_BASE_URL = os.getenv("SEITRACE_INSIGHTS_BASE_URL", "https://seitrace.com/insights")
DEFAULT_CHAIN = "pacific-1"


def _load_timeout() -> Optional[float]:
    # Unset means no client-side deadline; callers wrap calls if they need one.
    raw_timeout = os.getenv("SEITRACE_HTTP_TIMEOUT")
    if raw_timeout:
        try:
            return float(raw_timeout)
        except ValueError:
            return None
    return None


DEFAULT_TIMEOUT = _load_timeout()

# Response shaping
ERROR_SNIPPET_LENGTH = 200

# OAuth2 token lifetime handling
OAUTH_EXPIRY_MARGIN_SECONDS = 60
OAUTH_DEFAULT_LIFETIME_SECONDS = 3600

LOG_LEVEL = os.getenv("SEITRACE_MCP_LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("SEITRACE_MCP_LOG_FORMAT", "json")  # json or plain


@dataclass(slots=True)
class SeitraceConfig:
    """Runtime configuration for upstream Seitrace and Sei endpoints."""

    insights_base_url: str = DEFAULT_INSIGHTS_BASE_URL
    timeout: Optional[float] = DEFAULT_TIMEOUT
    default_chain: str = DEFAULT_CHAIN
    connections: Dict[str, Dict[str, Any]] = field(default_factory=lambda: copy.deepcopy(CONNECTION_DETAILS))
    gateway_urls: Dict[str, str] = field(default_factory=lambda: dict(GATEWAY_URLS))
    evm_rpc_urls: Dict[str, str] = field(default_factory=lambda: dict(EVM_RPC_URLS))
    multicall3_addresses: Dict[str, str] = field(default_factory=lambda: dict(MULTICALL3_ADDRESSES))
    error_snippet_length: int = ERROR_SNIPPET_LENGTH
    oauth_expiry_margin_seconds: int = OAUTH_EXPIRY_MARGIN_SECONDS
    oauth_default_lifetime_seconds: int = OAUTH_DEFAULT_LIFETIME_SECONDS
    log_level: str = LOG_LEVEL
    log_format: str = LOG_FORMAT

    def multicall3_address(self, chain_id: str) -> str:
        return self.multicall3_addresses.get(chain_id, CANONICAL_MULTICALL3_ADDRESS)


default_config = SeitraceConfig()
