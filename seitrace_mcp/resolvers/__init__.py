"""Per-action result resolvers keyed by the endpoint description's resolver selector."""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from seitrace_mcp.errors import ConfigurationError
from seitrace_mcp.types import ExecutionResult

from .assets import get_asset_details, search_assets, simplify_gateway_tokens
from .associations import resolve_associations
from .contracts import extract_abi, simplify_contract_search
from .earnings import get_earning_details, search_earnings

Resolver = Callable[[ExecutionResult, Optional[Dict[str, Any]]], ExecutionResult]

RESOLVERS: Dict[str, Resolver] = {
    "smartContract": extract_abi,
    "searchContracts": simplify_contract_search,
    "searchAssets": search_assets,
    "getAssetsDetails": get_asset_details,
    "searchGatewayTokens": simplify_gateway_tokens,
    "searchNativeTokens": simplify_gateway_tokens,
    "searchIcs20Tokens": simplify_gateway_tokens,
    "searchEarnings": search_earnings,
    "getEarningDetails": get_earning_details,
    "associations": resolve_associations,
}


def get_resolver(selector: Optional[str]) -> Optional[Resolver]:
    """Return the resolver for ``selector``, or None when no selector is set."""
    if not selector:
        return None
    resolver = RESOLVERS.get(selector)
    if resolver is None:
        raise ConfigurationError(
            f"Unknown resolver '{selector}'. Known resolvers: {', '.join(sorted(RESOLVERS))}"
        )
    return resolver


__all__ = ["RESOLVERS", "Resolver", "get_resolver"]
