"""Resolvers for the earnings (APR/APY) pool listing."""

from __future__ import annotations

from typing import Any, Dict, Optional

from seitrace_mcp.resolvers.common import clamp_limit, load_body, reshape, upstream_error
from seitrace_mcp.types import ExecutionResult

DEFAULT_EARNING_RESULTS = 20
EARNING_URL_TEMPLATE = "https://seitrace.com/earning/{address}"


def _items(parsed: Any) -> list:
    if isinstance(parsed, dict) and isinstance(parsed.get("items"), list):
        return [item for item in parsed["items"] if isinstance(item, dict)]
    return []


def _provider(item: Dict[str, Any]) -> str:
    provider = item.get("provider")
    if isinstance(provider, dict):
        return str(provider.get("provider_name") or "")
    return ""


def simplify_pool(item: Dict[str, Any]) -> Dict[str, Any]:
    address = item.get("pool_address") or ""
    return {
        "name": item.get("pool_name"),
        "address": address,
        "url": EARNING_URL_TEMPLATE.format(address=address) if address else None,
        "image": item.get("pool_image"),
        "provider": _provider(item) or None,
        "tvl": item.get("tvl"),
        "apr": item.get("total_apr"),
        "apy": item.get("total_apy"),
    }


def search_earnings(result: ExecutionResult, payload: Optional[Dict[str, Any]] = None) -> ExecutionResult:
    parsed = load_body(result)
    if upstream_error(parsed):
        return result
    payload = payload or {}
    terms = str(payload.get("search_terms") or "").strip().lower()
    limit = clamp_limit(payload.get("limit"), DEFAULT_EARNING_RESULTS)

    items = _items(parsed)
    if terms:
        items = [
            item
            for item in items
            if terms in str(item.get("pool_name") or "").lower()
            or terms in _provider(item).lower()
            or terms in str(item.get("pool_address") or "").lower()
        ]
    simplified = [simplify_pool(item) for item in items[:limit]]
    return reshape(result, {"items": simplified, "count": len(simplified)})


def get_earning_details(result: ExecutionResult, payload: Optional[Dict[str, Any]] = None) -> ExecutionResult:
    parsed = load_body(result)
    if upstream_error(parsed):
        return result
    pool_address = (payload or {}).get("pool_address")
    wanted = str(pool_address or "").lower()
    if not wanted:
        return reshape(result, {"error": "pool_address not provided to resolver"})
    for item in _items(parsed):
        if str(item.get("pool_address") or "").lower() == wanted:
            return reshape(result, {"item": simplify_pool(item)})
    return reshape(result, {"error": "EARNING_NOT_FOUND", "pool_address": pool_address})
