"""Resolvers for gateway asset and token listings."""

from __future__ import annotations

from typing import Any, Dict, Optional

from seitrace_mcp.resolvers.common import clamp_limit, list_items, load_body, reshape, upstream_error
from seitrace_mcp.types import ExecutionResult

DEFAULT_ASSET_RESULTS = 10
MAX_GATEWAY_TOKENS = 10


def asset_identifier(asset: Dict[str, Any]) -> str:
    for key in ("identifier", "id", "denom"):
        value = asset.get(key)
        if isinstance(value, str) and value:
            return value
    return ""


def search_assets(result: ExecutionResult, payload: Optional[Dict[str, Any]] = None) -> ExecutionResult:
    """Filter the full asset list by name, symbol or identifier."""
    parsed = load_body(result)
    if upstream_error(parsed):
        return result
    payload = payload or {}
    query = str(payload.get("query") or "").strip().lower()
    limit = clamp_limit(payload.get("limit"), DEFAULT_ASSET_RESULTS)

    assets = [asset for asset in list_items(parsed) if isinstance(asset, dict)]
    if query:
        assets = [
            asset
            for asset in assets
            if query in str(asset.get("name") or "").lower()
            or query in str(asset.get("symbol") or "").lower()
            or query in asset_identifier(asset).lower()
        ]

    simplified = [
        {
            "identifier": asset_identifier(asset) or None,
            "name": asset.get("name"),
            "symbol": asset.get("symbol"),
            "denom": asset.get("denom"),
            "decimals": asset.get("decimals"),
            "address": asset.get("address"),
            "type": asset.get("type"),
        }
        for asset in assets[:limit]
    ]
    return reshape(result, {"assets": simplified})


def get_asset_details(result: ExecutionResult, payload: Optional[Dict[str, Any]] = None) -> ExecutionResult:
    parsed = load_body(result)
    if upstream_error(parsed):
        return result
    identifier = str((payload or {}).get("identifier") or "").lower()
    if not identifier:
        return reshape(result, {"error": "Identifier not provided to resolver"})
    for asset in list_items(parsed):
        if isinstance(asset, dict) and asset_identifier(asset).lower() == identifier:
            return reshape(result, {"asset": asset})
    return reshape(result, {"error": "Asset not found", "identifier": identifier})


def simplify_gateway_tokens(result: ExecutionResult, payload: Optional[Dict[str, Any]] = None) -> ExecutionResult:
    """Trim a gateway token search to the first entries with basic fields."""
    parsed = load_body(result)
    if upstream_error(parsed):
        return result
    items = []
    for item in list_items(parsed)[:MAX_GATEWAY_TOKENS]:
        if not isinstance(item, dict):
            continue
        items.append(
            {
                key: item[key] if isinstance(item.get(key), str) else None
                for key in ("address", "name", "symbol", "type")
            }
        )
    return reshape(result, {"items": items})
