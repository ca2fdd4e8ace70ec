"""Resolvers for smart contract metadata responses."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from seitrace_mcp.resolvers.common import list_items, load_body, reshape, upstream_error
from seitrace_mcp.types import ExecutionResult

MAX_SEARCH_CONTRACTS = 5


def extract_abi(result: ExecutionResult, payload: Optional[Dict[str, Any]] = None) -> ExecutionResult:
    """Keep only the ``abi`` field of a contract detail response."""
    parsed = load_body(result)
    if upstream_error(parsed):
        return result
    if not isinstance(parsed, dict) or "abi" not in parsed:
        available = sorted(parsed) if isinstance(parsed, dict) else []
        return reshape(
            result,
            {"error": "ABI field not found in smart contract response", "available_fields": available},
        )
    return reshape(result, {"abi": parsed["abi"]})


def simplify_contract_search(result: ExecutionResult, payload: Optional[Dict[str, Any]] = None) -> ExecutionResult:
    parsed = load_body(result)
    if upstream_error(parsed):
        return result
    contracts: List[Dict[str, Any]] = []
    for contract in list_items(parsed)[:MAX_SEARCH_CONTRACTS]:
        if not isinstance(contract, dict):
            continue
        address = contract.get("address") if isinstance(contract.get("address"), dict) else {}
        item: Dict[str, Any] = {}
        if address.get("name"):
            item["name"] = address["name"]
        if address.get("hash"):
            item["hash"] = address["hash"]
        if contract.get("language"):
            item["language"] = contract["language"]
        if item.get("name") or item.get("hash"):
            contracts.append(item)
    return reshape(result, {"contracts": contracts})
