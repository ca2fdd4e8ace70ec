"""Resolver classifying EVM/Sei association mappings into pointer and pointee."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from seitrace_mcp.resolvers.common import load_body, reshape, upstream_error
from seitrace_mcp.types import ExecutionResult

# The Sei (native) side is the pointer for these creation types.
SEI_POINTER_TYPES = frozenset(
    {"CREATE_CW20_POINTER", "CREATE_CW721_POINTER", "CREATE_CW1155_POINTER", "CREATE_NATIVE_POINTER"}
)
# The EVM side is the pointer for these.
EVM_POINTER_TYPES = frozenset({"CREATE_ERC20_POINTER", "CREATE_ERC721_POINTER", "CREATE_ERC1155_POINTER"})


def classify_mapping(mapping: Dict[str, Any]) -> Dict[str, Any]:
    item = {
        "evm_hash": mapping.get("evm_hash"),
        "sei_hash": mapping.get("sei_hash"),
        "type": mapping.get("type"),
    }
    if item["type"] in SEI_POINTER_TYPES:
        item["pointer"] = item["sei_hash"]
        item["pointee"] = item["evm_hash"]
    elif item["type"] in EVM_POINTER_TYPES:
        item["pointer"] = item["evm_hash"]
        item["pointee"] = item["sei_hash"]
    return item


def resolve_associations(result: ExecutionResult, payload: Optional[Dict[str, Any]] = None) -> ExecutionResult:
    parsed = load_body(result)
    if upstream_error(parsed):
        return result
    entries: List[Dict[str, Any]] = []
    for entry in parsed if isinstance(parsed, list) else []:
        if not isinstance(entry, dict):
            continue
        mappings = entry.get("mappings") if isinstance(entry.get("mappings"), list) else []
        entries.append(
            {
                "hash": entry.get("hash"),
                "mappings": [classify_mapping(m) for m in mappings if isinstance(m, dict)],
            }
        )
    return reshape(result, entries)
