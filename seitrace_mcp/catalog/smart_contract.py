"""Smart contract topic, routed to the Seitrace gateway of the requested ``chain``."""

from __future__ import annotations

from typing import Dict

from seitrace_mcp.catalog import build_topic
from seitrace_mcp.catalog._fields import chain_id, object_schema, string
from seitrace_mcp.chains import SUPPORTED_CHAINS
from seitrace_mcp.config import SeitraceConfig
from seitrace_mcp.types import EndpointDescription, ExecutionParameter, Topic

TOPIC_KEY = "smart_contract"

ADDRESS_PATTERN = "^0x[a-fA-F0-9]{40}$"

RESOURCE_DESCRIPTIONS: Dict[str, str] = {
    TOPIC_KEY: (
        "Get smart contract details, search verified contracts, download smart contract ABI, or query "
        "contract state from Seitrace (Pacific-1, Atlantic-2, Arctic-1)."
    ),
}


def _chain(default_chain: str):
    return "chain", {
        "type": "string",
        "description": "Seitrace network chain identifier",
        "enum": list(SUPPORTED_CHAINS),
        "default": default_chain,
    }


def smart_contract_endpoints(config: SeitraceConfig) -> Dict[str, EndpointDescription]:
    call_schema = {
        "type": "object",
        "properties": {
            "methodName": {
                "type": "string",
                "description": "Function name, or full signature such as balanceOf(address) for overloads",
            },
            "arguments": {"type": "array", "items": {}, "description": "Function arguments", "default": []},
        },
        "required": ["methodName"],
    }
    return {
        "Controller-downloadAbi": EndpointDescription(
            name="Controller-downloadAbi",
            description=(
                "Download ABI for a smart contract by its address from Seitrace networks. Returns only the ABI "
                "field instead of the full contract metadata to reduce response size. Supports Pacific-1, "
                "Atlantic-2, and Arctic-1 chains. Does not support snippet generation."
            ),
            input_schema=object_schema(
                [
                    string("contract_address", "EVM contract address (0x-prefixed hex string)", pattern=ADDRESS_PATTERN),
                    _chain(config.default_chain),
                ],
                ["contract_address"],
                closed=True,
            ),
            method="get",
            path_template="/api/v2/smart-contracts/{contract_address}",
            execution_parameters=(ExecutionParameter("contract_address", "path"),),
            executor="api",
            resolver="smartContract",
            snippet_generator=None,
        ),
        "Controller-searchVerifiedContracts": EndpointDescription(
            name="Controller-searchVerifiedContracts",
            description=(
                "Search verified smart contracts by name or address on Seitrace. Returns up to 5 matches with "
                "name, address hash and language."
            ),
            input_schema=object_schema(
                [
                    string("q", "Search query: contract name or address", minLength=1),
                    _chain(config.default_chain),
                ],
                ["q"],
                closed=True,
            ),
            method="get",
            path_template="/api/v2/smart-contracts",
            execution_parameters=(ExecutionParameter("q", "query"),),
            executor="api",
            resolver="searchContracts",
            snippet_generator=None,
        ),
        "Controller-queryContractState": EndpointDescription(
            name="Controller-queryContractState",
            description=(
                "Read contract state by batching view/pure calls through Multicall3 in a single eth_call. "
                "Each call succeeds or fails on its own; the block number of the read is returned."
            ),
            input_schema=object_schema(
                [
                    ("abi", {
                        "type": ["array", "string"],
                        "description": "Contract ABI as a JSON array, or its JSON text",
                    }),
                    string("contract_address", "EVM contract address (0x-prefixed hex string)", pattern=ADDRESS_PATTERN),
                    chain_id("Target chain ID"),
                    ("payload", {
                        "type": "array",
                        "description": "Calls to execute: [{methodName, arguments}]",
                        "items": call_schema,
                        "minItems": 1,
                    }),
                ],
                ["abi", "contract_address", "chain_id", "payload"],
                closed=True,
            ),
            method="rpc",
            executor="ethers",
            snippet_generator="ethers",
        ),
    }


def build(config: SeitraceConfig) -> Topic:
    return build_topic(
        TOPIC_KEY,
        smart_contract_endpoints(config),
        chain_routed=True,
        descriptions=RESOURCE_DESCRIPTIONS,
    )
