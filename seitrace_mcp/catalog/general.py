"""General topic: faucet, RPC/LCD access and EVM/Sei associations."""

from __future__ import annotations

import copy
from typing import Dict

from seitrace_mcp.catalog import build_topic
from seitrace_mcp.catalog._fields import chain_id, gateway_endpoint, object_schema, string, string_list
from seitrace_mcp.chains import CONNECTION_DETAILS
from seitrace_mcp.config import SeitraceConfig
from seitrace_mcp.types import EndpointDescription, ExecutionParameter, SecurityRequirement, SecurityScheme, Topic

TOPIC_KEY = "general"

SECURITY_SCHEMES: Dict[str, SecurityScheme] = {
    "apiKey": SecurityScheme(kind="apiKey", location="header", parameter_name="x-api-key"),
}

RESOURCE_DESCRIPTIONS: Dict[str, str] = {
    f"{TOPIC_KEY}_faucet": "Request testnet faucet funds (once every 24h per API key).",
    f"{TOPIC_KEY}_rpc_lcd": (
        "Get general information about Sei (rpcs, lcds, explorers), and making rpc calls to the Sei network."
    ),
    f"{TOPIC_KEY}_associations": (
        "Query hybrid associations (EOA, pointers) between EVM and Native Sei (addresses/assets/txs)."
    ),
}


def _rpc_schema(method_help: str, endpoint_help: str) -> dict:
    return object_schema(
        [
            string("rpc_method", method_help),
            ("params", {"type": "array", "description": "JSON-RPC params array", "items": {}, "default": []}),
            chain_id("Target chain ID if no endpoint override provided"),
            string("endpoint", endpoint_help),
        ],
        ["rpc_method"],
        closed=True,
    )


def faucet_endpoints() -> Dict[str, EndpointDescription]:
    return {
        "FaucetController-requestFaucet": EndpointDescription(
            name="FaucetController-requestFaucet",
            description=(
                "Request faucet funds (limited to once every 24h per API key). Available chains: arctic-1, "
                "atlantic-2. Wont support snippet generation."
            ),
            input_schema=object_schema(
                [
                    string("wallet_address", "EVM wallet address"),
                    chain_id("Target chain ID", chains=["arctic-1", "atlantic-2"]),
                ],
                ["wallet_address", "chain_id"],
                closed=True,
            ),
            method="post",
            path_template="/api/v1/mcp/faucet",
            request_body_content_type="application/json",
            security_requirements=(SecurityRequirement.of({"apiKey": []}),),
            executor="api",
            snippet_generator=None,
        ),
    }


def rpc_lcd_endpoints(config: SeitraceConfig) -> Dict[str, EndpointDescription]:
    return {
        "RpcLcdController-getConnectionDetails": EndpointDescription(
            name="RpcLcdController-getConnectionDetails",
            description=(
                "Get RPC/LCD endpoints and explorer details for developers connecting to Sei (Cosmos + EVM). "
                "The agents will use these info for setting smart contract developments like foundry, "
                "hardhat, vyper, ..."
            ),
            input_schema=object_schema([], [], closed=True),
            method="local",
            static_response=copy.deepcopy(config.connections or CONNECTION_DETAILS),
            snippet_generator=None,
        ),
        "RpcLcdController-callEvmRpc": EndpointDescription(
            name="RpcLcdController-callEvmRpc",
            description=(
                "Perform a JSON-RPC call against the Sei EVM endpoint. Provide rpc_method and optional params; "
                "specify chain_id or an explicit endpoint override."
            ),
            input_schema=_rpc_schema(
                "JSON-RPC method name (e.g., eth_blockNumber)",
                "Optional EVM RPC endpoint override. If provided, chain_id is ignored for routing.",
            ),
            method="rpc",
            executor="rpc",
            snippet_generator="rpc",
        ),
        "RpcLcdController-callCosmosRpc": EndpointDescription(
            name="RpcLcdController-callCosmosRpc",
            description=(
                "Perform a JSON-RPC call against the Sei Cosmos (Tendermint) RPC endpoint. Provide rpc_method "
                "and optional params; specify chain_id or an explicit endpoint override."
            ),
            input_schema=_rpc_schema(
                "JSON-RPC method name (e.g., status)",
                "Optional Cosmos RPC endpoint override. If provided, chain_id is ignored for routing.",
            ),
            method="rpc",
            executor="rpc",
            snippet_generator="rpc",
        ),
        "RpcLcdController-callCosmosLcd": EndpointDescription(
            name="RpcLcdController-callCosmosLcd",
            description=(
                "Perform an HTTP request against the Sei Cosmos LCD (REST) endpoint. Provide the LCD path and "
                "optional query/body; specify chain_id or an explicit endpoint override."
            ),
            input_schema=object_schema(
                [
                    string("path", "LCD path beginning with / (e.g., /cosmos/gov/v1beta1/proposals)"),
                    string("method", "HTTP method", enum=["GET", "POST"], default="GET"),
                    ("query", {"type": "object", "description": "Query parameters", "additionalProperties": True}),
                    ("body", {
                        "type": "object",
                        "description": "JSON request body for non-GET methods",
                        "additionalProperties": True,
                    }),
                    chain_id("Target chain ID if no endpoint override provided"),
                    string(
                        "endpoint",
                        "Optional LCD base URL override (e.g., https://rest.sei-apis.com). "
                        "If provided, chain_id is ignored for routing.",
                    ),
                ],
                ["path"],
                closed=True,
            ),
            method="lcd",
            executor="lcd",
            snippet_generator=None,
        ),
    }


def association_endpoints() -> Dict[str, EndpointDescription]:
    return {
        "AssociationsController-getAssociations": EndpointDescription(
            name="AssociationsController-getAssociations",
            description=(
                "Get association mappings for one or more hashes (EVM/Sei address, asset, or tx). The resolver "
                "shapes the response to include pointer/pointee fields when applicable."
            ),
            input_schema=object_schema(
                [
                    chain_id("Chain ID to target (ignored if endpoint override provided)."),
                    gateway_endpoint(),
                    string_list(
                        "hashes",
                        "List of hashes to lookup (EVM address/tx, Sei address, or asset identifiers).",
                        minItems=1,
                    ),
                ],
                ["hashes"],
                closed=True,
                description="Provide hashes and either chain_id or an explicit endpoint override for the gateway.",
            ),
            method="get",
            path_template="/api/v1/addresses/associations",
            execution_parameters=(
                ExecutionParameter("chain_id", "query"),
                ExecutionParameter("endpoint", "query"),
                ExecutionParameter("hashes", "query"),
            ),
            executor="gateway",
            resolver="associations",
            snippet_generator=None,
        ),
    }


def build(config: SeitraceConfig) -> Topic:
    endpoints = faucet_endpoints()
    endpoints.update(rpc_lcd_endpoints(config))
    endpoints.update(association_endpoints())
    return build_topic(
        TOPIC_KEY,
        endpoints,
        base_url=config.insights_base_url,
        security_schemes=SECURITY_SCHEMES,
        descriptions=RESOURCE_DESCRIPTIONS,
    )
