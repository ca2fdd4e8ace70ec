"""
Insights topic: the Seitrace Insights REST API plus gateway-backed asset
search and the earnings pool listing.

Insights endpoints authenticate with an ``x-api-key`` header, read from
``SECRET_APIKEY``.
"""

from __future__ import annotations

from typing import Dict, List

from seitrace_mcp.catalog import build_topic
from seitrace_mcp.catalog._fields import (
    Property,
    chain_id,
    gateway_chain_id,
    gateway_endpoint,
    limit,
    object_schema,
    offset,
    query_parameters,
    string,
    string_list,
)
from seitrace_mcp.config import SeitraceConfig
from seitrace_mcp.types import EndpointDescription, ExecutionParameter, SecurityRequirement, SecurityScheme, Topic

TOPIC_KEY = "insights"

EARNINGS_ENDPOINT = "https://workspace-api.seitrace.com/api/v1/apy/top"

SECURITY_SCHEMES: Dict[str, SecurityScheme] = {
    "apiKey": SecurityScheme(kind="apiKey", location="header", parameter_name="x-api-key"),
}
API_KEY_REQUIRED = (SecurityRequirement.of({"apiKey": []}),)

RESOURCE_DESCRIPTIONS: Dict[str, str] = {
    f"{TOPIC_KEY}_address": "Query address data: details, transactions, token transfers.",
    f"{TOPIC_KEY}_erc20": "Query ERC-20 tokens: info, balances, transfers, holders.",
    f"{TOPIC_KEY}_cw20": "Query CW20 tokens: info, balances, transfers, holders.",
    f"{TOPIC_KEY}_native": "Query native tokens: info, transfers, balances, holders.",
    f"{TOPIC_KEY}_ics20": "Query ICS20 tokens: info, transfers, balances, holders.",
    f"{TOPIC_KEY}_erc721": "Query ERC-721 tokens: info, holders, instances, balances, transfers.",
    f"{TOPIC_KEY}_erc1155": "Query ERC-1155 tokens: info, holders, instances, balances, transfers.",
    f"{TOPIC_KEY}_cw721": "Query CW721 tokens: info, instances, balances, holders, transfers.",
    f"{TOPIC_KEY}_smart_contract": "Query smart contract details.",
    f"{TOPIC_KEY}_assets": (
        "Search official assets by name/symbol/identifier and fetch asset details by identifier. "
        "Uses Sei gateway; search is performed offline over the fetched list."
    ),
    f"{TOPIC_KEY}_earnings": (
        "Search and fetch earnings pools (APR/APY) on pacific-1. Supports top pools and optional "
        "search by name/symbol/address; and details by pool address."
    ),
}


def _description(summary: str, cost: int) -> str:
    return (
        f"\nThe endpoint to get {summary}\n\n"
        "|||\n|---|---|\n"
        "|Eligible For|**Free Trial and Paid users**|\n"
        f"|Cost|**{cost} Credit Units**|\n"
    )


def _insights(
    key: str, summary: str, cost: int, path: str, properties: List[Property], required: List[str]
) -> EndpointDescription:
    return EndpointDescription(
        name=key,
        description=_description(summary, cost),
        input_schema=object_schema(properties, required),
        method="get",
        path_template=path,
        execution_parameters=query_parameters(properties),
        security_requirements=API_KEY_REQUIRED,
    )


def _contract() -> Property:
    return string("contract_address", "Contract address")


def _wallet() -> Property:
    return string("wallet_address", "Wallet address")


def _dates() -> List[Property]:
    return [string("from_date", "From date"), string("to_date", "To date")]


def _token_family(controller: str, action: str, label: str, slug: str, costs: Dict[str, int]) -> Dict[str, EndpointDescription]:
    """Info, balances, transfers and holders for a contract-addressed token standard."""
    base = f"/api/v2/token/{slug}"
    with_ids = "instances" in costs
    transfer_props = [limit(), offset(), chain_id(), _contract(), _wallet(), *_dates()]
    holder_props = [limit(), offset(), chain_id(), _contract()]
    if with_ids:
        transfer_props.append(string("token_id", "Token ID"))
        holder_props.append(_wallet())

    endpoints = {
        f"{controller}-get{action}TokenInfo": _insights(
            f"{controller}-get{action}TokenInfo",
            f"{label} token info. ",
            costs["info"],
            base,
            [chain_id(), _contract()],
            ["chain_id", "contract_address"],
        ),
    }
    if with_ids:
        endpoints[f"{controller}-get{action}Instance"] = _insights(
            f"{controller}-get{action}Instance",
            f"{label} token instances.",
            costs["instances"],
            f"{base}/instances",
            [limit(), offset(), chain_id(), _contract(), string("token_id", "Token id")],
            ["chain_id", "contract_address"],
        )
    balances_action = f"get{action}TokenBalances" if with_ids else f"get{action}Balances"
    endpoints[f"{controller}-{balances_action}"] = _insights(
        f"{controller}-{balances_action}",
        f"{label} token balances.",
        costs["balances"],
        f"{base}/balances",
        [limit(), offset(), chain_id(), string("address", "Wallet address"),
         string_list("token_contract_list", "List of token contract addresses")],
        ["chain_id", "address"],
    )
    order = "Sorted by descending order of timestamp." if with_ids else "Sorted by time in descending order."
    endpoints[f"{controller}-get{action}TokenTransfers"] = _insights(
        f"{controller}-get{action}TokenTransfers",
        f"{label} token transfers. {order}",
        costs["transfers"],
        f"{base}/transfers",
        transfer_props,
        ["chain_id", "contract_address"],
    )
    order = "Sorted by descending order of holding." if with_ids else "Sorted by amount in descending order."
    endpoints[f"{controller}-get{action}TokenHolders"] = _insights(
        f"{controller}-get{action}TokenHolders",
        f"{label} token holders. {order}",
        costs["holders"],
        f"{base}/holders",
        holder_props,
        ["chain_id", "contract_address"],
    )
    return endpoints


def _denom_family(
    controller: str, action: str, info_action: str, label: str, slug: str, denom_help: str, list_help: str
) -> Dict[str, EndpointDescription]:
    """Info, balances, transfers and holders for a denom-addressed token."""
    base = f"/api/v2/token/{slug}"

    def denom() -> Property:
        return string("token_denom", denom_help)

    return {
        f"{controller}-{info_action}": _insights(
            f"{controller}-{info_action}",
            f"{label} token info. ",
            50,
            base,
            [chain_id(), denom()],
            ["chain_id", "token_denom"],
        ),
        f"{controller}-get{action}Balances": _insights(
            f"{controller}-get{action}Balances",
            f"{label} token balances. ",
            50,
            f"{base}/balances",
            [limit(), offset(), chain_id(), string("address", "Wallet address"),
             string_list("token_denom_list", list_help)],
            ["chain_id", "address"],
        ),
        f"{controller}-get{action}TokenTransfers": _insights(
            f"{controller}-get{action}TokenTransfers",
            f"{label} token transfers. Sorted by time in descending order.",
            100,
            f"{base}/transfers",
            [limit(), offset(), chain_id(), denom(), _wallet(), *_dates()],
            ["chain_id", "token_denom"],
        ),
        f"{controller}-get{action}TokenHolders": _insights(
            f"{controller}-get{action}TokenHolders",
            f"{label} token holders. Sorted by amount in descending order.",
            100,
            f"{base}/holders",
            [limit(), offset(), chain_id(), denom()],
            ["chain_id", "token_denom"],
        ),
    }


def _address_endpoints() -> Dict[str, EndpointDescription]:
    def address() -> Property:
        return string("address", "Wallet address (EVM or Sei address)")

    transaction_status = (
        "status",
        {"enum": ["ALL", "SUCCESS", "ERROR"], "type": "string", "description": "Transaction status"},
    )
    return {
        "AddressController-getAddressDetail": _insights(
            "AddressController-getAddressDetail",
            "address details. ",
            50,
            "/api/v2/addresses",
            [chain_id(), address()],
            ["chain_id", "address"],
        ),
        "AddressController-getAddressTransactions": _insights(
            "AddressController-getAddressTransactions",
            "address transactions. ",
            100,
            "/api/v2/addresses/transactions",
            [limit(), offset(), chain_id(), address(), *_dates(), transaction_status],
            ["chain_id", "address", "status"],
        ),
        "AddressController-getAddressTokenTransfers": _insights(
            "AddressController-getAddressTokenTransfers",
            "address token transfers. ",
            100,
            "/api/v2/addresses/token-transfers",
            [limit(), offset(), chain_id(), address(), *_dates()],
            ["chain_id", "address"],
        ),
    }


def insights_endpoints() -> Dict[str, EndpointDescription]:
    """The 35 Insights REST endpoints."""
    endpoints = _address_endpoints()
    endpoints.update(
        _token_family("Erc20TokenController", "Erc20", "Erc20", "erc20",
                      {"info": 50, "balances": 50, "transfers": 100, "holders": 100})
    )
    endpoints.update(
        _token_family("Erc721TokenController", "Erc721", "Erc721", "erc721",
                      {"info": 50, "instances": 100, "balances": 100, "transfers": 100, "holders": 100})
    )
    endpoints.update(
        _token_family("Erc1155TokenController", "Erc1155", "Erc1155", "erc1155",
                      {"info": 50, "instances": 50, "balances": 100, "transfers": 100, "holders": 100})
    )
    endpoints.update(
        _token_family("Cw20TokenController", "Cw20", "CW20", "cw20",
                      {"info": 50, "balances": 50, "transfers": 100, "holders": 100})
    )
    endpoints.update(
        _token_family("Cw721TokenController", "Cw721", "Cw721", "cw721",
                      {"info": 50, "instances": 50, "balances": 50, "transfers": 50, "holders": 50})
    )
    endpoints.update(
        _denom_family("ICS20TokenController", "ICS20", "getICS20TokenInfoStatistic", "IBC", "ibc",
                      "IBC token denom", "List of IBC token denoms")
    )
    endpoints.update(
        _denom_family("NativeTokenController", "Native", "getNativeTokenInfoAndStatistic", "Native", "native",
                      'Native token denom (including "usei")', 'List of tokens\'s denoms (including "usei")')
    )
    endpoints["SmartContractController-getSmartContractDetail"] = _insights(
        "SmartContractController-getSmartContractDetail",
        "smart contract details. ",
        100,
        "/api/v2/smart-contract",
        [chain_id(), string("address", "Wallet address (EVM or Sei address)")],
        ["chain_id", "address"],
    )
    return endpoints


def _gateway(
    key: str, description: str, path: str, properties: List[Property], required: List[str],
    resolver: str, query: List[str],
) -> EndpointDescription:
    params = [ExecutionParameter("chain_id", "query"), ExecutionParameter("endpoint", "query")]
    params.extend(ExecutionParameter(name, "query") for name in query)
    return EndpointDescription(
        name=key,
        description=description,
        input_schema=object_schema(properties, required, closed=True),
        method="get",
        path_template=path,
        execution_parameters=tuple(params),
        executor="gateway",
        resolver=resolver,
        snippet_generator="general",
    )


def asset_endpoints() -> Dict[str, EndpointDescription]:
    token_types = ["CW-20", "CW-721", "ERC-20", "ERC-721", "ERC-1155", "FACTORY"]
    return {
        "AssetsController-searchAssets": _gateway(
            "AssetsController-searchAssets",
            "Search official assets by name, symbol, or identifier. Performs offline fuzzy match over the "
            "assets list retrieved from the specified gateway. Returns up to 10 matches with basic fields.",
            "/api/v1/workspace/assets",
            [
                gateway_chain_id(),
                gateway_endpoint(),
                string("query", "Case-insensitive search string for name, symbol, or identifier."),
                ("limit", {
                    "type": "number",
                    "description": "Maximum number of results to return (default 10, max 50).",
                    "default": 10,
                    "maximum": 50,
                }),
            ],
            ["query"],
            "searchAssets",
            [],
        ),
        "AssetsController-searchTokens": _gateway(
            "AssetsController-searchTokens",
            "Search gateway tokens by type and query (unofficial + official listings). Supported types: "
            "'CW-20', 'CW-721', 'ERC-20', 'ERC-721', 'ERC-1155', 'FACTORY'.",
            "/api/v1/tokens",
            [
                gateway_chain_id(),
                gateway_endpoint(),
                string("type", f"Token type filter: one of {', '.join(token_types)}", enum=token_types),
                string("search", "Free-text search over name, symbol, and address where applicable."),
            ],
            ["search"],
            "searchGatewayTokens",
            ["type", "search"],
        ),
        "AssetsController-searchNativeTokens": _gateway(
            "AssetsController-searchNativeTokens",
            "Search native tokens (bank module) by name/symbol/denom on the gateway.",
            "/api/v1/native-tokens",
            [gateway_chain_id(), gateway_endpoint(), string("search", "Search string")],
            ["search"],
            "searchNativeTokens",
            ["search"],
        ),
        "AssetsController-searchIcs20Tokens": _gateway(
            "AssetsController-searchIcs20Tokens",
            "Search ICS20 tokens by name/symbol/denom on the gateway.",
            "/api/v1/ics20-tokens",
            [gateway_chain_id(), gateway_endpoint(), string("search", "Search string")],
            ["search"],
            "searchIcs20Tokens",
            ["search"],
        ),
        "AssetsController-getAssetsDetails": _gateway(
            "AssetsController-getAssetsDetails",
            "Get official asset details by identifier using the workspace assets endpoint. Identifier can be "
            "an IBC denom, CW20/EVM contract, or canonical ID used by the endpoint.",
            "/api/v1/workspace/assets",
            [
                gateway_chain_id(),
                gateway_endpoint(),
                string(
                    "identifier",
                    "Unique asset identifier to match exactly within the assets list.",
                    minLength=1,
                ),
            ],
            ["identifier"],
            "getAssetsDetails",
            [],
        ),
    }


def earning_endpoints() -> Dict[str, EndpointDescription]:
    pacific_only = chain_id("Chain ID (only pacific-1 supported).", chains=["pacific-1"])
    return {
        "EarningsController-searchEarnings": EndpointDescription(
            name="EarningsController-searchEarnings",
            description=(
                "List/search earnings pools for pacific-1. When search_terms omitted, returns top pools (max 50)."
            ),
            input_schema=object_schema(
                [
                    pacific_only,
                    string(
                        "search_terms",
                        "Optional search over pool name, provider name, or address (case-insensitive).",
                    ),
                    ("limit", {
                        "type": "number",
                        "description": "Maximum number of results to return (default 20, max 50).",
                        "default": 20,
                        "maximum": 50,
                    }),
                ],
                ["chain_id"],
                closed=True,
            ),
            method="get",
            path_template=EARNINGS_ENDPOINT,
            execution_parameters=(ExecutionParameter("search_terms", "query"),),
            executor="api",
            resolver="searchEarnings",
            snippet_generator="general",
        ),
        "EarningsController-getEarningDetails": EndpointDescription(
            name="EarningsController-getEarningDetails",
            description=(
                "Get a single earnings pool by pool address for pacific-1. "
                "Performs client-side filter over the listing endpoint."
            ),
            input_schema=object_schema(
                [
                    pacific_only,
                    string(
                        "pool_address",
                        "The pool contract address to match exactly (case-insensitive).",
                        minLength=1,
                    ),
                ],
                ["chain_id", "pool_address"],
                closed=True,
            ),
            method="get",
            path_template=EARNINGS_ENDPOINT,
            executor="api",
            resolver="getEarningDetails",
            snippet_generator="general",
        ),
    }


def build(config: SeitraceConfig) -> Topic:
    endpoints = insights_endpoints()
    endpoints.update(asset_endpoints())
    endpoints.update(earning_endpoints())
    return build_topic(
        TOPIC_KEY,
        endpoints,
        base_url=config.insights_base_url,
        security_schemes=SECURITY_SCHEMES,
        descriptions=RESOURCE_DESCRIPTIONS,
    )
