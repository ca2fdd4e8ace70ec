"""Static Sei network connection details shared by the catalog and executors."""

from __future__ import annotations

from typing import Any, Dict, List

SEI_LOGO_URL = "https://raw.githubusercontent.com/Seitrace/sei-assetlist/main/images/Sei.png"

CANONICAL_MULTICALL3_ADDRESS = "0xcA11bde05977b3631167028862bE2a173976CA11"


def _token_info() -> Dict[str, Any]:
    return {
        "symbol": "SEI",
        "name": "SEI",
        "logo": SEI_LOGO_URL,
        "smallestEVMUnit": "gwei",
        "evmDecimals": 18,
        "cosmosDecimals": 6,
        "smallestCosmosUnit": "usei",
    }


CONNECTION_DETAILS: Dict[str, Dict[str, Any]] = {
    "pacific-1": {
        "token": _token_info(),
        "cosmos": {
            "rpc": ["https://rpc.sei-apis.com"],
            "lcd": ["https://rest.sei-apis.com"],
        },
        "evm": {
            "rpc": [
                "https://evm-rpc.sei-apis.com",
                "https://evm-rpc-sei.stingray.plus",
                "https://sei-evm-rpc.publicnode.com",
                "https://seievm-rpc.polkachu.com",
            ],
            "chainId": 1329,
            "multicall3": "0x0864515c3B40B6C4A32af7e6090D8bA30b391b1A",
        },
        "explorer": {
            "url": "https://seitrace.com",
            "variant": "blockscout",
            "apiUrl": "https://seitrace.com/pacific-1/api",
        },
    },
    "atlantic-2": {
        "token": _token_info(),
        "cosmos": {
            "rpc": ["https://rpc-testnet.sei-apis.com"],
            "lcd": ["https://rest-testnet.sei-apis.com"],
        },
        "evm": {
            "rpc": [
                "https://evm-rpc-testnet.sei-apis.com",
                "https://evm-rpc-testnet-sei.stingray.plus",
                "https://seievm-testnet-rpc.polkachu.com",
                "https://sei-testnet.drpc.org",
            ],
            "chainId": 1328,
            "multicall3": CANONICAL_MULTICALL3_ADDRESS,
        },
        "explorer": {
            "url": "https://seitrace.com",
            "variant": "blockscout",
            "apiUrl": "https://seitrace.com/atlantic-2/api",
        },
    },
    "arctic-1": {
        "token": _token_info(),
        "cosmos": {
            "rpc": ["https://rpc-arctic-1.sei-apis.com"],
            "lcd": ["https://rest-arctic-1.sei-apis.com"],
        },
        "evm": {
            "rpc": ["https://evm-rpc-arctic-1.sei-apis.com"],
            "chainId": 713715,
            "multicall3": "0x085F8E2f26F3A7573Eb31B06f1dC4e3Ea7601483",
        },
        "explorer": {
            "url": "https://seitrace.com",
            "variant": "blockscout",
            "apiUrl": "https://seitrace.com/arctic-1/api",
        },
    },
}

SUPPORTED_CHAINS: List[str] = list(CONNECTION_DETAILS)

GATEWAY_URLS: Dict[str, str] = {
    "pacific-1": "https://pacific-1-gateway.seitrace.com",
    "atlantic-2": "https://atlantic-2-gateway.seitrace.com",
    "arctic-1": "https://arctic-1-gateway.seitrace.com",
}

EVM_RPC_URLS: Dict[str, str] = {
    "pacific-1": "https://evm-rpc.sei-apis.com",
    "atlantic-2": "https://evm-rpc-testnet.sei-apis.com",
    "arctic-1": "https://evm-rpc-arctic-1.sei-apis.com",
}

MULTICALL3_ADDRESSES: Dict[str, str] = {
    chain: details["evm"]["multicall3"] for chain, details in CONNECTION_DETAILS.items()
}
