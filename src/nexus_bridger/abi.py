"""Contract ABIs for the router, the Hyperlane token router and ERC-20 tokens."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from hexbytes import HexBytes
from web3 import Web3
from web3.contract import Contract

_TRADE_COMPONENTS = [
    {"internalType": "uint256", "name": "amountIn", "type": "uint256"},
    {"internalType": "uint256", "name": "amountOut", "type": "uint256"},
    {"internalType": "address[]", "name": "path", "type": "address[]"},
    {"internalType": "address[]", "name": "adapters", "type": "address[]"},
    {"internalType": "address[]", "name": "recipients", "type": "address[]"},
]

_QUERY_COMPONENTS = [
    {"internalType": "address", "name": "adapter", "type": "address"},
    {"internalType": "address", "name": "recipient", "type": "address"},
    {"internalType": "address", "name": "tokenIn", "type": "address"},
    {"internalType": "address", "name": "tokenOut", "type": "address"},
    {"internalType": "uint256", "name": "amountOut", "type": "uint256"},
]

# YakRouter-style router deployed by Camelot on Arbitrum
YakRouter_abi: list[dict[str, Any]] = [
    {
        "inputs": [
            {"internalType": "uint256", "name": "_amountIn", "type": "uint256"},
            {"internalType": "address", "name": "_tokenIn", "type": "address"},
            {"internalType": "address", "name": "_tokenOut", "type": "address"},
        ],
        "name": "queryNoSplit",
        "outputs": [
            {
                "components": _QUERY_COMPONENTS,
                "internalType": "struct Query",
                "name": "",
                "type": "tuple",
            }
        ],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [
            {
                "components": _TRADE_COMPONENTS,
                "internalType": "struct Trade",
                "name": "_trade",
                "type": "tuple",
            },
            {"internalType": "uint256", "name": "_fee", "type": "uint256"},
            {"internalType": "address", "name": "_to", "type": "address"},
        ],
        "name": "swapNoSplitFromETH",
        "outputs": [],
        "stateMutability": "payable",
        "type": "function",
    },
]

# Hyperlane warp route (HypERC20 / HypERC20Collateral)
HypERC20_abi: list[dict[str, Any]] = [
    {
        "inputs": [
            {"internalType": "uint32", "name": "_destination", "type": "uint32"},
            {"internalType": "bytes32", "name": "_recipient", "type": "bytes32"},
            {"internalType": "uint256", "name": "_amountOrId", "type": "uint256"},
        ],
        "name": "transferRemote",
        "outputs": [{"internalType": "bytes32", "name": "messageId", "type": "bytes32"}],
        "stateMutability": "payable",
        "type": "function",
    },
    {
        "inputs": [{"internalType": "uint32", "name": "_destinationDomain", "type": "uint32"}],
        "name": "quoteGasPayment",
        "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
]

ERC20_abi: list[dict[str, Any]] = [
    {
        "inputs": [{"internalType": "address", "name": "account", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "decimals",
        "outputs": [{"internalType": "uint8", "name": "", "type": "uint8"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [
            {"internalType": "address", "name": "spender", "type": "address"},
            {"internalType": "uint256", "name": "amount", "type": "uint256"},
        ],
        "name": "approve",
        "outputs": [{"internalType": "bool", "name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]

# Unbound contract factories used only to build call data
_codec = Web3()
YakRouter: type[Contract] = _codec.eth.contract(abi=YakRouter_abi)
HypERC20: type[Contract] = _codec.eth.contract(abi=HypERC20_abi)
ERC20: type[Contract] = _codec.eth.contract(abi=ERC20_abi)


def encode_call(contract: type[Contract], function_name: str, args: Sequence[Any]) -> bytes:
    """Return the call data for ``function_name(*args)``."""
    return bytes(HexBytes(contract.encode_abi(function_name, args=list(args))))
