from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
from eth_abi import decode as abi_decode
from eth_account.signers.local import LocalAccount
from web3 import Web3

from nexus_bridger.config import (
    AppConfig,
    BridgeConfig,
    BridgeRoute,
    ChainConfig,
    FixedFee,
    SwapConfig,
    SwapPair,
)
from nexus_bridger.types import QuoteResult

# Well-known development keys (hardhat/anvil accounts 0 and 1)
KEY_1 = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
KEY_2 = "0x59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d"
ADDRESS_1 = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
ADDRESS_2 = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"

ROUTER = Web3.to_checksum_address("0x" + "11" * 20)
ADAPTER = Web3.to_checksum_address("0x" + "12" * 20)
SWAP_RECIPIENT = Web3.to_checksum_address("0x" + "13" * 20)
WETH = Web3.to_checksum_address("0x" + "cc" * 20)
TIA_ARB = Web3.to_checksum_address("0x" + "aa" * 20)
ECLIP_ARB = Web3.to_checksum_address("0x" + "bb" * 20)
DESTINATION_DOMAIN = 1853125230
FIXED_FEE = 800_000_000_000_000

TRANSFER_REMOTE = ("transferRemote(uint32,bytes32,uint256)", ["uint32", "bytes32", "uint256"])
APPROVE = ("approve(address,uint256)", ["address", "uint256"])
SWAP_NO_SPLIT_FROM_ETH = (
    "swapNoSplitFromETH((uint256,uint256,address[],address[],address[]),uint256,address)",
    ["(uint256,uint256,address[],address[],address[])", "uint256", "address"],
)


def decode_call(data: bytes, function: tuple[str, list[str]]) -> tuple:
    """Check the selector of ``data`` and decode its arguments."""
    signature, types = function
    assert data[:4] == Web3.keccak(text=signature)[:4], f"not a {signature} call"
    return abi_decode(types, data[4:])


class FakeGateway:
    """In-memory stand-in for ChainGateway that records every call."""

    def __init__(
        self,
        *,
        nonces: dict[str, int] | None = None,
        balances: dict[tuple[str, str], int] | None = None,
        amount_out: int = 4_200_000,
        gas_quote: int = 1_000,
        decimals: int = 6,
    ) -> None:
        self.nonces = nonces or {}
        self.balances = balances or {}
        self.amount_out = amount_out
        self.gas_quote = gas_quote
        self.decimals = decimals
        self.decimals_calls: list[str] = []
        self.failures: dict[tuple[str, str], Exception] = {}
        self.nonce_calls: list[str] = []
        self.quotes: list[tuple[str, int, str, str]] = []
        self.submissions: list[dict[str, Any]] = []

    def get_nonce(self, account: str) -> int:
        self.nonce_calls.append(account)
        return self.nonces.get(account, 0)

    def get_balance(self, token: str, account: str) -> int:
        return self.balances.get((token, account), 0)

    def quote(self, router: str, amount_in: int, token_in: str, token_out: str) -> QuoteResult:
        self.quotes.append((router, amount_in, token_in, token_out))
        return QuoteResult(
            adapter=ADAPTER,
            recipient=SWAP_RECIPIENT,
            token_in=token_in,
            token_out=token_out,
            amount_out=self.amount_out,
        )

    def quote_gas_payment(self, contract: str, destination: int) -> int:
        return self.gas_quote

    def token_decimals(self, token: str) -> int:
        self.decimals_calls.append(token)
        return self.decimals

    def submit(
        self,
        account: LocalAccount,
        to: str,
        data: bytes,
        value: int,
        nonce: int,
        *,
        gas: int | None = None,
        gas_price: int | None = None,
    ) -> str:
        failure = self.failures.pop((account.address, to), None)
        if failure is not None:
            raise failure
        self.submissions.append(
            {
                "from": account.address,
                "to": to,
                "data": data,
                "value": value,
                "nonce": nonce,
                "gas": gas,
                "gas_price": gas_price,
            }
        )
        return "0x" + f"{len(self.submissions):064x}"

    def explorer_link(self, tx_hash: str) -> str:
        return f"https://arbiscan.io/tx/{tx_hash}"

    def sent_by(self, address: str) -> list[dict[str, Any]]:
        return [entry for entry in self.submissions if entry["from"] == address]


@pytest.fixture
def fake_gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def app_config(tmp_path: Path) -> AppConfig:
    return AppConfig(
        chain=ChainConfig(name="arbitrum", rpc_urls=("https://arb.example",)),
        swap=SwapConfig(
            router=ROUTER,
            adapters=(ADAPTER,),
            recipients=(SWAP_RECIPIENT,),
            pairs=(
                SwapPair(name="TIA_PAIR", path=(WETH, TIA_ARB)),
                SwapPair(name="ECLIP_PAIR", path=(WETH, ECLIP_ARB)),
            ),
            max_spend=1_000,
        ),
        bridge=BridgeConfig(
            routes=(
                BridgeRoute(symbol="TIA_ARB", token=TIA_ARB, bridge=TIA_ARB),
                BridgeRoute(symbol="ECLIP_ARB", token=ECLIP_ARB, bridge=ECLIP_ARB),
            ),
            destination_domain=DESTINATION_DOMAIN,
            fee=FixedFee(amount=FIXED_FEE),
            recipient_prefix=None,
        ),
        private_keys_file=tmp_path / "private_keys.txt",
        checkpoint_file=tmp_path / "coins.json",
    )
