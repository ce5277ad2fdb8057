"""Read and write access to a chain behind the typed error taxonomy."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, TypeVar

from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.exceptions import TimeExhausted

from .. import abi
from ..config import ChainConfig
from ..exceptions import (
    BridgerError,
    ChainUnavailableError,
    ContractExecutionError,
    RevertKind,
)
from ..types import QuoteResult
from .connections import TRANSPORT_ERRORS, EndpointPool

logger = logging.getLogger(__name__)

T = TypeVar("T")

_KIND_PATTERNS: tuple[tuple[str, RevertKind], ...] = (
    ("insufficient funds", RevertKind.INSUFFICIENT_FUNDS),
    ("burn amount exceeds balance", RevertKind.BURN_EXCEEDS_BALANCE),
    ("nonce too low", RevertKind.NONCE),
    ("nonce too high", RevertKind.NONCE),
    ("invalid nonce", RevertKind.NONCE),
)


def classify_failure(exc: BaseException, *, action: str) -> BridgerError:
    """Map a web3/node exception onto the bridger's error kinds."""

    if isinstance(exc, BridgerError):
        return exc

    if isinstance(exc, TRANSPORT_ERRORS):
        return ChainUnavailableError(
            f"Transport failure during {action}", details={"error": str(exc)}
        )

    message = str(exc)
    reason = str(getattr(exc, "message", None) or message)
    lowered = f"{reason} {message}".lower()
    kind = RevertKind.REVERTED
    for pattern, candidate in _KIND_PATTERNS:
        if pattern in lowered:
            kind = candidate
            break

    return ContractExecutionError(
        f"{action} failed: {reason}",
        kind=kind,
        reason=reason,
        details={"error": message, "type": type(exc).__name__},
    )


class ChainGateway:
    """Balance, nonce, quote and submission calls for a single chain."""

    def __init__(self, config: ChainConfig, pool: EndpointPool | None = None) -> None:
        self._config = config
        self._pool = pool or EndpointPool(config)
        self._chain_id: int | None = None
        self._decimals: dict[str, int] = {}

    @property
    def name(self) -> str:
        return self._config.name

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def call(
        self,
        address: str,
        contract_abi: list[dict[str, Any]],
        function_name: str,
        *args: Any,
    ) -> Any:
        """Run a read-only contract call on the best-ranked endpoint."""

        target = Web3.to_checksum_address(address)

        def _call(web3: Web3) -> Any:
            contract = web3.eth.contract(address=target, abi=contract_abi)
            return getattr(contract.functions, function_name)(*args).call()

        return self._run(_call, action=f"{function_name} on {target}")

    def get_balance(self, token: str, account: str) -> int:
        return int(
            self.call(token, abi.ERC20_abi, "balanceOf", Web3.to_checksum_address(account))
        )

    def token_decimals(self, token: str) -> int:
        key = token.lower()
        if key not in self._decimals:
            self._decimals[key] = int(self.call(token, abi.ERC20_abi, "decimals"))
        return self._decimals[key]

    def get_nonce(self, account: str) -> int:
        address = Web3.to_checksum_address(account)
        return int(
            self._run(
                lambda web3: web3.eth.get_transaction_count(address, "pending"),
                action="get_transaction_count",
            )
        )

    def quote(self, router: str, amount_in: int, token_in: str, token_out: str) -> QuoteResult:
        query = self.call(
            router,
            abi.YakRouter_abi,
            "queryNoSplit",
            amount_in,
            Web3.to_checksum_address(token_in),
            Web3.to_checksum_address(token_out),
        )
        adapter, recipient, query_in, query_out, amount_out = query
        return QuoteResult(
            adapter=Web3.to_checksum_address(adapter),
            recipient=Web3.to_checksum_address(recipient),
            token_in=Web3.to_checksum_address(query_in),
            token_out=Web3.to_checksum_address(query_out),
            amount_out=int(amount_out),
        )

    def quote_gas_payment(self, contract: str, destination: int) -> int:
        return int(self.call(contract, abi.HypERC20_abi, "quoteGasPayment", destination))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
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
        """Sign and broadcast a transaction, returning its 0x-prefixed hash.

        When receipts are awaited, a mined transaction with status 0 raises
        ``ContractExecutionError``.
        """

        destination = Web3.to_checksum_address(to)
        tx: dict[str, Any] = {
            "from": account.address,
            "to": destination,
            "data": Web3.to_hex(data),
            "value": value,
            "nonce": nonce,
        }

        def _send(web3: Web3):
            if self._chain_id is None:
                self._chain_id = web3.eth.chain_id
            prepared = dict(tx, chainId=self._chain_id)
            prepared["gas"] = gas if gas is not None else web3.eth.estimate_gas(prepared)
            prepared["gasPrice"] = gas_price if gas_price is not None else web3.eth.gas_price
            signed = account.sign_transaction(prepared)
            return web3.eth.send_raw_transaction(signed.raw_transaction)

        tx_hash = self._run(_send, action=f"transaction to {destination} (nonce {nonce})")
        tx_hex = tx_hash.to_0x_hex()
        logger.info("Transaction sent from %s nonce=%s hash=%s", account.address, nonce, tx_hex)

        if self._config.wait_for_receipt:
            self._await_receipt(tx_hash, tx_hex)
        return tx_hex

    def explorer_link(self, tx_hash: str) -> str:
        return f"{self._config.explorer_tx_url}{tx_hash}"

    # ------------------------------------------------------------------
    # Internal wiring
    # ------------------------------------------------------------------
    def _await_receipt(self, tx_hash: Any, tx_hex: str) -> None:
        def _wait(web3: Web3):
            try:
                return web3.eth.wait_for_transaction_receipt(
                    tx_hash, timeout=self._config.receipt_timeout
                )
            except TimeExhausted as exc:
                raise ChainUnavailableError(
                    f"Timed out waiting for receipt of {tx_hex}",
                    details={"timeout": self._config.receipt_timeout},
                ) from exc

        receipt = self._run(_wait, action=f"receipt for {tx_hex}")
        if receipt.get("status", 1) == 0:
            raise ContractExecutionError(
                f"Transaction {tx_hex} reverted",
                kind=RevertKind.REVERTED,
                details={"block_number": receipt.get("blockNumber")},
            )
        logger.debug("Transaction %s confirmed in block %s", tx_hex, receipt.get("blockNumber"))

    def _run(self, operation: Callable[[Web3], T], *, action: str) -> T:
        try:
            return self._pool.call(operation, label=action)
        except BridgerError:
            raise
        except Exception as exc:
            raise classify_failure(exc, action=action) from exc
