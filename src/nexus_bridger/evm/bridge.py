"""Hyperlane ``transferRemote`` bridging for the source chain."""

from __future__ import annotations

import logging
from typing import Protocol

from eth_account.signers.local import LocalAccount
from web3 import Web3

from .. import abi
from ..config import FeeStrategy, FixedFee, QuotedFee
from ..convert import bech32_to_hex, evm_address_to_bytes32
from ..exceptions import ValidationError
from ..types import TransferOrder, TransferResult
from ..utils import ETHER_DECIMALS, format_units

logger = logging.getLogger(__name__)

BPS_DENOMINATOR = 10_000


class BridgeGateway(Protocol):
    def quote_gas_payment(self, contract: str, destination: int) -> int: ...

    def token_decimals(self, token: str) -> int: ...

    def submit(
        self, account: LocalAccount, to: str, data: bytes, value: int, nonce: int
    ) -> str: ...

    def explorer_link(self, tx_hash: str) -> str: ...


def encode_recipient(recipient: str) -> str:
    """Return the ``bytes32`` hex form of an EVM or bech32 recipient."""
    if Web3.is_address(recipient):
        return evm_address_to_bytes32(recipient)
    return bech32_to_hex(recipient)


class BridgeTransferExecutor:
    """Submit approvals and remote transfers, attaching the interchain gas payment."""

    def __init__(
        self,
        gateway: BridgeGateway,
        fee: FeeStrategy,
        *,
        destination_explorer_url: str = "",
    ) -> None:
        self._gateway = gateway
        self._fee = fee
        self._destination_explorer_url = destination_explorer_url

    def gas_payment(self, bridge_contract: str, destination: int) -> int:
        fee = self._fee
        if isinstance(fee, FixedFee):
            return fee.amount
        if isinstance(fee, QuotedFee):
            quoted = self._gateway.quote_gas_payment(bridge_contract, destination)
            payment = -(-quoted * (BPS_DENOMINATOR + fee.buffer_bps) // BPS_DENOMINATOR)
            logger.debug(
                "Quoted gas payment for domain %s: %s (+%s bps -> %s)",
                destination,
                quoted,
                fee.buffer_bps,
                payment,
            )
            return payment
        raise ValidationError("Unsupported fee strategy", field="fee", value=fee)

    def approve(
        self,
        account: LocalAccount,
        token: str,
        spender: str,
        amount: int,
        nonce: int,
    ) -> str:
        call_data = abi.encode_call(
            abi.ERC20, "approve", [Web3.to_checksum_address(spender), amount]
        )
        decimals = self._gateway.token_decimals(token)
        tx_hash = self._gateway.submit(account, token, call_data, 0, nonce)
        logger.info(
            "Approved %s of %s for %s on account %s",
            format_units(amount, decimals),
            token,
            spender,
            account.address,
        )
        logger.info("  %s", self._gateway.explorer_link(tx_hash))
        return tx_hash

    def transfer(
        self,
        account: LocalAccount,
        bridge_contract: str,
        destination_chain: int,
        recipient: str,
        amount: int,
        nonce: int,
        *,
        token: str | None = None,
    ) -> TransferResult:
        """Bridge ``amount`` of the route's token to ``recipient``.

        ``token`` is the ERC-20 moved by ``bridge_contract``; it defaults to
        the bridge contract itself, as for synthetic warp routes.
        """
        if amount <= 0:
            raise ValidationError("Transfer amount must be positive", field="amount", value=amount)

        order = TransferOrder(
            destination=destination_chain,
            recipient=encode_recipient(recipient),
            amount=amount,
            gas_payment=self.gas_payment(bridge_contract, destination_chain),
        )
        call_data = abi.encode_call(abi.HypERC20, "transferRemote", order.as_args())
        decimals = self._gateway.token_decimals(token or bridge_contract)

        tx_hash = self._gateway.submit(
            account, bridge_contract, call_data, order.gas_payment, nonce
        )
        logger.info(
            "Transferred %s tokens to %s on chain %s for account %s (gas payment %s ETH)",
            format_units(amount, decimals),
            recipient,
            destination_chain,
            account.address,
            format_units(order.gas_payment, ETHER_DECIMALS),
        )
        logger.info("  %s", self._gateway.explorer_link(tx_hash))
        if self._destination_explorer_url:
            logger.info("  awaiting tokens at %s%s", self._destination_explorer_url, recipient)

        return TransferResult(
            tx_hash=tx_hash,
            amount=amount,
            recipient=order.recipient,
            gas_payment=order.gas_payment,
        )
