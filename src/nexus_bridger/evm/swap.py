"""Router swaps from the native asset into bridge-eligible tokens."""

from __future__ import annotations

import logging
import random
from collections.abc import Sequence
from typing import Protocol

from eth_account.signers.local import LocalAccount
from web3 import Web3

from .. import abi
from ..exceptions import ValidationError
from ..types import QuoteResult, SwapOrder, SwapResult
from ..utils import ETHER_DECIMALS, draw_amount, format_units

logger = logging.getLogger(__name__)


class SwapGateway(Protocol):
    def quote(self, router: str, amount_in: int, token_in: str, token_out: str) -> QuoteResult: ...

    def token_decimals(self, token: str) -> int: ...

    def submit(
        self, account: LocalAccount, to: str, data: bytes, value: int, nonce: int
    ) -> str: ...

    def explorer_link(self, tx_hash: str) -> str: ...


class SwapExecutor:
    """Spend a bounded random amount of the native asset through the router."""

    def __init__(self, gateway: SwapGateway, *, rng: random.Random | None = None) -> None:
        self._gateway = gateway
        self._rng = rng

    def swap(
        self,
        account: LocalAccount,
        max_spend: int,
        path: Sequence[str],
        router: str,
        adapters: Sequence[str],
        recipients: Sequence[str],
        nonce: int,
    ) -> SwapResult:
        if len(path) < 2:
            raise ValidationError("Swap path needs at least two tokens", field="path", value=path)

        amount_in = draw_amount(max_spend, self._rng)
        quote = self._gateway.quote(router, amount_in, path[0], path[-1])

        order = SwapOrder(
            amount_in=amount_in,
            amount_out=quote.amount_out,
            path=tuple(Web3.to_checksum_address(hop) for hop in path),
            adapters=tuple(Web3.to_checksum_address(item) for item in adapters),
            recipients=tuple(Web3.to_checksum_address(item) for item in recipients),
            to=account.address,
        )
        call_data = abi.encode_call(abi.YakRouter, "swapNoSplitFromETH", order.as_args())
        decimals_out = self._gateway.token_decimals(order.path[-1])

        tx_hash = self._gateway.submit(account, router, call_data, order.amount_in, nonce)
        logger.info(
            "Swapped %s ETH for %s tokens on account %s",
            format_units(order.amount_in, ETHER_DECIMALS),
            format_units(order.amount_out, decimals_out),
            account.address,
        )
        logger.info("  %s", self._gateway.explorer_link(tx_hash))

        return SwapResult(
            tx_hash=tx_hash,
            amount_in=order.amount_in,
            amount_out=order.amount_out,
            token_out=order.path[-1],
        )
