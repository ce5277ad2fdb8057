"""Tests for the router swap executor."""

from __future__ import annotations

import random

import pytest
from eth_account import Account

from conftest import (
    ADAPTER,
    KEY_1,
    ROUTER,
    SWAP_NO_SPLIT_FROM_ETH,
    SWAP_RECIPIENT,
    TIA_ARB,
    WETH,
    FakeGateway,
    decode_call,
)
from nexus_bridger.evm.swap import SwapExecutor
from nexus_bridger.exceptions import ValidationError


def _swap(gateway: FakeGateway, *, max_spend: int = 1_000, seed: int = 7, nonce: int = 3):
    executor = SwapExecutor(gateway, rng=random.Random(seed))
    return executor.swap(
        Account.from_key(KEY_1),
        max_spend,
        (WETH, TIA_ARB),
        ROUTER,
        (ADAPTER,),
        (SWAP_RECIPIENT,),
        nonce,
    )


def test_swap_attaches_drawn_amount_as_value(fake_gateway: FakeGateway) -> None:
    result = _swap(fake_gateway)

    (submission,) = fake_gateway.submissions
    assert 1 <= result.amount_in < 1_000
    assert submission["value"] == result.amount_in
    assert submission["to"] == ROUTER
    assert submission["nonce"] == 3
    assert result.amount_out == fake_gateway.amount_out
    assert result.token_out == TIA_ARB
    assert result.tx_hash.startswith("0x")


def test_swap_quotes_first_and_last_token(fake_gateway: FakeGateway) -> None:
    result = _swap(fake_gateway)
    assert fake_gateway.quotes == [(ROUTER, result.amount_in, WETH, TIA_ARB)]


def test_swap_reads_output_token_decimals(fake_gateway: FakeGateway) -> None:
    _swap(fake_gateway)
    assert fake_gateway.decimals_calls == [TIA_ARB]


def test_swap_call_data_carries_quoted_minimum(fake_gateway: FakeGateway) -> None:
    account = Account.from_key(KEY_1)
    result = _swap(fake_gateway)

    trade, fee, to = decode_call(
        fake_gateway.submissions[0]["data"], SWAP_NO_SPLIT_FROM_ETH
    )
    amount_in, amount_out, path, adapters, recipients = trade
    assert amount_in == result.amount_in
    assert amount_out == fake_gateway.amount_out
    assert [hop.lower() for hop in path] == [WETH.lower(), TIA_ARB.lower()]
    assert [item.lower() for item in adapters] == [ADAPTER.lower()]
    assert [item.lower() for item in recipients] == [SWAP_RECIPIENT.lower()]
    assert fee == 0
    assert to.lower() == account.address.lower()


@pytest.mark.parametrize("seed", range(20))
def test_swap_amount_range(seed: int) -> None:
    gateway = FakeGateway()
    result = _swap(gateway, max_spend=5, seed=seed)
    assert 1 <= result.amount_in <= 4


def test_swap_rejects_tiny_max_spend(fake_gateway: FakeGateway) -> None:
    with pytest.raises(ValidationError):
        _swap(fake_gateway, max_spend=1)
    assert fake_gateway.quotes == []
    assert fake_gateway.submissions == []


def test_swap_rejects_single_token_path(fake_gateway: FakeGateway) -> None:
    executor = SwapExecutor(fake_gateway)
    with pytest.raises(ValidationError):
        executor.swap(
            Account.from_key(KEY_1), 1_000, (WETH,), ROUTER, (ADAPTER,), (SWAP_RECIPIENT,), 0
        )
