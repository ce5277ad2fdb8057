"""Swap aggregator (Odos SOR) quote/assemble client and zap executor."""

from __future__ import annotations

import logging
import math
import random
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, Protocol

import requests
from eth_account.signers.local import LocalAccount

from .config import ZapConfig
from .exceptions import AggregatorError, ValidationError
from .utils import ETHER_DECIMALS, draw_amount, format_units

logger = logging.getLogger(__name__)

NATIVE_TOKEN = "0x0000000000000000000000000000000000000000"


class AggregatorClient:
    """Thin wrapper over the aggregator's ``/quote/v2/zap`` and ``/assemble`` endpoints."""

    def __init__(
        self,
        base_url: str,
        session: requests.Session | None = None,
        *,
        request_timeout: float = 10.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._session = session or requests.Session()
        self._request_timeout = request_timeout

    def generate_quote(self, body: Mapping[str, Any]) -> dict[str, Any]:
        logger.info("Sending request to generate quote...")
        return self._post("/quote/v2/zap", body, stage="Quote")

    def assemble(self, user_address: str, path_id: str, *, simulate: bool = True) -> dict[str, Any]:
        logger.info("Sending request to assemble transaction...")
        body = {"userAddr": user_address, "pathId": path_id, "simulate": simulate}
        return self._post("/assemble", body, stage="Transaction Assembly")

    def _post(self, path: str, body: Mapping[str, Any], *, stage: str) -> dict[str, Any]:
        url = f"{self._base_url}{path}"
        try:
            response = self._session.post(url, json=dict(body), timeout=self._request_timeout)
        except requests.RequestException as exc:
            raise AggregatorError(
                f"Error in {stage}: {exc}", details={"url": url, "error": str(exc)}
            ) from exc

        if response.status_code != 200:
            raise AggregatorError(
                f"Error in {stage}: {response.reason}",
                status_code=response.status_code,
                details={"url": url},
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise AggregatorError(
                f"Error in {stage}: invalid JSON response",
                status_code=response.status_code,
                details={"url": url, "body": response.text[:200]},
            ) from exc

        if not isinstance(payload, dict):
            raise AggregatorError(
                f"Error in {stage}: unexpected response body", details={"body": payload}
            )
        return payload


def split_proportions(count: int) -> list[float]:
    """Split 1 into ``count`` six-decimal shares that sum to exactly 1.

    The last share absorbs the rounding remainder.
    """
    if count < 1:
        raise ValidationError("At least one output token is required", field="output_tokens")
    share = round(Decimal(1) / count, 6)
    shares = [share] * (count - 1)
    shares.append(Decimal(1) - sum(shares))
    return [float(value) for value in shares]


class ZapGateway(Protocol):
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
    ) -> str: ...

    def explorer_link(self, tx_hash: str) -> str: ...


class ZapExecutor:
    """Zap a random native amount into several output tokens at once."""

    def __init__(
        self,
        config: ZapConfig,
        client: AggregatorClient,
        gateway: ZapGateway,
        *,
        rng: random.Random | None = None,
    ) -> None:
        self._config = config
        self._client = client
        self._gateway = gateway
        self._rng = rng

    def build_quote_request(self, user_address: str, amount_in: int) -> dict[str, Any]:
        tokens = self._config.output_tokens
        proportions = split_proportions(len(tokens))
        return {
            "chainId": self._config.chain_id,
            "inputTokens": [{"tokenAddress": NATIVE_TOKEN, "amount": str(amount_in)}],
            "outputTokens": [
                {"tokenAddress": token, "proportion": proportion}
                for token, proportion in zip(tokens, proportions)
            ],
            "userAddr": user_address,
            "slippageLimitPercent": self._config.slippage_percent,
            "referralCode": self._config.referral_code,
            "compact": True,
        }

    def zap(self, account: LocalAccount, nonce: int) -> str:
        amount_in = draw_amount(self._config.max_spend, self._rng)
        quote = self._client.generate_quote(self.build_quote_request(account.address, amount_in))

        path_id = quote.get("pathId")
        if not path_id:
            raise AggregatorError("Quote response did not include a pathId", details=quote)

        assembled = self._client.assemble(account.address, str(path_id))
        transaction = assembled.get("transaction")
        if not isinstance(transaction, Mapping):
            raise AggregatorError(
                "Assemble response did not include a transaction", details=assembled
            )

        try:
            gas = math.ceil(int(transaction["gas"]) * self._config.gas_multiplier)
            gas_price = int(transaction["gasPrice"])
            value = int(transaction["value"])
            to = str(transaction["to"])
            data = bytes.fromhex(str(transaction["data"]).removeprefix("0x"))
        except (KeyError, TypeError, ValueError) as exc:
            raise ValidationError(
                "Assembled transaction is malformed",
                field="transaction",
                value=dict(transaction),
                details={"error": str(exc)},
            ) from exc

        tx_hash = self._gateway.submit(
            account, to, data, value, nonce, gas=gas, gas_price=gas_price
        )
        logger.info(
            "Swapped %s native for target tokens on account %s",
            format_units(value, ETHER_DECIMALS),
            account.address,
        )
        logger.info("  %s", self._gateway.explorer_link(tx_hash))
        return tx_hash
