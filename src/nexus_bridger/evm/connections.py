"""Ranked fallback connections to a chain's RPC endpoints."""

from __future__ import annotations

import logging
import time
from collections import deque
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import TypeVar

import requests
from web3 import HTTPProvider, Web3
from web3.exceptions import ProviderConnectionError

from ..config import ChainConfig, RankConfig
from ..exceptions import ChainUnavailableError, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSPORT_ERRORS: tuple[type[BaseException], ...] = (
    requests.RequestException,
    ProviderConnectionError,
    ConnectionError,
    TimeoutError,
)


@dataclass
class Endpoint:
    """An RPC endpoint and its rolling window of request samples."""

    url: str
    web3: Web3
    samples: deque[tuple[float, bool]] = field(default_factory=deque)

    def record(self, latency: float, ok: bool, window: int) -> None:
        self.samples.append((latency, ok))
        while len(self.samples) > window:
            self.samples.popleft()

    def score(self, rank: RankConfig) -> float:
        if not self.samples:
            # unsampled endpoints rank as perfectly stable with zero latency
            return rank.latency_weight + rank.stability_weight

        ok_latencies = [latency for latency, ok in self.samples if ok]
        stability = len(ok_latencies) / len(self.samples)
        if ok_latencies:
            mean_latency = sum(ok_latencies) / len(ok_latencies)
            latency_score = max(0.0, 1.0 - mean_latency / rank.timeout)
        else:
            latency_score = 0.0
        return rank.latency_weight * latency_score + rank.stability_weight * stability


class EndpointPool:
    """Route RPC calls to the best-ranked endpoint, falling back on failure.

    Every call records a latency/success sample on the endpoint that served
    it. Ranking uses the last ``sample_count`` samples per endpoint; when more
    than ``interval`` seconds passed since the last probe, every endpoint is
    pinged with ``eth_blockNumber`` before the next call is routed.
    """

    def __init__(
        self,
        config: ChainConfig,
        *,
        web3_factory: Callable[[str], Web3] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if not config.rpc_urls:
            raise ValidationError("At least one RPC url is required", field="rpc_urls")

        self._config = config
        self._rank = config.rank
        self._clock = clock
        factory = web3_factory or self._build_web3
        self._endpoints = [Endpoint(url=url, web3=factory(url)) for url in config.rpc_urls]
        self._last_probe = clock()

    @property
    def endpoints(self) -> Sequence[Endpoint]:
        return tuple(self._endpoints)

    def ranked(self) -> list[Endpoint]:
        # sorted() is stable, so ties keep the configured order
        return sorted(self._endpoints, key=lambda ep: ep.score(self._rank), reverse=True)

    def probe(self) -> None:
        """Sample every endpoint once with a cheap read."""

        for endpoint in self._endpoints:
            started = self._clock()
            try:
                endpoint.web3.eth.block_number
            except TRANSPORT_ERRORS as exc:
                endpoint.record(self._clock() - started, False, self._rank.sample_count)
                logger.debug("Probe failed for %s: %s", endpoint.url, exc)
            else:
                endpoint.record(self._clock() - started, True, self._rank.sample_count)
        self._last_probe = self._clock()

    def call(self, operation: Callable[[Web3], T], *, label: str = "rpc") -> T:
        """Run ``operation`` against endpoints in rank order.

        Only transport failures trigger fallback; any other exception comes
        from a node that answered and is re-raised unchanged.
        """

        if len(self._endpoints) > 1 and self._probe_due():
            self.probe()

        failures: dict[str, str] = {}
        for endpoint in self.ranked():
            started = self._clock()
            try:
                result = operation(endpoint.web3)
            except TRANSPORT_ERRORS as exc:
                endpoint.record(self._clock() - started, False, self._rank.sample_count)
                failures[endpoint.url] = str(exc)
                logger.debug("%s failed on %s, trying next endpoint: %s", label, endpoint.url, exc)
                continue
            except Exception:
                endpoint.record(self._clock() - started, True, self._rank.sample_count)
                raise
            endpoint.record(self._clock() - started, True, self._rank.sample_count)
            return result

        raise ChainUnavailableError(
            f"All {self._config.name} RPC endpoints failed for {label}",
            endpoint=",".join(failures),
            details={"errors": failures},
        )

    def _probe_due(self) -> bool:
        return self._clock() - self._last_probe >= self._rank.interval

    def _build_web3(self, url: str) -> Web3:
        provider = HTTPProvider(url, request_kwargs={"timeout": self._config.request_timeout})
        return Web3(provider)
