"""Per-account nonce sequencing for a batch run."""

from __future__ import annotations

import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class NonceSource(Protocol):
    def get_nonce(self, account: str) -> int: ...


class NonceTracker:
    """Hand out strictly increasing nonces per account.

    The starting nonce is fetched once per account on first use; afterwards
    the counter only moves forward locally, one step per submitted
    transaction.
    """

    def __init__(self, source: NonceSource) -> None:
        self._source = source
        self._next: dict[str, int] = {}

    def current(self, address: str) -> int:
        key = address.lower()
        if key not in self._next:
            self._next[key] = self._source.get_nonce(address)
            logger.debug("Starting nonce for %s is %s", address, self._next[key])
        return self._next[key]

    def advance(self, address: str) -> int:
        """Mark the current nonce as used and return the next one."""
        key = address.lower()
        if key not in self._next:
            raise KeyError(f"No nonce fetched yet for {address}")
        self._next[key] += 1
        return self._next[key]
