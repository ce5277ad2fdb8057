"""File-backed record of balances still waiting to be bridged."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path

from .exceptions import CheckpointCorruptError

logger = logging.getLogger(__name__)

CheckpointState = dict[str, dict[str, int]]

ADDRESS_KEY = "address"
SWAP_MARKER_SUFFIX = ".swapping"


class CheckpointStore:
    """Persist per-account token balances as a JSON array.

    Each entry looks like ``{"address": "0x..", "TIA_ARB": "500"}``; amounts
    are raw integers stored as strings. A missing file means nothing is
    pending. A ``<file>.swapping`` marker exists while a swap phase is in
    progress so that an interrupted swap phase can be told apart from a
    finished one.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._marker = self._path.with_name(self._path.name + SWAP_MARKER_SUFFIX)

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.exists()

    def load(self) -> CheckpointState:
        if not self._path.exists():
            return {}

        try:
            raw = json.loads(self._path.read_text(encoding="utf-8") or "[]")
        except json.JSONDecodeError as exc:
            raise CheckpointCorruptError(str(self._path), f"invalid JSON ({exc})") from exc

        if not isinstance(raw, list):
            raise CheckpointCorruptError(str(self._path), "top-level value must be an array")

        state: CheckpointState = {}
        for index, entry in enumerate(raw):
            if not isinstance(entry, Mapping) or not isinstance(entry.get(ADDRESS_KEY), str):
                raise CheckpointCorruptError(
                    str(self._path), f"entry {index} has no address", details={"entry": entry}
                )
            balances: dict[str, int] = {}
            for symbol, amount in entry.items():
                if symbol == ADDRESS_KEY:
                    continue
                try:
                    balances[symbol] = int(str(amount), 10)
                except ValueError as exc:
                    raise CheckpointCorruptError(
                        str(self._path),
                        f"entry {index} has a non-integer {symbol} amount",
                        details={"entry": entry},
                    ) from exc
            state[entry[ADDRESS_KEY]] = balances
        return state

    def save(self, state: Mapping[str, Mapping[str, int]]) -> None:
        entries = [
            {ADDRESS_KEY: address, **{symbol: str(amount) for symbol, amount in balances.items()}}
            for address, balances in state.items()
        ]
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        tmp_path.write_text(json.dumps(entries, indent=2), encoding="utf-8")
        os.replace(tmp_path, self._path)
        logger.debug("Saved checkpoint with %d account(s) to %s", len(entries), self._path)

    def record_account(self, address: str, balances: Mapping[str, int]) -> None:
        state = self.load()
        state[address] = dict(balances)
        self.save(state)

    def remove_account(self, address: str) -> CheckpointState:
        state = self.load()
        if state.pop(address, None) is not None:
            self.save(state)
        return state

    def is_empty(self) -> bool:
        return not self.load()

    def delete(self) -> None:
        self._path.unlink(missing_ok=True)
        logger.info("All accounts processed. %s has been deleted.", self._path)

    # ------------------------------------------------------------------
    # Swap phase marker
    # ------------------------------------------------------------------
    def begin_swap_phase(self) -> None:
        self._marker.parent.mkdir(parents=True, exist_ok=True)
        self._marker.touch()

    def end_swap_phase(self) -> None:
        self._marker.unlink(missing_ok=True)

    def swap_phase_open(self) -> bool:
        return self._marker.exists()
