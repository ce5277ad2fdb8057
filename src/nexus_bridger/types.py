"""Type definitions and data models for nexus-bridger."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

Address = str  # EVM hex address
Wei = int  # raw amount in the token's smallest unit


class AccountPhase(str, Enum):
    """Progress of a single account through a batch run."""

    PENDING_SWAP = "pending_swap"
    SWAPPED = "swapped"
    PENDING_TRANSFER = "pending_transfer"
    TRANSFERRED = "transferred"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class QuoteResult:
    """Best single-path quote returned by the router's ``queryNoSplit``."""

    adapter: Address
    recipient: Address
    token_in: Address
    token_out: Address
    amount_out: Wei


@dataclass(frozen=True)
class SwapOrder:
    """Arguments of ``swapNoSplitFromETH``."""

    amount_in: Wei
    amount_out: Wei
    path: tuple[Address, ...]
    adapters: tuple[Address, ...]
    recipients: tuple[Address, ...]
    to: Address
    fee: Wei = 0

    def as_args(self) -> tuple:
        trade = (
            self.amount_in,
            self.amount_out,
            list(self.path),
            list(self.adapters),
            list(self.recipients),
        )
        return (trade, self.fee, self.to)


@dataclass(frozen=True)
class TransferOrder:
    """Arguments and attached value of ``transferRemote``."""

    destination: int
    recipient: str  # bytes32 hex
    amount: Wei
    gas_payment: Wei

    def as_args(self) -> tuple:
        return (self.destination, bytes.fromhex(self.recipient[2:]), self.amount)


@dataclass(frozen=True)
class SwapResult:
    tx_hash: str
    amount_in: Wei
    amount_out: Wei
    token_out: Address


@dataclass(frozen=True)
class TransferResult:
    tx_hash: str
    amount: Wei
    recipient: str
    gas_payment: Wei


@dataclass
class BatchReport:
    """Final phase reached by each account of a batch run."""

    phases: dict[Address, AccountPhase] = field(default_factory=dict)
    checkpoint_deleted: bool = False

    def mark(self, address: Address, phase: AccountPhase) -> None:
        self.phases[address] = phase

    @property
    def skipped(self) -> list[Address]:
        return [addr for addr, phase in self.phases.items() if phase is AccountPhase.SKIPPED]

    @property
    def transferred(self) -> list[Address]:
        return [addr for addr, phase in self.phases.items() if phase is AccountPhase.TRANSFERRED]
