"""Exception hierarchy for nexus-bridger."""

from __future__ import annotations

from enum import Enum
from typing import Any


class BridgerError(Exception):
    """Base exception for all bridger errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigMissingError(BridgerError):
    """Raised when a required setting is absent at startup."""

    def __init__(self, name: str, details: dict | None = None):
        super().__init__(f"{name} not found in environment variables", details)
        self.name = name


class ValidationError(BridgerError):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.field = field
        self.value = value


class ChainUnavailableError(BridgerError):
    """Raised when no RPC endpoint could serve a request."""

    def __init__(
        self,
        message: str,
        endpoint: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.endpoint = endpoint


class RevertKind(str, Enum):
    """Closed set of node/contract rejection kinds."""

    INSUFFICIENT_FUNDS = "insufficient_funds"
    BURN_EXCEEDS_BALANCE = "burn_exceeds_balance"
    NONCE = "nonce"
    REVERTED = "reverted"

    @property
    def recoverable(self) -> bool:
        return self in (RevertKind.INSUFFICIENT_FUNDS, RevertKind.BURN_EXCEEDS_BALANCE)


class ContractExecutionError(BridgerError):
    """Raised when a node rejects a transaction or a contract call reverts."""

    def __init__(
        self,
        message: str,
        kind: RevertKind = RevertKind.REVERTED,
        reason: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.kind = kind
        self.reason = reason

    @property
    def recoverable(self) -> bool:
        return self.kind.recoverable


class InvalidAddressFormatError(ValidationError):
    """Raised when an address does not decode under the expected encoding."""

    def __init__(self, address: str, reason: str = "Invalid bech32 address"):
        super().__init__(f"{reason}: {address!r}", field="address", value=address)
        self.address = address


class CheckpointCorruptError(BridgerError):
    """Raised when the persisted checkpoint cannot be parsed."""

    def __init__(self, path: str, reason: str, details: dict | None = None):
        super().__init__(f"Checkpoint {path} is corrupt: {reason}", details)
        self.path = path


class AggregatorError(BridgerError):
    """Raised when the swap aggregator API answers with a non-200 status."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.status_code = status_code
