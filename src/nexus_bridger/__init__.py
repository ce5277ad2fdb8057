"""nexus-bridger - swap and bridge tokens across a batch of accounts.

The package swaps a chain's native asset for bridge-eligible tokens through a
router contract, checkpoints the resulting balances per account and bridges
them with Hyperlane ``transferRemote`` calls.
"""

from .checkpoint import CheckpointStore
from .config import (
    AppConfig,
    BridgeConfig,
    BridgeRoute,
    ChainConfig,
    FixedFee,
    QuotedFee,
    RankConfig,
    SwapConfig,
    SwapPair,
    ZapConfig,
    load_config,
    load_zap_config,
)
from .convert import bech32_to_hex, derive_bech32_address, evm_address_to_bytes32
from .exceptions import (
    AggregatorError,
    BridgerError,
    ChainUnavailableError,
    CheckpointCorruptError,
    ConfigMissingError,
    ContractExecutionError,
    InvalidAddressFormatError,
    RevertKind,
    ValidationError,
)
from .orchestrator import BatchOrchestrator
from .types import (
    AccountPhase,
    BatchReport,
    QuoteResult,
    SwapOrder,
    SwapResult,
    TransferOrder,
    TransferResult,
)

__version__ = "0.1.0"

__all__ = [
    # Orchestration
    "BatchOrchestrator",
    "CheckpointStore",
    # Configuration
    "AppConfig",
    "BridgeConfig",
    "BridgeRoute",
    "ChainConfig",
    "FixedFee",
    "QuotedFee",
    "RankConfig",
    "SwapConfig",
    "SwapPair",
    "ZapConfig",
    "load_config",
    "load_zap_config",
    # Types
    "AccountPhase",
    "BatchReport",
    "QuoteResult",
    "SwapOrder",
    "SwapResult",
    "TransferOrder",
    "TransferResult",
    # Exceptions
    "BridgerError",
    "ConfigMissingError",
    "ValidationError",
    "ChainUnavailableError",
    "ContractExecutionError",
    "RevertKind",
    "InvalidAddressFormatError",
    "CheckpointCorruptError",
    "AggregatorError",
    # Address helpers
    "bech32_to_hex",
    "evm_address_to_bytes32",
    "derive_bech32_address",
]
