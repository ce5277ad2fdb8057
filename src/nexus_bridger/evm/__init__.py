"""Source-chain access: ranked RPC connections, gateway and executors."""

from .bridge import BridgeTransferExecutor
from .connections import EndpointPool
from .gateway import ChainGateway, classify_failure
from .swap import SwapExecutor
from .transactions import NonceTracker

__all__ = [
    "BridgeTransferExecutor",
    "ChainGateway",
    "EndpointPool",
    "NonceTracker",
    "SwapExecutor",
    "classify_failure",
]
