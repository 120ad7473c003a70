"""
Upstream adapters for the execution and consensus nodes.

Thin request/response wrappers. Readiness policy lives in
`node_health.readiness`, not here.
"""

from .consensus import ConsensusClient, LighthouseUiHealthSource
from .errors import ProtocolError, TransportError, UpstreamError
from .execution import ExecutionClient
from .types import (
    Eth1SyncStatus,
    SyncStatus,
    UiHealth,
    parse_decimal_count,
    parse_hex_quantity,
)

__all__ = [
    "ConsensusClient",
    "Eth1SyncStatus",
    "ExecutionClient",
    "LighthouseUiHealthSource",
    "ProtocolError",
    "SyncStatus",
    "TransportError",
    "UiHealth",
    "UpstreamError",
    "parse_decimal_count",
    "parse_hex_quantity",
]
