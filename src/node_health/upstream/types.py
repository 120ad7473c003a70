"""
Typed views of the upstream payloads.

Each model decodes only the fields the readiness policy reads. Unknown fields
are ignored since clients add fields between releases (Lighthouse in particular
ships a lot of extra system data in its UI endpoints).

Peer counts arrive in two encodings:

- Execution JSON-RPC returns a hex quantity: "0x1a" means 26.
- Beacon API returns a decimal string: "26".
"""

from __future__ import annotations

import re
from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, StrictBool, field_validator

from .errors import ProtocolError

_DECIMAL_RE: Final = re.compile(r"[0-9]+")
_HEX_RE: Final = re.compile(r"(0x)?[0-9a-fA-F]+")

SYNCED_STATE: Final = "Synced"
"""Lighthouse `sync_state` value reported once the head is reached."""


class ResponseModel(BaseModel):
    """Immutable base for decoded upstream payloads."""

    model_config = ConfigDict(
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )


def parse_hex_quantity(value: Any) -> int:
    """
    Decode a JSON-RPC hex quantity such as "0x1a".

    The 0x prefix is optional, matching what nodes emit in practice.

    Raises:
        ProtocolError: If the value is not a hex string.
    """
    if not isinstance(value, str) or not _HEX_RE.fullmatch(value):
        raise ProtocolError(f"expected hex quantity, got {value!r}")
    return int(value.removeprefix("0x"), 16)


def parse_decimal_count(value: Any) -> int:
    """
    Decode a non-negative decimal count such as "87".

    Beacon API encodes every uint64 as a string. Plain JSON integers are
    also accepted since some client-specific endpoints use them.

    Raises:
        ProtocolError: If the value is not a non-negative decimal.
    """
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return value
    if not isinstance(value, str) or not _DECIMAL_RE.fullmatch(value):
        raise ProtocolError(f"expected decimal count, got {value!r}")
    return int(value)


def _to_count(value: Any) -> int:
    # pydantic wants ValueError from validators, not our ProtocolError.
    try:
        return parse_decimal_count(value)
    except ProtocolError as e:
        raise ValueError(str(e)) from e


class SyncStatus(ResponseModel):
    """
    Consensus node sync status from `/eth/v1/node/syncing`.

    A fresh value is produced on every poll and never compared across polls.
    """

    is_syncing: StrictBool
    """Whether the node is still downloading the chain."""

    is_optimistic: StrictBool
    """Whether the head was imported without execution-layer verification."""

    el_offline: StrictBool
    """Whether the beacon node has lost its execution client."""

    sync_distance: int
    """
    Slots between the local head and the wall-clock slot.

    Non-zero right after a restart even when `is_syncing` is false.
    """

    @field_validator("sync_distance", mode="before")
    @classmethod
    def parse_sync_distance(cls, v: Any) -> int:
        """Beacon API sends the distance as a decimal string."""
        return _to_count(v)


class PeerCount(ResponseModel):
    """Consensus node peer summary from `/eth/v1/node/peer_count`."""

    connected: int

    @field_validator("connected", mode="before")
    @classmethod
    def parse_connected(cls, v: Any) -> int:
        return _to_count(v)


class Eth1SyncStatus(ResponseModel):
    """Lighthouse's view of its execution client, from `/lighthouse/eth1/syncing`."""

    percent_synced: float = Field(alias="eth1_node_sync_status_percentage")
    """Percentage of the execution chain the beacon node has cached."""

    is_cached_and_ready: StrictBool = Field(alias="lighthouse_is_cached_and_ready")
    """Whether the deposit cache is complete enough to produce blocks."""

    @property
    def eth1_is_syncing(self) -> bool:
        """Anything short of 100% means the cache is still filling."""
        return self.percent_synced < 100.0


class UiHealth(ResponseModel):
    """
    Combined health payload from `/lighthouse/ui/health`.

    `sync_state` is either the string "Synced" or a single-key object naming
    the syncing phase, e.g. `{"SyncingFinalized": {"start_slot": ...}}`.
    """

    connected_peers: int

    sync_state: str | dict[str, Any]

    @field_validator("connected_peers", mode="before")
    @classmethod
    def parse_connected_peers(cls, v: Any) -> int:
        return _to_count(v)

    @property
    def is_synced(self) -> bool:
        """Whether Lighthouse reports the head as reached."""
        return self.sync_state == SYNCED_STATE
