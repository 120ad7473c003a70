"""Outcome of a single evaluation pass."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Final

READY_REASON: Final = "all checks passed"


class Check(Enum):
    """
    Identity of each step in the check pipeline.

    The value doubles as the `check` label on the failure counter.
    """

    EXECUTION_SYNC = "execution_sync"
    EXECUTION_PEERS = "execution_peers"
    CONSENSUS_PEERS = "consensus_peers"
    CONSENSUS_SYNC = "consensus_sync"
    CONSENSUS_SYNCING = "consensus_syncing"
    CONSENSUS_OPTIMISTIC = "consensus_optimistic"
    CONSENSUS_EL_OFFLINE = "consensus_el_offline"
    SYNC_DISTANCE = "sync_distance"
    ETH1_SYNC = "eth1_sync"
    ETH1_CACHE = "eth1_cache"

    @property
    def description(self) -> str:
        """Human-readable name used in reasons."""
        return _DESCRIPTIONS[self]


_DESCRIPTIONS: Final = {
    Check.EXECUTION_SYNC: "execution sync check",
    Check.EXECUTION_PEERS: "execution peer-count check",
    Check.CONSENSUS_PEERS: "consensus peer-count check",
    Check.CONSENSUS_SYNC: "consensus sync check",
    Check.CONSENSUS_SYNCING: "consensus syncing check",
    Check.CONSENSUS_OPTIMISTIC: "consensus optimistic check",
    Check.CONSENSUS_EL_OFFLINE: "consensus el-offline check",
    Check.SYNC_DISTANCE: "sync distance check",
    Check.ETH1_SYNC: "eth1 sync check",
    Check.ETH1_CACHE: "eth1 cache check",
}


@dataclass(frozen=True, slots=True)
class Verdict:
    """
    Readiness verdict plus enough context to explain it.

    A not-ready verdict always names the failing check and the offending
    value (an upstream reading or the error that prevented one).
    """

    ready: bool

    reason: str

    check: Check | None = None
    """Failing check, or None when ready."""

    value: Any = None
    """Offending value behind a not-ready verdict."""

    @classmethod
    def passed(cls) -> Verdict:
        return cls(ready=True, reason=READY_REASON)

    @classmethod
    def failed(cls, check: Check | None, reason: str, value: Any = None) -> Verdict:
        return cls(ready=False, reason=reason, check=check, value=value)

    def __str__(self) -> str:
        if self.ready:
            return f"ready ({self.reason})"
        return f"not ready: {self.reason} (value={self.value!r})"
