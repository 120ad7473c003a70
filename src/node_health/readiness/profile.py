"""
Per-network readiness thresholds.

The thresholds are declarative: each supported network maps to one frozen
profile, looked up once at startup.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Final

MIN_CONSENSUS_PEERS: Final = 10
"""Beacon node peers required on every network."""

DEFAULT_SYNC_DISTANCE_TOLERANCE: Final = 1
"""
Slots of lag accepted before the beacon node counts as behind.

A distance of 1 is ordinary single-slot jitter around slot boundaries.
"""


class Network(Enum):
    """Chains with known readiness thresholds."""

    MAINNET = "mainnet"
    GOERLI = "goerli"
    HOLESKY = "holesky"
    HOODI = "hoodi"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, name: str) -> Network:
        """
        Case-insensitive lookup by name.

        Raises:
            ValueError: If the name is not a supported network.
        """
        try:
            return cls(name.strip().lower())
        except ValueError:
            supported = ", ".join(n.value for n in cls)
            raise ValueError(f"unknown network {name!r}, expected one of [{supported}]") from None


@dataclass(frozen=True, slots=True)
class NetworkProfile:
    """Execution peer requirements for one network."""

    network: Network

    peer_checks_enabled: bool
    """When False the execution peer-count RPC is never called."""

    min_execution_peers: int
    """Execution peers required when peer checks are enabled."""


PROFILES: Final[dict[Network, NetworkProfile]] = {
    Network.MAINNET: NetworkProfile(
        Network.MAINNET, peer_checks_enabled=True, min_execution_peers=5
    ),
    # No net_peerCount on Goerli.
    Network.GOERLI: NetworkProfile(
        Network.GOERLI, peer_checks_enabled=False, min_execution_peers=2
    ),
    Network.HOLESKY: NetworkProfile(
        Network.HOLESKY, peer_checks_enabled=True, min_execution_peers=2
    ),
    Network.HOODI: NetworkProfile(
        Network.HOODI, peer_checks_enabled=True, min_execution_peers=2
    ),
}
"""Thresholds keyed by network."""


def profile_for(network: Network) -> NetworkProfile:
    """Return the readiness profile for a network."""
    return PROFILES[network]


@dataclass(frozen=True, slots=True)
class ReadinessPolicy:
    """All tunables consulted by one evaluation pass."""

    profile: NetworkProfile

    min_consensus_peers: int = MIN_CONSENSUS_PEERS

    sync_distance_tolerance: int = DEFAULT_SYNC_DISTANCE_TOLERANCE
    """Largest sync distance still considered ready."""

    check_eth1_cache: bool = False
    """Also require Lighthouse's eth1 cache to be complete."""
