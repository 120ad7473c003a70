"""
Consensus (beacon) client adapter.

Uses the standard Beacon API for sync status, peer count and liveness. Two
Lighthouse-specific endpoints are also decoded:

- `/lighthouse/eth1/syncing`: deposit cache readiness
- `/lighthouse/ui/health`: peers and sync state in one payload

Every Beacon API response wraps its payload in a `data` envelope.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Final, TypeVar

import httpx
from pydantic import ValidationError

from .errors import ProtocolError
from .http import DEFAULT_TIMEOUT, create_http_client, decode_json, is_alive, send
from .types import Eth1SyncStatus, PeerCount, ResponseModel, SyncStatus, UiHealth

logger = logging.getLogger(__name__)

SYNCING_PATH: Final = "/eth/v1/node/syncing"
PEER_COUNT_PATH: Final = "/eth/v1/node/peer_count"
VERSION_PATH: Final = "/eth/v1/node/version"
ETH1_SYNCING_PATH: Final = "/lighthouse/eth1/syncing"
UI_HEALTH_PATH: Final = "/lighthouse/ui/health"

_M = TypeVar("_M", bound=ResponseModel)


def decode_envelope(model: type[_M], body: Any) -> _M:
    """
    Validate the `data` member of a Beacon API response.

    Raises:
        ProtocolError: If the envelope or its payload does not match `model`.
    """
    if not isinstance(body, dict) or not isinstance(body.get("data"), dict):
        raise ProtocolError(f"expected {{'data': {{...}}}} envelope, got {body!r}")
    try:
        return model.model_validate(body["data"])
    except ValidationError as exc:
        raise ProtocolError(f"malformed {model.__name__}: {exc}") from exc


@dataclass(slots=True)
class ConsensusClient:
    """
    REST adapter for one beacon node endpoint.

    This is also the canonical consensus health source: peer count and sync
    status come from the standard endpoints.
    """

    url: str
    """Base URL, e.g. "http://localhost:5052"."""

    client: httpx.AsyncClient = field(default_factory=create_http_client, repr=False)
    """HTTP client; never shared with the execution adapter."""

    def __post_init__(self) -> None:
        self.url = self.url.rstrip("/")

    @classmethod
    def create(cls, url: str, timeout: float = DEFAULT_TIMEOUT) -> ConsensusClient:
        return cls(url=url, client=create_http_client(timeout))

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _get(self, path: str, model: type[_M]) -> _M:
        response = await send(self.client, "GET", f"{self.url}{path}")
        return decode_envelope(model, decode_json(response))

    async def ping(self) -> bool:
        """Return True if `/eth/v1/node/version` answers with a 2xx."""
        return await is_alive(self.client, "GET", f"{self.url}{VERSION_PATH}")

    async def sync_status(self) -> SyncStatus:
        """Fetch syncing, optimistic, EL-offline flags and the sync distance."""
        return await self._get(SYNCING_PATH, SyncStatus)

    async def is_syncing(self) -> bool:
        return (await self.sync_status()).is_syncing

    async def peer_count(self) -> int:
        """Number of currently connected peers."""
        return (await self._get(PEER_COUNT_PATH, PeerCount)).connected

    async def eth1_sync_status(self) -> Eth1SyncStatus:
        """Lighthouse only: execution chain cache progress."""
        return await self._get(ETH1_SYNCING_PATH, Eth1SyncStatus)

    async def ui_health(self) -> UiHealth:
        """Lighthouse only: combined peer and sync summary."""
        return await self._get(UI_HEALTH_PATH, UiHealth)


@dataclass(slots=True)
class LighthouseUiHealthSource:
    """
    Consensus health source backed by `/lighthouse/ui/health`.

    The payload carries no optimistic or EL-offline flags, so both are
    reported as false. "Synced" maps to a sync distance of 0. Every other
    state counts as syncing.
    """

    client: ConsensusClient

    async def peer_count(self) -> int:
        return (await self.client.ui_health()).connected_peers

    async def sync_status(self) -> SyncStatus:
        health = await self.client.ui_health()
        if not health.is_synced:
            logger.debug("lighthouse sync_state: %s", health.sync_state)
        return SyncStatus(
            is_syncing=not health.is_synced,
            is_optimistic=False,
            el_offline=False,
            sync_distance=0,
        )
