"""
Execution client adapter.

Speaks JSON-RPC over HTTP POST to an execution node (geth, nethermind, ...).
Only three methods are needed:

- `eth_syncing`: false once the node has caught up
- `net_peerCount`: connected peers as a hex quantity
- `net_version`: cheap call used as a liveness check
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from .errors import ProtocolError
from .http import DEFAULT_TIMEOUT, create_http_client, decode_json, is_alive, send
from .types import parse_hex_quantity

logger = logging.getLogger(__name__)


def rpc_payload(method: str) -> dict[str, Any]:
    """Build a parameterless JSON-RPC 2.0 request body."""
    return {"jsonrpc": "2.0", "method": method, "params": [], "id": 1}


@dataclass(slots=True)
class ExecutionClient:
    """JSON-RPC adapter for one execution node endpoint."""

    url: str
    """Endpoint URL, e.g. "http://localhost:8545"."""

    client: httpx.AsyncClient = field(default_factory=create_http_client, repr=False)
    """HTTP client; never shared with the consensus adapter."""

    @classmethod
    def create(cls, url: str, timeout: float = DEFAULT_TIMEOUT) -> ExecutionClient:
        return cls(url=url, client=create_http_client(timeout))

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _call(self, method: str) -> Any:
        """
        Invoke a JSON-RPC method and return its `result`.

        Raises:
            TransportError: If the request itself fails.
            ProtocolError: If the envelope is malformed or carries an error.
        """
        response = await send(self.client, "POST", self.url, json=rpc_payload(method))
        body = decode_json(response)

        if not isinstance(body, dict):
            raise ProtocolError(f"{method}: expected JSON-RPC object, got {body!r}")
        if body.get("error") is not None:
            raise ProtocolError(f"{method}: node returned error {body['error']!r}")
        if "result" not in body:
            raise ProtocolError(f"{method}: response has no result")

        return body["result"]

    async def ping(self) -> bool:
        """Return True if the node answers `net_version` with a 2xx."""
        return await is_alive(self.client, "POST", self.url, json=rpc_payload("net_version"))

    async def is_syncing(self) -> bool:
        """
        Decode `eth_syncing`.

        The node returns false once synced. While syncing it returns either
        true or an object describing progress (current/highest block).

        Raises:
            ProtocolError: If the result is neither a bool nor an object.
        """
        result = await self._call("eth_syncing")
        if isinstance(result, bool):
            return result
        if isinstance(result, dict):
            logger.debug("eth_syncing progress: %s", result)
            return True
        raise ProtocolError(f"eth_syncing: result is not bool, got {result!r}")

    async def peer_count(self) -> int:
        """
        Decode `net_peerCount` from its hex quantity.

        Raises:
            ProtocolError: If the result is not a hex string.
        """
        result = await self._call("net_peerCount")
        return parse_hex_quantity(result)
