"""Tests for the execution JSON-RPC adapter."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from node_health.upstream import ExecutionClient, ProtocolError, TransportError

URL = "http://execution:8545"

Handler = Callable[[httpx.Request], httpx.Response]


def rpc_result(result: Any) -> Handler:
    """Handler answering every call with the given result."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": result})

    return handler


def call(handler: Handler, method: str) -> Any:
    """Invoke one client method against a mocked transport."""

    async def run() -> Any:
        client = ExecutionClient(URL, httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        try:
            return await getattr(client, method)()
        finally:
            await client.aclose()

    return asyncio.run(run())


class TestRequestShape:
    """Tests for the JSON-RPC requests the adapter sends."""

    def test_posts_jsonrpc_envelope(self) -> None:
        """Each call is a parameterless JSON-RPC 2.0 POST to the endpoint."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return rpc_result(False)(request)

        call(handler, "is_syncing")

        assert len(seen) == 1
        assert seen[0].method == "POST"
        assert seen[0].url.host == "execution"
        assert seen[0].url.port == 8545
        assert json.loads(seen[0].content) == {
            "jsonrpc": "2.0",
            "method": "eth_syncing",
            "params": [],
            "id": 1,
        }

    def test_ping_uses_net_version(self) -> None:
        methods: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            methods.append(json.loads(request.content)["method"])
            return rpc_result("1")(request)

        call(handler, "ping")

        assert methods == ["net_version"]


class TestIsSyncing:
    """Tests for `eth_syncing` decoding."""

    def test_false_when_synced(self) -> None:
        assert call(rpc_result(False), "is_syncing") is False

    def test_true_when_syncing(self) -> None:
        assert call(rpc_result(True), "is_syncing") is True

    def test_progress_object_means_syncing(self) -> None:
        """Nodes report progress as an object while catching up."""
        progress = {"currentBlock": "0x10", "highestBlock": "0x20", "startingBlock": "0x0"}
        assert call(rpc_result(progress), "is_syncing") is True

    def test_non_bool_result_is_protocol_error(self) -> None:
        with pytest.raises(ProtocolError):
            call(rpc_result("no"), "is_syncing")

    def test_rpc_error_is_protocol_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32601, "message": "nope"}},
            )

        with pytest.raises(ProtocolError, match="nope"):
            call(handler, "is_syncing")

    def test_missing_result_is_protocol_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1})

        with pytest.raises(ProtocolError):
            call(handler, "is_syncing")

    def test_invalid_json_is_protocol_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>bad gateway</html>")

        with pytest.raises(ProtocolError):
            call(handler, "is_syncing")

    def test_http_error_status_is_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="bad gateway")

        with pytest.raises(TransportError, match="502"):
            call(handler, "is_syncing")

    def test_timeout_is_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(TransportError):
            call(handler, "is_syncing")


class TestPeerCount:
    """Tests for `net_peerCount` decoding."""

    def test_hex_peer_count(self) -> None:
        assert call(rpc_result("0x1a"), "peer_count") == 26

    def test_malformed_peer_count(self) -> None:
        with pytest.raises(ProtocolError):
            call(rpc_result("lots"), "peer_count")

    def test_numeric_peer_count_rejected(self) -> None:
        """JSON-RPC quantities are hex strings, never bare numbers."""
        with pytest.raises(ProtocolError):
            call(rpc_result(26), "peer_count")

    def test_connection_refused_is_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TransportError):
            call(handler, "peer_count")


class TestPing:
    """Tests for the liveness ping."""

    def test_success_status_is_alive(self) -> None:
        assert call(rpc_result("1"), "ping") is True

    def test_error_status_is_not_alive(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503)

        assert call(handler, "ping") is False

    def test_connection_failure_is_not_alive(self) -> None:
        """Transport errors are an answer, not an exception."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        assert call(handler, "ping") is False

    def test_unparseable_url_is_not_alive(self) -> None:
        """A URL httpx cannot parse still answers the ping instead of raising."""

        async def run() -> tuple[bool, Exception | None]:
            client = ExecutionClient(
                "http://[::1", httpx.AsyncClient(transport=httpx.MockTransport(rpc_result("1")))
            )
            try:
                alive = await client.ping()
                try:
                    await client.is_syncing()
                except TransportError as e:
                    return alive, e
                return alive, None
            finally:
                await client.aclose()

        alive, error = asyncio.run(run())

        assert alive is False
        assert isinstance(error, TransportError)
