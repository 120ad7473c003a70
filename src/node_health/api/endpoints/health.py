"""Liveness and readiness endpoint handlers."""

from __future__ import annotations

from typing import Final

from aiohttp import web

from node_health.readiness import ReadinessState

READINESS_STATE: Final = web.AppKey("readiness_state", ReadinessState)
"""Application key holding the shared readiness state."""


async def handle_livez(_request: web.Request) -> web.Response:
    """
    Handle liveness request.

    Status Codes:
        200 OK: Process is up. Says nothing about the upstreams.
    """
    return web.Response(status=200)


async def handle_readyz(request: web.Request) -> web.Response:
    """
    Handle readiness request.

    Reflects the last published verdict. No detail goes over the wire;
    operators read the logs for the reason.

    Status Codes:
        200 OK: Last evaluation pass found the node ready.
        503 Service Unavailable: Starting up, or last pass not ready.
    """
    state = request.app[READINESS_STATE]
    return web.Response(status=200 if state.is_ready() else 503)
