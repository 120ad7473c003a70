"""
HTTP server for liveness, readiness and metrics.

Provides HTTP endpoints for:
- /livez - Always 200 once the process is up
- /readyz - 200 when the last verdict was ready, 503 otherwise
- /metrics - Prometheus metrics endpoint
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Final

from aiohttp import web

from node_health.readiness import ReadinessState

from .endpoints.health import READINESS_STATE
from .routes import ROUTES

logger = logging.getLogger(__name__)

PUBLIC_HOST: Final = "0.0.0.0"
LOCAL_HOST: Final = "127.0.0.1"
DEFAULT_PORT: Final = 3004


@dataclass(frozen=True, slots=True)
class ApiServerConfig:
    """Configuration for the API server."""

    host: str = PUBLIC_HOST
    """Host address to bind to."""

    port: int = DEFAULT_PORT
    """Port to listen on."""

    @classmethod
    def from_bind_flag(
        cls, bind_public_interface: bool, port: int = DEFAULT_PORT
    ) -> ApiServerConfig:
        """
        Pick the bind address from the public-interface flag.

        Local development binds loopback only, which also avoids the macOS
        firewall prompt.
        """
        return cls(host=PUBLIC_HOST if bind_public_interface else LOCAL_HOST, port=port)


def create_app(state: ReadinessState) -> web.Application:
    """Build the aiohttp application serving every route in ROUTES."""
    app = web.Application()
    app[READINESS_STATE] = state
    app.add_routes([web.get(path, handler) for path, handler in ROUTES.items()])
    return app


@dataclass(slots=True)
class ApiServer:
    """
    HTTP server exposing the shared readiness state.

    Only reads the state; the poll loop is the sole writer.
    """

    config: ApiServerConfig
    """Server configuration."""

    state: ReadinessState
    """Readiness state shared with the poll loop."""

    _runner: web.AppRunner | None = field(default=None, init=False)
    """The aiohttp application runner."""

    _site: web.TCPSite | None = field(default=None, init=False)
    """The TCP site for the server."""

    async def start(self) -> None:
        """
        Bind and start serving in the background.

        Raises:
            OSError: If the address cannot be bound.
        """
        self._runner = web.AppRunner(create_app(self.state))
        await self._runner.setup()

        self._site = web.TCPSite(self._runner, self.config.host, self.config.port)
        try:
            await self._site.start()
        except OSError:
            await self._async_stop()
            raise

        logger.info(f"server listening on {self.config.host}:{self.config.port}")

    async def run(self) -> None:
        """
        Run the server until shutdown.

        This method blocks until stop() is called.
        """
        if self._runner is None:
            await self.start()

        while self._runner is not None:
            await asyncio.sleep(1)

        logger.info("server task exiting")

    def stop(self) -> None:
        """Request graceful shutdown."""
        if self._runner is not None:
            asyncio.create_task(self._async_stop())

    async def _async_stop(self) -> None:
        """Gracefully stop the server."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            self._site = None
            logger.info("server stopped")
