"""API route definitions."""

from collections.abc import Awaitable, Callable

from aiohttp import web

from .endpoints import health, metrics

ROUTES: dict[str, Callable[[web.Request], Awaitable[web.Response]]] = {
    "/livez": health.handle_livez,
    "/readyz": health.handle_readyz,
    "/metrics": metrics.handle,
}
"""All API routes mapped to their handlers."""
