"""Shared HTTP plumbing for the upstream adapters."""

from __future__ import annotations

import logging
from typing import Any, Final

import httpx

from .errors import ProtocolError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT: Final = 10.0
"""Upper bound in seconds for any single upstream request."""

_BODY_PREVIEW: Final = 200
"""Characters of an unexpected body kept in error messages."""


def create_http_client(timeout: float = DEFAULT_TIMEOUT) -> httpx.AsyncClient:
    """
    Build the client used for one upstream.

    Every request is bounded by the timeout, so a hung upstream slows the
    poll loop down but never blocks it forever.
    """
    return httpx.AsyncClient(timeout=timeout)


async def send(client: httpx.AsyncClient, method: str, url: str, **kwargs: Any) -> httpx.Response:
    """
    Send a request and map failures onto the upstream error types.

    Raises:
        TransportError: Connection failure, timeout, or non-2xx status.
    """
    try:
        response = await client.request(method, url, **kwargs)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise TransportError(
            f"HTTP {exc.response.status_code} from {url}: {exc.response.text[:_BODY_PREVIEW]}"
        ) from exc
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise TransportError(f"{type(exc).__name__} while requesting {url}: {exc}") from exc
    return response


def decode_json(response: httpx.Response) -> Any:
    """
    Parse a JSON body.

    Raises:
        ProtocolError: If the body is not valid JSON.
    """
    try:
        return response.json()
    except ValueError as exc:
        raise ProtocolError(
            f"invalid JSON from {response.request.url}: {response.text[:_BODY_PREVIEW]!r}"
        ) from exc


async def is_alive(client: httpx.AsyncClient, method: str, url: str, **kwargs: Any) -> bool:
    """
    Liveness request that never raises.

    Any successful status counts as alive. Unreachable is a valid answer,
    so transport failures map to False.
    """
    try:
        response = await client.request(method, url, **kwargs)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.debug("ping %s failed: %s", url, e)
        return False
    return response.is_success
