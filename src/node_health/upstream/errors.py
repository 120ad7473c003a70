"""
Errors raised by the upstream client adapters.

Two failure families are kept apart because they mean different things to an
operator reading the logs:

- Transport: the upstream could not be reached or answered with a non-2xx.
- Protocol: the upstream answered, but the payload was not what we expected.

The readiness evaluator treats both as "not ready".
"""

from __future__ import annotations


class UpstreamError(Exception):
    """Base class for failures talking to an execution or consensus node."""


class TransportError(UpstreamError):
    """Connection refused, timeout, or non-success HTTP status."""


class ProtocolError(UpstreamError):
    """Response body does not match the expected schema."""
