"""API endpoint handlers."""

from . import health, metrics

__all__ = [
    "health",
    "metrics",
]
