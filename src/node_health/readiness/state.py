"""
Shared readiness state.

One writer (the poll loop) and many readers (HTTP handlers). The object is
passed explicitly to both sides. There is no module-level instance.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum

from .verdict import Verdict


class Readiness(Enum):
    """Published readiness."""

    STARTING = "starting"
    """Upstreams not yet reachable. No verdict published."""

    READY = "ready"
    """Last completed pass found every condition satisfied."""

    NOT_READY = "not-ready"
    """Last completed pass failed a check or hit an upstream error."""


@dataclass(slots=True)
class ReadinessState:
    """
    Thread-safe holder for the latest verdict.

    The lock is held only for single assignments or reads, so readers and
    the writer never wait on each other for long.
    """

    _status: Readiness = Readiness.STARTING

    _verdict: Verdict | None = None

    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def set_ready(self, ready: bool) -> None:
        """Publish a bare readiness bit, dropping any earlier verdict."""
        with self._lock:
            self._status = Readiness.READY if ready else Readiness.NOT_READY
            self._verdict = None

    def publish(self, verdict: Verdict) -> None:
        """Publish a verdict, replacing whatever was there."""
        with self._lock:
            self._status = Readiness.READY if verdict.ready else Readiness.NOT_READY
            self._verdict = verdict

    def is_ready(self) -> bool:
        with self._lock:
            return self._status is Readiness.READY

    @property
    def status(self) -> Readiness:
        with self._lock:
            return self._status

    @property
    def last_verdict(self) -> Verdict | None:
        """Most recently published verdict, if any."""
        with self._lock:
            return self._verdict
