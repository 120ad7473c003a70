"""
Poll loop that drives readiness evaluation.

Two phases:

Startup
    Ping both upstreams every `startup_interval` until both answer. Readiness
    stays "starting". Giving up after `startup_timeout` is fatal: the process
    must not sit in steady state pointing at upstreams that never came up.

Steady
    Run one evaluation pass, publish its verdict, sleep `poll_interval`,
    repeat. The sleep does not account for how long the pass took; jitter
    is fine for a readiness check.

Passes never overlap, so the upstream clients need no locking.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Final, Protocol

from node_health import metrics

from .evaluator import ReadinessEvaluator
from .state import ReadinessState
from .verdict import Verdict

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL: Final = 4.0
"""Seconds between evaluation passes."""

DEFAULT_STARTUP_INTERVAL: Final = 4.0
"""Seconds between startup pings."""

DEFAULT_STARTUP_TIMEOUT: Final = 15 * 60.0
"""Seconds to wait for both upstreams before giving up."""


class StartupTimeoutError(Exception):
    """Upstreams never became reachable within the startup deadline."""


class Pingable(Protocol):
    async def ping(self) -> bool: ...


@dataclass(slots=True)
class ReadinessService:
    """
    Runs the startup phase, then evaluates readiness forever.

    The only writer of the readiness state.
    """

    evaluator: ReadinessEvaluator

    state: ReadinessState

    execution: Pingable
    """Execution upstream, pinged during startup."""

    consensus: Pingable
    """Consensus upstream, pinged during startup."""

    poll_interval: float = DEFAULT_POLL_INTERVAL

    startup_interval: float = DEFAULT_STARTUP_INTERVAL

    startup_timeout: float = DEFAULT_STARTUP_TIMEOUT

    time_fn: Callable[[], float] = field(default=time.monotonic)
    """Clock used for the startup deadline (injectable for testing)."""

    _stop: asyncio.Event = field(default_factory=asyncio.Event, repr=False)

    _running: bool = field(default=False, repr=False)

    @property
    def is_running(self) -> bool:
        return self._running

    async def run(self) -> None:
        """
        Wait for the upstreams, then poll until stopped.

        Raises:
            StartupTimeoutError: If the upstreams never both answered.
        """
        self._running = True
        try:
            await self.wait_for_upstreams()
            while not self._stop.is_set():
                await self.tick()
                await self._sleep(self.poll_interval)
        finally:
            self._running = False

    async def wait_for_upstreams(self) -> None:
        """
        Ping both upstreams until both are alive.

        A successful ping only unlocks the steady phase. It never publishes
        a ready verdict by itself.

        Raises:
            StartupTimeoutError: If the deadline passes first.
        """
        deadline = self.time_fn() + self.startup_timeout
        attempt = 0

        while not self._stop.is_set():
            attempt += 1
            execution_ok = await self.execution.ping()
            consensus_ok = await self.consensus.ping()

            if execution_ok and consensus_ok:
                logger.info("upstreams reachable after %d attempt(s)", attempt)
                return

            logger.info(
                "waiting for upstreams: execution=%s consensus=%s",
                "up" if execution_ok else "down",
                "up" if consensus_ok else "down",
            )

            if self.time_fn() >= deadline:
                raise StartupTimeoutError(
                    f"upstreams not reachable after {self.startup_timeout:.0f}s "
                    f"(execution={execution_ok}, consensus={consensus_ok})"
                )

            await self._sleep(self.startup_interval)

    async def tick(self) -> Verdict:
        """Run one evaluation pass and publish the result."""
        try:
            verdict = await self.evaluator.evaluate()
        except Exception as e:
            # Upstream errors are already verdicts; this is a bug in the pass.
            logger.exception("evaluation pass crashed")
            verdict = Verdict.failed(None, "evaluation failed: unexpected error", e)

        self.state.publish(verdict)
        metrics.ready.set(1 if verdict.ready else 0)
        return verdict

    def stop(self) -> None:
        """Ask the loop to exit after the current pass."""
        self._stop.set()

    async def _sleep(self, seconds: float) -> None:
        """Sleep, waking early if stop() is called."""
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=seconds)
        except TimeoutError:
            pass
