"""
Process orchestrator.

Wires the upstream clients, evaluator, poll loop and HTTP server together and
runs the server and poll loop with structured concurrency. If either task
fails, the task group cancels the other, so the process never keeps serving
/readyz from a dead poll loop (or polling with no way to report).
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from dataclasses import dataclass, field

from node_health.api import ApiServer, ApiServerConfig
from node_health.config import ConsensusSource, EnvConfig
from node_health.readiness import (
    ConsensusHealthSource,
    ReadinessEvaluator,
    ReadinessPolicy,
    ReadinessService,
    ReadinessState,
    profile_for,
)
from node_health.upstream import ConsensusClient, ExecutionClient, LighthouseUiHealthSource

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class HealthNode:
    """
    Readiness service for one execution + consensus node pair.

    Owns the HTTP clients and closes them on exit.
    """

    execution: ExecutionClient

    consensus: ConsensusClient

    state: ReadinessState

    service: ReadinessService

    api_server: ApiServer

    _shutdown: asyncio.Event = field(default_factory=asyncio.Event)
    """Event signaling shutdown request."""

    @classmethod
    def from_config(cls, config: EnvConfig) -> HealthNode:
        """Create a fully-wired node from configuration."""
        execution = ExecutionClient.create(config.execution_node_url, config.request_timeout)
        consensus = ConsensusClient.create(config.beacon_url, config.request_timeout)

        consensus_source: ConsensusHealthSource
        if config.consensus_source is ConsensusSource.LIGHTHOUSE_UI:
            consensus_source = LighthouseUiHealthSource(consensus)
        else:
            consensus_source = consensus

        profile = profile_for(config.network)
        policy = ReadinessPolicy(
            profile=profile,
            sync_distance_tolerance=config.sync_distance_tolerance,
            check_eth1_cache=config.check_eth1_cache,
        )
        logger.info(
            "network=%s execution_peer_checks=%s min_execution_peers=%d "
            "sync_distance_tolerance=%d consensus_source=%s",
            profile.network,
            profile.peer_checks_enabled,
            profile.min_execution_peers,
            policy.sync_distance_tolerance,
            config.consensus_source.value,
        )

        evaluator = ReadinessEvaluator(
            execution=execution,
            consensus=consensus_source,
            policy=policy,
            eth1=consensus if config.check_eth1_cache else None,
        )

        # Shared by reference: the service writes, the server reads.
        state = ReadinessState()

        service = ReadinessService(
            evaluator=evaluator,
            state=state,
            execution=execution,
            consensus=consensus,
            poll_interval=config.poll_interval,
            startup_interval=config.startup_interval,
            startup_timeout=config.startup_timeout,
        )

        api_server = ApiServer(
            config=ApiServerConfig.from_bind_flag(config.bind_public_interface, config.port),
            state=state,
        )

        return cls(
            execution=execution,
            consensus=consensus,
            state=state,
            service=service,
            api_server=api_server,
        )

    async def run(self, *, install_signal_handlers: bool = True) -> None:
        """
        Serve and poll until shutdown.

        The server starts first so /livez answers during the startup phase.

        Raises:
            StartupTimeoutError: If the upstreams never became reachable.
            OSError: If the server could not bind its port.
        """
        if install_signal_handlers:
            self._install_signal_handlers()

        try:
            await self.api_server.start()
            async with asyncio.TaskGroup() as tg:
                tg.create_task(self.api_server.run())
                tg.create_task(self._run_service())
                tg.create_task(self._wait_shutdown())
        except ExceptionGroup as eg:
            # Sibling tasks are cancelled, not failed, so one root cause is the norm.
            if len(eg.exceptions) == 1:
                raise eg.exceptions[0] from None
            raise
        finally:
            await self.api_server._async_stop()
            await self.execution.aclose()
            await self.consensus.aclose()

    async def _run_service(self) -> None:
        await self.service.run()
        # The loop only returns normally when asked to stop.
        self._shutdown.set()

    def _install_signal_handlers(self) -> None:
        """Handle SIGINT/SIGTERM by requesting graceful shutdown."""
        with contextlib.suppress(ValueError, RuntimeError, NotImplementedError):
            loop = asyncio.get_running_loop()
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.add_signal_handler(sig, self._shutdown.set)

    async def _wait_shutdown(self) -> None:
        """Wait for shutdown signal then stop both tasks."""
        await self._shutdown.wait()
        logger.info("shutting down")
        self.service.stop()
        self.api_server.stop()

    def stop(self) -> None:
        """Request graceful shutdown."""
        self._shutdown.set()

    @property
    def is_running(self) -> bool:
        return not self._shutdown.is_set()
