"""
Readiness evaluation pipeline.

One pass is a strict ordered sequence of checks. The first failing check ends
the pass, so the later (more expensive) upstream calls are skipped:

1. Execution node is not syncing
2. Execution node has enough peers (only where the network profile asks)
3. Beacon node has enough peers
4. Beacon node sync detail: not syncing, not optimistic, EL not offline,
   sync distance within tolerance
5. Eth1 cache complete (Lighthouse, opt-in)

Upstream failures never escape a pass. They become a not-ready verdict that
names the check that could not be completed.

The evaluator only returns verdicts. Publishing them is the poll loop's job.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Protocol

from node_health import metrics
from node_health.upstream import Eth1SyncStatus, ProtocolError, SyncStatus, UpstreamError

from .profile import ReadinessPolicy
from .verdict import Check, Verdict

logger = logging.getLogger(__name__)

SYNC_DISTANCE_REASON = "sync distance exceeds tolerance"


class ExecutionHealthSource(Protocol):
    """What the pipeline needs from the execution node."""

    async def is_syncing(self) -> bool: ...

    async def peer_count(self) -> int: ...


class ConsensusHealthSource(Protocol):
    """
    What the pipeline needs from the beacon node.

    Implemented by `ConsensusClient` (standard Beacon API, the default) and
    `LighthouseUiHealthSource` (single `/lighthouse/ui/health` payload).
    """

    async def peer_count(self) -> int: ...

    async def sync_status(self) -> SyncStatus: ...


class Eth1CacheSource(Protocol):
    """Lighthouse eth1 cache readiness."""

    async def eth1_sync_status(self) -> Eth1SyncStatus: ...


def error_kind(error: UpstreamError) -> str:
    """Short label distinguishing malformed payloads from failed requests."""
    return "protocol error" if isinstance(error, ProtocolError) else "transport error"


@dataclass(slots=True)
class ReadinessEvaluator:
    """Runs the ordered check pipeline against both upstreams."""

    execution: ExecutionHealthSource

    consensus: ConsensusHealthSource

    policy: ReadinessPolicy

    eth1: Eth1CacheSource | None = None
    """Required when `policy.check_eth1_cache` is set."""

    def __post_init__(self) -> None:
        if self.policy.check_eth1_cache and self.eth1 is None:
            raise ValueError("eth1 cache check enabled without an eth1 source")

    async def evaluate(self) -> Verdict:
        """
        Run one pass and return its verdict.

        Never raises for upstream failures.
        """
        start = time.perf_counter()
        verdict = await self._run_checks()
        metrics.evaluation_time.observe(time.perf_counter() - start)

        if verdict.ready:
            metrics.evaluations.labels(verdict="ready").inc()
            logger.info("node is ready for traffic")
        else:
            metrics.evaluations.labels(verdict="not_ready").inc()
            if verdict.check is not None:
                metrics.check_failures.labels(check=verdict.check.value).inc()
            logger.info(
                "not ready: %s (check=%s, value=%r)",
                verdict.reason,
                verdict.check.value if verdict.check else None,
                verdict.value,
            )
        return verdict

    async def _run_checks(self) -> Verdict:
        profile = self.policy.profile

        # Tracks which check owns the upstream call in flight, so an error
        # is attributed to the right step.
        check = Check.EXECUTION_SYNC
        try:
            if await self.execution.is_syncing():
                return Verdict.failed(check, "execution node is syncing", True)
            logger.debug("execution node is not syncing")

            if profile.peer_checks_enabled:
                check = Check.EXECUTION_PEERS
                peers = await self.execution.peer_count()
                metrics.execution_peers.set(peers)
                if peers < profile.min_execution_peers:
                    return Verdict.failed(
                        check,
                        f"execution peer count below minimum {profile.min_execution_peers}",
                        peers,
                    )
                logger.debug("execution node has %d peers", peers)
            else:
                logger.debug("execution peer check skipped on %s", profile.network)

            check = Check.CONSENSUS_PEERS
            peers = await self.consensus.peer_count()
            metrics.consensus_peers.set(peers)
            if peers < self.policy.min_consensus_peers:
                return Verdict.failed(
                    check,
                    f"consensus peer count below minimum {self.policy.min_consensus_peers}",
                    peers,
                )
            logger.debug("consensus node has %d peers", peers)

            check = Check.CONSENSUS_SYNC
            status = await self.consensus.sync_status()
            verdict = self._check_sync_status(status)
            if verdict is not None:
                return verdict

            if self.policy.check_eth1_cache and self.eth1 is not None:
                check = Check.ETH1_SYNC
                verdict = self._check_eth1(await self.eth1.eth1_sync_status())
                if verdict is not None:
                    return verdict

        except UpstreamError as e:
            return self._upstream_failure(check, e)

        return Verdict.passed()

    def _check_sync_status(self, status: SyncStatus) -> Verdict | None:
        """Decompose beacon sync status into its four ordered conditions."""
        if status.is_syncing:
            return Verdict.failed(Check.CONSENSUS_SYNCING, "consensus node is syncing", True)
        if status.is_optimistic:
            return Verdict.failed(
                Check.CONSENSUS_OPTIMISTIC, "consensus node is optimistically synced", True
            )
        if status.el_offline:
            return Verdict.failed(
                Check.CONSENSUS_EL_OFFLINE, "consensus node reports execution layer offline", True
            )

        metrics.sync_distance.set(status.sync_distance)
        if status.sync_distance > self.policy.sync_distance_tolerance:
            return Verdict.failed(Check.SYNC_DISTANCE, SYNC_DISTANCE_REASON, status.sync_distance)

        logger.debug("consensus node synced, sync distance %d", status.sync_distance)
        return None

    def _check_eth1(self, eth1: Eth1SyncStatus) -> Verdict | None:
        if eth1.eth1_is_syncing:
            return Verdict.failed(
                Check.ETH1_SYNC, "consensus node reports eth1 still syncing", eth1.percent_synced
            )
        if not eth1.is_cached_and_ready:
            return Verdict.failed(Check.ETH1_CACHE, "eth1 cache is not ready", False)
        logger.debug("eth1 cache is ready")
        return None

    def _upstream_failure(self, check: Check, error: UpstreamError) -> Verdict:
        kind = error_kind(error)
        logger.warning("%s failed with %s: %s", check.description, kind, error)
        return Verdict.failed(check, f"{check.description} failed: {kind}", error)
