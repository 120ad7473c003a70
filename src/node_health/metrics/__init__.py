"""
Metrics module for observability.

Provides the readiness gauge, evaluation counters and upstream readings.
Exposes metrics in Prometheus text format.
"""

from .registry import (
    REGISTRY,
    check_failures,
    consensus_peers,
    evaluation_time,
    evaluations,
    execution_peers,
    generate_metrics,
    ready,
    sync_distance,
)

__all__ = [
    "REGISTRY",
    "check_failures",
    "consensus_peers",
    "evaluation_time",
    "evaluations",
    "execution_peers",
    "generate_metrics",
    "ready",
    "sync_distance",
]
