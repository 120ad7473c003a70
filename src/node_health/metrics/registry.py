"""
Metric registry using prometheus_client.

Exposes the readiness verdict and the upstream readings behind it in
Prometheus text format via the /metrics endpoint.
"""

from __future__ import annotations

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

# Dedicated registry, so default Python process metrics stay out.
REGISTRY = CollectorRegistry()

# -----------------------------------------------------------------------------
# Verdict
# -----------------------------------------------------------------------------

ready = Gauge(
    "node_health_ready",
    "1 when the last evaluation pass found the node ready",
    registry=REGISTRY,
)

evaluations = Counter(
    "node_health_evaluations_total",
    "Completed evaluation passes",
    ["verdict"],
    registry=REGISTRY,
)

check_failures = Counter(
    "node_health_check_failures_total",
    "Evaluation passes ended by a failing check",
    ["check"],
    registry=REGISTRY,
)

evaluation_time = Histogram(
    "node_health_evaluation_seconds",
    "Duration of one evaluation pass",
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
    registry=REGISTRY,
)

# -----------------------------------------------------------------------------
# Upstream readings
# -----------------------------------------------------------------------------

execution_peers = Gauge(
    "node_health_execution_peers",
    "Last observed execution node peer count",
    registry=REGISTRY,
)

consensus_peers = Gauge(
    "node_health_consensus_peers",
    "Last observed beacon node peer count",
    registry=REGISTRY,
)

sync_distance = Gauge(
    "node_health_sync_distance",
    "Last observed beacon node sync distance in slots",
    registry=REGISTRY,
)


def generate_metrics() -> bytes:
    """
    Generate Prometheus metrics output.

    Returns:
        Prometheus text format output as bytes.
    """
    return generate_latest(REGISTRY)
