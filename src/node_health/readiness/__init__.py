"""
Readiness evaluation: check policy, shared state and poll loop.

Data flow:

    ReadinessService --> ReadinessEvaluator --> upstream clients
           |
           v
    ReadinessState <-- HTTP handlers
"""

from .evaluator import ConsensusHealthSource, ExecutionHealthSource, ReadinessEvaluator
from .profile import (
    MIN_CONSENSUS_PEERS,
    PROFILES,
    Network,
    NetworkProfile,
    ReadinessPolicy,
    profile_for,
)
from .service import ReadinessService, StartupTimeoutError
from .state import Readiness, ReadinessState
from .verdict import Check, Verdict

__all__ = [
    "Check",
    "ConsensusHealthSource",
    "ExecutionHealthSource",
    "MIN_CONSENSUS_PEERS",
    "Network",
    "NetworkProfile",
    "PROFILES",
    "Readiness",
    "ReadinessEvaluator",
    "ReadinessPolicy",
    "ReadinessService",
    "ReadinessState",
    "StartupTimeoutError",
    "Verdict",
    "profile_for",
]
