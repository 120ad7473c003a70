"""
HTTP surface for load balancers and orchestrators.

Provides HTTP endpoints for:
- /livez - Liveness
- /readyz - Readiness
- /metrics - Prometheus metrics
"""

from .server import ApiServer, ApiServerConfig, create_app

__all__ = [
    "ApiServer",
    "ApiServerConfig",
    "create_app",
]
