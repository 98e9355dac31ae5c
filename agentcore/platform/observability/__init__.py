"""Observability infrastructure module.

This module provides monitoring and error tracking:
- Structured logging with invocation ids and branches
- Prometheus metrics
- OpenTelemetry spans
- Bugsnag error reporting
"""

from agentcore.platform.observability.logging import (
    bind_run,
    branch_ctx,
    configure_logging,
    get_logger,
    invocation_id_ctx,
)
from agentcore.platform.observability.metrics import BUCKETS

__all__ = [
    "BUCKETS",
    "bind_run",
    "branch_ctx",
    "configure_logging",
    "get_logger",
    "invocation_id_ctx",
]
