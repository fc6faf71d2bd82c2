"""
Observability package for websession.

- Structured JSON logging with correlation ids (structlog)
- Prometheus metrics for session operations (prometheus_client)
"""

from websession.observability.logging import (
    clear_correlation_id,
    configure_logging,
    correlation_id_context,
    get_correlation_id,
    get_logger,
    set_correlation_id,
)
from websession.observability.metrics import (
    generate_metrics,
    record_operation,
    track_operation,
)

__all__ = [
    # Logging
    "configure_logging",
    "get_logger",
    "set_correlation_id",
    "get_correlation_id",
    "clear_correlation_id",
    "correlation_id_context",
    # Metrics
    "generate_metrics",
    "record_operation",
    "track_operation",
]
