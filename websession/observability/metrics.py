"""
Prometheus metrics for session operations.

The session service records one sample per operation: a counter labelled
with the outcome and a latency histogram. Labels are bounded (operation
names and four outcomes), session ids are never used as label values.

Metrics:
- websession_operations_total{operation, outcome}
- websession_operation_duration_seconds{operation}
"""

import time
from contextlib import asynccontextmanager
from typing import AsyncIterator

from prometheus_client import REGISTRY, Counter, Histogram, generate_latest

from websession.core.exceptions import (
    AttributeParseError,
    FormatError,
    SessionNotFoundError,
)


# =============================================================================
# Outcome Labels
# =============================================================================

OUTCOME_SUCCESS = "success"
OUTCOME_NOT_FOUND = "not_found"
OUTCOME_INVALID_INPUT = "invalid_input"
OUTCOME_STORE_ERROR = "store_error"


# =============================================================================
# Metric Definitions
# =============================================================================

OPERATIONS_TOTAL = Counter(
    name="websession_operations_total",
    documentation="Total number of session operations by outcome",
    labelnames=["operation", "outcome"],
)

OPERATION_DURATION_SECONDS = Histogram(
    name="websession_operation_duration_seconds",
    documentation="Session operation duration in seconds",
    labelnames=["operation"],
    buckets=(0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)


# =============================================================================
# Recording Helpers
# =============================================================================


def classify_outcome(error: BaseException | None) -> str:
    """
    Map an operation's terminal exception to an outcome label.

    Args:
        error: The exception that ended the operation, or None on success.

    Returns:
        One of the OUTCOME_* labels.
    """
    if error is None:
        return OUTCOME_SUCCESS
    if isinstance(error, SessionNotFoundError):
        return OUTCOME_NOT_FOUND
    if isinstance(error, (AttributeParseError, FormatError, ValueError)):
        return OUTCOME_INVALID_INPUT
    return OUTCOME_STORE_ERROR


def record_operation(operation: str, outcome: str, duration_seconds: float) -> None:
    """Record a finished session operation."""
    OPERATIONS_TOTAL.labels(operation=operation, outcome=outcome).inc()
    OPERATION_DURATION_SECONDS.labels(operation=operation).observe(duration_seconds)


@asynccontextmanager
async def track_operation(operation: str) -> AsyncIterator[None]:
    """
    Time the enclosed block and count it under its outcome.

    Exceptions are recorded and re-raised unchanged. Task cancellation is
    not counted as an outcome.

    Example:
        >>> async with track_operation("load_session"):
        ...     session = await store.load(sid)
    """
    start = time.perf_counter()
    try:
        yield
    except Exception as e:
        record_operation(operation, classify_outcome(e), time.perf_counter() - start)
        raise
    record_operation(operation, OUTCOME_SUCCESS, time.perf_counter() - start)


def generate_metrics() -> bytes:
    """Render the default registry in the Prometheus text format."""
    return generate_latest(REGISTRY)
