"""
Prometheus metrics for canvaslog.

Environment Variables:
    CANVASLOG_METRICS_ENABLED: Enable metrics server (true/false) - default: false
    CANVASLOG_METRICS_PORT: HTTP port for /metrics endpoint - default: 9108

Usage:
    from canvaslog.metrics import start_metrics_server, track_append

    start_metrics_server(enabled=True, port=9108)
    track_append("ADD_NODE")

Helpers are no-ops until init_metrics() has run.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Generator, Optional

from prometheus_client import Counter, Histogram, start_http_server

logger = logging.getLogger(__name__)

EVENTS_APPENDED: Optional[Counter] = None
APPEND_CONFLICTS: Optional[Counter] = None
BATCH_FAILURES: Optional[Counter] = None
REPLAY_DURATION: Optional[Histogram] = None
REPLAY_EVENTS_APPLIED: Optional[Histogram] = None

_metrics_initialized = False
_metrics_lock = threading.Lock()


def init_metrics() -> None:
    """
    Initialize Prometheus metrics (call once at startup).

    Thread-safe via module-level lock; later calls are no-ops.
    """
    global EVENTS_APPENDED, APPEND_CONFLICTS, BATCH_FAILURES
    global REPLAY_DURATION, REPLAY_EVENTS_APPLIED
    global _metrics_initialized

    with _metrics_lock:
        if _metrics_initialized:
            return

        EVENTS_APPENDED = Counter(
            "canvaslog_events_appended_total",
            "Total number of events appended to the event log",
            labelnames=["event_type"],
        )
        APPEND_CONFLICTS = Counter(
            "canvaslog_append_conflicts_total",
            "Appends rejected because the expected tail sequence was stale",
        )
        BATCH_FAILURES = Counter(
            "canvaslog_batch_failures_total",
            "Batch items rejected during validation",
            labelnames=["reason"],
        )
        REPLAY_DURATION = Histogram(
            "canvaslog_replay_duration_seconds",
            "Duration of replay operations in seconds",
            buckets=(0.001, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0),
        )
        REPLAY_EVENTS_APPLIED = Histogram(
            "canvaslog_replay_events_applied",
            "Number of events folded per replay",
            buckets=(0, 10, 50, 100, 500, 1000, 5000, 10000, 100000),
        )

        _metrics_initialized = True
        logger.info("Prometheus metrics initialized")


def start_metrics_server(enabled: bool, port: int) -> None:
    """
    Start Prometheus metrics HTTP server in background thread.

    Args:
        enabled: Whether to start metrics server
        port: HTTP port for /metrics endpoint
    """
    if not enabled:
        logger.info("Metrics server disabled")
        return

    init_metrics()
    start_http_server(port, addr="0.0.0.0")
    logger.info("Metrics server started on http://0.0.0.0:%d/metrics", port)


def track_append(event_type: str) -> None:
    if EVENTS_APPENDED is not None:
        EVENTS_APPENDED.labels(event_type=event_type).inc()


def track_conflict() -> None:
    if APPEND_CONFLICTS is not None:
        APPEND_CONFLICTS.inc()


def track_batch_failure(reason: str) -> None:
    if BATCH_FAILURES is not None:
        BATCH_FAILURES.labels(reason=reason).inc()


@contextmanager
def track_replay() -> Generator[None, None, None]:
    """Time a replay. Usage: ``with track_replay(): ...``"""
    if REPLAY_DURATION is None:
        yield
        return

    with REPLAY_DURATION.time():
        yield


def observe_replay_applied(applied: int) -> None:
    if REPLAY_EVENTS_APPLIED is not None:
        REPLAY_EVENTS_APPLIED.observe(applied)
