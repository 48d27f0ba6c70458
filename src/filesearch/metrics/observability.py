"""Observability helpers for filesearch."""

from __future__ import annotations

import logging
import time

import structlog
from prometheus_client import Counter, Histogram

_logger_configured = False


def configure_logging(level: int = logging.INFO) -> None:
    global _logger_configured  # noqa: PLW0603 - module-level guard
    if _logger_configured:
        return
    logging.basicConfig(level=level, format="%(message)s")
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _logger_configured = True


def bind_correlation_id(correlation_id: str) -> None:
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)


def clear_correlation_id() -> None:
    structlog.contextvars.clear_contextvars()


def get_logger(name: str = "filesearch") -> structlog.BoundLogger:
    configure_logging()
    return structlog.get_logger(name)


class ClientMetrics:
    """Prometheus metrics for remote calls, operations and queries."""

    remote_requests = Counter(
        "filesearch_remote_requests_total",
        "SDK calls issued to the File Search API.",
        ["call", "status"],
    )
    operation_polls = Counter(
        "filesearch_operation_polls_total",
        "Re-fetches of long-running operations.",
    )
    operation_outcomes = Counter(
        "filesearch_operations_total",
        "Long-running operations by terminal outcome.",
        ["outcome"],
    )
    operation_latency = Histogram(
        "filesearch_operation_duration_seconds",
        "Time spent waiting for long-running operations.",
        buckets=(0.1, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0),
    )
    query_latency = Histogram(
        "filesearch_query_duration_seconds",
        "Time spent on grounded generation requests.",
        buckets=(0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0),
    )
    citation_count = Histogram(
        "filesearch_query_citation_count",
        "Citations reconstructed per query.",
        buckets=(0, 1, 2, 3, 5, 8, 13, 21),
    )

    @classmethod
    def observe_request(cls, call: str, status: str) -> None:
        cls.remote_requests.labels(call=call, status=status).inc()

    @classmethod
    def observe_poll(cls) -> None:
        cls.operation_polls.inc()

    @classmethod
    def observe_operation(cls, outcome: str, duration_seconds: float) -> None:
        cls.operation_outcomes.labels(outcome=outcome).inc()
        cls.operation_latency.observe(duration_seconds)

    @classmethod
    def observe_query(cls, duration_seconds: float, citation_count: int) -> None:
        cls.query_latency.observe(duration_seconds)
        cls.citation_count.observe(citation_count)


class TimedSection:
    """Context manager capturing elapsed time for metrics."""

    def __init__(self, callback) -> None:
        self._callback = callback
        self._start = 0.0

    def __enter__(self) -> "TimedSection":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: D401
        duration = time.perf_counter() - self._start
        self._callback(duration)


__all__ = [
    "ClientMetrics",
    "TimedSection",
    "bind_correlation_id",
    "clear_correlation_id",
    "configure_logging",
    "get_logger",
]
