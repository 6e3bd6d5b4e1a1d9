"""Prometheus metrics collection for monitoring.

This module provides Prometheus metrics for tracking live connections,
streaming sessions, stage events, backpressure disconnects, and HTTP
requests.
"""

from typing import Optional

from prometheus_client import Counter, Gauge, Histogram, generate_latest

# Connection metrics
connections_active = Gauge(
    "relay_connections_active",
    "Number of currently registered client connections",
)

connections_total = Counter(
    "relay_connections_total",
    "Connection lifecycle events",
    labelnames=["outcome"],
)

# Session metrics
sessions_total = Counter(
    "relay_sessions_total",
    "Total number of streaming sessions by outcome",
    labelnames=["outcome"],
)

session_duration_seconds = Histogram(
    "relay_session_duration_seconds",
    "Streaming session duration in seconds",
    labelnames=["outcome"],
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0],
)

stage_events_total = Counter(
    "relay_stage_events_total",
    "Total number of stage events emitted",
    labelnames=["stage"],
)

# HTTP request metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    labelnames=["method", "endpoint", "status_code"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    labelnames=["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)


class MetricsCollector:
    """Collects and exposes Prometheus metrics."""

    def record_connection_registered(self) -> None:
        connections_total.labels(outcome="registered").inc()
        connections_active.inc()

    def record_connection_unregistered(self, overflow: bool = False) -> None:
        """Record a connection leaving the hub.

        Args:
            overflow: True when the connection was dropped for a full queue
        """
        connections_total.labels(outcome="overflow" if overflow else "unregistered").inc()
        connections_active.dec()

    def record_stage_event(self, stage: str) -> None:
        stage_events_total.labels(stage=stage).inc()

    def record_session(self, outcome: str, duration_seconds: float) -> None:
        """Record a finished streaming session.

        Args:
            outcome: Session outcome (completed, failed)
            duration_seconds: Wall time from open to terminal event

        Example:
            >>> collector = get_metrics_collector()
            >>> collector.record_session("completed", 1.2)
        """
        sessions_total.labels(outcome=outcome).inc()
        session_duration_seconds.labels(outcome=outcome).observe(duration_seconds)

    def record_http_request(
        self,
        method: str,
        endpoint: str,
        status_code: int,
        duration_seconds: float,
    ) -> None:
        """Record an HTTP request event.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: Request endpoint path
            status_code: HTTP status code
            duration_seconds: Request duration in seconds
        """
        http_requests_total.labels(
            method=method,
            endpoint=endpoint,
            status_code=status_code,
        ).inc()

        http_request_duration_seconds.labels(
            method=method,
            endpoint=endpoint,
        ).observe(duration_seconds)

    def generate_metrics(self) -> bytes:
        """Generate Prometheus metrics in text exposition format."""
        return generate_latest()


# Singleton instance
_metrics_collector: Optional[MetricsCollector] = None


def get_metrics_collector() -> MetricsCollector:
    """Get the global MetricsCollector instance.

    Returns:
        Singleton MetricsCollector instance
    """
    global _metrics_collector
    if _metrics_collector is None:
        _metrics_collector = MetricsCollector()
    return _metrics_collector
