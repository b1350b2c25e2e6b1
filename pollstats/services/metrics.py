"""Prometheus metrics for the poll service.

Metrics live on a ``CollectorRegistry`` owned by a ``PollMetrics``
instance created once at startup and injected where needed, so tests can
use a fresh registry each time.
"""

from typing import Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)
from prometheus_client import GCCollector, PlatformCollector, ProcessCollector

UNKNOWN_QUESTION = "unknown"


class PollMetrics:
    """Process-wide counters and histograms.

    Usage:
        metrics = PollMetrics()
        metrics.record_submission("success")
        body = metrics.render()
    """

    content_type = CONTENT_TYPE_LATEST

    def __init__(self, registry: Optional[CollectorRegistry] = None, default_collectors: bool = True):
        """Create metrics on the given registry.

        Args:
            registry: Registry to register on (a new one when omitted)
            default_collectors: Also export process, platform and GC metrics
        """
        self.registry = registry or CollectorRegistry()

        if default_collectors:
            ProcessCollector(registry=self.registry)
            PlatformCollector(registry=self.registry)
            GCCollector(registry=self.registry)

        self.http_requests_total = Counter(
            "http_requests_total",
            "Total number of HTTP requests",
            ["method", "route", "status"],
            registry=self.registry,
        )
        self.http_request_duration_seconds = Histogram(
            "http_request_duration_seconds",
            "Duration of HTTP requests in seconds",
            ["method", "route"],
            registry=self.registry,
        )
        self.poll_submissions_total = Counter(
            "poll_submissions_total",
            "Total number of poll submissions",
            ["status"],
            registry=self.registry,
        )
        self.poll_interactions_total = Counter(
            "poll_interactions_total",
            "Total number of user interactions",
            ["type", "question"],
            registry=self.registry,
        )

    def record_submission(self, status: str) -> None:
        """Count a submission outcome (success, duplicate or error)."""
        self.poll_submissions_total.labels(status=status).inc()

    def record_interaction(self, event_type: str, question: Optional[str]) -> None:
        """Count one recorded interaction."""
        self.poll_interactions_total.labels(
            type=event_type,
            question=question or UNKNOWN_QUESTION,
        ).inc()

    def observe_request(self, method: str, route: str, status: int, duration: float) -> None:
        """Record an HTTP request's count and duration."""
        self.http_request_duration_seconds.labels(method=method, route=route).observe(duration)
        self.http_requests_total.labels(method=method, route=route, status=str(status)).inc()

    def render(self) -> bytes:
        """Render all metrics in the Prometheus text exposition format."""
        return generate_latest(self.registry)

    def sample(self, name: str, labels: Optional[dict] = None) -> float:
        """Return the current value of a sample, 0.0 when absent."""
        value = self.registry.get_sample_value(name, labels or {})
        return value if value is not None else 0.0
