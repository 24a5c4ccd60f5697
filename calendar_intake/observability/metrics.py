"""
Prometheus metrics for the admission and extraction pipeline.

Defines and exposes metrics for:
- Admission decisions by outcome and reason code
- Which extraction path produced each event
- AI provider attempts and failures
- Extraction latency

Metrics are exposed at /metrics on the API for Prometheus scraping.
"""

import logging

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
)

logger = logging.getLogger(__name__)

# Buckets for latency histograms (in seconds)
LATENCY_BUCKETS = (0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0)


class MetricsCollector:
    """
    Prometheus metrics collector for calendar-intake.

    Usage:
        metrics = get_metrics()
        metrics.record_admission(allowed=False, code="burst_limit")
        metrics.extraction_latency.labels(source="ai").observe(1.2)

    Args:
        registry: Registry to register metrics on. Tests pass a fresh
            CollectorRegistry to avoid duplicate registration.
    """

    def __init__(self, registry: CollectorRegistry = REGISTRY):
        self.registry = registry

        self.admission_decisions = Counter(
            "calendar_intake_admission_decisions_total",
            "Admission decisions by outcome and reason code",
            ["outcome", "code"],  # outcome: allowed, denied
            registry=registry,
        )

        self.extractions = Counter(
            "calendar_intake_extractions_total",
            "Completed extractions by producing path",
            ["source"],  # source: ai, pattern
            registry=registry,
        )

        self.extraction_failures = Counter(
            "calendar_intake_extraction_failures_total",
            "Extractions that produced neither a title nor a date",
            registry=registry,
        )

        self.ai_attempts = Counter(
            "calendar_intake_ai_attempts_total",
            "Calls made to the AI provider",
            ["result"],  # result: success, transient, fatal
            registry=registry,
        )

        self.ai_fallbacks = Counter(
            "calendar_intake_ai_fallbacks_total",
            "AI extractions abandoned in favour of pattern extraction",
            ["reason"],
            registry=registry,
        )

        self.extraction_latency = Histogram(
            "calendar_intake_extraction_latency_seconds",
            "End-to-end extraction latency",
            ["source"],
            buckets=LATENCY_BUCKETS,
            registry=registry,
        )

        self.tracked_clients = Gauge(
            "calendar_intake_tracked_clients",
            "Client records currently held by the activity store",
            registry=registry,
        )

    def record_admission(self, allowed: bool, code: str | None) -> None:
        """Record one admission decision."""
        outcome = "allowed" if allowed else "denied"
        self.admission_decisions.labels(outcome=outcome, code=code or "ok").inc()

    def record_extraction(self, source: str, latency: float) -> None:
        """Record a successful extraction and its latency."""
        self.extractions.labels(source=source).inc()
        if latency > 0:
            self.extraction_latency.labels(source=source).observe(latency)


# Global metrics instance
_metrics: MetricsCollector | None = None


def get_metrics() -> MetricsCollector:
    """Get global metrics collector instance."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
