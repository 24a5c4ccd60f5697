"""Observability layer - logging and metrics."""

from calendar_intake.observability.logging import setup_logging
from calendar_intake.observability.metrics import MetricsCollector, get_metrics

__all__ = ["setup_logging", "MetricsCollector", "get_metrics"]
