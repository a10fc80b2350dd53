"""
Defines Prometheus metrics for the extraction cascade.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from prometheus_client import REGISTRY as _PROM_REGISTRY
from prometheus_client import Counter as _OrigCounter
from prometheus_client import Histogram as _OrigHistogram
from prometheus_client import start_http_server

# ---------------------------------------------------------------------------
# Duplicate-safe Prometheus metric wrappers
# ---------------------------------------------------------------------------
# Test suites import this module repeatedly; reuse an already registered
# collector instead of failing on duplicate registration.


def _duplicate_safe_factory(metric_cls):
    """Return a factory that reuses an existing collector if already present."""

    def _factory(name: str, documentation: str, *args, **kwargs):  # type: ignore[override]
        existing = _PROM_REGISTRY._names_to_collectors.get(name)
        if existing is not None:
            return existing  # type: ignore[return-value]

        try:
            return metric_cls(name, documentation, *args, **kwargs)  # type: ignore[call-arg]
        except ValueError:
            return _PROM_REGISTRY._names_to_collectors[name]  # type: ignore[return-value]

    return _factory


Counter = _duplicate_safe_factory(_OrigCounter)  # type: ignore[assignment]
Histogram = _duplicate_safe_factory(_OrigHistogram)  # type: ignore[assignment]


def _create_metrics() -> Dict[str, Any]:
    return {
        "extraction_attempts_total": Counter(
            "khozo_extraction_attempts_total",
            "Extraction method invocations by outcome",
            ["method", "outcome"],
        ),
        "extraction_runs_total": Counter(
            "khozo_extraction_runs_total",
            "Completed cascade runs by outcome and winning method",
            ["outcome", "method"],
        ),
        "extraction_attempt_duration_seconds": Histogram(
            "khozo_extraction_attempt_duration_seconds",
            "Time spent inside one extraction method",
            ["method"],
            buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0],
        ),
        "http_responses_total": Counter(
            "khozo_http_responses_total",
            "HTTP responses by status class",
            ["status_class"],
        ),
    }


METRICS: Dict[str, Any] = _create_metrics()


def increment(name: str, value: float = 1.0, labels: Optional[Dict[str, Any]] = None) -> None:
    """Increment a counter metric."""
    if name in METRICS:
        metric = METRICS[name]
        if labels is not None:
            metric.labels(**labels).inc(value)
        else:
            metric.inc(value)


def observe(name: str, value: float, labels: Optional[Dict[str, Any]] = None) -> None:
    """Observe a histogram metric."""
    if name in METRICS:
        metric = METRICS[name]
        if labels is not None:
            metric.labels(**labels).observe(value)
        else:
            metric.observe(value)


def start_exporter(port: Optional[int]) -> bool:
    """Expose metrics over HTTP when a port is configured."""
    if port is None:
        return False
    start_http_server(port)
    return True
