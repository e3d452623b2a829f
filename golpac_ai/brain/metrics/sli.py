"""Assistant SLI metrics for Prometheus.

1. assistant_turn_duration_seconds    - Full answer computation latency
2. assistant_intent_detected_total    - Flows started, by intent
3. assistant_shortcut_total           - Status answers served from telemetry, by kind
4. assistant_flow_completed_total     - Flows handed off to IT with ticket data, by intent
5. assistant_fallback_total           - Fallback/escalation answers, by reason
"""

from __future__ import annotations

import time
from collections.abc import Generator  # noqa: TC003 -- used at runtime by contextmanager
from contextlib import contextmanager

from prometheus_client import CollectorRegistry, Counter, Histogram

# The engine is pure CPU work; buckets run from 0.5ms to 1s
_LATENCY_BUCKETS = (0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 1.0)


def _histogram(
    name: str,
    documentation: str,
    registry: CollectorRegistry | None,
) -> Histogram:
    """Create a Histogram with optional registry."""
    if registry is not None:
        return Histogram(name, documentation, buckets=_LATENCY_BUCKETS, registry=registry)
    return Histogram(name, documentation, buckets=_LATENCY_BUCKETS)


def _counter(
    name: str,
    documentation: str,
    labelnames: list[str],
    registry: CollectorRegistry | None,
) -> Counter:
    """Create a Counter with optional registry."""
    if registry is not None:
        return Counter(name, documentation, labelnames, registry=registry)
    return Counter(name, documentation, labelnames)


class AssistantSLI:
    """Central registry for assistant SLI metrics.

    Pass a custom CollectorRegistry for testing isolation.
    In production, use the default global registry (registry=None).
    """

    def __init__(self, *, registry: CollectorRegistry | None = None) -> None:
        self.turn_duration = _histogram(
            "assistant_turn_duration_seconds",
            "Time spent computing one assistant answer",
            registry,
        )

        self.intent_detected = _counter(
            "assistant_intent_detected_total",
            "Troubleshooting flows started",
            ["intent"],
            registry,
        )

        self.shortcut_count = _counter(
            "assistant_shortcut_total",
            "Status answers served straight from telemetry",
            ["kind"],
            registry,
        )

        self.flow_completed = _counter(
            "assistant_flow_completed_total",
            "Flows summarized and handed off with ticket data",
            ["intent"],
            registry,
        )

        self.fallback_count = _counter(
            "assistant_fallback_total",
            "Fallback and escalation answers",
            ["reason"],
            registry,
        )

    @contextmanager
    def timer(self, histogram: Histogram) -> Generator[None, None, None]:
        """Context manager that observes elapsed time on a histogram.

        Duration is always recorded, even if the block raises an exception.
        """
        start = time.monotonic()
        try:
            yield
        finally:
            histogram.observe(time.monotonic() - start)
