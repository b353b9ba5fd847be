"""Prometheus metrics for the outbox relay."""

from __future__ import annotations

from prometheus_client import REGISTRY, Counter, Gauge, Histogram

from ..logging_utils import create_service_logger

logger = create_service_logger("outbox.monitoring")


class OutboxMetrics:
    """Counters and gauges describing relay throughput and backlog."""

    def __init__(self) -> None:
        self.events_published = Counter(
            "outbox_events_published_total",
            "Outbox events acknowledged by the broker",
            ["service", "event_type"],
            registry=REGISTRY,
        )
        self.publish_failures = Counter(
            "outbox_publish_failures_total",
            "Failed publish attempts for outbox events",
            ["service", "event_type"],
            registry=REGISTRY,
        )
        self.events_dead_lettered = Counter(
            "outbox_dead_lettered_total",
            "Outbox events that exhausted their retries",
            ["service", "event_type"],
            registry=REGISTRY,
        )
        self.relay_cycle_duration = Histogram(
            "outbox_relay_cycle_duration_seconds",
            "Duration of one relay batch",
            ["service"],
            buckets=(0.01, 0.05, 0.1, 0.5, 1, 2, 5, 10),
            registry=REGISTRY,
        )
        self.pending_events = Gauge(
            "outbox_pending_events",
            "Outbox entries not yet published or dead-lettered",
            ["service"],
            registry=REGISTRY,
        )

    def record_published(self, service: str, event_type: str) -> None:
        self.events_published.labels(service=service, event_type=event_type).inc()

    def record_failure(self, service: str, event_type: str) -> None:
        self.publish_failures.labels(service=service, event_type=event_type).inc()

    def record_dead_letter(self, service: str, event_type: str) -> None:
        self.events_dead_lettered.labels(service=service, event_type=event_type).inc()

    def observe_cycle(self, service: str, seconds: float) -> None:
        self.relay_cycle_duration.labels(service=service).observe(seconds)

    def set_pending(self, service: str, count: int) -> None:
        self.pending_events.labels(service=service).set(count)


_outbox_metrics: OutboxMetrics | None = None


def get_outbox_metrics() -> OutboxMetrics:
    """Return the process-wide OutboxMetrics, registering collectors on first use."""
    global _outbox_metrics
    if _outbox_metrics is None:
        _outbox_metrics = OutboxMetrics()
        logger.info("Outbox metrics registered")
    return _outbox_metrics
