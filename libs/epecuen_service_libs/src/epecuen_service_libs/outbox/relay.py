"""
Event relay worker for the transactional outbox.

Polls pending outbox entries in creation order, wraps each one in an
EventEnvelope and publishes it to Kafka. An entry is marked published only
after the broker acknowledged it; a failed entry keeps its place and is
retried on a later cycle until its retry budget is spent, at which point it
is dead-lettered.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Any
from uuid import UUID

from epecuen_core.events.envelope import EventEnvelope
from pydantic import BaseModel

from ..logging_utils import create_service_logger
from .models import as_utc
from .monitoring import OutboxMetrics

if TYPE_CHECKING:
    from ..protocols import KafkaPublisherProtocol, RedisClientProtocol
    from .protocols import OutboxEvent, OutboxRepositoryProtocol

logger = create_service_logger("outbox.relay")


class OutboxSettings(BaseModel):
    """Relay tuning knobs, built by each service from its own Settings."""

    poll_interval_seconds: float = 1.0
    batch_size: int = 100
    max_retries: int = 5
    error_retry_interval_seconds: float = 5.0
    max_backoff_seconds: float = 30.0
    enable_wake_notifications: bool = True


def wake_key(service_name: str) -> str:
    return f"outbox:wake:{service_name}"


class EventRelayWorker:
    """
    Background task moving outbox entries to Kafka.

    Delivery is at-least-once: a crash between the broker acknowledgment and
    ``mark_event_published`` republishes the entry with the same event_id,
    which consumers deduplicate. Entries of one aggregate are published in
    creation order; once an entry fails, later entries of the same aggregate
    are held back for the rest of the batch.
    """

    def __init__(
        self,
        outbox_repository: OutboxRepositoryProtocol,
        kafka_bus: KafkaPublisherProtocol,
        settings: OutboxSettings,
        service_name: str,
        redis_client: RedisClientProtocol | None = None,
        metrics: OutboxMetrics | None = None,
    ) -> None:
        self.outbox_repository = outbox_repository
        self.kafka_bus = kafka_bus
        self.settings = settings
        self.service_name = service_name
        self.redis_client = redis_client
        self.metrics = metrics
        self._running = False
        self._task: asyncio.Task[None] | None = None
        self._consecutive_errors = 0

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        if self._running:
            logger.warning("Event relay worker already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._run())
        logger.info("Event relay worker started", extra={"service": self.service_name})

    async def stop(self) -> None:
        if not self._running:
            return

        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        logger.info("Event relay worker stopped", extra={"service": self.service_name})

    async def _run(self) -> None:
        logger.info(
            "Event relay worker loop starting",
            extra={
                "poll_interval": self.settings.poll_interval_seconds,
                "batch_size": self.settings.batch_size,
                "max_retries": self.settings.max_retries,
            },
        )

        while self._running:
            try:
                published, failed = await self.process_batch()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(
                    "Error in event relay worker main loop",
                    extra={"error": str(e)},
                    exc_info=True,
                )
                await asyncio.sleep(self.settings.error_retry_interval_seconds)
                continue

            if failed:
                self._consecutive_errors += 1
                await asyncio.sleep(self._backoff_delay())
            elif published >= self.settings.batch_size:
                # Full batch; more entries are likely waiting
                self._consecutive_errors = 0
            else:
                self._consecutive_errors = 0
                await self._wait_for_work()

    def _backoff_delay(self) -> float:
        delay = self.settings.poll_interval_seconds * (2 ** self._consecutive_errors)
        return min(delay, self.settings.max_backoff_seconds)

    async def _wait_for_work(self) -> None:
        """Block until a wake notification arrives or the poll interval elapses."""
        if self.redis_client is None or not self.settings.enable_wake_notifications:
            await asyncio.sleep(self.settings.poll_interval_seconds)
            return

        try:
            await self.redis_client.blpop(
                [wake_key(self.service_name)], timeout=self.settings.poll_interval_seconds
            )
        except Exception as e:
            logger.warning(
                "Wake notification wait failed, falling back to polling",
                extra={"error": str(e)},
            )
            await asyncio.sleep(self.settings.poll_interval_seconds)

    async def process_batch(self) -> tuple[int, int]:
        """
        Publish one batch of pending entries.

        Returns:
            ``(published, failed)`` counts for the batch
        """
        started = time.monotonic()
        events = await self.outbox_repository.get_unpublished_events(
            limit=self.settings.batch_size
        )

        published = 0
        failed = 0
        blocked_aggregates: set[str] = set()

        if events:
            logger.info(
                f"Processing {len(events)} unpublished events from outbox",
                extra={"event_count": len(events)},
            )

        for event in events:
            if event.aggregate_id in blocked_aggregates:
                logger.debug(
                    "Holding back event behind failed predecessor",
                    extra={"event_id": str(event.id), "aggregate_id": event.aggregate_id},
                )
                continue

            if await self._process_event(event):
                published += 1
            else:
                failed += 1
                blocked_aggregates.add(event.aggregate_id)

        if self.metrics is not None:
            self.metrics.observe_cycle(self.service_name, time.monotonic() - started)
            self.metrics.set_pending(
                self.service_name, await self.outbox_repository.count_unpublished()
            )

        return published, failed

    def build_envelope(self, event: OutboxEvent) -> EventEnvelope[Any]:
        stored = event.event_data
        correlation_id = stored.get("correlation_id") or event.id
        return EventEnvelope[Any](
            event_id=event.id,
            event_type=event.event_type,
            aggregate_id=event.aggregate_id,
            occurred_at=as_utc(event.created_at),
            source_service=stored.get("source_service", self.service_name),
            correlation_id=UUID(str(correlation_id)),
            data=stored.get("data", stored),
        )

    async def _process_event(self, event: OutboxEvent) -> bool:
        """Publish one entry. Returns True once the broker acknowledged it."""
        if event.retry_count >= self.settings.max_retries:
            await self._dead_letter(event)
            return False

        try:
            envelope = self.build_envelope(event)
        except (AttributeError, TypeError, ValueError) as e:
            # A stored row that cannot form an envelope never will
            await self._dead_letter(event, f"Malformed outbox entry: {e}", malformed=True)
            return False

        try:
            await self.kafka_bus.publish(
                topic=event.topic,
                envelope=envelope,
                key=event.event_key or event.aggregate_id,
                headers={"event_id": str(event.id), "event_type": event.event_type},
            )
        except Exception as e:
            error_message = f"Failed to publish event to Kafka: {e}"
            logger.error(
                error_message,
                extra={
                    "event_id": str(event.id),
                    "event_type": event.event_type,
                    "aggregate_id": event.aggregate_id,
                    "retry_count": event.retry_count,
                },
            )
            await self.outbox_repository.increment_retry_count(event.id, error_message)
            if self.metrics is not None:
                self.metrics.record_failure(self.service_name, event.event_type)
            if event.retry_count + 1 >= self.settings.max_retries:
                await self._dead_letter(event, error_message)
            return False

        await self.outbox_repository.mark_event_published(event.id)
        if self.metrics is not None:
            self.metrics.record_published(self.service_name, event.event_type)

        logger.info(
            "Published event from outbox",
            extra={
                "event_id": str(event.id),
                "event_type": event.event_type,
                "topic": event.topic,
                "aggregate_id": event.aggregate_id,
            },
        )
        return True

    async def _dead_letter(
        self, event: OutboxEvent, last_error: str | None = None, malformed: bool = False
    ) -> None:
        error = last_error or event.last_error or "unknown error"
        logger.error(
            "Malformed outbox event, dead-lettering"
            if malformed
            else "Outbox event exceeded max retries, dead-lettering",
            extra={
                "event_id": str(event.id),
                "event_type": event.event_type,
                "aggregate_id": event.aggregate_id,
                "max_retries": self.settings.max_retries,
                "last_error": error,
            },
        )
        await self.outbox_repository.mark_event_failed(
            event.id,
            error if malformed else f"Exceeded max retries ({self.settings.max_retries}): {error}",
        )
        if self.metrics is not None:
            self.metrics.record_dead_letter(self.service_name, event.event_type)
