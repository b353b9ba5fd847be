"""Kafka consumer for Notification Service.

Offsets are committed manually, one record at a time. A record whose
processing asks for a retry is not committed: the consumer waits
``RETRY_BACKOFF_SECONDS`` and seeks back to it so the broker redelivers it.
"""

from __future__ import annotations

import asyncio
from typing import Any

from aiokafka import AIOKafkaConsumer, TopicPartition
from aiokafka.errors import KafkaConnectionError
from epecuen_core.error_enums import ErrorCode
from epecuen_core.events.envelope import EventEnvelope
from epecuen_core.user_models import UserCreatedV1
from epecuen_service_libs.logging_utils import create_service_logger
from pydantic import ValidationError

from services.notification_service.config import Settings
from services.notification_service.event_processor import NotificationEventProcessor
from services.notification_service.metrics import NOTIFICATION_DEAD_LETTERS

logger = create_service_logger("notification_service.kafka_consumer")


class NotificationKafkaConsumer:
    """Consumes ``UserCreatedV1`` envelopes and hands them to the event processor."""

    def __init__(
        self,
        settings: Settings,
        event_processor: NotificationEventProcessor,
    ) -> None:
        self.settings = settings
        self.event_processor = event_processor
        self.consumer: AIOKafkaConsumer | None = None
        self.should_stop = False
        self.topics = [settings.USER_CREATED_TOPIC]

    async def start_consumer(self) -> None:
        """Start the Kafka consumer and process records until stopped."""
        logger.info("Starting notification service Kafka consumer")

        self.consumer = AIOKafkaConsumer(
            *self.topics,
            bootstrap_servers=self.settings.KAFKA_BOOTSTRAP_SERVERS,
            group_id=self.settings.CONSUMER_GROUP,
            client_id=f"{self.settings.SERVICE_NAME}_consumer",
            auto_offset_reset=self.settings.CONSUMER_AUTO_OFFSET_RESET,
            enable_auto_commit=False,
            max_poll_records=1,
            session_timeout_ms=self.settings.CONSUMER_SESSION_TIMEOUT_MS,
        )

        try:
            await self.consumer.start()
            logger.info(
                "Notification service Kafka consumer started",
                extra={"topics": self.topics, "group_id": self.settings.CONSUMER_GROUP},
            )
            await self._process_messages()
        except asyncio.CancelledError:
            logger.info("Kafka consumer task cancelled")
            raise
        except Exception as e:
            logger.error(f"Error in notification service Kafka consumer: {e}", exc_info=True)
            raise
        finally:
            await self.stop_consumer()

    async def stop_consumer(self) -> None:
        self.should_stop = True
        if self.consumer:
            try:
                await self.consumer.stop()
                logger.info("Notification service Kafka consumer stopped")
            except Exception as e:
                logger.error(f"Error stopping notification service Kafka consumer: {e}")
            finally:
                self.consumer = None

    @property
    def is_running(self) -> bool:
        return self.consumer is not None and not self.should_stop

    async def _process_messages(self) -> None:
        while not self.should_stop and self.consumer is not None:
            try:
                async for msg in self.consumer:
                    if self.should_stop:
                        break
                    await self._handle_and_acknowledge(msg)
            except KafkaConnectionError as kce:
                logger.error(f"Kafka connection error: {kce}", exc_info=True)
                if self.should_stop:
                    break
                await asyncio.sleep(self.settings.RETRY_BACKOFF_SECONDS)

        logger.info("Notification service message processing loop has finished")

    async def _handle_and_acknowledge(self, msg: Any) -> None:
        """Commit ``msg`` when it is settled, otherwise rewind to it after a backoff."""
        if self.consumer is None:
            return
        tp = TopicPartition(msg.topic, msg.partition)

        try:
            settled = await self.handle_record(msg)
        except Exception as e:
            logger.error(
                f"Unexpected error processing record {msg.topic}:{msg.partition}:{msg.offset}: {e}",
                exc_info=True,
            )
            settled = False

        if settled:
            await self.consumer.commit({tp: msg.offset + 1})
            logger.debug("Record committed", extra={"offset": msg.offset, "topic": msg.topic})
            return

        await asyncio.sleep(self.settings.RETRY_BACKOFF_SECONDS)
        self.consumer.seek(tp, msg.offset)

    async def handle_record(self, msg: Any) -> bool:
        """Process one record; True when its offset may be committed."""
        try:
            envelope = EventEnvelope[UserCreatedV1].model_validate_json(msg.value)
        except (ValidationError, ValueError, TypeError) as e:
            NOTIFICATION_DEAD_LETTERS.labels(
                event_type="unparseable", reason=ErrorCode.PARSING_ERROR.value
            ).inc()
            logger.error(
                "Unparseable record skipped",
                extra={
                    "topic": msg.topic,
                    "partition": msg.partition,
                    "offset": msg.offset,
                    "error": str(e),
                },
            )
            return True

        outcome = await self.event_processor.process_user_created(envelope)
        logger.debug(
            "Record processed",
            extra={"event_id": str(envelope.event_id), "outcome": outcome.value},
        )
        return outcome.should_commit
