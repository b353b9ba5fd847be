"""
Thin Kafka wrapper using aiokafka for Epecuen microservices.
"""

from __future__ import annotations

import json
import os
from typing import Any

from aiokafka import AIOKafkaProducer
from aiokafka.errors import KafkaConnectionError, KafkaTimeoutError
from epecuen_core.events.envelope import EventEnvelope

from .error_handling import raise_publish_error
from .logging_utils import create_service_logger

logger = create_service_logger("kafka-client")

KAFKA_BOOTSTRAP_SERVERS = os.getenv("KAFKA_BOOTSTRAP_SERVERS", "kafka:9092")


class KafkaBus:
    """Idempotent producer that waits for ``acks=all`` on every publish."""

    def __init__(
        self,
        *,
        client_id: str,
        bootstrap_servers: str = KAFKA_BOOTSTRAP_SERVERS,
        request_timeout_ms: int = 30000,
    ):
        self.bootstrap_servers = bootstrap_servers
        self.client_id = client_id
        self.producer = AIOKafkaProducer(
            bootstrap_servers=self.bootstrap_servers,
            client_id=self.client_id,
            value_serializer=lambda v: json.dumps(v).encode("utf-8"),
            acks="all",
            enable_idempotence=True,
            request_timeout_ms=request_timeout_ms,
        )
        self._started = False

    async def start(self) -> None:
        if not self._started:
            try:
                await self.producer.start()
                self._started = True
                logger.info(f"KafkaProducer '{self.client_id}' started successfully.")
            except KafkaConnectionError as e:
                logger.error(f"KafkaProducer '{self.client_id}' failed to start: {e}")
                raise

    async def stop(self) -> None:
        try:
            # Stop even when never started so the client's sockets are released
            await self.producer.stop()
            self._started = False
            logger.info(f"KafkaProducer '{self.client_id}' stopped.")
        except Exception as e:
            logger.error(
                f"Error stopping KafkaProducer '{self.client_id}': {e}",
                exc_info=True,
            )

    async def publish(
        self,
        topic: str,
        envelope: EventEnvelope[Any],
        key: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        if not self._started:
            logger.warning(f"KafkaProducer '{self.client_id}' not started. Attempting to start.")
            await self.start()
            if not self._started:
                raise RuntimeError(f"KafkaProducer '{self.client_id}' is not running.")
        try:
            key_bytes = key.encode("utf-8") if key else None
            record_headers = (
                [(name, value.encode("utf-8")) for name, value in headers.items()]
                if headers
                else None
            )
            record_metadata = await self.producer.send_and_wait(
                topic,
                value=envelope.model_dump(mode="json"),
                key=key_bytes,
                headers=record_headers,
            )
            logger.debug(
                f"Message published by '{self.client_id}' to {topic} "
                f"[partition:{record_metadata.partition}, offset:{record_metadata.offset}] "
                f"key='{key}' event_id='{envelope.event_id}'",
            )
        except KafkaTimeoutError as e:
            logger.error(f"Timeout publishing message by '{self.client_id}' to topic '{topic}'.")
            raise_publish_error(
                service=self.client_id,
                operation="publish",
                topic=topic,
                message=f"Timed out waiting for broker acknowledgment: {e}",
                correlation_id=envelope.correlation_id,
                event_id=str(envelope.event_id),
            )
        except Exception as e:
            logger.error(
                f"Error publishing message by '{self.client_id}' to topic '{topic}': {e}",
                exc_info=True,
            )
            raise_publish_error(
                service=self.client_id,
                operation="publish",
                topic=topic,
                message=f"Broker rejected record: {e.__class__.__name__}: {e}",
                correlation_id=envelope.correlation_id,
                event_id=str(envelope.event_id),
            )
