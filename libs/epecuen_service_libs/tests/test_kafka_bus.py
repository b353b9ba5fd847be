"""Tests for KafkaBus publishing against a mocked aiokafka producer."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID

import pytest
from aiokafka.errors import KafkaTimeoutError
from epecuen_core.error_enums import ErrorCode
from epecuen_core.events.envelope import EventEnvelope
from epecuen_core.user_models import UserCreatedV1
from epecuen_service_libs.error_handling import EpecuenError
from epecuen_service_libs.kafka_client import KafkaBus

TOPIC = "epecuen.user.created.v1"


@pytest.fixture
def envelope(test_correlation_id: UUID) -> EventEnvelope[UserCreatedV1]:
    return EventEnvelope[UserCreatedV1](
        event_type=TOPIC,
        aggregate_id="u-1",
        source_service="user_service",
        correlation_id=test_correlation_id,
        data=UserCreatedV1(user_id="u-1", username="ana", email="ana@example.com"),
    )


@pytest.fixture
async def bus() -> KafkaBus:
    kafka_bus = KafkaBus(client_id="test_producer", bootstrap_servers="localhost:9092")
    kafka_bus.producer = MagicMock()
    kafka_bus.producer.start = AsyncMock()
    kafka_bus.producer.stop = AsyncMock()
    kafka_bus.producer.send_and_wait = AsyncMock(
        return_value=SimpleNamespace(partition=0, offset=11)
    )
    return kafka_bus


class TestPublish:
    async def test_publish_starts_lazily_and_sends_keyed_record(
        self, bus: KafkaBus, envelope: EventEnvelope[UserCreatedV1]
    ) -> None:
        await bus.publish(TOPIC, envelope, key="u-1", headers={"event_type": TOPIC})

        bus.producer.start.assert_awaited_once()
        call = bus.producer.send_and_wait.await_args
        assert call.args[0] == TOPIC
        assert call.kwargs["key"] == b"u-1"
        assert call.kwargs["headers"] == [("event_type", TOPIC.encode("utf-8"))]
        assert call.kwargs["value"]["data"]["email"] == "ana@example.com"

    async def test_timeout_becomes_publish_error(
        self,
        bus: KafkaBus,
        envelope: EventEnvelope[UserCreatedV1],
        test_correlation_id: UUID,
    ) -> None:
        bus.producer.send_and_wait.side_effect = KafkaTimeoutError()

        with pytest.raises(EpecuenError) as exc_info:
            await bus.publish(TOPIC, envelope)

        assert exc_info.value.error_code == ErrorCode.PUBLISH_ERROR
        assert exc_info.value.correlation_id == str(test_correlation_id)

    async def test_broker_rejection_becomes_publish_error(
        self, bus: KafkaBus, envelope: EventEnvelope[UserCreatedV1]
    ) -> None:
        bus.producer.send_and_wait.side_effect = RuntimeError("not leader for partition")

        with pytest.raises(EpecuenError) as exc_info:
            await bus.publish(TOPIC, envelope)

        assert exc_info.value.error_code == ErrorCode.PUBLISH_ERROR
        assert "not leader for partition" in exc_info.value.error_detail.message

    async def test_stop_releases_producer(self, bus: KafkaBus) -> None:
        await bus.start()
        await bus.stop()

        bus.producer.stop.assert_awaited_once()
        assert bus._started is False
