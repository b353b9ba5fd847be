"""Tests for event topic contracts and the event envelope."""

from __future__ import annotations

from datetime import UTC
from uuid import UUID, uuid4

import pytest
from epecuen_core import EventEnvelope, ProcessingEvent, UserCreatedV1, topic_name
from pydantic import ValidationError


class TestTopicName:
    def test_user_created_topic(self) -> None:
        assert topic_name(ProcessingEvent.USER_CREATED) == "epecuen.user.created.v1"

    def test_unmapped_event_rejected(self) -> None:
        with pytest.raises(ValueError, match="does not have an explicit topic mapping"):
            topic_name(ProcessingEvent.NOTIFICATION_DEAD_LETTERED)


class TestEventEnvelope:
    def test_defaults(self) -> None:
        envelope = EventEnvelope[dict](event_type="user.created", source_service="svc", data={})

        assert isinstance(envelope.event_id, UUID)
        assert isinstance(envelope.correlation_id, UUID)
        assert envelope.occurred_at.tzinfo == UTC
        assert envelope.schema_version == 1
        assert envelope.aggregate_id is None

    def test_json_round_trip_keeps_identity(self) -> None:
        event_id = uuid4()
        payload = UserCreatedV1(user_id="u-1", username="ana", email="ana@example.com")
        envelope = EventEnvelope[UserCreatedV1](
            event_id=event_id,
            event_type=ProcessingEvent.USER_CREATED.value,
            aggregate_id="u-1",
            source_service="user_service",
            data=payload,
        )

        restored = EventEnvelope[UserCreatedV1].model_validate_json(envelope.model_dump_json())

        assert restored.event_id == event_id
        assert restored.data == payload

    def test_payload_requires_valid_email(self) -> None:
        with pytest.raises(ValidationError):
            UserCreatedV1(user_id="u-1", username="ana", email="not-an-email")
