"""Unit tests for OutboxManager."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock
from uuid import UUID, uuid4

import pytest
from epecuen_core.error_enums import ErrorCode
from epecuen_core.user_models import UserCreatedV1
from epecuen_service_libs.error_handling import EpecuenError
from epecuen_service_libs.outbox.manager import OutboxManager
from epecuen_service_libs.outbox.protocols import OutboxRepositoryProtocol
from epecuen_service_libs.protocols import RedisClientProtocol


@pytest.fixture
def outbox_repository() -> AsyncMock:
    repository = AsyncMock(spec=OutboxRepositoryProtocol)
    repository.add_event.return_value = uuid4()
    return repository


@pytest.fixture
def redis_client() -> AsyncMock:
    return AsyncMock(spec=RedisClientProtocol)


@pytest.fixture
def manager(outbox_repository: AsyncMock, redis_client: AsyncMock) -> OutboxManager:
    return OutboxManager(outbox_repository, redis_client, service_name="user_service")


@pytest.fixture
def payload() -> UserCreatedV1:
    return UserCreatedV1(user_id="u-1", username="ana", email="ana@example.com")


async def _publish(manager: OutboxManager, payload: UserCreatedV1, correlation_id: UUID, **kw):
    return await manager.publish_to_outbox(
        aggregate_type="user",
        aggregate_id="u-1",
        event_type="user.created",
        event_data=payload,
        topic="epecuen.user.created.v1",
        correlation_id=correlation_id,
        **kw,
    )


class TestPublishToOutbox:
    async def test_stores_payload_and_wakes_relay(
        self,
        manager: OutboxManager,
        outbox_repository: AsyncMock,
        redis_client: AsyncMock,
        payload: UserCreatedV1,
        test_correlation_id: UUID,
    ) -> None:
        outbox_id = await _publish(manager, payload, test_correlation_id)

        assert outbox_id == outbox_repository.add_event.return_value
        kwargs = outbox_repository.add_event.await_args.kwargs
        assert kwargs["event_data"] == {
            "data": {"user_id": "u-1", "username": "ana", "email": "ana@example.com"},
            "correlation_id": str(test_correlation_id),
            "source_service": "user_service",
        }
        assert kwargs["event_key"] == "u-1"
        assert kwargs["session"] is None
        redis_client.lpush.assert_awaited_once_with("outbox:wake:user_service", "1")

    async def test_session_write_defers_notification(
        self,
        manager: OutboxManager,
        outbox_repository: AsyncMock,
        redis_client: AsyncMock,
        payload: UserCreatedV1,
        test_correlation_id: UUID,
    ) -> None:
        session = MagicMock()

        await _publish(manager, payload, test_correlation_id, session=session)

        assert outbox_repository.add_event.await_args.kwargs["session"] is session
        redis_client.lpush.assert_not_awaited()

    async def test_storage_failure_becomes_persistence_error(
        self,
        manager: OutboxManager,
        outbox_repository: AsyncMock,
        payload: UserCreatedV1,
        test_correlation_id: UUID,
    ) -> None:
        outbox_repository.add_event.side_effect = RuntimeError("disk full")

        with pytest.raises(EpecuenError) as exc_info:
            await _publish(manager, payload, test_correlation_id)

        assert exc_info.value.error_detail.error_code == ErrorCode.PERSISTENCE_ERROR
        assert exc_info.value.correlation_id == str(test_correlation_id)


class TestNotifyRelayWorker:
    async def test_redis_failure_is_tolerated(
        self, manager: OutboxManager, redis_client: AsyncMock
    ) -> None:
        redis_client.lpush.side_effect = ConnectionError("redis down")

        await manager.notify_relay_worker()

        redis_client.lpush.assert_awaited_once()

    async def test_no_redis_configured(self, outbox_repository: AsyncMock) -> None:
        manager = OutboxManager(outbox_repository, None, service_name="user_service")

        await manager.notify_relay_worker()
