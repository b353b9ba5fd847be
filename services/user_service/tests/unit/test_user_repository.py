"""
Integration tests for PostgresUserRepo on in-memory SQLite.

Each test checks both tables: a user row exists exactly when its
``UserCreatedV1`` outbox entry exists.
"""

from __future__ import annotations

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from epecuen_core.error_enums import ErrorCode
from epecuen_service_libs.error_handling import EpecuenError
from epecuen_service_libs.outbox import EventOutbox, OutboxManager
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from services.user_service.api.schemas import CreateUserRequest
from services.user_service.implementations.user_repository_sqlalchemy_impl import (
    PostgresUserRepo,
)
from services.user_service.models_db import User

USER_TOPIC = "epecuen.user.created.v1"


async def _counts(engine: AsyncEngine) -> tuple[int, int]:
    async with async_sessionmaker(engine)() as session:
        users = (await session.execute(select(func.count()).select_from(User))).scalar_one()
        entries = (
            await session.execute(select(func.count()).select_from(EventOutbox))
        ).scalar_one()
    return users, entries


class TestCreateUserWithOutbox:
    async def test_writes_user_and_event_together(
        self,
        user_repo: PostgresUserRepo,
        engine: AsyncEngine,
        alice_request: CreateUserRequest,
        redis_client: AsyncMock,
    ) -> None:
        correlation_id = uuid4()

        user = await user_repo.create_user_with_outbox(alice_request, "hashed", correlation_id)

        assert user["username"] == "alice"
        assert user["email"] == "alice@x.io"
        assert user["role"] == "USER"
        assert "password_hash" not in user
        assert await _counts(engine) == (1, 1)

        async with async_sessionmaker(engine)() as session:
            entry = (await session.execute(select(EventOutbox))).scalar_one()
        assert entry.aggregate_id == user["id"]
        assert entry.aggregate_type == "user"
        assert entry.event_type == "epecuen.user.created.v1"
        assert entry.topic == USER_TOPIC
        assert entry.event_key == user["id"]
        assert entry.published_at is None
        assert entry.event_data["data"] == {
            "user_id": user["id"],
            "username": "alice",
            "email": "alice@x.io",
        }
        assert entry.event_data["correlation_id"] == str(correlation_id)
        redis_client.lpush.assert_awaited_once_with("outbox:wake:user_service", "1")

    async def test_email_is_stored_lower_cased(
        self, user_repo: PostgresUserRepo, alice_request: CreateUserRequest
    ) -> None:
        alice_request.email = "Alice@X.io"

        user = await user_repo.create_user_with_outbox(alice_request, "hashed", uuid4())

        assert user["email"] == "alice@x.io"
        assert await user_repo.exists_by_email("ALICE@x.io") is True

    async def test_duplicate_email_writes_nothing(
        self,
        user_repo: PostgresUserRepo,
        engine: AsyncEngine,
        alice_request: CreateUserRequest,
    ) -> None:
        await user_repo.create_user_with_outbox(alice_request, "hashed", uuid4())

        with pytest.raises(EpecuenError) as exc_info:
            await user_repo.create_user_with_outbox(alice_request, "hashed", uuid4())

        detail = exc_info.value.error_detail
        assert detail.error_code == ErrorCode.VALIDATION_ERROR
        assert detail.details["messages"] == ["Email is already in use"]
        assert await _counts(engine) == (1, 1)

    async def test_outbox_failure_rolls_back_user(
        self, engine: AsyncEngine, alice_request: CreateUserRequest
    ) -> None:
        failing_manager = AsyncMock(spec=OutboxManager)
        failing_manager.publish_to_outbox.side_effect = RuntimeError("outbox unavailable")
        repo = PostgresUserRepo(engine, failing_manager, user_created_topic=USER_TOPIC)

        with pytest.raises(RuntimeError):
            await repo.create_user_with_outbox(alice_request, "hashed", uuid4())

        assert await _counts(engine) == (0, 0)
        failing_manager.notify_relay_worker.assert_not_awaited()

    async def test_other_constraint_violation_is_not_reported_as_duplicate_email(
        self, engine: AsyncEngine, alice_request: CreateUserRequest
    ) -> None:
        manager = AsyncMock(spec=OutboxManager)
        manager.publish_to_outbox.side_effect = IntegrityError(
            "INSERT INTO event_outbox", {}, Exception("UNIQUE constraint failed: event_outbox.id")
        )
        repo = PostgresUserRepo(engine, manager, user_created_topic=USER_TOPIC)

        with pytest.raises(EpecuenError) as exc_info:
            await repo.create_user_with_outbox(alice_request, "hashed", uuid4())

        assert exc_info.value.error_detail.error_code == ErrorCode.PERSISTENCE_ERROR
        assert await _counts(engine) == (0, 0)

    async def test_store_failure_is_persistence_error(
        self, engine: AsyncEngine, outbox_manager: OutboxManager, alice_request: CreateUserRequest
    ) -> None:
        async with engine.begin() as conn:
            await conn.run_sync(User.__table__.drop)
        repo = PostgresUserRepo(engine, outbox_manager, user_created_topic=USER_TOPIC)

        with pytest.raises(EpecuenError) as exc_info:
            await repo.create_user_with_outbox(alice_request, "hashed", uuid4())

        assert exc_info.value.error_detail.error_code == ErrorCode.PERSISTENCE_ERROR


class TestReads:
    async def test_lookup_and_listing(
        self, user_repo: PostgresUserRepo, alice_request: CreateUserRequest
    ) -> None:
        assert await user_repo.exists_by_email("alice@x.io") is False
        assert await user_repo.get_user_by_email("alice@x.io") is None

        created = await user_repo.create_user_with_outbox(alice_request, "hashed", uuid4())
        bob = CreateUserRequest(username="bob", email="bob@x.io", password="p")
        await user_repo.create_user_with_outbox(bob, "hashed", uuid4())

        assert await user_repo.get_user_by_email("alice@x.io") == created
        assert [u["username"] for u in await user_repo.list_users()] == ["alice", "bob"]
