from __future__ import annotations

from collections.abc import AsyncIterator
from unittest.mock import AsyncMock

import pytest
from epecuen_service_libs.outbox import OutboxBase, OutboxManager, PostgreSQLOutboxRepository
from epecuen_service_libs.protocols import RedisClientProtocol
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from services.user_service.api.schemas import CreateUserRequest
from services.user_service.implementations.user_repository_sqlalchemy_impl import (
    PostgresUserRepo,
)
from services.user_service.models_db import Base

USER_TOPIC = "epecuen.user.created.v1"


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        await conn.run_sync(OutboxBase.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def redis_client() -> AsyncMock:
    return AsyncMock(spec=RedisClientProtocol)


@pytest.fixture
def outbox_repository(engine: AsyncEngine) -> PostgreSQLOutboxRepository:
    return PostgreSQLOutboxRepository(engine, service_name="user_service")


@pytest.fixture
def outbox_manager(
    outbox_repository: PostgreSQLOutboxRepository, redis_client: AsyncMock
) -> OutboxManager:
    return OutboxManager(outbox_repository, redis_client, service_name="user_service")


@pytest.fixture
def user_repo(engine: AsyncEngine, outbox_manager: OutboxManager) -> PostgresUserRepo:
    return PostgresUserRepo(engine, outbox_manager, user_created_topic=USER_TOPIC)


@pytest.fixture
def alice_request() -> CreateUserRequest:
    return CreateUserRequest(
        username="alice",
        email="alice@x.io",
        telephone="+54 11 5555 0000",
        password="Str0ng!Pass",
        confirmPassword="Str0ng!Pass",
    )
