from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from uuid import uuid4

import pytest
from epecuen_core.event_enums import ProcessingEvent, topic_name
from epecuen_core.events.envelope import EventEnvelope
from epecuen_core.user_models import UserCreatedV1
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from services.notification_service.config import Settings
from services.notification_service.implementations.repository_impl import (
    PostgreSQLNotificationRepository,
)
from services.notification_service.models_db import Base


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def repository(engine: AsyncEngine) -> PostgreSQLNotificationRepository:
    return PostgreSQLNotificationRepository(engine)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        EMAIL_PROVIDER="mock",
        MAX_DELIVERY_ATTEMPTS=3,
        RETRY_BACKOFF_SECONDS=0,
        TOKEN_TTL_HOURS=24,
        MOCK_PROVIDER_FAILURE_RATE=0.0,
    )


@pytest.fixture
def make_envelope() -> Callable[..., EventEnvelope[UserCreatedV1]]:
    def _make(
        username: str = "alice", email: str = "alice@x.io"
    ) -> EventEnvelope[UserCreatedV1]:
        user_id = str(uuid4())
        return EventEnvelope[UserCreatedV1](
            event_type=topic_name(ProcessingEvent.USER_CREATED),
            aggregate_id=user_id,
            source_service="user_service",
            data=UserCreatedV1(user_id=user_id, username=username, email=email),
        )

    return _make
