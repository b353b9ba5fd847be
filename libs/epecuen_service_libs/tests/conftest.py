from __future__ import annotations

import uuid
from collections.abc import AsyncIterator
from uuid import UUID

import pytest
from epecuen_service_libs.outbox.models import OutboxBase
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool


@pytest.fixture
def test_correlation_id() -> UUID:
    """Provide consistent correlation ID for testing."""
    return uuid.uuid4()


@pytest.fixture
async def sqlite_engine() -> AsyncIterator[AsyncEngine]:
    """In-memory database with the outbox table created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(OutboxBase.metadata.create_all)
    yield engine
    await engine.dispose()
