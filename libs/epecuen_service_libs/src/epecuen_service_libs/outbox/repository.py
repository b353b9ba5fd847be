"""
PostgreSQL implementation of OutboxRepositoryProtocol.

Every state transition the relay performs is a single-row UPDATE in its own
short transaction, so a crash mid-batch leaves only acknowledged rows marked.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from ..error_handling import raise_persistence_error
from ..logging_utils import create_service_logger
from .models import EventOutbox, utcnow
from .protocols import OutboxEvent, OutboxRepositoryProtocol

logger = create_service_logger("outbox.repository")

_NO_CORRELATION = UUID("00000000-0000-0000-0000-000000000000")


class OutboxEventImpl:
    """Detached snapshot of an EventOutbox row satisfying the OutboxEvent protocol."""

    def __init__(self, db_model: EventOutbox) -> None:
        self.id = db_model.id
        self.aggregate_id = db_model.aggregate_id
        self.aggregate_type = db_model.aggregate_type
        self.event_type = db_model.event_type
        self.event_data = dict(db_model.event_data)
        self.event_key = db_model.event_key
        self.topic = db_model.topic
        self.created_at = db_model.created_at
        self.published_at = db_model.published_at
        self.retry_count = db_model.retry_count
        self.last_error = db_model.last_error
        self.failed_at = db_model.failed_at

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "aggregate_id": self.aggregate_id,
            "aggregate_type": self.aggregate_type,
            "event_type": self.event_type,
            "topic": self.topic,
            "created_at": self.created_at.isoformat(),
            "retry_count": self.retry_count,
            "last_error": self.last_error,
            "failed_at": self.failed_at.isoformat() if self.failed_at else None,
        }


class PostgreSQLOutboxRepository(OutboxRepositoryProtocol):
    """Outbox persistence on SQLAlchemy's async engine."""

    def __init__(self, engine: AsyncEngine, service_name: str) -> None:
        self._session_factory = async_sessionmaker(engine, expire_on_commit=False)
        self._service_name = service_name

    async def add_event(
        self,
        aggregate_id: str,
        aggregate_type: str,
        event_type: str,
        event_data: dict[str, Any],
        topic: str,
        event_key: str | None = None,
        session: AsyncSession | None = None,
    ) -> UUID:
        outbox_event = EventOutbox(
            aggregate_id=aggregate_id,
            aggregate_type=aggregate_type,
            event_type=event_type,
            event_data=event_data,
            event_key=event_key,
            topic=topic,
        )

        if session is not None:
            # Caller owns the unit of work; failures surface through its rollback
            session.add(outbox_event)
            await session.flush()
            return outbox_event.id

        try:
            async with self._session_factory() as own_session:
                async with own_session.begin():
                    own_session.add(outbox_event)
                    await own_session.flush()
        except SQLAlchemyError as e:
            raise_persistence_error(
                service=self._service_name,
                operation="add_event_to_outbox",
                message=f"Failed to add event to outbox: {e.__class__.__name__}",
                correlation_id=_NO_CORRELATION,
                aggregate_id=aggregate_id,
                event_type=event_type,
                error_details=str(e),
            )

        logger.info(
            "Added event to outbox",
            extra={
                "outbox_id": str(outbox_event.id),
                "aggregate_id": aggregate_id,
                "event_type": event_type,
            },
        )
        return outbox_event.id

    async def get_unpublished_events(self, limit: int = 100) -> list[OutboxEvent]:
        stmt = (
            select(EventOutbox)
            .where(EventOutbox.published_at.is_(None), EventOutbox.failed_at.is_(None))
            .order_by(EventOutbox.created_at)
            .limit(limit)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [OutboxEventImpl(row) for row in result.scalars().all()]

    async def mark_event_published(self, event_id: UUID) -> bool:
        stmt = (
            update(EventOutbox)
            .where(EventOutbox.id == event_id, EventOutbox.published_at.is_(None))
            .values(published_at=utcnow())
        )
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(stmt)

        if result.rowcount == 0:
            logger.warning(
                "Outbox event already published or missing",
                extra={"event_id": str(event_id)},
            )
            return False
        return True

    async def increment_retry_count(self, event_id: UUID, error: str) -> None:
        stmt = (
            update(EventOutbox)
            .where(EventOutbox.id == event_id)
            .values(retry_count=EventOutbox.retry_count + 1, last_error=error[:1000])
        )
        async with self._session_factory() as session:
            async with session.begin():
                await session.execute(stmt)

    async def mark_event_failed(self, event_id: UUID, error: str) -> None:
        stmt = (
            update(EventOutbox)
            .where(EventOutbox.id == event_id, EventOutbox.published_at.is_(None))
            .values(failed_at=utcnow(), last_error=error[:1000])
        )
        async with self._session_factory() as session:
            async with session.begin():
                await session.execute(stmt)

    async def get_event_by_id(self, event_id: UUID) -> OutboxEvent | None:
        async with self._session_factory() as session:
            row = await session.get(EventOutbox, event_id)
            return OutboxEventImpl(row) if row is not None else None

    async def list_failed_events(self, limit: int = 100) -> list[OutboxEvent]:
        stmt = (
            select(EventOutbox)
            .where(EventOutbox.failed_at.is_not(None), EventOutbox.published_at.is_(None))
            .order_by(EventOutbox.failed_at)
            .limit(limit)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [OutboxEventImpl(row) for row in result.scalars().all()]

    async def requeue_event(self, event_id: UUID) -> bool:
        stmt = (
            update(EventOutbox)
            .where(
                EventOutbox.id == event_id,
                EventOutbox.failed_at.is_not(None),
                EventOutbox.published_at.is_(None),
            )
            .values(failed_at=None, retry_count=0, last_error=None)
        )
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(stmt)
        return result.rowcount > 0

    async def count_unpublished(self) -> int:
        stmt = select(func.count()).select_from(EventOutbox).where(
            EventOutbox.published_at.is_(None), EventOutbox.failed_at.is_(None)
        )
        async with self._session_factory() as session:
            return int((await session.execute(stmt)).scalar_one())
