"""Protocols for the transactional outbox."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession


class OutboxEvent(Protocol):
    """Read-only view of an outbox row handed to the relay."""

    id: UUID
    aggregate_id: str
    aggregate_type: str
    event_type: str
    event_data: dict[str, Any]
    event_key: str | None
    topic: str
    created_at: datetime
    published_at: datetime | None
    retry_count: int
    last_error: str | None
    failed_at: datetime | None

    def to_dict(self) -> dict[str, Any]: ...


class OutboxRepositoryProtocol(Protocol):
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
        """
        Store an event.

        With ``session`` the row joins the caller's open transaction and is
        only flushed; committing (or rolling back) is the caller's job.
        Without it the row is written and committed on its own.
        """
        ...

    async def get_unpublished_events(self, limit: int = 100) -> list[OutboxEvent]:
        """Pending, non-dead-lettered events, oldest first."""
        ...

    async def mark_event_published(self, event_id: UUID) -> bool:
        """Set ``published_at`` if still NULL. Returns False when already set or missing."""
        ...

    async def increment_retry_count(self, event_id: UUID, error: str) -> None: ...

    async def mark_event_failed(self, event_id: UUID, error: str) -> None: ...

    async def get_event_by_id(self, event_id: UUID) -> OutboxEvent | None: ...

    async def list_failed_events(self, limit: int = 100) -> list[OutboxEvent]: ...

    async def requeue_event(self, event_id: UUID) -> bool:
        """Return a dead-lettered event to the pending set with a fresh retry budget."""
        ...

    async def count_unpublished(self) -> int: ...
