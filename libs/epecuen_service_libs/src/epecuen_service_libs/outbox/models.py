"""SQLAlchemy model for the transactional outbox table.

The outbox has its own declarative base so any service can create the table
next to its domain tables (``OutboxBase.metadata.create_all``) and write to it
from the same session that writes the domain rows.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Optional
from uuid import UUID, uuid4

from sqlalchemy import JSON, DateTime, Index, Integer, String, Text, Uuid
from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from stores without tz support."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class OutboxBase(AsyncAttrs, DeclarativeBase):
    """Declarative base for outbox tables."""

    pass


class EventOutbox(OutboxBase):
    """One pending or delivered event.

    ``published_at`` is NULL until the broker acknowledged the event and is
    never cleared afterwards. ``failed_at`` marks an entry dead-lettered after
    exhausting its retries; the relay ignores such entries until requeued.
    """

    __tablename__ = "event_outbox"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4, nullable=False)

    # Aggregate tracking
    aggregate_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    aggregate_type: Mapped[str] = mapped_column(String(100), nullable=False)

    # Event details
    event_type: Mapped[str] = mapped_column(String(255), nullable=False)
    event_data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    event_key: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    topic: Mapped[str] = mapped_column(String(255), nullable=False)

    # Publishing state; microsecond creation time drives relay ordering
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    published_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Retry handling
    retry_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    last_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    failed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_event_outbox_pending", "published_at", "failed_at", "created_at"),
        Index("ix_event_outbox_aggregate", "aggregate_type", "aggregate_id"),
        Index("ix_event_outbox_event_type", "event_type"),
    )

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return (
            f"<EventOutbox id={self.id} type={self.event_type} aggregate={self.aggregate_id} "
            f"published_at={self.published_at} retries={self.retry_count}>"
        )
