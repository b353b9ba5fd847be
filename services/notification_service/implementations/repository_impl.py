"""SQLAlchemy implementation of NotificationRepository.

The ledger relies on the primary key of ``processed_events``: the first
insert for an event id wins, every later one hits the constraint.
"""

from __future__ import annotations

import secrets
from datetime import timedelta
from typing import Any, NoReturn
from uuid import UUID

from epecuen_service_libs.error_handling import (
    raise_persistence_error,
    raise_resource_not_found,
    raise_token_error,
)
from epecuen_service_libs.logging_utils import create_service_logger
from epecuen_service_libs.outbox.models import as_utc, utcnow
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from services.notification_service.models_db import (
    ProcessedEvent,
    ProcessingStatus,
    ValidationToken,
)
from services.notification_service.protocols import (
    ClaimResult,
    NotificationRepository,
    TokenConsumption,
)

logger = create_service_logger("notification_service.repository")

_NO_CORRELATION = UUID("00000000-0000-0000-0000-000000000000")
_TERMINAL_STATUSES = (ProcessingStatus.COMPLETED.value, ProcessingStatus.DEAD_LETTERED.value)


def generate_token() -> str:
    return secrets.token_urlsafe(32)


class PostgreSQLNotificationRepository(NotificationRepository):
    def __init__(self, engine: AsyncEngine, service_name: str = "notification_service") -> None:
        self._session_factory = async_sessionmaker(engine, expire_on_commit=False)
        self._service_name = service_name

    async def claim_event(
        self,
        event_id: UUID,
        event_type: str,
        aggregate_id: str | None,
        recipient: str,
        token_ttl: timedelta,
    ) -> ClaimResult:
        now = utcnow()
        token = generate_token()
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    session.add(
                        ProcessedEvent(
                            event_id=event_id,
                            event_type=event_type,
                            aggregate_id=aggregate_id,
                            recipient=recipient,
                            status=ProcessingStatus.PROCESSING.value,
                            attempts=0,
                            received_at=now,
                        )
                    )
                    await session.flush()
                    session.add(
                        ValidationToken(
                            token=token,
                            email=recipient,
                            event_id=event_id,
                            created_at=now,
                            expires_at=now + token_ttl,
                        )
                    )
            return ClaimResult(claimed=True, token=token, attempts=0)
        except IntegrityError:
            logger.debug("Event already in ledger", extra={"event_id": str(event_id)})
        except SQLAlchemyError as e:
            self._raise_store_error("claim_event", e, event_id)

        return await self._reclaim_failed(event_id, recipient, token_ttl)

    async def _reclaim_failed(
        self, event_id: UUID, recipient: str, token_ttl: timedelta
    ) -> ClaimResult:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    result = await session.execute(
                        update(ProcessedEvent)
                        .where(
                            ProcessedEvent.event_id == event_id,
                            ProcessedEvent.status == ProcessingStatus.FAILED.value,
                        )
                        .values(status=ProcessingStatus.PROCESSING.value)
                    )
                    if result.rowcount == 0:
                        return ClaimResult(claimed=False, token=None, attempts=0)

                    event = await session.get(ProcessedEvent, event_id)
                    attempts = event.attempts if event is not None else 0
                    existing = await session.scalar(
                        select(ValidationToken).where(ValidationToken.event_id == event_id)
                    )
                    if existing is None:
                        now = utcnow()
                        existing = ValidationToken(
                            token=generate_token(),
                            email=recipient,
                            event_id=event_id,
                            created_at=now,
                            expires_at=now + token_ttl,
                        )
                        session.add(existing)
                    token = existing.token
        except SQLAlchemyError as e:
            self._raise_store_error("reclaim_event", e, event_id)

        logger.info(
            "Re-claimed previously failed event",
            extra={"event_id": str(event_id), "attempts": attempts},
        )
        return ClaimResult(claimed=True, token=token, attempts=attempts)

    async def mark_completed(self, event_id: UUID) -> None:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    event = await session.get(ProcessedEvent, event_id)
                    if event is None:
                        return
                    event.status = ProcessingStatus.COMPLETED.value
                    event.attempts += 1
                    event.last_error = None
                    event.completed_at = utcnow()
        except SQLAlchemyError as e:
            self._raise_store_error("mark_completed", e, event_id)

    async def mark_failed(self, event_id: UUID, error: str) -> int:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    event = await session.get(ProcessedEvent, event_id)
                    if event is None:
                        return 0
                    event.status = ProcessingStatus.FAILED.value
                    event.attempts += 1
                    event.last_error = error[:1000]
                    attempts = event.attempts
        except SQLAlchemyError as e:
            self._raise_store_error("mark_failed", e, event_id)
        return attempts

    async def mark_dead_lettered(self, event_id: UUID, error: str) -> None:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    await session.execute(
                        update(ProcessedEvent)
                        .where(ProcessedEvent.event_id == event_id)
                        .values(
                            status=ProcessingStatus.DEAD_LETTERED.value,
                            last_error=error[:1000],
                            completed_at=utcnow(),
                        )
                    )
        except SQLAlchemyError as e:
            self._raise_store_error("mark_dead_lettered", e, event_id)

    async def record_dead_letter(
        self,
        event_id: UUID,
        event_type: str,
        aggregate_id: str | None,
        recipient: str,
        error: str,
    ) -> bool:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    event = await session.get(ProcessedEvent, event_id)
                    if event is None:
                        session.add(
                            ProcessedEvent(
                                event_id=event_id,
                                event_type=event_type,
                                aggregate_id=aggregate_id,
                                recipient=recipient,
                                status=ProcessingStatus.DEAD_LETTERED.value,
                                attempts=0,
                                last_error=error[:1000],
                                completed_at=utcnow(),
                            )
                        )
                        return True
                    if event.status in _TERMINAL_STATUSES:
                        return False
                    event.status = ProcessingStatus.DEAD_LETTERED.value
                    event.last_error = error[:1000]
                    event.completed_at = utcnow()
                    return True
        except SQLAlchemyError as e:
            self._raise_store_error("record_dead_letter", e, event_id)

    async def list_dead_letters(self, limit: int = 100) -> list[dict[str, Any]]:
        stmt = (
            select(ProcessedEvent)
            .where(ProcessedEvent.status == ProcessingStatus.DEAD_LETTERED.value)
            .order_by(ProcessedEvent.received_at)
            .limit(limit)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [row.to_dict() for row in result.scalars().all()]

    async def consume_token(self, token: str, correlation_id: UUID) -> TokenConsumption:
        now = utcnow()
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    result = await session.execute(
                        update(ValidationToken)
                        .where(
                            ValidationToken.token == token,
                            ValidationToken.used_at.is_(None),
                            ValidationToken.expires_at > now,
                        )
                        .values(used_at=now)
                    )
                    row = await session.scalar(
                        select(ValidationToken).where(ValidationToken.token == token)
                    )
        except SQLAlchemyError as e:
            self._raise_store_error("consume_token", e, correlation_id=correlation_id)

        if row is None:
            raise_resource_not_found(
                service=self._service_name,
                operation="consume_token",
                resource_type="Validation token",
                resource_id=token,
                correlation_id=correlation_id,
            )
        if result.rowcount == 1:
            logger.info(
                "Validation token consumed",
                extra={"event_id": str(row.event_id), "correlation_id": str(correlation_id)},
            )
            return TokenConsumption(email=row.email, used_at=now)
        if row.used_at is not None:
            raise_token_error(
                service=self._service_name,
                operation="consume_token",
                message="Token has already been used",
                correlation_id=correlation_id,
                used_at=as_utc(row.used_at).isoformat(),
            )
        raise_token_error(
            service=self._service_name,
            operation="consume_token",
            message="Token has expired",
            correlation_id=correlation_id,
            expires_at=as_utc(row.expires_at).isoformat(),
        )

    def _raise_store_error(
        self,
        operation: str,
        error: SQLAlchemyError,
        event_id: UUID | None = None,
        correlation_id: UUID = _NO_CORRELATION,
    ) -> NoReturn:
        context: dict[str, Any] = {"error_details": str(error)}
        if event_id is not None:
            context["event_id"] = str(event_id)
        raise_persistence_error(
            service=self._service_name,
            operation=operation,
            message=f"Notification ledger operation failed: {error.__class__.__name__}",
            correlation_id=correlation_id,
            **context,
        )
