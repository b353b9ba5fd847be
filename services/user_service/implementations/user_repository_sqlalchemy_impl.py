"""
SQLAlchemy user repository.

``create_user_with_outbox`` is the only write path: the user row and its
``UserCreatedV1`` outbox entry share one session and commit together.
"""

from __future__ import annotations

from typing import Any, Optional
from uuid import UUID

from epecuen_core.domain_enums import UserRole
from epecuen_core.event_enums import ProcessingEvent, topic_name
from epecuen_core.user_models import UserCreatedV1
from epecuen_service_libs.error_handling import raise_persistence_error, raise_validation_errors
from epecuen_service_libs.logging_utils import create_service_logger
from epecuen_service_libs.outbox import OutboxManager
from sqlalchemy import exists, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from services.user_service.api.schemas import CreateUserRequest
from services.user_service.domain_handlers.validation_gate import EMAIL_IN_USE
from services.user_service.models_db import EMAIL_UNIQUE_CONSTRAINT, User
from services.user_service.protocols import UserRepo

logger = create_service_logger("user_service.user_repository")


def _is_email_conflict(error: IntegrityError) -> bool:
    """Whether ``error`` came from the email unique constraint rather than another one."""
    message = str(error.orig)
    # PostgreSQL names the constraint; SQLite names the column
    return EMAIL_UNIQUE_CONSTRAINT in message or "users.email" in message


class PostgresUserRepo(UserRepo):
    def __init__(
        self,
        engine: AsyncEngine,
        outbox_manager: OutboxManager,
        user_created_topic: str,
        service_name: str = "user_service",
    ) -> None:
        self._session_factory = async_sessionmaker(engine, expire_on_commit=False)
        self._outbox_manager = outbox_manager
        self._topic = user_created_topic
        self._service_name = service_name

    async def create_user_with_outbox(
        self,
        new_user: CreateUserRequest,
        password_hash: str,
        correlation_id: UUID,
    ) -> dict[str, Any]:
        email = (new_user.email or "").strip().lower()
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    user = User(
                        username=(new_user.username or "").strip(),
                        email=email,
                        telephone=new_user.telephone,
                        password_hash=password_hash,
                        role=UserRole.USER.value,
                        enabled=True,
                    )
                    session.add(user)
                    # Flush assigns the id the event payload needs
                    await session.flush()

                    outbox_id = await self._outbox_manager.publish_to_outbox(
                        aggregate_type="user",
                        aggregate_id=str(user.id),
                        event_type=topic_name(ProcessingEvent.USER_CREATED),
                        event_data=UserCreatedV1(
                            user_id=str(user.id), username=user.username, email=user.email
                        ),
                        topic=self._topic,
                        correlation_id=correlation_id,
                        session=session,
                    )
                    created = user.to_public_dict()
        except IntegrityError as e:
            if not _is_email_conflict(e):
                logger.error(
                    "User creation violated an unexpected constraint",
                    extra={"correlation_id": str(correlation_id)},
                    exc_info=True,
                )
                raise_persistence_error(
                    service=self._service_name,
                    operation="create_user",
                    message="Failed to store user",
                    correlation_id=correlation_id,
                    error_type=e.__class__.__name__,
                )
            logger.info(
                "Concurrent registration lost the email uniqueness race",
                extra={"correlation_id": str(correlation_id)},
            )
            raise_validation_errors(
                service=self._service_name,
                operation="create_user",
                messages=[EMAIL_IN_USE],
                correlation_id=correlation_id,
                field="email",
            )
        except SQLAlchemyError as e:
            logger.error(
                f"User creation rolled back: {e.__class__.__name__}",
                extra={"correlation_id": str(correlation_id)},
                exc_info=True,
            )
            raise_persistence_error(
                service=self._service_name,
                operation="create_user",
                message="Failed to store user",
                correlation_id=correlation_id,
                error_type=e.__class__.__name__,
            )

        logger.info(
            "User stored with creation event",
            extra={
                "user_id": created["id"],
                "outbox_id": str(outbox_id),
                "correlation_id": str(correlation_id),
            },
        )

        # Committed; waking the relay is best effort
        await self._outbox_manager.notify_relay_worker()
        return created

    async def exists_by_email(self, email: str) -> bool:
        async with self._session_factory() as session:
            stmt = select(exists().where(User.email == email.strip().lower()))
            return bool((await session.execute(stmt)).scalar())

    async def get_user_by_email(self, email: str) -> Optional[dict[str, Any]]:
        async with self._session_factory() as session:
            stmt = select(User).where(User.email == email.strip().lower())
            user = (await session.execute(stmt)).scalar_one_or_none()
            return user.to_public_dict() if user else None

    async def list_users(self) -> list[dict[str, Any]]:
        async with self._session_factory() as session:
            stmt = select(User).order_by(User.created_at, User.id)
            users = (await session.execute(stmt)).scalars().all()
            return [user.to_public_dict() for user in users]
