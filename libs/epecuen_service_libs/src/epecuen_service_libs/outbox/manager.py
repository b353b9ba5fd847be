"""Outbox manager: the write side of the transactional outbox."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from ..error_handling import EpecuenError, raise_persistence_error
from ..logging_utils import create_service_logger
from .relay import wake_key

if TYPE_CHECKING:
    from ..protocols import RedisClientProtocol
    from .protocols import OutboxRepositoryProtocol

logger = create_service_logger("outbox.manager")


class OutboxManager:
    """
    Stores domain events in the outbox and wakes the relay.

    When a ``session`` is supplied the entry joins the caller's transaction
    and nothing is signalled: the caller notifies the relay once its commit
    succeeded, so a rolled-back write never wakes anything.
    """

    def __init__(
        self,
        outbox_repository: OutboxRepositoryProtocol,
        redis_client: RedisClientProtocol | None,
        service_name: str,
    ) -> None:
        self.outbox_repository = outbox_repository
        self.redis_client = redis_client
        self.service_name = service_name

    async def publish_to_outbox(
        self,
        aggregate_type: str,
        aggregate_id: str,
        event_type: str,
        event_data: BaseModel,
        topic: str,
        correlation_id: UUID,
        session: AsyncSession | None = None,
    ) -> UUID:
        """
        Store an event payload for asynchronous delivery.

        Args:
            aggregate_type: Kind of aggregate, e.g. "user"
            aggregate_id: Identifier of the aggregate; also the Kafka partition key
            event_type: Event type name placed on the envelope
            event_data: Typed event payload
            topic: Destination Kafka topic
            correlation_id: Correlation id carried onto the envelope
            session: Open session of the caller's unit of work, if any

        Returns:
            The outbox entry id, which becomes the published envelope's event_id

        Raises:
            EpecuenError: PERSISTENCE_ERROR when the entry cannot be stored
        """
        stored = {
            "data": event_data.model_dump(mode="json"),
            "correlation_id": str(correlation_id),
            "source_service": self.service_name,
        }

        try:
            outbox_id = await self.outbox_repository.add_event(
                aggregate_id=aggregate_id,
                aggregate_type=aggregate_type,
                event_type=event_type,
                event_data=stored,
                topic=topic,
                event_key=aggregate_id,
                session=session,
            )
        except EpecuenError:
            raise
        except Exception as e:
            raise_persistence_error(
                service=self.service_name,
                operation="publish_to_outbox",
                message=f"Failed to store event in outbox: {e.__class__.__name__}",
                correlation_id=correlation_id,
                aggregate_id=aggregate_id,
                event_type=event_type,
                error_details=str(e),
            )

        logger.debug(
            "Event stored in outbox",
            extra={
                "outbox_id": str(outbox_id),
                "event_type": event_type,
                "aggregate_id": aggregate_id,
                "topic": topic,
                "correlation_id": str(correlation_id),
            },
        )

        if session is None:
            await self.notify_relay_worker()

        return outbox_id

    async def notify_relay_worker(self) -> None:
        """Push a wake token the relay picks up with BLPOP. Failure only costs latency."""
        if self.redis_client is None:
            return
        try:
            await self.redis_client.lpush(wake_key(self.service_name), "1")
            logger.debug("Relay worker notified via Redis")
        except Exception as e:
            logger.warning(
                "Failed to notify relay worker via Redis",
                extra={"error": str(e)},
            )
