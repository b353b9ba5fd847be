"""Dishka provider wiring the outbox components for a service."""

from __future__ import annotations

from dishka import Provider, Scope, provide
from sqlalchemy.ext.asyncio import AsyncEngine

from ..protocols import KafkaPublisherProtocol, RedisClientProtocol
from .manager import OutboxManager
from .monitoring import OutboxMetrics, get_outbox_metrics
from .protocols import OutboxRepositoryProtocol
from .relay import EventRelayWorker, OutboxSettings
from .repository import PostgreSQLOutboxRepository


class OutboxProvider(Provider):
    """
    Provides the outbox repository, manager and relay worker.

    The service's own provider must supply ``AsyncEngine``, ``OutboxSettings``,
    ``KafkaPublisherProtocol`` and ``RedisClientProtocol``.
    """

    scope = Scope.APP

    def __init__(self, service_name: str) -> None:
        super().__init__()
        self.service_name = service_name

    @provide
    def provide_outbox_repository(self, engine: AsyncEngine) -> OutboxRepositoryProtocol:
        return PostgreSQLOutboxRepository(engine, service_name=self.service_name)

    @provide
    def provide_outbox_metrics(self) -> OutboxMetrics:
        return get_outbox_metrics()

    @provide
    def provide_outbox_manager(
        self,
        outbox_repository: OutboxRepositoryProtocol,
        redis_client: RedisClientProtocol,
    ) -> OutboxManager:
        return OutboxManager(outbox_repository, redis_client, self.service_name)

    @provide
    def provide_event_relay_worker(
        self,
        outbox_repository: OutboxRepositoryProtocol,
        kafka_bus: KafkaPublisherProtocol,
        redis_client: RedisClientProtocol,
        settings: OutboxSettings,
        metrics: OutboxMetrics,
    ) -> EventRelayWorker:
        return EventRelayWorker(
            outbox_repository=outbox_repository,
            kafka_bus=kafka_bus,
            settings=settings,
            service_name=self.service_name,
            redis_client=redis_client,
            metrics=metrics,
        )
