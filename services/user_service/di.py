"""Dishka DI configuration for User Service."""

from __future__ import annotations

from collections.abc import AsyncIterator

from dishka import Provider, Scope, provide
from epecuen_service_libs.kafka_client import KafkaBus
from epecuen_service_libs.outbox import OutboxManager, OutboxSettings
from epecuen_service_libs.protocols import KafkaPublisherProtocol, RedisClientProtocol
from epecuen_service_libs.redis_client import RedisClient
from prometheus_client import REGISTRY, CollectorRegistry
from sqlalchemy.ext.asyncio import AsyncEngine

from services.user_service.config import Settings
from services.user_service.domain_handlers.user_creation_handler import UserCreationHandler
from services.user_service.domain_handlers.validation_gate import UserValidationGate
from services.user_service.implementations.password_hasher_impl import Argon2idPasswordHasher
from services.user_service.implementations.user_repository_sqlalchemy_impl import (
    PostgresUserRepo,
)
from services.user_service.protocols import PasswordHasher, UserRepo


class CoreProvider(Provider):
    """Settings, engine and infrastructure clients."""

    scope = Scope.APP

    def __init__(self, settings: Settings, engine: AsyncEngine) -> None:
        super().__init__()
        self._settings = settings
        self._engine = engine

    @provide
    def provide_settings(self) -> Settings:
        return self._settings

    @provide
    def provide_database_engine(self) -> AsyncEngine:
        return self._engine

    @provide
    def provide_metrics_registry(self) -> CollectorRegistry:
        return REGISTRY

    @provide
    def provide_outbox_settings(self, settings: Settings) -> OutboxSettings:
        return settings.outbox_settings()

    @provide
    async def provide_redis_client(self, settings: Settings) -> AsyncIterator[RedisClientProtocol]:
        client = RedisClient(
            client_id=f"{settings.SERVICE_NAME}-redis",
            redis_url=settings.REDIS_URL,
        )
        await client.start()
        yield client
        await client.stop()

    @provide
    async def provide_kafka_publisher(
        self, settings: Settings
    ) -> AsyncIterator[KafkaPublisherProtocol]:
        kafka_bus = KafkaBus(
            client_id=f"{settings.SERVICE_NAME}_producer",
            bootstrap_servers=settings.KAFKA_BOOTSTRAP_SERVERS,
            request_timeout_ms=settings.KAFKA_REQUEST_TIMEOUT_MS,
        )
        await kafka_bus.start()
        yield kafka_bus
        await kafka_bus.stop()


class UserImplementationsProvider(Provider):
    scope = Scope.APP

    @provide
    def provide_password_hasher(self) -> PasswordHasher:
        return Argon2idPasswordHasher()

    @provide
    def provide_user_repo(
        self, engine: AsyncEngine, outbox_manager: OutboxManager, settings: Settings
    ) -> UserRepo:
        return PostgresUserRepo(
            engine,
            outbox_manager,
            user_created_topic=settings.USER_CREATED_TOPIC,
            service_name=settings.SERVICE_NAME,
        )


class DomainHandlerProvider(Provider):
    scope = Scope.APP

    @provide
    def provide_validation_gate(self, user_repo: UserRepo) -> UserValidationGate:
        return UserValidationGate(user_repo)

    @provide
    def provide_user_creation_handler(
        self,
        user_repo: UserRepo,
        password_hasher: PasswordHasher,
        validation_gate: UserValidationGate,
    ) -> UserCreationHandler:
        return UserCreationHandler(user_repo, password_hasher, validation_gate)
