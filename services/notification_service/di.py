"""Dishka DI configuration for Notification Service."""

from __future__ import annotations

from dishka import Provider, Scope, provide
from prometheus_client import REGISTRY, CollectorRegistry
from sqlalchemy.ext.asyncio import AsyncEngine

from services.notification_service.config import Settings
from services.notification_service.event_processor import NotificationEventProcessor
from services.notification_service.implementations.provider_mock_impl import MockEmailProvider
from services.notification_service.implementations.provider_smtp_impl import SMTPEmailProvider
from services.notification_service.implementations.repository_impl import (
    PostgreSQLNotificationRepository,
)
from services.notification_service.implementations.template_renderer_impl import (
    JinjaTemplateRenderer,
)
from services.notification_service.kafka_consumer import NotificationKafkaConsumer
from services.notification_service.protocols import (
    EmailProvider,
    NotificationRepository,
    TemplateRenderer,
)


class CoreProvider(Provider):
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


class ImplementationProvider(Provider):
    scope = Scope.APP

    @provide
    def provide_repository(self, engine: AsyncEngine, settings: Settings) -> NotificationRepository:
        return PostgreSQLNotificationRepository(engine, service_name=settings.SERVICE_NAME)

    @provide
    def provide_template_renderer(self, settings: Settings) -> TemplateRenderer:
        return JinjaTemplateRenderer(settings.TEMPLATE_PATH)

    @provide
    def provide_email_provider(self, settings: Settings) -> EmailProvider:
        if settings.EMAIL_PROVIDER == "smtp":
            return SMTPEmailProvider(settings)
        return MockEmailProvider(settings)


class ServiceProvider(Provider):
    scope = Scope.APP

    @provide
    def provide_event_processor(
        self,
        repository: NotificationRepository,
        template_renderer: TemplateRenderer,
        email_provider: EmailProvider,
        settings: Settings,
    ) -> NotificationEventProcessor:
        return NotificationEventProcessor(repository, template_renderer, email_provider, settings)

    @provide
    def provide_kafka_consumer(
        self, settings: Settings, event_processor: NotificationEventProcessor
    ) -> NotificationKafkaConsumer:
        return NotificationKafkaConsumer(settings, event_processor)
