"""Dishka DI configuration for Product Service."""

from __future__ import annotations

from dishka import Provider, Scope, provide
from prometheus_client import REGISTRY, CollectorRegistry
from sqlalchemy.ext.asyncio import AsyncEngine

from services.product_service.config import Settings
from services.product_service.domain_handlers.product_handler import ProductHandler
from services.product_service.implementations.product_repository_impl import (
    PostgreSQLProductRepository,
)
from services.product_service.protocols import ProductRepository


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
    def provide_product_repository(
        self, engine: AsyncEngine, settings: Settings
    ) -> ProductRepository:
        return PostgreSQLProductRepository(engine, service_name=settings.SERVICE_NAME)


class DomainHandlerProvider(Provider):
    scope = Scope.APP

    @provide
    def provide_product_handler(self, repository: ProductRepository) -> ProductHandler:
        return ProductHandler(repository)
