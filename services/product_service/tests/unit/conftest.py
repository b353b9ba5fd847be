from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from services.product_service.api.schemas import ProductRequest
from services.product_service.domain_handlers.product_handler import ProductHandler
from services.product_service.implementations.product_repository_impl import (
    PostgreSQLProductRepository,
)
from services.product_service.models_db import Base


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def repository(engine: AsyncEngine) -> PostgreSQLProductRepository:
    return PostgreSQLProductRepository(engine)


@pytest.fixture
def handler(repository: PostgreSQLProductRepository) -> ProductHandler:
    return ProductHandler(repository)


@pytest.fixture
def yerba_request() -> ProductRequest:
    return ProductRequest(
        name="Yerba Mate Suave",
        description="Yerba mate con palo",
        category="food",
        subCategory="Infusiones",
        packageType="Paquete",
        content="1kg",
        price="4500.50",
        currency="ars",
        stock=10,
        supplierId=3,
    )
