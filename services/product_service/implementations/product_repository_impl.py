"""SQLAlchemy product repository."""

from __future__ import annotations

from typing import Any, Optional
from uuid import UUID

from epecuen_core.domain_enums import Category
from epecuen_service_libs.error_handling import raise_persistence_error
from epecuen_service_libs.logging_utils import create_service_logger
from epecuen_service_libs.outbox.models import utcnow
from sqlalchemy import delete, not_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from services.product_service.models_db import Product
from services.product_service.protocols import ProductRepository

logger = create_service_logger("product_service.repository")

_NO_CORRELATION = UUID("00000000-0000-0000-0000-000000000000")


class PostgreSQLProductRepository(ProductRepository):
    def __init__(self, engine: AsyncEngine, service_name: str = "product_service") -> None:
        self._session_factory = async_sessionmaker(engine, expire_on_commit=False)
        self._service_name = service_name

    async def create_product(self, values: dict[str, Any]) -> Product:
        product = Product(**values)
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    session.add(product)
                    await session.flush()
        except SQLAlchemyError as e:
            raise_persistence_error(
                service=self._service_name,
                operation="create_product",
                message=f"Failed to store product: {e.__class__.__name__}",
                correlation_id=_NO_CORRELATION,
                error_details=str(e),
            )
        logger.info("Product created", extra={"product_id": product.id, "name": product.name})
        return product

    async def list_products(self) -> list[Product]:
        async with self._session_factory() as session:
            result = await session.execute(select(Product).order_by(Product.id))
            return list(result.scalars().all())

    async def get_by_id(self, product_id: int) -> Optional[Product]:
        async with self._session_factory() as session:
            return await session.get(Product, product_id)

    async def list_by_category(self, category: str) -> list[Product]:
        try:
            wanted = Category(category.upper())
        except ValueError:
            return []
        stmt = select(Product).where(Product.category == wanted).order_by(Product.id)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def search_by_name(self, name: str) -> list[Product]:
        stmt = (
            select(Product)
            .where(Product.name.icontains(name, autoescape=True))
            .order_by(Product.id)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def toggle_active(self, product_id: int) -> Optional[Product]:
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    update(Product)
                    .where(Product.id == product_id)
                    .values(active=not_(Product.active), updated_at=utcnow())
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount == 0:
                    return None
            return await session.get(Product, product_id, populate_existing=True)

    async def delete_product(self, product_id: int) -> bool:
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(delete(Product).where(Product.id == product_id))
        return result.rowcount > 0

    async def adjust_stock(self, product_id: int, delta: int) -> tuple[Optional[Product], bool]:
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    update(Product)
                    .where(Product.id == product_id, Product.stock + delta >= 0)
                    .values(stock=Product.stock + delta, updated_at=utcnow())
                    .execution_options(synchronize_session=False)
                )
            product = await session.get(Product, product_id, populate_existing=True)
        return product, result.rowcount == 1
