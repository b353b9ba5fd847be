"""Product catalogue handler: request validation and not-found semantics."""

from __future__ import annotations

from decimal import Decimal
from typing import Any
from uuid import UUID

from epecuen_core.domain_enums import Category, Currency
from epecuen_service_libs.error_handling import (
    raise_resource_not_found,
    raise_validation_error,
    raise_validation_errors,
)
from epecuen_service_libs.logging_utils import create_service_logger

from services.product_service.api.schemas import ProductRequest, ProductResponse
from services.product_service.metrics import PRODUCT_OPERATIONS
from services.product_service.models_db import Product
from services.product_service.protocols import ProductRepository

logger = create_service_logger("product_service.domain_handlers.product")

NAME_REQUIRED = "Name is required"
PRICE_REQUIRED = "Price is required"
PRICE_NEGATIVE = "Price must be zero or greater"
PRICE_PRECISION = "Price must have at most 10 integer digits and 2 decimal places"
STOCK_NEGATIVE = "Stock must be zero or greater"
CATEGORY_INVALID = f"Category must be one of: {', '.join(c.value for c in Category)}"
CURRENCY_INVALID = f"Currency must be one of: {', '.join(c.value for c in Currency)}"

MAX_PRICE = Decimal("1e10")
PRICE_STEP = Decimal("0.01")


def _fits_price_column(price: Decimal) -> bool:
    """Whether ``price`` is storable as NUMERIC(12, 2) without rounding or overflow."""
    return abs(price) < MAX_PRICE and price == price.quantize(PRICE_STEP)


def validate_product_request(request: ProductRequest) -> list[str]:
    """Every violated rule, in a stable order."""
    messages: list[str] = []
    if not (request.name or "").strip():
        messages.append(NAME_REQUIRED)
    if request.price is None:
        messages.append(PRICE_REQUIRED)
    elif request.price < Decimal("0"):
        messages.append(PRICE_NEGATIVE)
    if request.price is not None and not _fits_price_column(request.price):
        messages.append(PRICE_PRECISION)
    if request.stock is not None and request.stock < 0:
        messages.append(STOCK_NEGATIVE)
    if (request.category or "").upper() not in Category.__members__:
        messages.append(CATEGORY_INVALID)
    if (request.currency or "").upper() not in Currency.__members__:
        messages.append(CURRENCY_INVALID)
    return messages


class ProductHandler:
    def __init__(self, repository: ProductRepository) -> None:
        self._repository = repository

    async def create_product(
        self, request: ProductRequest, correlation_id: UUID
    ) -> ProductResponse:
        messages = validate_product_request(request)
        if messages:
            PRODUCT_OPERATIONS.labels(operation="create", outcome="rejected").inc()
            raise_validation_errors(
                service="product_service",
                operation="create_product",
                messages=messages,
                correlation_id=correlation_id,
            )

        values: dict[str, Any] = {
            "name": (request.name or "").strip(),
            "description": request.description,
            "category": Category((request.category or "").upper()),
            "sub_category": request.sub_category,
            "image_url": request.image_url,
            "package_type": request.package_type,
            "content": request.content,
            "price": request.price,
            "currency": Currency((request.currency or "").upper()),
            "active": True,
            "stock": request.stock or 0,
            "supplier_id": request.supplier_id,
        }
        product = await self._repository.create_product(values)
        PRODUCT_OPERATIONS.labels(operation="create", outcome="created").inc()
        return ProductResponse.model_validate(product)

    async def list_products(self) -> list[ProductResponse]:
        return [ProductResponse.model_validate(p) for p in await self._repository.list_products()]

    async def get_product(self, product_id: int, correlation_id: UUID) -> ProductResponse:
        product = await self._repository.get_by_id(product_id)
        return ProductResponse.model_validate(
            self._found(product, product_id, "get_product", correlation_id)
        )

    async def list_by_category(
        self, category: str, correlation_id: UUID
    ) -> list[ProductResponse]:
        products = await self._repository.list_by_category(category)
        if not products:
            raise_resource_not_found(
                service="product_service",
                operation="list_by_category",
                resource_type="Products in category",
                resource_id=category,
                correlation_id=correlation_id,
            )
        return [ProductResponse.model_validate(p) for p in products]

    async def search_by_name(self, name: str, correlation_id: UUID) -> list[ProductResponse]:
        products = await self._repository.search_by_name(name)
        if not products:
            raise_resource_not_found(
                service="product_service",
                operation="search_by_name",
                resource_type="Products matching name",
                resource_id=name,
                correlation_id=correlation_id,
            )
        return [ProductResponse.model_validate(p) for p in products]

    async def change_status(self, product_id: int, correlation_id: UUID) -> ProductResponse:
        product = self._found(
            await self._repository.toggle_active(product_id),
            product_id,
            "change_status",
            correlation_id,
        )
        logger.info(
            "Product status changed",
            extra={"product_id": product_id, "active": product.active},
        )
        return ProductResponse.model_validate(product)

    async def delete_product(self, product_id: int, correlation_id: UUID) -> None:
        if not await self._repository.delete_product(product_id):
            self._found(None, product_id, "delete_product", correlation_id)
        PRODUCT_OPERATIONS.labels(operation="delete", outcome="deleted").inc()
        logger.info("Product deleted", extra={"product_id": product_id})

    async def update_stock(
        self, product_id: int, delta: int, correlation_id: UUID
    ) -> ProductResponse:
        """Add ``delta`` (possibly negative) to the product's stock."""
        product, applied = await self._repository.adjust_stock(product_id, delta)
        product = self._found(product, product_id, "update_stock", correlation_id)
        if not applied:
            raise_validation_error(
                service="product_service",
                operation="update_stock",
                field="stock",
                message=f"Stock cannot be negative (current {product.stock}, change {delta})",
                correlation_id=correlation_id,
                value=delta,
            )
        logger.info(
            "Product stock updated",
            extra={"product_id": product_id, "delta": delta, "stock": product.stock},
        )
        return ProductResponse.model_validate(product)

    def _found(
        self, product: Product | None, product_id: int, operation: str, correlation_id: UUID
    ) -> Product:
        if product is None:
            raise_resource_not_found(
                service="product_service",
                operation=operation,
                resource_type="Product",
                resource_id=str(product_id),
                correlation_id=correlation_id,
            )
        return product
