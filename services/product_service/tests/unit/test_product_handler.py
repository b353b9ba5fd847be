"""Tests for ProductHandler validation and not-found semantics."""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest
from epecuen_core.domain_enums import Category, Currency
from epecuen_core.error_enums import ErrorCode
from epecuen_service_libs.error_handling import EpecuenError

from services.product_service.api.schemas import ProductRequest
from services.product_service.domain_handlers.product_handler import (
    CATEGORY_INVALID,
    CURRENCY_INVALID,
    NAME_REQUIRED,
    PRICE_NEGATIVE,
    PRICE_PRECISION,
    PRICE_REQUIRED,
    STOCK_NEGATIVE,
    ProductHandler,
    validate_product_request,
)


class TestValidateProductRequest:
    def test_valid_request_has_no_violations(self, yerba_request: ProductRequest) -> None:
        assert validate_product_request(yerba_request) == []

    def test_empty_request_reports_every_rule(self) -> None:
        assert validate_product_request(ProductRequest()) == [
            NAME_REQUIRED,
            PRICE_REQUIRED,
            CATEGORY_INVALID,
            CURRENCY_INVALID,
        ]

    def test_negative_price_and_stock(self, yerba_request: ProductRequest) -> None:
        request = yerba_request.model_copy(update={"price": Decimal("-1"), "stock": -2})

        assert validate_product_request(request) == [PRICE_NEGATIVE, STOCK_NEGATIVE]

    @pytest.mark.parametrize("price", ["12345678901.00", "10000000000", "19.999"])
    def test_price_beyond_column_precision_is_rejected(
        self, yerba_request: ProductRequest, price: str
    ) -> None:
        request = yerba_request.model_copy(update={"price": Decimal(price)})

        assert validate_product_request(request) == [PRICE_PRECISION]

    def test_largest_storable_price_is_accepted(self, yerba_request: ProductRequest) -> None:
        request = yerba_request.model_copy(update={"price": Decimal("9999999999.99")})

        assert validate_product_request(request) == []

    def test_blank_name_is_missing(self, yerba_request: ProductRequest) -> None:
        request = yerba_request.model_copy(update={"name": "   "})

        assert validate_product_request(request) == [NAME_REQUIRED]

    def test_unknown_enum_values(self, yerba_request: ProductRequest) -> None:
        request = yerba_request.model_copy(update={"category": "toys", "currency": "BTC"})

        assert validate_product_request(request) == [CATEGORY_INVALID, CURRENCY_INVALID]


class TestCreateProduct:
    async def test_creates_with_normalized_enums(
        self, handler: ProductHandler, yerba_request: ProductRequest
    ) -> None:
        product = await handler.create_product(yerba_request, uuid4())

        assert product.id > 0
        assert product.category == Category.FOOD
        assert product.currency == Currency.ARS
        assert product.price == Decimal("4500.50")
        assert product.active is True
        assert product.stock == 10
        assert product.sub_category == "Infusiones"

    async def test_missing_stock_defaults_to_zero(
        self, handler: ProductHandler, yerba_request: ProductRequest
    ) -> None:
        request = yerba_request.model_copy(update={"stock": None})

        product = await handler.create_product(request, uuid4())

        assert product.stock == 0

    async def test_invalid_request_collects_messages(self, handler: ProductHandler) -> None:
        correlation_id = uuid4()

        with pytest.raises(EpecuenError) as exc_info:
            await handler.create_product(ProductRequest(name="x"), correlation_id)

        error = exc_info.value
        assert error.error_code == ErrorCode.VALIDATION_ERROR
        assert error.correlation_id == str(correlation_id)
        assert await handler.list_products() == []


class TestLookups:
    async def test_unknown_id_is_not_found(self, handler: ProductHandler) -> None:
        with pytest.raises(EpecuenError) as exc_info:
            await handler.get_product(404, uuid4())

        assert exc_info.value.error_code == ErrorCode.RESOURCE_NOT_FOUND

    async def test_empty_category_is_not_found(
        self, handler: ProductHandler, yerba_request: ProductRequest
    ) -> None:
        await handler.create_product(yerba_request, uuid4())

        with pytest.raises(EpecuenError) as exc_info:
            await handler.list_by_category("CLEANING", uuid4())

        assert exc_info.value.error_code == ErrorCode.RESOURCE_NOT_FOUND

    async def test_name_search_without_match_is_not_found(self, handler: ProductHandler) -> None:
        with pytest.raises(EpecuenError) as exc_info:
            await handler.search_by_name("nothing", uuid4())

        assert exc_info.value.error_code == ErrorCode.RESOURCE_NOT_FOUND


class TestMutations:
    async def test_change_status_toggles(
        self, handler: ProductHandler, yerba_request: ProductRequest
    ) -> None:
        created = await handler.create_product(yerba_request, uuid4())

        first = await handler.change_status(created.id, uuid4())
        second = await handler.change_status(created.id, uuid4())

        assert first.active is False
        assert second.active is True

    async def test_delete_unknown_product_is_not_found(self, handler: ProductHandler) -> None:
        with pytest.raises(EpecuenError) as exc_info:
            await handler.delete_product(99, uuid4())

        assert exc_info.value.error_code == ErrorCode.RESOURCE_NOT_FOUND

    async def test_stock_change_below_zero_is_rejected(
        self, handler: ProductHandler, yerba_request: ProductRequest
    ) -> None:
        created = await handler.create_product(yerba_request, uuid4())

        with pytest.raises(EpecuenError) as exc_info:
            await handler.update_stock(created.id, -11, uuid4())

        assert exc_info.value.error_code == ErrorCode.VALIDATION_ERROR
        assert "current 10, change -11" in exc_info.value.error_detail.message
        assert (await handler.get_product(created.id, uuid4())).stock == 10

    async def test_stock_change_is_applied(
        self, handler: ProductHandler, yerba_request: ProductRequest
    ) -> None:
        created = await handler.create_product(yerba_request, uuid4())

        updated = await handler.update_stock(created.id, -10, uuid4())

        assert updated.stock == 0
