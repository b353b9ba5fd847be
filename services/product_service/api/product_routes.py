"""Product catalogue routes."""

from __future__ import annotations

from dishka import FromDishka
from epecuen_service_libs.error_handling import EpecuenError
from epecuen_service_libs.error_handling.quart import create_error_response
from epecuen_service_libs.logging_utils import create_service_logger
from quart import Blueprint, Response, jsonify
from quart_dishka import inject

from services.product_service.api.request_utils import extract_correlation_id, parse_body
from services.product_service.api.schemas import ProductRequest, ProductResponse
from services.product_service.domain_handlers.product_handler import ProductHandler

bp = Blueprint("products", __name__, url_prefix="/products")
logger = create_service_logger("product_service.api.product_routes")


def _dump(products: list[ProductResponse]) -> list[dict]:
    return [p.model_dump(mode="json") for p in products]


def _error(e: EpecuenError) -> tuple[Response, int]:
    logger.warning(
        f"Product request failed: {e.error_detail.message}",
        extra={
            "correlation_id": e.correlation_id,
            "error_code": e.error_code,
            "operation": e.operation,
        },
    )
    return create_error_response(e.error_detail)


@bp.get("")
@inject
async def list_products(handler: FromDishka[ProductHandler]) -> tuple[Response, int]:
    return jsonify(_dump(await handler.list_products())), 200


@bp.post("")
@inject
async def create_product(handler: FromDishka[ProductHandler]) -> tuple[Response, int]:
    correlation_id = extract_correlation_id()
    try:
        payload = await parse_body(ProductRequest, correlation_id)
        product = await handler.create_product(payload, correlation_id)
        return jsonify(product.model_dump(mode="json")), 200
    except EpecuenError as e:
        return _error(e)
    except Exception as e:
        logger.error(
            f"Unexpected error during product creation: {e}",
            exc_info=True,
            extra={"correlation_id": str(correlation_id)},
        )
        return jsonify({"error": "Internal server error"}), 500


@bp.get("/category/<category>")
@inject
async def get_by_category(
    category: str, handler: FromDishka[ProductHandler]
) -> tuple[Response, int]:
    try:
        products = await handler.list_by_category(category, extract_correlation_id())
        return jsonify(_dump(products)), 200
    except EpecuenError as e:
        return _error(e)


@bp.get("/id/<int:product_id>")
@inject
async def get_by_id(product_id: int, handler: FromDishka[ProductHandler]) -> tuple[Response, int]:
    try:
        product = await handler.get_product(product_id, extract_correlation_id())
        return jsonify(product.model_dump(mode="json")), 200
    except EpecuenError as e:
        return _error(e)


@bp.get("/name/<name>")
@inject
async def get_by_name(name: str, handler: FromDishka[ProductHandler]) -> tuple[Response, int]:
    try:
        products = await handler.search_by_name(name, extract_correlation_id())
        return jsonify(_dump(products)), 200
    except EpecuenError as e:
        return _error(e)


@bp.put("/change-status/<int:product_id>")
@inject
async def change_status(
    product_id: int, handler: FromDishka[ProductHandler]
) -> tuple[Response, int]:
    try:
        product = await handler.change_status(product_id, extract_correlation_id())
        return jsonify(product.model_dump(mode="json")), 200
    except EpecuenError as e:
        return _error(e)


@bp.delete("/delete/<int:product_id>")
@inject
async def delete_product(
    product_id: int, handler: FromDishka[ProductHandler]
) -> tuple[Response | str, int]:
    try:
        await handler.delete_product(product_id, extract_correlation_id())
        return "", 204
    except EpecuenError as e:
        return _error(e)


@bp.put("/update-stock/<int:product_id>/<int(signed=True):stock>")
@inject
async def update_stock(
    product_id: int, stock: int, handler: FromDishka[ProductHandler]
) -> tuple[Response, int]:
    """``stock`` is a change to apply, not the new level."""
    try:
        product = await handler.update_stock(product_id, stock, extract_correlation_id())
        return jsonify(product.model_dump(mode="json")), 200
    except EpecuenError as e:
        return _error(e)
