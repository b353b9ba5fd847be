"""Validation token endpoints."""

from __future__ import annotations

from dishka import FromDishka
from epecuen_service_libs.error_handling import EpecuenError
from epecuen_service_libs.error_handling.quart import create_error_response
from epecuen_service_libs.logging_utils import create_service_logger
from quart import Blueprint, Response, jsonify
from quart_dishka import inject

from services.notification_service.api.request_utils import extract_correlation_id
from services.notification_service.metrics import TOKENS_CONSUMED
from services.notification_service.protocols import NotificationRepository

bp = Blueprint("tokens", __name__, url_prefix="/v1/tokens")
logger = create_service_logger("notification_service.api.token_routes")


@bp.post("/<token>/consume")
@inject
async def consume_token(
    token: str,
    repository: FromDishka[NotificationRepository],
) -> tuple[Response, int]:
    """Mark an activation token used. A token can be consumed once, before it expires."""
    correlation_id = extract_correlation_id()
    try:
        consumption = await repository.consume_token(token, correlation_id)
    except EpecuenError as e:
        TOKENS_CONSUMED.labels(result=e.error_code.lower()).inc()
        logger.warning(
            f"Token consumption rejected: {e.error_detail.message}",
            extra={"correlation_id": str(correlation_id), "error_code": e.error_code},
        )
        return create_error_response(e.error_detail)

    TOKENS_CONSUMED.labels(result="consumed").inc()
    return jsonify(
        {
            "email": consumption.email,
            "used_at": consumption.used_at.isoformat(),
            "status": "consumed",
        }
    ), 200
