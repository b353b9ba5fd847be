"""User routes for User Service.

All creation logic is delegated to UserCreationHandler.
"""

from __future__ import annotations

from dishka import FromDishka
from epecuen_service_libs.error_handling import EpecuenError
from epecuen_service_libs.error_handling.quart import create_error_response
from epecuen_service_libs.logging_utils import create_service_logger
from quart import Blueprint, Response, jsonify
from quart_dishka import inject

from services.user_service.api.request_utils import extract_correlation_id, parse_body
from services.user_service.api.schemas import CreateUserRequest
from services.user_service.domain_handlers.user_creation_handler import UserCreationHandler

bp = Blueprint("users", __name__, url_prefix="/users")
logger = create_service_logger("user_service.api.user_routes")


@bp.post("")
@inject
async def create_user(
    creation_handler: FromDishka[UserCreationHandler],
) -> tuple[Response, int]:
    """Create a user; the response never contains the password hash."""
    correlation_id = extract_correlation_id()
    try:
        payload = await parse_body(CreateUserRequest, correlation_id)
        user = await creation_handler.create_user(payload, correlation_id)
        return jsonify(user.model_dump(mode="json")), 200

    except EpecuenError as e:
        logger.warning(
            f"User creation error: {e.error_detail.message}",
            extra={
                "correlation_id": str(e.error_detail.correlation_id),
                "error_code": e.error_code,
                "operation": e.operation,
            },
        )
        return create_error_response(e.error_detail)

    except Exception as e:
        logger.error(
            f"Unexpected error during user creation: {e}",
            exc_info=True,
            extra={"correlation_id": str(correlation_id)},
        )
        return jsonify({"error": "Internal server error"}), 500


@bp.get("")
@inject
async def list_users(
    creation_handler: FromDishka[UserCreationHandler],
) -> tuple[Response, int]:
    try:
        users = await creation_handler.list_users()
        return jsonify(users), 200
    except Exception as e:
        logger.error(f"Unexpected error listing users: {e}", exc_info=True)
        return jsonify({"error": "Internal server error"}), 500
