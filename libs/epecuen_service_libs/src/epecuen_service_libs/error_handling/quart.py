"""Quart integration for EpecuenError: status mapping and JSON error bodies."""

from __future__ import annotations

from typing import Any

from epecuen_core.error_enums import ErrorCode
from epecuen_core.models.error_models import ErrorDetail
from quart import Quart, Response, jsonify
from werkzeug.exceptions import HTTPException

from ..logging_utils import create_service_logger
from .epecuen_error import EpecuenError

logger = create_service_logger("error_handling.quart")

_STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.TOKEN_ERROR: 400,
    ErrorCode.RESOURCE_NOT_FOUND: 404,
    ErrorCode.PERSISTENCE_ERROR: 503,
    ErrorCode.SERVICE_UNAVAILABLE: 503,
    ErrorCode.CONNECTION_ERROR: 503,
    ErrorCode.TIMEOUT: 504,
}


def status_code_for(error_code: ErrorCode) -> int:
    return _STATUS_BY_CODE.get(error_code, 500)


def create_error_response(
    error_detail: ErrorDetail, status_code: int | None = None
) -> tuple[Response, int]:
    """
    Render an ErrorDetail as ``{"error": {...}}``.

    Validation errors also expose their collected rule violations at the top
    level as ``messages`` so clients do not need to dig into ``details``.
    """
    body: dict[str, Any] = {"error": error_detail.model_dump(mode="json")}
    if "messages" in error_detail.details:
        body["messages"] = list(error_detail.details["messages"])
    return jsonify(body), status_code or status_code_for(error_detail.error_code)


def register_error_handlers(app: Quart) -> None:
    """Install handlers for EpecuenError and for anything unexpected."""

    @app.errorhandler(EpecuenError)
    async def handle_epecuen_error(error: EpecuenError) -> tuple[Response, int]:
        status = status_code_for(error.error_detail.error_code)
        log = logger.warning if status < 500 else logger.error
        log(
            f"Request failed: {error.error_detail.message}",
            extra={
                "correlation_id": error.correlation_id,
                "error_code": error.error_code,
                "operation": error.operation,
            },
        )
        return create_error_response(error.error_detail, status)

    @app.errorhandler(Exception)
    async def handle_unexpected_error(error: Exception) -> Any:
        if isinstance(error, HTTPException):
            return error
        logger.error(f"Unhandled exception: {error}", exc_info=True)
        return jsonify({"error": "Internal server error"}), 500
