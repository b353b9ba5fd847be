"""Request helpers shared by Product Service route modules."""

from __future__ import annotations

import uuid
from typing import Any, TypeVar
from uuid import UUID

from epecuen_service_libs.error_handling import raise_validation_errors
from epecuen_service_libs.logging_utils import create_service_logger
from pydantic import BaseModel, ValidationError
from quart import request

logger = create_service_logger("product_service.api.request_utils")

ModelT = TypeVar("ModelT", bound=BaseModel)


def extract_correlation_id() -> UUID:
    """Correlation ID from the X-Correlation-ID header, or a fresh one."""
    correlation_header = request.headers.get("X-Correlation-ID")
    if correlation_header:
        try:
            return UUID(correlation_header)
        except ValueError:
            logger.warning(
                f"Invalid correlation ID format in header: {correlation_header}, generating new one"
            )
    return uuid.uuid4()


async def parse_body(model: type[ModelT], correlation_id: UUID) -> ModelT:
    """Parse the JSON body into ``model``; malformed input is a validation error."""
    payload: Any = await request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise_validation_errors(
            service="product_service",
            operation="parse_request",
            messages=[f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors()],
            correlation_id=correlation_id,
        )
