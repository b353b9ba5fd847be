"""Request helpers for Notification Service routes."""

from __future__ import annotations

import uuid
from uuid import UUID

from epecuen_service_libs.logging_utils import create_service_logger
from quart import request

logger = create_service_logger("notification_service.api.request_utils")


def extract_correlation_id() -> UUID:
    correlation_header = request.headers.get("X-Correlation-ID")
    if correlation_header:
        try:
            return UUID(correlation_header)
        except ValueError:
            logger.warning(f"Invalid correlation ID format in header: {correlation_header}")
    return uuid.uuid4()
