"""
Factory functions that build an ErrorDetail and raise it as EpecuenError.

Services never instantiate EpecuenError directly; they call the factory that
matches the failure so the error code, message shape and details keys stay
uniform across the platform.
"""

from __future__ import annotations

from typing import Any, NoReturn
from uuid import UUID

from epecuen_core.error_enums import ErrorCode

from .epecuen_error import EpecuenError
from .error_detail_factory import create_error_detail_with_context


def _raise(
    error_code: ErrorCode,
    service: str,
    operation: str,
    message: str,
    correlation_id: UUID,
    details: dict[str, Any],
) -> NoReturn:
    error_detail = create_error_detail_with_context(
        error_code=error_code,
        message=message,
        service=service,
        operation=operation,
        correlation_id=correlation_id,
        details=details,
    )
    raise EpecuenError(error_detail)


# --- Validation and lookup ---------------------------------------------------


def raise_validation_error(
    service: str,
    operation: str,
    field: str,
    message: str,
    correlation_id: UUID,
    value: Any | None = None,
    **additional_context: Any,
) -> NoReturn:
    """Raise a single-field validation error."""
    details: dict[str, Any] = {"field": field}
    if value is not None:
        details["value"] = value
    details.update(additional_context)
    _raise(ErrorCode.VALIDATION_ERROR, service, operation, message, correlation_id, details)


def raise_validation_errors(
    service: str,
    operation: str,
    messages: list[str],
    correlation_id: UUID,
    **additional_context: Any,
) -> NoReturn:
    """Raise a validation error carrying every violated rule in ``details["messages"]``."""
    details: dict[str, Any] = {"messages": list(messages), **additional_context}
    _raise(
        ErrorCode.VALIDATION_ERROR,
        service,
        operation,
        "; ".join(messages),
        correlation_id,
        details,
    )


def raise_resource_not_found(
    service: str,
    operation: str,
    resource_type: str,
    resource_id: str,
    correlation_id: UUID,
    **additional_context: Any,
) -> NoReturn:
    details = {"resource_type": resource_type, "resource_id": resource_id, **additional_context}
    _raise(
        ErrorCode.RESOURCE_NOT_FOUND,
        service,
        operation,
        f"{resource_type} '{resource_id}' not found",
        correlation_id,
        details,
    )


# --- Write path and delivery -------------------------------------------------


def raise_persistence_error(
    service: str,
    operation: str,
    message: str,
    correlation_id: UUID,
    **additional_context: Any,
) -> NoReturn:
    """Store write failed; the unit of work was rolled back."""
    _raise(
        ErrorCode.PERSISTENCE_ERROR, service, operation, message, correlation_id, additional_context
    )


def raise_publish_error(
    service: str,
    operation: str,
    topic: str,
    message: str,
    correlation_id: UUID,
    **additional_context: Any,
) -> NoReturn:
    details = {"topic": topic, **additional_context}
    _raise(ErrorCode.PUBLISH_ERROR, service, operation, message, correlation_id, details)


def raise_notification_error(
    service: str,
    operation: str,
    recipient: str,
    message: str,
    correlation_id: UUID,
    **additional_context: Any,
) -> NoReturn:
    details = {"recipient": recipient, **additional_context}
    _raise(ErrorCode.NOTIFICATION_ERROR, service, operation, message, correlation_id, details)


def raise_template_error(
    service: str,
    operation: str,
    template_id: str,
    message: str,
    correlation_id: UUID,
    **additional_context: Any,
) -> NoReturn:
    details = {"template_id": template_id, **additional_context}
    _raise(ErrorCode.TEMPLATE_ERROR, service, operation, message, correlation_id, details)


def raise_token_error(
    service: str,
    operation: str,
    message: str,
    correlation_id: UUID,
    **additional_context: Any,
) -> NoReturn:
    _raise(ErrorCode.TOKEN_ERROR, service, operation, message, correlation_id, additional_context)
