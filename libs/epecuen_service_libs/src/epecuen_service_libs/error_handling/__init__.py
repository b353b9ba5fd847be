"""Structured error handling for Epecuen services."""

from .epecuen_error import EpecuenError
from .error_detail_factory import create_error_detail_with_context
from .factories import (
    raise_notification_error,
    raise_persistence_error,
    raise_publish_error,
    raise_resource_not_found,
    raise_template_error,
    raise_token_error,
    raise_validation_error,
    raise_validation_errors,
)

__all__ = [
    "EpecuenError",
    "create_error_detail_with_context",
    "raise_notification_error",
    "raise_persistence_error",
    "raise_publish_error",
    "raise_resource_not_found",
    "raise_template_error",
    "raise_token_error",
    "raise_validation_error",
    "raise_validation_errors",
]
