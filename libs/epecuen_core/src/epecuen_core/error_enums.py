"""
epecuen_core.error_enums - Centralized error code definitions.
"""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # Write path
    PERSISTENCE_ERROR = "PERSISTENCE_ERROR"  # Store write failed, nothing committed

    # Post-commit delivery
    PUBLISH_ERROR = "PUBLISH_ERROR"  # Relay could not hand an outbox entry to Kafka
    NOTIFICATION_ERROR = "NOTIFICATION_ERROR"  # Mail transport rejected or failed
    TEMPLATE_ERROR = "TEMPLATE_ERROR"  # Template missing or not renderable

    # Validation tokens
    TOKEN_ERROR = "TOKEN_ERROR"  # Expired or already consumed

    # Generic external service errors
    TIMEOUT = "TIMEOUT"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    PARSING_ERROR = "PARSING_ERROR"
    PROCESSING_ERROR = "PROCESSING_ERROR"  # Internal processing failures
