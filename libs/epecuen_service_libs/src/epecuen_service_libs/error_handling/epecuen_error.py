"""
EpecuenError, the single structured exception type of the platform.

Every failure that crosses a module boundary is raised as an EpecuenError
wrapping an immutable ErrorDetail. The error code, not the Python type,
decides how a failure is treated downstream (HTTP status, retry, dead-letter).
"""

from __future__ import annotations

from typing import Any

from epecuen_core.models.error_models import ErrorDetail
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode


class EpecuenError(Exception):
    """Exception carrying a structured ErrorDetail."""

    def __init__(self, error_detail: ErrorDetail) -> None:
        super().__init__(f"[{error_detail.error_code.value}] {error_detail.message}")
        self.error_detail = error_detail
        self._record_to_span()

    def _record_to_span(self) -> None:
        span = trace.get_current_span()
        if span is None or not span.is_recording():
            return

        detail = self.error_detail
        span.record_exception(self)
        span.set_status(Status(StatusCode.ERROR, detail.message))
        span.set_attribute("error", True)
        span.set_attribute("error.code", detail.error_code.value)
        span.set_attribute("error.message", detail.message)
        span.set_attribute("error.service", detail.service)
        span.set_attribute("error.operation", detail.operation)
        span.set_attribute("correlation_id", str(detail.correlation_id))

        for key, value in detail.details.items():
            if isinstance(value, (str, bool, int, float)):
                span.set_attribute(f"error.details.{key}", value)
            else:
                span.set_attribute(f"error.details.{key}", str(value))

    @property
    def correlation_id(self) -> str:
        return str(self.error_detail.correlation_id)

    @property
    def error_code(self) -> str:
        return self.error_detail.error_code.value

    @property
    def service(self) -> str:
        return self.error_detail.service

    @property
    def operation(self) -> str:
        return self.error_detail.operation

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API responses and structured logs."""
        return {
            "error": str(self),
            "error_detail": self.error_detail.model_dump(mode="json"),
        }

    def add_detail(self, key: str, value: Any) -> EpecuenError:
        """Return a new error with one more entry in ``details``."""
        new_details = {**self.error_detail.details, key: value}
        return EpecuenError(self.error_detail.model_copy(update={"details": new_details}))
