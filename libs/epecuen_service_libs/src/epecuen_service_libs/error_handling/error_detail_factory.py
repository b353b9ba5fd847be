"""Factory for ErrorDetail instances with automatic trace and stack capture."""

from __future__ import annotations

import inspect
import traceback
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from epecuen_core.error_enums import ErrorCode
from epecuen_core.models.error_models import ErrorDetail
from opentelemetry import trace


def create_error_detail_with_context(
    error_code: ErrorCode,
    message: str,
    service: str,
    operation: str,
    correlation_id: UUID | None = None,
    details: dict[str, Any] | None = None,
    capture_stack: bool = True,
) -> ErrorDetail:
    """
    Build an ErrorDetail, filling in correlation id, stack and trace ids.

    Args:
        error_code: Platform error code
        message: Human-readable message
        service: Service raising the error
        operation: Operation in which the error occurred
        correlation_id: Request/event correlation id (generated when absent)
        details: Extra structured context
        capture_stack: Record the caller's stack in ``stack_trace``
    """
    stack_trace = None
    if capture_stack:
        frame = inspect.currentframe()
        caller = frame.f_back if frame is not None else None
        if caller is not None:
            stack_trace = "".join(traceback.format_stack(caller, limit=10))

    trace_id = None
    span_id = None
    span = trace.get_current_span()
    if span is not None and span.is_recording():
        span_context = span.get_span_context()
        trace_id = format(span_context.trace_id, "032x")
        span_id = format(span_context.span_id, "016x")

    return ErrorDetail(
        error_code=error_code,
        message=message,
        correlation_id=correlation_id or uuid4(),
        timestamp=datetime.now(UTC),
        service=service,
        operation=operation,
        details=details or {},
        stack_trace=stack_trace,
        trace_id=trace_id,
        span_id=span_id,
    )
