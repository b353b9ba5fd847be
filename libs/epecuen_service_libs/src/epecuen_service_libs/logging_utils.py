"""
Epecuen structured logging utilities built on structlog.

Every service calls ``configure_service_logging`` once at startup and then
obtains named loggers through ``create_service_logger``. Output is JSON when
``LOG_FORMAT=json`` (or in production) and a coloured console rendering
otherwise. Context bound through ``structlog.contextvars`` is merged into
every record, which is how consumer logs carry the envelope's event id and
correlation id without threading them through every call.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog
from epecuen_core.events.envelope import EventEnvelope
from structlog.contextvars import bind_contextvars, clear_contextvars, merge_contextvars
from structlog.typing import Processor


def add_service_context(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Stamp service.name and deployment.environment onto every record."""
    event_dict["service.name"] = os.getenv("SERVICE_NAME", "unknown")
    event_dict["deployment.environment"] = os.getenv("ENVIRONMENT", "development")
    return event_dict


def _shared_processors() -> list[Processor]:
    return [
        merge_contextvars,
        add_service_context,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FILENAME,
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            ],
        ),
    ]


def configure_service_logging(
    service_name: str,
    environment: str | None = None,
    log_level: str = "INFO",
) -> None:
    """
    Configure structlog and the stdlib root logger for a service.

    Args:
        service_name: Name of the service (e.g., "user_service")
        environment: Environment name (defaults to ENVIRONMENT env var)
        log_level: Logging level (defaults to "INFO")

    Environment Variables:
        LOG_FORMAT: "json" for JSON lines, "console" for human-readable (default: console)
    """
    if environment is None:
        environment = os.getenv("ENVIRONMENT", "development")

    os.environ.setdefault("SERVICE_NAME", service_name)
    os.environ.setdefault("ENVIRONMENT", environment)

    log_format = os.getenv("LOG_FORMAT", "").lower()
    use_json = log_format == "json" or (not log_format and environment == "production")

    processors = _shared_processors()
    if use_json:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors += [
            structlog.dev.set_exc_info,
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    logging.basicConfig(
        format="%(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
        level=getattr(logging, log_level.upper()),
        force=True,
    )

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def create_service_logger(name: str | None = None) -> Any:
    """
    Create a service logger with optional name binding.

    Args:
        name: Optional logger name (e.g., "user_service.app", "outbox.relay")

    Returns:
        A configured structlog BoundLogger instance
    """
    logger = structlog.get_logger()

    if name:
        logger = logger.bind(logger_name=name)

    return logger


def log_event_processing(
    logger: structlog.stdlib.BoundLogger,
    message: str,
    envelope: EventEnvelope[Any],
    **additional_context: Any,
) -> None:
    """
    Bind the envelope's identifiers to the logging context and log ``message``.

    The binding stays active for the rest of the task, so every later log line
    emitted while handling this envelope carries the same event_id.
    """
    clear_contextvars()
    bind_contextvars(
        correlation_id=str(envelope.correlation_id),
        event_id=str(envelope.event_id),
        event_type=envelope.event_type,
        aggregate_id=envelope.aggregate_id,
        source_service=envelope.source_service,
    )

    logger.info(
        message,
        event_data_type=type(envelope.data).__name__,
        **additional_context,
    )
