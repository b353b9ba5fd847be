"""Operator endpoints for dead-lettered outbox entries."""

from __future__ import annotations

from uuid import UUID

from dishka import FromDishka
from epecuen_service_libs.error_handling import (
    EpecuenError,
    raise_resource_not_found,
    raise_validation_error,
)
from epecuen_service_libs.error_handling.quart import create_error_response
from epecuen_service_libs.logging_utils import create_service_logger
from epecuen_service_libs.outbox import OutboxRepositoryProtocol
from quart import Blueprint, Response, jsonify, request
from quart_dishka import inject

from services.user_service.api.request_utils import extract_correlation_id

bp = Blueprint("admin", __name__, url_prefix="/admin/outbox")
logger = create_service_logger("user_service.api.admin_routes")


@bp.get("/dead-letters")
@inject
async def list_dead_letters(
    outbox_repository: FromDishka[OutboxRepositoryProtocol],
) -> tuple[Response, int]:
    limit = request.args.get("limit", default=100, type=int)
    events = await outbox_repository.list_failed_events(limit=limit)
    return jsonify({"count": len(events), "events": [e.to_dict() for e in events]}), 200


@bp.post("/<event_id>/requeue")
@inject
async def requeue_dead_letter(
    event_id: str,
    outbox_repository: FromDishka[OutboxRepositoryProtocol],
) -> tuple[Response, int]:
    """Give a dead-lettered entry a fresh retry budget."""
    correlation_id = extract_correlation_id()
    try:
        try:
            outbox_id = UUID(event_id)
        except ValueError:
            raise_validation_error(
                service="user_service",
                operation="requeue_outbox_event",
                field="event_id",
                message="Event id must be a UUID",
                correlation_id=correlation_id,
                value=event_id,
            )

        if not await outbox_repository.requeue_event(outbox_id):
            raise_resource_not_found(
                service="user_service",
                operation="requeue_outbox_event",
                resource_type="Dead-lettered outbox event",
                resource_id=event_id,
                correlation_id=correlation_id,
            )

        logger.info(
            "Outbox event requeued by operator",
            extra={"event_id": event_id, "correlation_id": str(correlation_id)},
        )
        return jsonify({"event_id": event_id, "status": "requeued"}), 200

    except EpecuenError as e:
        return create_error_response(e.error_detail)
