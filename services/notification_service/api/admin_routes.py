"""Operator endpoint listing events the consumer gave up on."""

from __future__ import annotations

from dishka import FromDishka
from quart import Blueprint, Response, jsonify, request
from quart_dishka import inject

from services.notification_service.protocols import NotificationRepository

bp = Blueprint("admin", __name__, url_prefix="/admin")


@bp.get("/dead-letters")
@inject
async def list_dead_letters(
    repository: FromDishka[NotificationRepository],
) -> tuple[Response, int]:
    limit = request.args.get("limit", default=100, type=int)
    events = await repository.list_dead_letters(limit=limit)
    return jsonify({"count": len(events), "events": events}), 200
