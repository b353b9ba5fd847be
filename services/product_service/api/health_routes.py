"""Health check and metrics endpoints for Product Service."""

from __future__ import annotations

from typing import TYPE_CHECKING

from dishka import FromDishka
from epecuen_service_libs.logging_utils import create_service_logger
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest
from quart import Blueprint, Response, current_app, jsonify
from quart_dishka import inject
from sqlalchemy import text

from services.product_service.config import Settings

if TYPE_CHECKING:
    from epecuen_service_libs import EpecuenApp

bp = Blueprint("health", __name__)
logger = create_service_logger("product_service.health_routes")


@bp.route("/healthz")
@inject
async def health_check(settings: FromDishka[Settings]) -> tuple[Response, int]:
    checks = {"service_responsive": True, "dependencies_available": True}
    dependencies: dict[str, dict[str, str]] = {}

    if TYPE_CHECKING:
        assert isinstance(current_app, EpecuenApp)
    engine = current_app.database_engine

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        dependencies["database"] = {"status": "healthy"}
    except Exception as e:
        logger.warning(f"Database health check failed: {e}")
        dependencies["database"] = {"status": "unhealthy", "error": str(e)}
        checks["dependencies_available"] = False

    status = "healthy" if all(checks.values()) else "unhealthy"
    return jsonify(
        {
            "service": settings.SERVICE_NAME,
            "status": status,
            "environment": settings.ENVIRONMENT.value,
            "message": f"Product Service is {status}",
            "checks": checks,
            "dependencies": dependencies,
        }
    ), 200 if status == "healthy" else 503


@bp.route("/metrics")
@inject
async def metrics(registry: FromDishka[CollectorRegistry]) -> Response:
    """Prometheus metrics endpoint."""
    try:
        return Response(generate_latest(registry), content_type=CONTENT_TYPE_LATEST)
    except Exception as e:
        logger.error(f"Error generating metrics: {e}")
        return Response("Error generating metrics", status=500)
