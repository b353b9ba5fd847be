"""
Notification Service application.

One process serves the HTTP API (token consumption, dead-letter listing,
health, metrics) and runs the ``UserCreatedV1`` Kafka consumer as a
background task between ``before_serving`` and ``after_serving``.
"""

from __future__ import annotations

import asyncio

from dishka import make_async_container
from epecuen_service_libs import EpecuenApp
from epecuen_service_libs.error_handling.quart import register_error_handlers
from epecuen_service_libs.logging_utils import configure_service_logging, create_service_logger
from quart_dishka import QuartDishka
from sqlalchemy.ext.asyncio import create_async_engine

from services.notification_service.api.admin_routes import bp as admin_bp
from services.notification_service.api.health_routes import bp as health_bp
from services.notification_service.api.token_routes import bp as token_bp
from services.notification_service.config import Settings
from services.notification_service.di import CoreProvider, ImplementationProvider, ServiceProvider
from services.notification_service.startup_setup import initialize_services, shutdown_services

logger = create_service_logger("notification_service.app")


def create_app(settings: Settings | None = None) -> EpecuenApp:
    if settings is None:
        settings = Settings()

    configure_service_logging(
        settings.SERVICE_NAME, environment=settings.ENVIRONMENT.value, log_level=settings.LOG_LEVEL
    )

    app = EpecuenApp(__name__)
    app.config.update({"DEBUG": settings.LOG_LEVEL == "DEBUG"})

    app.database_engine = create_async_engine(
        settings.DATABASE_URL,
        echo=False,
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
        pool_timeout=settings.DATABASE_POOL_TIMEOUT_SECONDS,
        pool_pre_ping=True,
    )
    app.container = make_async_container(
        CoreProvider(settings, app.database_engine),
        ImplementationProvider(),
        ServiceProvider(),
    )
    QuartDishka(app=app, container=app.container)

    register_error_handlers(app)
    app.register_blueprint(health_bp)
    app.register_blueprint(token_bp)
    app.register_blueprint(admin_bp)

    @app.before_serving
    async def startup() -> None:
        await initialize_services(app, settings)
        logger.info("Notification Service startup completed successfully")

    @app.after_serving
    async def shutdown() -> None:
        await shutdown_services(app)

    return app


if __name__ == "__main__":
    import hypercorn.asyncio
    from hypercorn.config import Config

    settings = Settings()
    app = create_app(settings)

    config = Config()
    config.bind = [f"{settings.HOST}:{settings.PORT}"]
    config.loglevel = settings.LOG_LEVEL.lower()

    asyncio.run(hypercorn.asyncio.serve(app, config))
