"""Startup and shutdown setup for User Service."""

from __future__ import annotations

from epecuen_service_libs import EpecuenApp
from epecuen_service_libs.logging_utils import create_service_logger
from epecuen_service_libs.outbox import EventRelayWorker, OutboxBase

from services.user_service.config import Settings
from services.user_service.models_db import Base

logger = create_service_logger("user_service.startup_setup")


async def initialize_services(app: EpecuenApp, settings: Settings) -> None:
    """Create the schema and start the outbox relay."""
    try:
        # Safety net for fresh databases; both metadata sets share one engine
        async with app.database_engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
            await conn.run_sync(OutboxBase.metadata.create_all)
        logger.info(
            "Database schema initialized",
            extra={"database_url": settings.get_database_url_masked()},
        )

        app.relay_worker = await app.container.get(EventRelayWorker)
        await app.relay_worker.start()
        logger.info("EventRelayWorker started for outbox pattern")

    except Exception as e:
        logger.critical(f"Failed to initialize User Service: {e}", exc_info=True)
        raise


async def shutdown_services(app: EpecuenApp) -> None:
    try:
        if app.relay_worker is not None:
            await app.relay_worker.stop()
            logger.info("EventRelayWorker stopped")

        await app.container.close()
        await app.database_engine.dispose()
        logger.info("User Service shutdown complete")
    except Exception as e:
        logger.error(f"Error during shutdown: {e}", exc_info=True)
