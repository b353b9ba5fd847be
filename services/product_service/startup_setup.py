"""Startup and shutdown setup for Product Service."""

from __future__ import annotations

from epecuen_service_libs import EpecuenApp
from epecuen_service_libs.logging_utils import create_service_logger

from services.product_service.config import Settings
from services.product_service.models_db import Base

logger = create_service_logger("product_service.startup_setup")


async def initialize_services(app: EpecuenApp, settings: Settings) -> None:
    try:
        async with app.database_engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info(
            "Database schema initialized",
            extra={"database_url": settings.get_database_url_masked()},
        )
    except Exception as e:
        logger.critical(f"Failed to initialize Product Service: {e}", exc_info=True)
        raise


async def shutdown_services(app: EpecuenApp) -> None:
    try:
        await app.container.close()
        await app.database_engine.dispose()
        logger.info("Product Service shutdown complete")
    except Exception as e:
        logger.error(f"Error during shutdown: {e}", exc_info=True)
