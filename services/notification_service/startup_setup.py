"""Startup and shutdown setup for Notification Service."""

from __future__ import annotations

import asyncio

from epecuen_service_libs import EpecuenApp
from epecuen_service_libs.logging_utils import create_service_logger

from services.notification_service.config import Settings
from services.notification_service.kafka_consumer import NotificationKafkaConsumer
from services.notification_service.models_db import Base

logger = create_service_logger("notification_service.startup_setup")


async def initialize_services(app: EpecuenApp, settings: Settings) -> None:
    """Create the schema and start the Kafka consumer task."""
    try:
        async with app.database_engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info(
            "Database schema initialized",
            extra={"database_url": settings.get_database_url_masked()},
        )

        app.kafka_consumer = await app.container.get(NotificationKafkaConsumer)
        app.consumer_task = asyncio.create_task(app.kafka_consumer.start_consumer())
        logger.info(
            "Kafka consumer started",
            extra={"topic": settings.USER_CREATED_TOPIC, "group_id": settings.CONSUMER_GROUP},
        )

    except Exception as e:
        logger.critical(f"Failed to initialize Notification Service: {e}", exc_info=True)
        raise


async def shutdown_services(app: EpecuenApp) -> None:
    try:
        if app.kafka_consumer is not None:
            await app.kafka_consumer.stop_consumer()

        if app.consumer_task is not None and not app.consumer_task.done():
            app.consumer_task.cancel()
            try:
                await app.consumer_task
            except asyncio.CancelledError:
                logger.info("Consumer task cancelled successfully")

        await app.container.close()
        await app.database_engine.dispose()
        logger.info("Notification Service shutdown complete")
    except Exception as e:
        logger.error(f"Error during shutdown: {e}", exc_info=True)
