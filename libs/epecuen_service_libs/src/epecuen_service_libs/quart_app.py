"""
Type-safe Quart application class for Epecuen microservices.

Infrastructure that every service wires up in its ``create_app`` factory is
declared here as typed attributes instead of being attached with setattr().
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

from dishka import AsyncContainer
from quart import Quart
from sqlalchemy.ext.asyncio import AsyncEngine


class EpecuenApp(Quart):
    """Quart application with guaranteed Epecuen infrastructure.

    GUARANTEED (set in create_app before serving):
        database_engine: SQLAlchemy async engine
        container: Dishka async container
        extensions: Standard Quart extensions dictionary

    OPTIONAL (service-specific):
        consumer_task: Background task running a Kafka consumer loop
        kafka_consumer: The consumer instance driven by ``consumer_task``
        relay_worker: Outbox relay worker owned by the service
    """

    database_engine: AsyncEngine
    container: AsyncContainer
    extensions: dict[str, Any]

    consumer_task: Optional[asyncio.Task[None]] = None
    kafka_consumer: Optional[Any] = None
    relay_worker: Optional[Any] = None

    def __init__(self, import_name: str, *args: Any, **kwargs: Any) -> None:
        super().__init__(import_name, *args, **kwargs)
        self.extensions = {}
        self.consumer_task = None
        self.kafka_consumer = None
        self.relay_worker = None
