"""
Transactional outbox.

Services write events to the ``event_outbox`` table inside the same database
transaction as their domain rows; ``EventRelayWorker`` moves them to Kafka.
"""

from .di import OutboxProvider
from .manager import OutboxManager
from .models import EventOutbox, OutboxBase
from .monitoring import OutboxMetrics, get_outbox_metrics
from .protocols import OutboxEvent, OutboxRepositoryProtocol
from .relay import EventRelayWorker, OutboxSettings, wake_key
from .repository import OutboxEventImpl, PostgreSQLOutboxRepository

__all__ = [
    "EventOutbox",
    "EventRelayWorker",
    "OutboxBase",
    "OutboxEvent",
    "OutboxEventImpl",
    "OutboxManager",
    "OutboxMetrics",
    "OutboxProvider",
    "OutboxRepositoryProtocol",
    "OutboxSettings",
    "PostgreSQLOutboxRepository",
    "get_outbox_metrics",
    "wake_key",
]
