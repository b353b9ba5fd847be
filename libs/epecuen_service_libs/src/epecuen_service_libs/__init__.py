"""
Epecuen Service Libraries Package.

Shared runtime infrastructure for Epecuen microservices: structured logging,
error handling, Kafka and Redis clients, settings base, the typed Quart
application and the transactional outbox.
"""

from .kafka_client import KafkaBus
from .quart_app import EpecuenApp
from .redis_client import RedisClient

__all__ = [
    "EpecuenApp",
    "KafkaBus",
    "RedisClient",
]
