"""
Shared protocol definitions for epecuen_service_libs.

These are the contracts services depend on for shared infrastructure, so
tests can substitute fakes and DI providers can swap implementations.
"""

from __future__ import annotations

from typing import Any, Protocol

from epecuen_core.events.envelope import EventEnvelope

__all__ = [
    "RedisClientProtocol",
    "KafkaPublisherProtocol",
]


class RedisClientProtocol(Protocol):
    """Redis operations used for relay wake-up notifications."""

    async def lpush(self, key: str, *values: str) -> int:
        """Prepend values to a list. Returns the list length after the push."""
        ...

    async def blpop(self, keys: list[str], timeout: float) -> tuple[str, str] | None:
        """Pop from the first non-empty list, blocking up to ``timeout`` seconds."""
        ...


class KafkaPublisherProtocol(Protocol):
    """Kafka event publishing with lifecycle management."""

    async def start(self) -> None:
        """Start the producer and establish connections."""
        ...

    async def stop(self) -> None:
        """Stop the producer and release resources."""
        ...

    async def publish(
        self,
        topic: str,
        envelope: EventEnvelope[Any],
        key: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        """
        Publish an envelope and wait for the broker acknowledgment.

        Args:
            topic: Kafka topic to publish to
            envelope: Event envelope containing the event data
            key: Partition key; records sharing a key keep their relative order
            headers: Optional string headers attached to the record

        Raises:
            EpecuenError: PUBLISH_ERROR if the broker does not acknowledge the record
        """
        ...
