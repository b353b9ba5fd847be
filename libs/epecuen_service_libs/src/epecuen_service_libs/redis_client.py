"""
Redis client wrapper for Epecuen microservices.

Carries the list operations the outbox uses to wake its relay worker
(LPUSH after a commit, BLPOP while idle). Follows the same lifecycle
pattern as KafkaBus.
"""

from __future__ import annotations

import os

import redis.asyncio as aioredis
from redis.exceptions import ConnectionError as RedisConnectionError

from .logging_utils import create_service_logger
from .protocols import RedisClientProtocol

logger = create_service_logger("redis-client")

REDIS_URL = os.getenv("REDIS_URL", "redis://redis:6379")


class RedisClient(RedisClientProtocol):
    """Redis client with explicit start/stop."""

    def __init__(self, *, client_id: str, redis_url: str = REDIS_URL):
        self.redis_url = redis_url
        self.client_id = client_id
        self.client = aioredis.from_url(
            self.redis_url,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=None,  # BLPOP blocks longer than any fixed socket timeout
        )
        self._started = False

    async def start(self) -> None:
        """Open the connection and verify it with PING."""
        if not self._started:
            try:
                await self.client.ping()
                self._started = True
                logger.info(f"Redis client '{self.client_id}' connected to {self.redis_url}")
            except RedisConnectionError as e:
                logger.error(f"Redis client '{self.client_id}' failed to connect: {e}")
                raise

    async def stop(self) -> None:
        if self._started:
            try:
                await self.client.aclose()
                self._started = False
                logger.info(f"Redis client '{self.client_id}' disconnected")
            except Exception as e:
                logger.error(
                    f"Error stopping Redis client '{self.client_id}': {e}",
                    exc_info=True,
                )

    def _ensure_started(self) -> None:
        if not self._started:
            raise RuntimeError(f"Redis client '{self.client_id}' is not running.")

    async def lpush(self, key: str, *values: str) -> int:
        self._ensure_started()
        try:
            length = int(await self.client.lpush(key, *values))
            logger.debug(f"Redis LPUSH by '{self.client_id}': key='{key}' new_length={length}")
            return length
        except Exception as e:
            logger.error(
                f"Error in Redis LPUSH operation by '{self.client_id}' for key '{key}': {e}",
                exc_info=True,
            )
            raise

    async def blpop(self, keys: list[str], timeout: float = 0) -> tuple[str, str] | None:
        """
        Remove and return the head of the first non-empty list.

        Args:
            keys: Lists to watch
            timeout: Seconds to block. 0 blocks indefinitely.

        Returns:
            ``(key, value)`` or None on timeout
        """
        self._ensure_started()
        try:
            result = await self.client.blpop(keys, timeout=timeout)
            if result:
                key, value = result
                return (key, value)
            return None
        except Exception as e:
            logger.error(
                f"Error in Redis BLPOP operation by '{self.client_id}' for keys {keys}: {e}",
                exc_info=True,
            )
            raise
