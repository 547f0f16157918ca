"""
Key-value store contract and its Redis implementation.

The direct-store driver only ever needs five capabilities: get, set,
set-with-expiry, delete and key listing.
"""

import logging
from typing import List, Optional, Protocol

from redis.exceptions import RedisError

from ...exceptions import BackendUnavailable


class KeyValueStore(Protocol):
    """Protocol for session record stores."""

    async def get(self, key: str) -> Optional[str]:
        ...

    async def set(self, key: str, value: str, keep_ttl: bool = False) -> None:
        """Store a value. Without keep_ttl any backend expiry is removed."""
        ...

    async def set_with_expiry(self, key: str, value: str, ttl: int) -> None:
        ...

    async def delete(self, key: str) -> bool:
        ...

    async def list_keys(self, pattern: str) -> List[str]:
        """Full scan; acceptable only for modest session counts."""
        ...


class RedisKeyValueStore:
    """KeyValueStore backed by an async Redis client."""

    def __init__(self, redis_client, logger: Optional[logging.Logger] = None):
        """
        Initialize Redis store.

        Args:
            redis_client: Async Redis client
            logger: Injected logger
        """
        self.redis = redis_client
        self.logger = logger or logging.getLogger("ostiary.storage.redis")

    def _unavailable(self, operation: str, key: str, error: Exception) -> BackendUnavailable:
        self.logger.error(f"Redis {operation} failed for {key}: {error}")
        return BackendUnavailable(f"Redis {operation} failed: {error}")

    async def get(self, key: str) -> Optional[str]:
        try:
            data = await self.redis.get(key)
        except RedisError as e:
            raise self._unavailable("GET", key, e) from e

        # Handle bytes from Redis
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        return data

    async def set(self, key: str, value: str, keep_ttl: bool = False) -> None:
        try:
            await self.redis.set(key, value, keepttl=keep_ttl)
        except RedisError as e:
            raise self._unavailable("SET", key, e) from e

    async def set_with_expiry(self, key: str, value: str, ttl: int) -> None:
        try:
            await self.redis.setex(key, ttl, value)
        except RedisError as e:
            raise self._unavailable("SETEX", key, e) from e

    async def delete(self, key: str) -> bool:
        try:
            return await self.redis.delete(key) > 0
        except RedisError as e:
            raise self._unavailable("DEL", key, e) from e

    async def list_keys(self, pattern: str) -> List[str]:
        try:
            keys = [key async for key in self.redis.scan_iter(match=pattern)]
        except RedisError as e:
            raise self._unavailable("SCAN", pattern, e) from e
        return [key.decode("utf-8") if isinstance(key, bytes) else key for key in keys]
