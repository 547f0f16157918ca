"""
Storage Module - Black Box Interface

Purpose: Abstract session record persistence
Interface: KeyValueStore (get, set, set_with_expiry, delete, list_keys)
Hidden: Redis specifics, connection pooling, expiry handling

Can be replaced with any storage backend without affecting the drivers.
"""

import os
from typing import Optional

import redis.asyncio as redis

from .memory import InMemoryKeyValueStore
from .store import KeyValueStore, RedisKeyValueStore


class StorageModule:
    """Owns the Redis connection used by the direct-store driver."""

    def __init__(self, connection_url: str = None, socket_timeout: Optional[float] = None):
        """Initialize storage with connection URL."""
        self.url = connection_url or os.getenv("OSTIARY_REDIS_URL", "redis://localhost:6379/0")
        self.socket_timeout = socket_timeout
        self._client = None

    def connect(self) -> redis.Redis:
        """Get storage connection (connections are opened lazily by the pool)."""
        if not self._client:
            self._client = redis.from_url(
                self.url,
                decode_responses=True,
                socket_timeout=self.socket_timeout,
                socket_connect_timeout=self.socket_timeout,
            )
        return self._client

    async def disconnect(self):
        """Close storage connection."""
        if self._client:
            await self._client.aclose()
            self._client = None


__all__ = ["InMemoryKeyValueStore", "KeyValueStore", "RedisKeyValueStore", "StorageModule"]
