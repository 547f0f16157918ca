"""In-memory KeyValueStore for development and tests."""

import time
from fnmatch import fnmatchcase
from typing import Callable, Dict, List, Optional


class _Entry:
    __slots__ = ("value", "expires_at")

    def __init__(self, value: str, expires_at: Optional[float]) -> None:
        self.value = value
        self.expires_at = expires_at

    def is_expired(self, now: float) -> bool:
        return self.expires_at is not None and now >= self.expires_at


class InMemoryKeyValueStore:
    """Dict-backed store with Redis-like expiry semantics."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._store: Dict[str, _Entry] = {}
        self._clock = clock

    def _live(self, key: str) -> Optional[_Entry]:
        entry = self._store.get(key)
        if entry is not None and entry.is_expired(self._clock()):
            del self._store[key]
            return None
        return entry

    async def get(self, key: str) -> Optional[str]:
        entry = self._live(key)
        return None if entry is None else entry.value

    async def set(self, key: str, value: str, keep_ttl: bool = False) -> None:
        entry = self._live(key)
        expires_at = entry.expires_at if (keep_ttl and entry is not None) else None
        self._store[key] = _Entry(value, expires_at)

    async def set_with_expiry(self, key: str, value: str, ttl: int) -> None:
        self._store[key] = _Entry(value, self._clock() + ttl)

    async def delete(self, key: str) -> bool:
        if self._live(key) is None:
            return False
        del self._store[key]
        return True

    async def list_keys(self, pattern: str) -> List[str]:
        return [key for key in list(self._store) if fnmatchcase(key, pattern) and self._live(key)]

    def ttl(self, key: str) -> Optional[float]:
        """Remaining backend expiry in seconds, None if the key never expires or is absent."""
        entry = self._live(key)
        if entry is None or entry.expires_at is None:
            return None
        return entry.expires_at - self._clock()
