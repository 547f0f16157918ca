"""
Shared pytest fixtures for Ostiary tests.

This module provides common fixtures including:
- In-memory key-value stores and direct drivers for two client identities
- Redis client mocks for store adapter tests
- A reference Ostiary server served through httpx.ASGITransport
"""

import asyncio
import os
import sys
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import pytest_asyncio

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from authority import create_authority_app  # noqa: E402

from ostiary.modules.drivers import RedisSessionDriver, RemoteSessionDriver  # noqa: E402
from ostiary.modules.session import User  # noqa: E402
from ostiary.modules.storage import InMemoryKeyValueStore  # noqa: E402

CLIENT_A = "client-a"
CLIENT_B = "client-b"
AUTHORITY_URL = "http://ostiary.test"
AUTHORITY_SECRET = "authority-secret"


# =============================================================================
# Store and driver fixtures
# =============================================================================


class InterleavingStore(InMemoryKeyValueStore):
    """
    In-memory store that can hold readers until two of them have read.

    Used to reproduce concurrent read-modify-write sequences deterministically.
    """

    def __init__(self) -> None:
        super().__init__()
        self.hold_reads = False
        self._readers = 0
        self._both_read = None

    async def get(self, key):
        value = await super().get(key)
        if self.hold_reads:
            if self._both_read is None:
                self._both_read = asyncio.Event()
            self._readers += 1
            if self._readers >= 2:
                self._both_read.set()
            await self._both_read.wait()
        return value


@pytest.fixture
def store():
    """Create an empty in-memory key-value store."""
    return InMemoryKeyValueStore()


@pytest.fixture
def driver_a(store):
    """Direct driver acting as client A."""
    return RedisSessionDriver(store, CLIENT_A)


@pytest.fixture
def driver_b(store):
    """Direct driver acting as client B on the same store."""
    return RedisSessionDriver(store, CLIENT_B)


@pytest.fixture
def sample_user():
    """Create a sample user profile."""
    return User(
        username="user",
        display_name="gecos",
        email="foo@bar.com",
        roles=["USER"],
        parameters={"key": "value"},
    )


# =============================================================================
# Redis client mocks
# =============================================================================


def async_iter(items):
    """Build an async iterator over items (stands in for scan_iter)."""

    async def _gen():
        for item in items:
            yield item

    return _gen()


@pytest.fixture
def mock_redis():
    """Create a mock Redis client with all required methods."""
    redis = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.set = AsyncMock(return_value=True)
    redis.setex = AsyncMock(return_value=True)
    redis.delete = AsyncMock(return_value=1)
    redis.scan_iter = MagicMock(return_value=async_iter([]))
    return redis


# =============================================================================
# Reference authority
# =============================================================================


@pytest.fixture
def authority_store():
    """Store behind the reference authority."""
    return InMemoryKeyValueStore()


@pytest.fixture
def authority_app(authority_store):
    return create_authority_app(authority_store)


def make_remote_driver(app, client_id: str) -> RemoteSessionDriver:
    """Remote driver talking to an in-process authority app."""
    http_client = httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url=AUTHORITY_URL,
        auth=httpx.BasicAuth(client_id, AUTHORITY_SECRET),
    )
    return RemoteSessionDriver(http_client, client_id)


@pytest_asyncio.fixture
async def remote_a(authority_app):
    driver = make_remote_driver(authority_app, CLIENT_A)
    yield driver
    await driver.aclose()


@pytest_asyncio.fixture
async def remote_b(authority_app):
    driver = make_remote_driver(authority_app, CLIENT_B)
    yield driver
    await driver.aclose()
