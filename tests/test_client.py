"""
Unit tests for the OstiaryClient facade and driver selection.
"""

from unittest.mock import AsyncMock, patch

import httpx
import pytest
import redis.asyncio as redis
from pydantic import ValidationError

from ostiary import OstiaryClient
from ostiary.config import ClientConfig, RedisDriverConfig, RemoteDriverConfig
from ostiary.exceptions import InvalidInput
from ostiary.modules.api import CreateSessionOptions, GetAllSessionsOptions, GetSessionOptions
from ostiary.modules.drivers import RedisSessionDriver, RemoteSessionDriver
from ostiary.modules.session import BucketKind, User


@pytest.fixture
def redis_config():
    return ClientConfig(client_id="client-a", driver=RedisDriverConfig(), ttl=30)


@pytest.fixture
def mock_driver():
    driver = AsyncMock()
    driver.raw_handle = "raw-handle"
    return driver


@pytest.fixture
def client(redis_config, mock_driver):
    return OstiaryClient(redis_config, driver=mock_driver)


# =============================================================================
# Driver selection
# =============================================================================


class TestDriverSelection:
    """The driver is picked from the tagged driver configuration."""

    @pytest.mark.asyncio
    async def test_redis_driver(self, redis_config):
        ostiary = OstiaryClient(redis_config)

        assert isinstance(ostiary._driver, RedisSessionDriver)
        assert isinstance(ostiary.driver, redis.Redis)
        await ostiary.aclose()

    @pytest.mark.asyncio
    async def test_remote_driver(self):
        config = ClientConfig(
            client_id="client-a",
            driver=RemoteDriverConfig(secret="s3cret", server="http://ostiary:1563", timeout=2.0),
        )

        async with OstiaryClient(config) as ostiary:
            assert isinstance(ostiary._driver, RemoteSessionDriver)
            handle = ostiary.driver
            assert isinstance(handle, httpx.AsyncClient)
            assert handle.base_url.host == "ostiary"
            assert handle.base_url.port == 1563

        assert handle.is_closed

    def test_raw_handle_passthrough(self, client):
        assert client.driver == "raw-handle"


# =============================================================================
# Configuration validation
# =============================================================================


class TestConfigValidation:
    """Invalid configuration fails at construction."""

    @pytest.mark.parametrize(
        "config",
        [
            ClientConfig(client_id="", driver=RedisDriverConfig()),
            ClientConfig(client_id="bad id!", driver=RedisDriverConfig()),
            ClientConfig(client_id="client-a", driver=RedisDriverConfig(), ttl=-1),
            ClientConfig(client_id="client-a", driver=RedisDriverConfig(), ttl="30"),
            ClientConfig(client_id="client-a", driver=None),
            ClientConfig(client_id="client-a", driver=RemoteDriverConfig(secret="")),
            ClientConfig(client_id="client-a", driver=RemoteDriverConfig(secret="s", server="")),
            ClientConfig(client_id="client-a", driver=RemoteDriverConfig(secret="s", timeout=0)),
            ClientConfig(client_id="client-a", driver=RedisDriverConfig(url="")),
        ],
    )
    def test_invalid(self, config, mock_driver):
        with pytest.raises(InvalidInput):
            OstiaryClient(config, driver=mock_driver)


# =============================================================================
# Dispatch
# =============================================================================


class TestDispatch:
    """Options are validated and forwarded to the driver."""

    @pytest.mark.asyncio
    async def test_create_uses_default_ttl(self, client, mock_driver, sample_user):
        await client.create_session(
            bucket_global={"g": 1}, bucket_local="l", ip_address="1.2.3.4", user=sample_user
        )

        mock_driver.create_session.assert_awaited_once_with(
            30, ip_address="1.2.3.4", bucket_global={"g": 1}, bucket_local="l", user=sample_user
        )

    @pytest.mark.asyncio
    async def test_create_ttl_override(self, client, mock_driver):
        await client.create_session(options={"ttl": 0})
        assert mock_driver.create_session.await_args.args == (0,)

        await client.create_session(options=CreateSessionOptions(ttl=120))
        assert mock_driver.create_session.await_args.args == (120,)

    @pytest.mark.asyncio
    async def test_create_rejects_non_user(self, client, mock_driver):
        with pytest.raises(InvalidInput):
            await client.create_session(user={"username": "x"})
        mock_driver.create_session.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_get_session_defaults(self, client, mock_driver):
        await client.get_session("token")

        mock_driver.get_session.assert_awaited_once_with(
            "token", update_expiration=True, ttl=None
        )

    @pytest.mark.asyncio
    async def test_get_session_options(self, client, mock_driver):
        await client.get_session("token", GetSessionOptions(update_expiration=False, ttl=-1))

        mock_driver.get_session.assert_awaited_once_with(
            "token", update_expiration=False, ttl=-1
        )

    @pytest.mark.asyncio
    async def test_get_all_sessions(self, client, mock_driver):
        await client.get_all_sessions()
        mock_driver.get_all_sessions.assert_awaited_with(
            count_only=False, update_expiration=False, ttl=None
        )

        await client.get_all_sessions(GetAllSessionsOptions(count_only=True))
        mock_driver.get_all_sessions.assert_awaited_with(
            count_only=True, update_expiration=False, ttl=None
        )

    @pytest.mark.asyncio
    async def test_set_bucket(self, client, mock_driver):
        await client.set_bucket("token", "local", {"x": 1}, {"update_expiration": False})

        mock_driver.set_bucket.assert_awaited_once_with(
            "token", BucketKind.LOCAL, {"x": 1}, update_expiration=False, ttl=None
        )

    @pytest.mark.asyncio
    async def test_set_bucket_rejects_unknown_kind(self, client, mock_driver):
        with pytest.raises(InvalidInput, match='"global" or "local"'):
            await client.set_bucket("token", "both", {})
        mock_driver.set_bucket.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_touch_and_delete(self, client, mock_driver):
        await client.touch_session("token", {"ttl": 0})
        mock_driver.touch_session.assert_awaited_once_with("token", ttl=0)

        await client.delete_session("token")
        mock_driver.delete_session.assert_awaited_once_with("token")

    @pytest.mark.asyncio
    async def test_set_session_rejects_non_session(self, client, mock_driver):
        with pytest.raises(InvalidInput):
            await client.set_session({"session_id": "x"})
        mock_driver.set_session.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "options",
        [
            {"ttl": "60"},
            {"ttl": 1.5},
            {"update_expiration": "yes"},
            {"unknown": True},
            ["ttl", 60],
            CreateSessionOptions(),
        ],
    )
    async def test_invalid_options(self, client, options):
        with pytest.raises(InvalidInput):
            await client.get_session("token", options)

    @pytest.mark.parametrize("options", [{"ttl": -1}, {"ttl": True}])
    def test_invalid_create_options(self, options):
        with pytest.raises(InvalidInput):
            CreateSessionOptions.coerce(options)

    def test_options_are_frozen(self):
        options = GetSessionOptions()
        with pytest.raises(ValidationError):
            options.ttl = 5

    @pytest.mark.asyncio
    async def test_context_manager_closes_driver(self, client, mock_driver):
        async with client:
            pass

        mock_driver.aclose.assert_awaited_once()


# =============================================================================
# End to end on an in-memory store
# =============================================================================


@pytest.mark.asyncio
async def test_session_lifecycle(redis_config, store, sample_user):
    ostiary = OstiaryClient(redis_config, driver=RedisSessionDriver(store, "client-a"))

    session = await ostiary.create_session(bucket_global={"cart": []}, user=sample_user)
    assert session.ttl == 30

    session.user.set_parameter("theme", "dark")
    session.bucket_local = "mine"
    assert await ostiary.set_session(session) is True

    fetched = await ostiary.get_session(session.token, {"update_expiration": False})
    assert fetched.user.get_parameter("theme") == "dark"
    assert fetched.bucket_local == "mine"
    assert isinstance(fetched.user, User)

    assert await ostiary.get_all_sessions({"count_only": True}) == 1
    assert await ostiary.delete_session(session.token) is True
    assert await ostiary.get_session(session.token) is None


@pytest.mark.asyncio
async def test_from_env_configures_logging():
    env = {
        "OSTIARY_CLIENT_ID": "client-a",
        "OSTIARY_SECRET": "s3cret",
        "OSTIARY_DEBUG": "true",
    }
    with patch.dict("os.environ", env, clear=True), patch(
        "ostiary.client.configure_logging"
    ) as configure:
        ostiary = OstiaryClient.from_env()

    configure.assert_called_once_with("DEBUG")
    assert isinstance(ostiary._driver, RemoteSessionDriver)
    await ostiary.aclose()
