"""
Ostiary client facade.

Thin orchestration layer that:
1. Validates configuration and per-operation options
2. Builds the configured driver
3. Dispatches every operation to it

All session logic lives in the drivers.
"""

import logging
from typing import Any, Dict, Optional, Union

from .config.provider import ClientConfig, EnvConfigProvider
from .exceptions import InvalidInput
from .logging_config import configure_logging
from .modules.api import (
    CreateSessionOptions,
    GetAllSessionsOptions,
    GetSessionOptions,
    SetBucketOptions,
    TouchSessionOptions,
)
from .modules.drivers import DriverFactory, SessionDriver
from .modules.session import BucketKind, Session, User


class OstiaryClient:
    """
    Talks either directly to an Ostiary Redis store or to an Ostiary server.

    Usage:
        async with OstiaryClient(config) as ostiary:
            session = await ostiary.create_session(bucket_global={"theme": "dark"})
            same = await ostiary.get_session(session.token)
    """

    def __init__(
        self,
        config: ClientConfig,
        driver: Optional[SessionDriver] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize client.

        Args:
            config: Client configuration
            driver: Pre-built driver (built from config.driver if not provided)
            logger: Injected logger, parent of every component logger

        Raises:
            InvalidInput: If the configuration is invalid
        """
        config.validate()
        self.config = config
        self.logger = logger or logging.getLogger("ostiary")
        self._driver = driver or DriverFactory.build(config, parent_logger=self.logger)
        self.logger.debug(
            f"Ostiary client '{config.client_id}' instantiated with {config.driver.kind.value} driver"
        )

    @classmethod
    def from_env(
        cls, logger: Optional[logging.Logger] = None, setup_logging: bool = True
    ) -> "OstiaryClient":
        """
        Build a client from OSTIARY_* environment variables.

        With setup_logging, the ostiary loggers are configured at the
        configured level (OSTIARY_DEBUG forces DEBUG).
        """
        config = EnvConfigProvider().get_client_config()
        if setup_logging:
            configure_logging(config.log_level)
        return cls(config, logger=logger)

    @property
    def driver(self) -> Any:
        """
        Raw backend handle in use.

        An httpx.AsyncClient for the Ostiary server driver, a
        redis.asyncio.Redis client for the Redis driver.
        """
        return self._driver.raw_handle

    async def create_session(
        self,
        bucket_global: Any = None,
        bucket_local: Any = None,
        ip_address: Optional[str] = None,
        user: Optional[User] = None,
        options: Union[CreateSessionOptions, Dict[str, Any], None] = None,
    ) -> Session:
        """
        Create a new session.

        Args:
            bucket_global: Data visible to every client of the session
            bucket_local: Data visible only to this client
            ip_address: Origin address of the request creating the session
            user: Optional user profile snapshot
            options: CreateSessionOptions (ttl overrides the client default)

        Returns:
            Populated Session
        """
        opts = CreateSessionOptions.coerce(options)
        if user is not None and not isinstance(user, User):
            raise InvalidInput("user must be None or a User instance")
        ttl = self.config.ttl if opts.ttl is None else opts.ttl
        return await self._driver.create_session(
            ttl,
            ip_address=ip_address,
            bucket_global=bucket_global,
            bucket_local=bucket_local,
            user=user,
        )

    async def get_session(
        self,
        token: str,
        options: Union[GetSessionOptions, Dict[str, Any], None] = None,
    ) -> Optional[Session]:
        """
        Get a session by its token.

        Returns:
            Session, or None if it does not exist or the token is invalid
        """
        opts = GetSessionOptions.coerce(options)
        return await self._driver.get_session(
            token, update_expiration=opts.update_expiration, ttl=opts.ttl
        )

    async def get_all_sessions(
        self,
        options: Union[GetAllSessionsOptions, Dict[str, Any], None] = None,
    ) -> Union[int, Dict[str, Session]]:
        """
        List every live session, or only count them.

        Returns:
            Count if options.count_only, else mapping of session id -> Session
        """
        opts = GetAllSessionsOptions.coerce(options)
        return await self._driver.get_all_sessions(
            count_only=opts.count_only,
            update_expiration=opts.update_expiration,
            ttl=opts.ttl,
        )

    async def set_session(self, session: Session) -> bool:
        """
        Overwrite a session with the values of a Session object.

        Other clients' local buckets are preserved. To change expiry, use
        session.touch_expiration() before calling this.

        Returns:
            True on success, False if the session is gone or the token is invalid
        """
        if not isinstance(session, Session):
            raise InvalidInput("session must be a Session object")
        return await self._driver.set_session(session)

    async def set_bucket(
        self,
        token: str,
        bucket: Union[BucketKind, str],
        data: Any,
        options: Union[SetBucketOptions, Dict[str, Any], None] = None,
    ) -> Optional[Session]:
        """
        Replace the contents of one bucket.

        Args:
            token: Session token
            bucket: "global" or "local"
            data: New bucket contents
            options: SetBucketOptions

        Returns:
            Updated Session, or None if it does not exist or the token is invalid
        """
        kind = BucketKind.parse(bucket)
        opts = SetBucketOptions.coerce(options)
        return await self._driver.set_bucket(
            token, kind, data, update_expiration=opts.update_expiration, ttl=opts.ttl
        )

    async def touch_session(
        self,
        token: str,
        options: Union[TouchSessionOptions, Dict[str, Any], None] = None,
    ) -> Optional[Session]:
        """
        Refresh a session's expiry to now + TTL (stored or overridden).

        Returns:
            Updated Session, or None if it does not exist or the token is invalid
        """
        opts = TouchSessionOptions.coerce(options)
        return await self._driver.touch_session(token, ttl=opts.ttl)

    async def delete_session(self, token: str) -> bool:
        """
        Delete a session.

        Returns:
            True if deleted, False if it did not exist or the token is invalid
        """
        return await self._driver.delete_session(token)

    async def aclose(self) -> None:
        await self._driver.aclose()

    async def __aenter__(self) -> "OstiaryClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
