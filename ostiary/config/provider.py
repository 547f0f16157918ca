"""Configuration provider following Black Box Design principles."""
import os
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Protocol, Union

from ..exceptions import InvalidInput

CLIENT_ID_PATTERN = re.compile(r"^[a-z0-9._-]+$", re.IGNORECASE)


class DriverKind(str, Enum):
    """Backend a client talks to."""

    OSTIARY = "ostiary"
    REDIS = "redis"


@dataclass
class RemoteDriverConfig:
    """Remote session authority configuration."""
    secret: str
    server: str = "http://localhost:1563"
    timeout: float = 3.0
    kind: DriverKind = field(default=DriverKind.OSTIARY, init=False)

    def validate(self) -> None:
        if not self.secret:
            raise InvalidInput("secret must be set if driver = ostiary")
        if not self.server:
            raise InvalidInput("ostiary.server must be set to an Ostiary server endpoint")
        if isinstance(self.timeout, bool) or not isinstance(self.timeout, (int, float)):
            raise InvalidInput("ostiary.timeout must be a number")
        if self.timeout <= 0:
            raise InvalidInput("ostiary.timeout must be greater than zero")


@dataclass
class RedisDriverConfig:
    """Direct Redis store configuration."""
    url: str = "redis://localhost:6379/0"
    socket_timeout: float = 3.0
    kind: DriverKind = field(default=DriverKind.REDIS, init=False)

    def validate(self) -> None:
        if not self.url:
            raise InvalidInput("redis settings must be set if driver = redis")
        if self.socket_timeout <= 0:
            raise InvalidInput("redis.socket_timeout must be greater than zero")


DriverConfig = Union[RemoteDriverConfig, RedisDriverConfig]


@dataclass
class ClientConfig:
    """Client configuration."""
    client_id: str
    driver: DriverConfig
    ttl: int = 86400
    log_level: str = "INFO"

    def validate(self) -> None:
        """
        Validate the configuration.

        Raises:
            InvalidInput: If any setting is missing or malformed
        """
        if not self.client_id:
            raise InvalidInput("id must be set")
        if not CLIENT_ID_PATTERN.match(self.client_id):
            raise InvalidInput(
                "id must contain only letters, numbers, dots, dashes, and underscores"
            )
        if isinstance(self.ttl, bool) or not isinstance(self.ttl, int):
            raise InvalidInput("ttl must be an integer")
        if self.ttl < 0:
            raise InvalidInput("ttl must not be negative")
        if self.driver is None or getattr(self.driver, "kind", None) not in tuple(DriverKind):
            raise InvalidInput("driver must be set to only: ostiary, redis")
        self.driver.validate()


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_client_config(self) -> ClientConfig:
        """Get client configuration."""
        ...


class EnvConfigProvider:
    """Environment-based configuration provider."""

    def get_client_config(self) -> ClientConfig:
        """Get client configuration from environment variables."""
        driver_name = os.getenv("OSTIARY_DRIVER", DriverKind.OSTIARY.value).lower()

        driver: Optional[DriverConfig]
        if driver_name == DriverKind.REDIS.value:
            driver = RedisDriverConfig(
                url=os.getenv("OSTIARY_REDIS_URL", "redis://localhost:6379/0"),
                socket_timeout=float(os.getenv("OSTIARY_REDIS_TIMEOUT", "3")),
            )
        elif driver_name == DriverKind.OSTIARY.value:
            driver = RemoteDriverConfig(
                secret=os.getenv("OSTIARY_SECRET", ""),
                server=os.getenv("OSTIARY_SERVER", "http://localhost:1563"),
                timeout=float(os.getenv("OSTIARY_TIMEOUT", "3")),
            )
        else:
            raise InvalidInput("driver must be set to only: ostiary, redis")

        try:
            ttl = int(os.getenv("OSTIARY_TTL", "86400"))
        except ValueError as e:
            raise InvalidInput("ttl must be an integer") from e

        debug = os.getenv("OSTIARY_DEBUG", "false").lower() == "true"

        config = ClientConfig(
            client_id=os.getenv("OSTIARY_CLIENT_ID", ""),
            driver=driver,
            ttl=ttl,
            log_level="DEBUG" if debug else os.getenv("OSTIARY_LOG_LEVEL", "INFO").upper(),
        )
        config.validate()
        return config
