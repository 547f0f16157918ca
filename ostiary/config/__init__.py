"""
Config Module - Black Box Interface

Purpose: Client configuration management
Interface: ClientConfig, EnvConfigProvider.get_client_config()
Hidden: Environment parsing, validation logic
"""

from .provider import (
    ClientConfig,
    ConfigProvider,
    DriverConfig,
    DriverKind,
    EnvConfigProvider,
    RedisDriverConfig,
    RemoteDriverConfig,
)

__all__ = [
    "ClientConfig",
    "ConfigProvider",
    "DriverConfig",
    "DriverKind",
    "EnvConfigProvider",
    "RedisDriverConfig",
    "RemoteDriverConfig",
]
