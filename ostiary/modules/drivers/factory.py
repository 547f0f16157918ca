"""
Driver Factory following Black Box Design principles.

This factory:
- Selects the backend from the tagged driver configuration
- Wires dependencies together
- Returns only the SessionDriver interface
"""

import logging
from typing import Optional

from ...config.provider import ClientConfig, DriverKind
from ...exceptions import InvalidInput
from ..storage import RedisKeyValueStore, StorageModule
from .interfaces import SessionDriver
from .redis_driver import RedisSessionDriver
from .remote_driver import RemoteSessionDriver

logger = logging.getLogger(__name__)


class DriverFactory:
    """
    Composition root for session drivers.

    Dispatches on config.driver.kind, never on runtime type inspection.
    """

    @staticmethod
    def build(
        config: ClientConfig, parent_logger: Optional[logging.Logger] = None
    ) -> SessionDriver:
        """
        Build the configured session driver.

        Args:
            config: Validated client configuration
            parent_logger: Parent logger for the driver's components

        Returns:
            SessionDriver for the configured backend
        """
        parent = parent_logger or logging.getLogger("ostiary")
        kind = config.driver.kind

        if kind == DriverKind.REDIS:
            logger.info("Building direct Redis session driver")
            storage = StorageModule(config.driver.url, socket_timeout=config.driver.socket_timeout)
            store = RedisKeyValueStore(storage.connect(), logger=parent.getChild("storage"))
            return RedisSessionDriver(
                store,
                config.client_id,
                storage=storage,
                logger=parent.getChild("drivers.redis"),
            )

        if kind == DriverKind.OSTIARY:
            logger.info(f"Building remote session driver for {config.driver.server}")
            return RemoteSessionDriver.from_settings(
                server=config.driver.server,
                client_id=config.client_id,
                secret=config.driver.secret,
                timeout=config.driver.timeout,
                logger=parent.getChild("drivers.remote"),
            )

        raise InvalidInput("driver must be set to only: ostiary, redis")
