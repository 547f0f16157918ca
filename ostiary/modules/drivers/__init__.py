"""
Drivers Module - Black Box Interface

Purpose: Session lifecycle against an interchangeable backend
Interface: create_session(), get_session(), get_all_sessions(), set_session(),
           set_bucket(), touch_session(), delete_session(), raw_handle
Hidden: Record storage, token handling, wire protocol

Both drivers must behave identically for identical call sequences.
"""

from .factory import DriverFactory
from .interfaces import SessionDriver
from .redis_driver import SESSION_KEY_PATTERN, RedisSessionDriver
from .remote_driver import USER_AGENT, RemoteSessionDriver
from .wire import SessionEnvelope, parse_session

__all__ = [
    "DriverFactory",
    "RedisSessionDriver",
    "RemoteSessionDriver",
    "SESSION_KEY_PATTERN",
    "SessionDriver",
    "SessionEnvelope",
    "USER_AGENT",
    "parse_session",
]
