"""
Ostiary - Session Client

Issues, validates and mutates server-side sessions addressed by signed tokens.

Architecture:
- Each module is self-contained with clear interfaces
- Both backends are interchangeable behind one driver interface
- No module knows the internals of another

Modules:
- token: Signed token construction and validation
- session: Record model, identifier allocation, expiration and bucket policies
- storage: Key-value store adapters (Redis, in-memory)
- drivers: Direct-store and remote-service session drivers
- api: Typed per-operation options
"""

__version__ = "1.0.0"

from .client import OstiaryClient
from .exceptions import (
    AllocationExhausted,
    BackendProtocolError,
    BackendUnavailable,
    InvalidInput,
    OstiaryError,
    RecordCorrupt,
    RecordNotFound,
    TokenInvalid,
)
from .modules.session import BucketKind, Session, User

__all__ = [
    "AllocationExhausted",
    "BackendProtocolError",
    "BackendUnavailable",
    "BucketKind",
    "InvalidInput",
    "OstiaryClient",
    "OstiaryError",
    "RecordCorrupt",
    "RecordNotFound",
    "Session",
    "TokenInvalid",
    "User",
    "__version__",
]
