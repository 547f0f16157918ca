"""
Session Module - Black Box Interface

Purpose: Session record model and the policies shared by both drivers
Interface: SessionRecord, Session, User, IdentifierAllocator, ExpirationPolicy,
           merge_bucket(), overlay_session()
Hidden: Persisted layout, collision handling, expiry arithmetic
"""

from .allocator import MAX_ATTEMPTS, IdentifierAllocator
from .buckets import merge_bucket, overlay_session
from .expiration import ExpirationPolicy, TTLDirective
from .models import (
    NEVER_EXPIRES,
    BucketKind,
    Session,
    SessionRecord,
    User,
    generate_signing_secret,
    validate_ttl,
)

__all__ = [
    "BucketKind",
    "ExpirationPolicy",
    "IdentifierAllocator",
    "MAX_ATTEMPTS",
    "NEVER_EXPIRES",
    "Session",
    "SessionRecord",
    "TTLDirective",
    "User",
    "generate_signing_secret",
    "merge_bucket",
    "overlay_session",
    "validate_ttl",
]
