"""
Expiration policy for session records.

A TTL directive has three meanings:
    None or negative  leave TTL and expiry untouched
    0                 never expire (expires_at = 0, no backend expiry)
    > 0               ttl = value, expires_at = now + value

Any change to expiry means the caller must re-issue the token and bring the
backend's own expiry in line with the record's ttl.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union

from ...exceptions import InvalidInput
from .models import NEVER_EXPIRES, SessionRecord


@dataclass(frozen=True)
class TTLDirective:
    """Three-way TTL signal accepted by every expiration-touching operation."""

    seconds: Optional[int] = None

    def __post_init__(self):
        if self.seconds is not None and (
            isinstance(self.seconds, bool) or not isinstance(self.seconds, int)
        ):
            raise InvalidInput("ttl must be an integer")

    @property
    def is_unchanged(self) -> bool:
        return self.seconds is None or self.seconds < 0

    @property
    def is_never(self) -> bool:
        return self.seconds == NEVER_EXPIRES

    @classmethod
    def coerce(cls, value: "Optional[Union[int, TTLDirective]]") -> "TTLDirective":
        if isinstance(value, TTLDirective):
            return value
        return cls(value)


class ExpirationPolicy:
    """Applies TTL directives to session records."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger("ostiary.session.expiration")

    def resolve(
        self, record: SessionRecord, directive: TTLDirective, sliding: bool = False
    ) -> TTLDirective:
        """
        Resolve the directive an operation actually applies.

        With sliding set, an unset directive re-arms the record with its own
        stored TTL. Never-expiring records stay never-expiring.
        """
        if directive.is_unchanged and sliding and record.ttl > 0:
            return TTLDirective(record.ttl)
        return directive

    def apply(
        self,
        record: SessionRecord,
        directive: TTLDirective,
        now: int,
        sliding: bool = False,
    ) -> bool:
        """
        Apply a directive to a record in place.

        Args:
            record: Record to update
            directive: TTL directive from the caller
            now: Current unix time in seconds
            sliding: Treat an unset directive as "refresh with stored TTL"

        Returns:
            True if ttl or expires_at changed (token must be re-issued)
        """
        effective = self.resolve(record, directive, sliding)
        if effective.is_unchanged:
            return False

        previous = (record.ttl, record.expires_at)
        if effective.is_never:
            record.ttl = NEVER_EXPIRES
            record.expires_at = NEVER_EXPIRES
        else:
            record.ttl = effective.seconds
            record.expires_at = now + effective.seconds

        changed = previous != (record.ttl, record.expires_at)
        if changed:
            self.logger.debug(
                f"Session {record.session_id} expiry {previous[1]} -> {record.expires_at} "
                f"(ttl {previous[0]} -> {record.ttl})"
            )
        return changed
