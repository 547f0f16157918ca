"""
Direct-store session driver.

Implements the whole session lifecycle against a key-value store: the
driver allocates identifiers, holds signing secrets, issues and validates
tokens and keeps the store's own expiry in line with each record's TTL.
"""

import logging
import time
from typing import Any, Dict, Optional, Tuple, Union

from ...exceptions import InvalidInput, RecordCorrupt, TokenInvalid
from ..session import (
    NEVER_EXPIRES,
    BucketKind,
    ExpirationPolicy,
    IdentifierAllocator,
    Session,
    SessionRecord,
    TTLDirective,
    User,
    generate_signing_secret,
    merge_bucket,
    overlay_session,
    validate_ttl,
)
from ..storage import KeyValueStore, StorageModule
from ..token import TokenCodec
from .interfaces import TTLArgument

# Records are keyed by their bare UUID
SESSION_KEY_PATTERN = "????????-????-????-????-????????????"


class RedisSessionDriver:
    """
    Session driver that talks to the key-value store directly.

    Every bucket and session write is a load -> mutate -> store sequence with
    no locking around it; concurrent writers to the same session race and the
    last write wins.
    """

    def __init__(
        self,
        store: KeyValueStore,
        client_id: str,
        storage: Optional[StorageModule] = None,
        token_codec: Optional[TokenCodec] = None,
        expiration: Optional[ExpirationPolicy] = None,
        allocator: Optional[IdentifierAllocator] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize direct-store driver.

        Args:
            store: Key-value store holding session records
            client_id: Identity owning this client's local buckets
            storage: Connection owner closed by aclose(), if any
            token_codec: Token codec (built if not provided)
            expiration: Expiration policy (built if not provided)
            allocator: Identifier allocator (built against the store if not provided)
            logger: Injected logger
        """
        self.store = store
        self.client_id = client_id
        self.storage = storage
        self.logger = logger or logging.getLogger("ostiary.drivers.redis")
        self.tokens = token_codec or TokenCodec(logger=self.logger.getChild("token"))
        self.expiration = expiration or ExpirationPolicy(logger=self.logger.getChild("expiration"))
        self.allocator = allocator or IdentifierAllocator(
            self._exists, logger=self.logger.getChild("allocator")
        )

    @property
    def raw_handle(self) -> Any:
        if self.storage is not None:
            return self.storage.connect()
        return getattr(self.store, "redis", self.store)

    @staticmethod
    def _now() -> int:
        return int(time.time())

    async def _exists(self, session_id: str) -> bool:
        return await self.store.get(session_id) is not None

    async def _load(self, session_id: str) -> Optional[SessionRecord]:
        """Load a record; missing or unparseable records are absent."""
        data = await self.store.get(session_id)
        if not data:
            self.logger.debug(f"No session record for {session_id}")
            return None
        try:
            return SessionRecord.from_json(data)
        except RecordCorrupt as e:
            self.logger.error(f"Failed to parse session record {session_id}: {e}")
            return None

    async def _load_verified(self, token: str) -> Optional[SessionRecord]:
        """
        Locate the record a token names and verify the token against it.

        The token is only parsed structurally to find the record; its
        signature is then checked with that record's secret.
        """
        try:
            session_id = self.tokens.extract_session_id(token)
        except TokenInvalid as e:
            self.logger.debug(f"Rejected malformed token: {e}")
            return None

        record = await self._load(session_id)
        if record is None:
            return None

        try:
            self.tokens.validate(
                token,
                record.signing_secret,
                record.session_id,
                verify_exp=record.ttl != NEVER_EXPIRES,
            )
        except TokenInvalid as e:
            self.logger.info(f"Rejected token for session {session_id}: {e}")
            return None
        return record

    async def _persist(self, record: SessionRecord, expiry_changed: bool) -> None:
        """
        Write the full record back.

        Unchanged expiry keeps the store's remaining expiry. Changed expiry
        sets it from ttl, or removes it for never-expiring records.
        """
        value = record.to_json()
        if not expiry_changed:
            await self.store.set(record.session_id, value, keep_ttl=True)
        elif record.ttl > 0:
            await self.store.set_with_expiry(record.session_id, value, record.ttl)
        else:
            await self.store.set(record.session_id, value)

    def _refresh(
        self,
        record: SessionRecord,
        token: str,
        update_expiration: bool,
        ttl: TTLArgument,
    ) -> Tuple[str, bool]:
        """Apply the expiration policy; re-issue the token if expiry moved."""
        if not update_expiration:
            return token, False

        now = self._now()
        changed = self.expiration.apply(record, TTLDirective.coerce(ttl), now, sliding=True)
        if changed:
            token = self.tokens.issue(record.session_id, record.ttl, record.signing_secret, now)
        return token, changed

    async def create_session(
        self,
        ttl: int,
        ip_address: Optional[str] = None,
        bucket_global: Any = None,
        bucket_local: Any = None,
        user: Optional[User] = None,
    ) -> Session:
        """
        Create a new session.

        Args:
            ttl: Lifetime in seconds (0 = never expires)
            ip_address: Origin address of the creating request
            bucket_global: Initial global bucket
            bucket_local: Initial local bucket for this client
            user: Optional user profile snapshot

        Returns:
            Session view with a freshly issued token

        Raises:
            AllocationExhausted: If no unique identifier could be allocated
            BackendUnavailable: If the store cannot be reached
        """
        ttl = validate_ttl(ttl)
        session_id = await self.allocator.allocate()
        secret = generate_signing_secret()
        now = self._now()

        record = SessionRecord(
            session_id=session_id,
            signing_secret=secret,
            started_at=now,
            expires_at=NEVER_EXPIRES if ttl == NEVER_EXPIRES else now + ttl,
            ttl=ttl,
            ip_address=ip_address,
            bucket_global=bucket_global,
            bucket_local={self.client_id: bucket_local},
            user=user,
        )
        token = self.tokens.issue(session_id, ttl, secret, now)
        await self._persist(record, expiry_changed=True)

        self.logger.info(f"Created session {session_id} (ttl: {ttl}s)")
        return record.to_view(self.client_id, token)

    async def get_session(
        self, token: str, update_expiration: bool = True, ttl: TTLArgument = None
    ) -> Optional[Session]:
        """
        Get a session by token.

        Args:
            token: Session token
            update_expiration: Refresh expiry (sliding when ttl is unset)
            ttl: TTL directive applied when update_expiration is set

        Returns:
            Session view, or None if the record is gone or the token is invalid
        """
        record = await self._load_verified(token)
        if record is None:
            return None

        token, changed = self._refresh(record, token, update_expiration, ttl)
        if changed:
            await self._persist(record, expiry_changed=True)
        return record.to_view(self.client_id, token)

    async def get_all_sessions(
        self, count_only: bool = False, update_expiration: bool = False, ttl: TTLArgument = None
    ) -> Union[int, Dict[str, Session]]:
        """
        List every live session.

        A plain count does not load records. Counting with an expiration
        update loads and refreshes every record, then reports how many live
        records were loaded. Unparseable records are skipped.

        Returns:
            Count, or mapping of session id -> Session view
        """
        keys = await self.store.list_keys(SESSION_KEY_PATTERN)
        if count_only and not update_expiration:
            return len(keys)

        sessions: Dict[str, Session] = {}
        for key in keys:
            record = await self._load(key)
            if record is None:
                continue

            now = self._now()
            if update_expiration:
                directive = TTLDirective.coerce(ttl)
                if self.expiration.apply(record, directive, now, sliding=True):
                    await self._persist(record, expiry_changed=True)

            remaining = 0 if record.ttl == NEVER_EXPIRES else max(record.expires_at - now, 0)
            token = self.tokens.issue(record.session_id, remaining, record.signing_secret, now)
            sessions[record.session_id] = record.to_view(self.client_id, token)

        if count_only:
            return len(sessions)
        return sessions

    async def set_session(self, session: Session) -> bool:
        """
        Overwrite a session with the values of a view.

        Other clients' local buckets and the stored signing secret and origin
        address are preserved. When ttl or expires_at changed, a new token is
        issued and written to session.token.

        Returns:
            True on success, False if the record is gone or the token is invalid

        Raises:
            InvalidInput: If ttl is negative or disagrees with expires_at
        """
        if not isinstance(session, Session):
            raise InvalidInput("session must be a Session object")
        session.check_expiry()

        existing = await self._load(session.session_id)
        if existing is None:
            return False
        try:
            self.tokens.validate(
                session.token,
                existing.signing_secret,
                existing.session_id,
                verify_exp=existing.ttl != NEVER_EXPIRES,
            )
        except TokenInvalid as e:
            self.logger.info(f"Rejected token for session {session.session_id}: {e}")
            return False

        record = overlay_session(existing, session, self.client_id)
        expiry_changed = (record.ttl, record.expires_at) != (existing.ttl, existing.expires_at)
        await self._persist(record, expiry_changed)
        if expiry_changed:
            # The old token carries the old expiry claim
            session.token = self.tokens.issue(
                record.session_id, record.ttl, record.signing_secret, self._now()
            )
            self.logger.debug(f"Re-issued token for session {record.session_id} (ttl: {record.ttl}s)")
        return True

    async def set_bucket(
        self,
        token: str,
        kind: Any,
        data: Any,
        update_expiration: bool = True,
        ttl: TTLArgument = None,
    ) -> Optional[Session]:
        """
        Replace one bucket of a session.

        Global writes replace the shared value; local writes replace only
        this client's entry.

        Returns:
            Updated Session view (new token if expiry changed), or None
        """
        kind = BucketKind.parse(kind)
        record = await self._load_verified(token)
        if record is None:
            return None

        token, changed = self._refresh(record, token, update_expiration, ttl)
        merge_bucket(record, kind, self.client_id, data)
        await self._persist(record, changed)
        return record.to_view(self.client_id, token)

    async def touch_session(self, token: str, ttl: TTLArgument = None) -> Optional[Session]:
        """Refresh a session's expiry; get_session with update_expiration forced."""
        return await self.get_session(token, update_expiration=True, ttl=ttl)

    async def delete_session(self, token: str) -> bool:
        """
        Delete a session.

        Returns:
            True if a record was removed, False if none existed or the token is invalid
        """
        record = await self._load_verified(token)
        if record is None:
            return False

        deleted = await self.store.delete(record.session_id)
        if deleted:
            self.logger.info(f"Deleted session {record.session_id}")
        return deleted

    async def aclose(self) -> None:
        if self.storage is not None:
            await self.storage.disconnect()
