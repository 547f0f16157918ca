"""
Session data models.

SessionRecord is the backend-persisted representation, including the signing
secret. Session is the caller-facing view: local buckets are collapsed to the
calling client's entry and the secret is never exposed.
"""

import json
import re
import secrets
import string
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ...exceptions import InvalidInput, RecordCorrupt, TokenInvalid
from ..token import TokenCodec

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)
PARAMETER_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")

SECRET_ALPHABET = string.ascii_letters + string.digits
SECRET_LENGTH = 32

# ttl and expires_at value of a session that never expires
NEVER_EXPIRES = 0


def generate_signing_secret(length: int = SECRET_LENGTH) -> str:
    """Generate a random alphanumeric signing secret."""
    return "".join(secrets.choice(SECRET_ALPHABET) for _ in range(length))


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_ttl(ttl: Any) -> int:
    """Check a TTL is a non-negative integer (0 = never expires)."""
    if not _is_int(ttl):
        raise InvalidInput("ttl must be an integer")
    if ttl < 0:
        raise InvalidInput("ttl must not be negative")
    return ttl


class BucketKind(str, Enum):
    """Partition of session payload data."""

    GLOBAL = "global"  # Shared by every client of the session
    LOCAL = "local"  # Private to the calling client

    @classmethod
    def parse(cls, value: Any) -> "BucketKind":
        """Parse a bucket name, rejecting anything but global/local."""
        try:
            return cls(value)
        except ValueError as e:
            raise InvalidInput('bucket must be set to only "global" or "local"') from e


@dataclass
class User:
    """Snapshot of the user profile attached to a session."""

    username: str = ""
    display_name: str = ""
    email: str = ""
    roles: List[str] = field(default_factory=list)
    parameters: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.roles, list):
            raise InvalidInput("Roles must be a list")
        if not isinstance(self.parameters, dict):
            raise InvalidInput("Parameters must be a dict")
        for name in self.parameters:
            self._validate_parameter_name(name)

    @staticmethod
    def _validate_parameter_name(name: Any) -> None:
        if not isinstance(name, str) or not PARAMETER_NAME_PATTERN.match(name):
            raise InvalidInput(
                "Parameter name is invalid. Must contain only letters, numbers, and underscores."
            )

    def parameter_exists(self, name: str) -> bool:
        return name in self.parameters

    def get_parameter(self, name: str) -> Any:
        return self.parameters.get(name)

    def parameter_names(self) -> List[str]:
        return list(self.parameters)

    def set_parameter(self, name: str, value: Any) -> None:
        self._validate_parameter_name(name)
        self.parameters[name] = value

    def set_parameters(self, parameters: Dict[str, Any], flush: bool = False) -> None:
        """Merge parameters in, or replace all of them when flush is set."""
        if not isinstance(parameters, dict):
            raise InvalidInput("Parameters must be a dict")
        for name in parameters:
            self._validate_parameter_name(name)
        if flush:
            self.parameters = dict(parameters)
        else:
            self.parameters.update(parameters)

    def delete_parameter(self, name: str) -> bool:
        if name not in self.parameters:
            return False
        del self.parameters[name]
        return True

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "username": self.username,
            "display_name": self.display_name,
            "email": self.email,
            "roles": list(self.roles),
            "parameters": dict(self.parameters),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        """Create from dictionary (e.g., from JSON)."""
        return cls(
            username=data.get("username", ""),
            display_name=data.get("display_name", ""),
            email=data.get("email", ""),
            roles=list(data.get("roles") or []),
            parameters=dict(data.get("parameters") or {}),
        )


@dataclass
class Session:
    """
    Session view returned to a caller.

    Holds only the calling client's local bucket. Mutating a Session does not
    touch the backend until it is passed to set_session().
    """

    session_id: str
    token: str
    started_at: int
    expires_at: int
    ttl: int
    bucket_global: Any = None
    bucket_local: Any = None
    ip_address: Optional[str] = None
    user: Optional[User] = None

    def __post_init__(self):
        if not isinstance(self.session_id, str) or not UUID_PATTERN.match(self.session_id):
            raise InvalidInput("Invalid UUID syntax")
        try:
            TokenCodec.check_structure(self.token)
        except TokenInvalid as e:
            raise InvalidInput("Invalid token syntax") from e
        if not _is_int(self.started_at):
            raise InvalidInput("Starting timestamp must be an integer value")
        if not _is_int(self.expires_at):
            raise InvalidInput("Expiration timestamp must be an integer value")
        if not _is_int(self.ttl):
            raise InvalidInput("TTL must be an integer value")
        if self.user is not None and not isinstance(self.user, User):
            raise InvalidInput("User must be None or a User instance")

    def check_expiry(self) -> None:
        """
        Check ttl and expires_at agree before the view is written back.

        Raises:
            InvalidInput: If ttl is negative or only one of ttl and expires_at is 0
        """
        validate_ttl(self.ttl)
        if (self.ttl == NEVER_EXPIRES) != (self.expires_at == NEVER_EXPIRES):
            raise InvalidInput("expires_at must be 0 exactly when ttl is 0")

    def get_bucket(self, kind: Any = None) -> Any:
        """Return one bucket, or both as {"global": ..., "local": ...}."""
        if kind is None:
            return {"global": self.bucket_global, "local": self.bucket_local}
        if BucketKind.parse(kind) is BucketKind.GLOBAL:
            return self.bucket_global
        return self.bucket_local

    def set_bucket(self, kind: Any, data: Any) -> None:
        if BucketKind.parse(kind) is BucketKind.GLOBAL:
            self.bucket_global = data
        else:
            self.bucket_local = data

    def touch_expiration(self, ttl: Optional[int] = None) -> int:
        """
        Recompute expires_at locally from now + TTL.

        Passing ttl replaces the stored TTL first; a TTL of 0 means the
        session never expires. Persist with set_session().
        """
        if ttl is not None:
            if not _is_int(ttl) or ttl < 0:
                raise InvalidInput("TTL must be a non-negative integer value")
            self.ttl = ttl
        self.expires_at = NEVER_EXPIRES if self.ttl == NEVER_EXPIRES else int(time.time()) + self.ttl
        return self.expires_at

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "token": self.token,
            "started_at": self.started_at,
            "expires_at": self.expires_at,
            "ttl": self.ttl,
            "ip_address": self.ip_address,
            "buckets": {"global": self.bucket_global, "local": self.bucket_local},
            "user": None if self.user is None else self.user.to_dict(),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


@dataclass
class SessionRecord:
    """
    Backend-persisted session record.

    Persisted layout (short keys):
        {sid, key, str, exp, ttl, ipa, bkt: {glb, loc: {client_id: ...}}, usr}
    """

    session_id: str
    signing_secret: str
    started_at: int
    expires_at: int
    ttl: int
    ip_address: Optional[str] = None
    bucket_global: Any = None
    bucket_local: Dict[str, Any] = field(default_factory=dict)
    user: Optional[User] = None

    def local_for(self, client_id: str) -> Any:
        return self.bucket_local.get(client_id)

    def to_view(self, client_id: str, token: str) -> Session:
        """Collapse to the caller's view; the signing secret stays behind."""
        return Session(
            session_id=self.session_id,
            token=token,
            started_at=self.started_at,
            expires_at=self.expires_at,
            ttl=self.ttl,
            bucket_global=self.bucket_global,
            bucket_local=self.local_for(client_id),
            ip_address=self.ip_address,
            user=self.user,
        )

    @classmethod
    def from_view(
        cls,
        session: Session,
        client_id: str,
        signing_secret: str,
        local: Optional[Dict[str, Any]] = None,
    ) -> "SessionRecord":
        """
        Rebuild a record from a view.

        Args:
            session: Caller's view
            client_id: Owner of session.bucket_local
            signing_secret: Secret of the stored record
            local: Other clients' local buckets to carry over
        """
        bucket_local = dict(local or {})
        bucket_local[client_id] = session.bucket_local
        return cls(
            session_id=session.session_id,
            signing_secret=signing_secret,
            started_at=session.started_at,
            expires_at=session.expires_at,
            ttl=session.ttl,
            ip_address=session.ip_address,
            bucket_global=session.bucket_global,
            bucket_local=bucket_local,
            user=session.user,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the persisted dictionary layout."""
        return {
            "sid": self.session_id,
            "key": self.signing_secret,
            "str": self.started_at,
            "exp": self.expires_at,
            "ttl": self.ttl,
            "ipa": self.ip_address,
            "bkt": {
                "glb": self.bucket_global,
                "loc": self.bucket_local,
            },
            "usr": None if self.user is None else self.user.to_dict(),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: Any) -> "SessionRecord":
        """
        Create from the persisted dictionary layout.

        Raises:
            RecordCorrupt: If required fields are missing or mistyped
        """
        if not isinstance(data, dict):
            raise RecordCorrupt("Session record is not an object")

        session_id = data.get("sid")
        signing_secret = data.get("key")
        if not isinstance(session_id, str) or not session_id:
            raise RecordCorrupt("Session record has no sid")
        if not isinstance(signing_secret, str) or not signing_secret:
            raise RecordCorrupt(f"Session record {session_id} has no signing key")
        for short_key in ("str", "exp", "ttl"):
            if not _is_int(data.get(short_key)):
                raise RecordCorrupt(f"Session record {session_id} has invalid '{short_key}'")

        buckets = data.get("bkt") or {}
        if not isinstance(buckets, dict):
            raise RecordCorrupt(f"Session record {session_id} has invalid buckets")
        bucket_local = buckets.get("loc") or {}
        if not isinstance(bucket_local, dict):
            raise RecordCorrupt(f"Session record {session_id} has invalid local buckets")

        user_data = data.get("usr")
        try:
            user = User.from_dict(user_data) if isinstance(user_data, dict) else None
        except InvalidInput as e:
            raise RecordCorrupt(f"Session record {session_id} has invalid user: {e}") from e

        return cls(
            session_id=session_id,
            signing_secret=signing_secret,
            started_at=data["str"],
            expires_at=data["exp"],
            ttl=data["ttl"],
            ip_address=data.get("ipa"),
            bucket_global=buckets.get("glb"),
            bucket_local=bucket_local,
            user=user,
        )

    @classmethod
    def from_json(cls, raw: Any) -> "SessionRecord":
        """Parse a stored value (str or bytes)."""
        try:
            if isinstance(raw, bytes):
                raw = raw.decode("utf-8")
            data = json.loads(raw)
        except (TypeError, ValueError) as e:
            raise RecordCorrupt(f"Session record is not valid JSON: {e}") from e
        return cls.from_dict(data)
