"""
Remote protocol wire models.

These models define the short-key JSON exchanged with the remote session
authority. Responses are validated before a Session view is built from them.
"""

from typing import Any, Dict, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    StrictStr,
    ValidationError,
    field_validator,
    model_validator,
)

from ...exceptions import BackendProtocolError, InvalidInput, TokenInvalid
from ..session import NEVER_EXPIRES, Session, User
from ..token import TokenCodec

RESULT_OK = "ok"
RESULT_NOT_FOUND = "not_found"
RESULT_ALLOCATION_EXHAUSTED = "allocation_exhausted"


class WireBuckets(BaseModel):
    """Bucket pair as seen by one client."""

    model_config = ConfigDict(populate_by_name=True)

    glb: Any = Field(default=None, description="Global bucket")
    loc: Any = Field(default=None, description="Calling client's local bucket")


class WireUser(BaseModel):
    """User profile snapshot."""

    username: str = ""
    display_name: str = ""
    email: str = ""
    roles: List[str] = Field(default_factory=list)
    parameters: Dict[str, Any] = Field(default_factory=dict)


class SessionEnvelope(BaseModel):
    """The `ses` object returned by the authority."""

    sid: StrictStr = Field(..., min_length=1, description="Session identifier")
    jwt: StrictStr = Field(..., description="Session token")
    str_: StrictInt = Field(..., alias="str", description="Start time (unix seconds)")
    exp: StrictInt = Field(..., description="Expiry (unix seconds), 0 = never")
    ttl: StrictInt = Field(..., ge=0, description="Time to live in seconds, 0 = never")
    ipa: Optional[StrictStr] = Field(default=None, description="Origin address")
    bkt: WireBuckets
    usr: Optional[WireUser] = None

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("jwt")
    @classmethod
    def _check_token(cls, value: str) -> str:
        try:
            return TokenCodec.check_structure(value)
        except TokenInvalid as e:
            raise ValueError(str(e)) from e

    @model_validator(mode="after")
    def _check_expiry(self) -> "SessionEnvelope":
        if (self.exp == NEVER_EXPIRES) != (self.ttl == NEVER_EXPIRES):
            raise ValueError("exp must be 0 exactly when ttl is 0")
        return self

    @classmethod
    def from_session(cls, session: Session) -> "SessionEnvelope":
        return cls(
            sid=session.session_id,
            jwt=session.token,
            str_=session.started_at,
            exp=session.expires_at,
            ttl=session.ttl,
            ipa=session.ip_address,
            bkt=WireBuckets(glb=session.bucket_global, loc=session.bucket_local),
            usr=None if session.user is None else WireUser(**session.user.to_dict()),
        )

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)

    def to_session(self) -> Session:
        """
        Build a Session view.

        Raises:
            BackendProtocolError: If the envelope violates Session invariants
        """
        try:
            return Session(
                session_id=self.sid,
                token=self.jwt,
                started_at=self.str_,
                expires_at=self.exp,
                ttl=self.ttl,
                bucket_global=self.bkt.glb,
                bucket_local=self.bkt.loc,
                ip_address=self.ipa,
                user=None if self.usr is None else User.from_dict(self.usr.model_dump()),
            )
        except InvalidInput as e:
            raise BackendProtocolError(f"Invalid session returned by authority: {e}") from e


def parse_session(data: Any) -> Session:
    """
    Validate a `ses` object and convert it to a Session view.

    Raises:
        BackendProtocolError: If a field is missing or mistyped
    """
    try:
        envelope = SessionEnvelope.model_validate(data)
    except ValidationError as e:
        raise BackendProtocolError(f"Malformed session in authority response: {e}") from e
    return envelope.to_session()
