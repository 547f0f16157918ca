"""
Ostiary per-operation option models.

Each public client operation takes its own typed options value with named,
statically known fields and defaults.
"""

from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, ValidationError

from ...exceptions import InvalidInput

OptionsT = TypeVar("OptionsT", bound="OperationOptions")


class OperationOptions(BaseModel):
    """Base for option models: unknown keys and loose types are rejected."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    @classmethod
    def coerce(cls: Type[OptionsT], value: Any) -> OptionsT:
        """
        Accept an options instance, a plain dict, or None (all defaults).

        Raises:
            InvalidInput: If the options are invalid
        """
        if value is None:
            return cls()
        if isinstance(value, cls):
            return value
        if not isinstance(value, dict):
            raise InvalidInput(f"Invalid options: expected {cls.__name__} or dict")
        try:
            return cls.model_validate(value)
        except ValidationError as e:
            raise InvalidInput(f"Invalid options: {e}") from e


class CreateSessionOptions(OperationOptions):
    """Options for create_session."""

    ttl: Optional[StrictInt] = Field(
        None, description="Override the client's default TTL (0 = never expires)", ge=0
    )


class GetSessionOptions(OperationOptions):
    """Options for get_session."""

    update_expiration: StrictBool = Field(
        default=True, description="Refresh expiry to now + TTL (stored or overridden)"
    )
    ttl: Optional[StrictInt] = Field(
        None, description="TTL directive; ignored unless update_expiration is set"
    )


class GetAllSessionsOptions(OperationOptions):
    """Options for get_all_sessions."""

    count_only: StrictBool = Field(default=False, description="Return only the session count")
    update_expiration: StrictBool = Field(default=False, description="Refresh every session")
    ttl: Optional[StrictInt] = Field(
        None, description="TTL directive; ignored unless update_expiration is set"
    )


class SetBucketOptions(OperationOptions):
    """Options for set_bucket."""

    update_expiration: StrictBool = Field(
        default=True, description="Refresh expiry to now + TTL (stored or overridden)"
    )
    ttl: Optional[StrictInt] = Field(
        None, description="TTL directive; ignored unless update_expiration is set"
    )


class TouchSessionOptions(OperationOptions):
    """Options for touch_session."""

    ttl: Optional[StrictInt] = Field(
        None, description="TTL directive; unset refreshes with the stored TTL"
    )
