"""
Session module data models.
"""

import re

from pydantic import BaseModel, Field, field_validator

from shared.models import DeviceType, UserRole

# Session lifetime since last activity (milliseconds)
SESSION_TIMEOUT_MS = 30 * 60 * 1000

ANONYMOUS_PREFIX = "anon_"
HASHED_PREFIX = "user_"

PROFILE_COMPLETION_BUCKETS = (0, 25, 50, 75, 100)

# Identifier body shaped like a phone number
_PHONE_LIKE = re.compile(r"^\+?[\d\s().-]{7,}$")


class SessionData(BaseModel):
    """
    A browsing session as persisted in short-lived storage.

    Timestamps are epoch milliseconds.
    """

    id: str = Field(..., description="Session identifier")
    created: float = Field(..., description="When the session was minted")
    last_activity: float = Field(..., description="Last read that refreshed it")

    def is_valid(self, now: float) -> bool:
        """Sliding expiry: valid while idle for less than the timeout."""
        return now - self.last_activity < SESSION_TIMEOUT_MS


class UserContext(BaseModel):
    """
    Anonymized description of the current user.

    Immutable: updates go through AnalyticsContext.update_user_context,
    which builds a new instance.
    """

    anonymous_id: str = Field(..., description="anon_ or user_ prefixed identifier")
    user_role: UserRole = UserRole.UNKNOWN
    device_type: DeviceType = DeviceType.DESKTOP
    is_authenticated: bool = False
    profile_completion_bucket: int = Field(
        default=0,
        description="Profile completion rounded down to a quarter",
    )

    model_config = {"frozen": True}

    @field_validator("anonymous_id")
    @classmethod
    def anonymous_id_is_not_pii(cls, value: str) -> str:
        if not value.startswith((ANONYMOUS_PREFIX, HASHED_PREFIX)):
            raise ValueError(
                f"anonymous_id must start with '{ANONYMOUS_PREFIX}' or '{HASHED_PREFIX}'"
            )
        if "@" in value:
            raise ValueError("anonymous_id must not contain an email address")
        if _PHONE_LIKE.match(value.split("_", 1)[1]):
            raise ValueError("anonymous_id must not be a phone number")
        return value

    @field_validator("profile_completion_bucket")
    @classmethod
    def completion_is_bucketed(cls, value: int) -> int:
        if value not in PROFILE_COMPLETION_BUCKETS:
            raise ValueError(
                f"profile_completion_bucket must be one of {PROFILE_COMPLETION_BUCKETS}"
            )
        return value
