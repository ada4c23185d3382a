"""
Drop-off module data models.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class TrackingPhase(str, Enum):
    """Lifecycle of one tracked form."""

    IDLE = "idle"
    STARTED = "started"
    SUBMITTED = "submitted"
    TORN_DOWN = "torn_down"


class DropOffCategory(str, Enum):
    """Why a user left a flow."""

    FORM_VALIDATION = "form_validation"
    FORM_ABANDONMENT = "form_abandonment"
    EMPTY_STATE = "empty_state"
    ERROR_STATE = "error_state"
    PERMISSION_DENIED = "permission_denied"
    NETWORK_FAILURE = "network_failure"
    TIMEOUT = "timeout"
    USER_CANCELLED = "user_cancelled"
    EXTERNAL_REDIRECT = "external_redirect"
    SESSION_EXPIRED = "session_expired"


class PermissionAction(str, Enum):
    REQUESTED = "requested"
    GRANTED = "granted"
    DENIED = "denied"
    DISMISSED = "dismissed"


@dataclass
class FormTrackingState:
    """
    Mutable state of one tracked form.

    started_at doubles as the abandonment sentinel: a form can only be
    reported as abandoned while it is set.
    """

    form_name: str
    started_at: Optional[float] = None
    fields_interacted: set[str] = field(default_factory=set)
    fields_with_errors: set[str] = field(default_factory=set)
    last_field_focused: Optional[str] = None
    phase: TrackingPhase = TrackingPhase.IDLE

    def begin(self, now: float) -> None:
        self.started_at = now
        self.fields_interacted.clear()
        self.fields_with_errors.clear()
        self.last_field_focused = None
        self.phase = TrackingPhase.STARTED

    def clear(self) -> None:
        self.started_at = None
        self.fields_interacted.clear()
        self.fields_with_errors.clear()
        self.last_field_focused = None
