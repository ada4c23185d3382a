"""
Event data models.

Every event is the base properties (where, who, when, which session) plus
a small set of event-specific fields. Numeric fields that could identify a
person are carried only as bucket labels.
"""

from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, Field

from shared.models import AnalyticsEnvironment, DeviceType, FlowStage, UserRole

SignupMethod = Literal["email", "google", "facebook", "github", "otp"]
MessageContext = Literal["ride_inquiry", "booking_chat", "general"]
HandoffContext = Literal["ride_details", "booking_confirmed", "profile"]
ErrorType = Literal["auth", "network", "validation", "permission", "not_found", "server", "unknown"]
MetricName = Literal["LCP", "CLS", "INP", "FCP", "TTFB"]
MetricRating = Literal["good", "needs-improvement", "poor"]
InteractionType = Literal[
    "start",
    "step",
    "complete",
    "abandon",
    "tool_started",
    "step_changed",
    "result_calculated",
    "result_shared",
]

UNKNOWN_BUCKET = "unknown"


class BaseEventProperties(BaseModel):
    """Properties attached to every event."""

    page_path: str = Field(..., description="Current path with identifiers replaced")
    flow_stage: FlowStage
    user_role: UserRole
    device_type: DeviceType
    environment: AnalyticsEnvironment
    timestamp: str = Field(..., description="ISO-8601 UTC timestamp")
    session_id: str

    model_config = {"frozen": True}

    def to_payload(self) -> dict[str, Any]:
        """JSON-safe dict with unset optional fields left out."""
        return self.model_dump(mode="json", exclude_none=True)


class SignUpCompleteEvent(BaseEventProperties):
    event_name: Literal["sign_up_complete"] = "sign_up_complete"
    signup_method: SignupMethod


class ProfileCompletedEvent(BaseEventProperties):
    event_name: Literal["profile_completed"] = "profile_completed"
    fields_completed: list[str]
    time_to_complete_bucket: str = UNKNOWN_BUCKET


class RideCreatedEvent(BaseEventProperties):
    event_name: Literal["ride_created"] = "ride_created"
    seats_bucket: str
    is_recurring: bool
    distance_bucket: str = UNKNOWN_BUCKET


class RideRequestedEvent(BaseEventProperties):
    event_name: Literal["ride_requested"] = "ride_requested"
    seats_bucket: str
    has_target_ride: bool


class RideAcceptedEvent(BaseEventProperties):
    event_name: Literal["ride_accepted"] = "ride_accepted"
    time_to_accept_bucket: str = UNKNOWN_BUCKET
    acceptance_rate_bucket: str = UNKNOWN_BUCKET


class MessageSentEvent(BaseEventProperties):
    event_name: Literal["message_sent"] = "message_sent"
    message_context: MessageContext
    is_first_message: bool


class WhatsappHandoffEvent(BaseEventProperties):
    event_name: Literal["whatsapp_handoff"] = "whatsapp_handoff"
    handoff_context: HandoffContext


class ErrorStateShownEvent(BaseEventProperties):
    event_name: Literal["error_state_shown"] = "error_state_shown"
    error_type: ErrorType
    error_source: str
    error_code: Optional[str] = None


class FunnelStepEvent(BaseEventProperties):
    event_name: Literal["funnel_step"] = "funnel_step"
    funnel_name: str
    step_name: str
    step_number: int = Field(..., ge=0)
    total_steps: int = Field(..., ge=0)
    custom_properties: Optional[dict[str, Any]] = None


class FormAbandonedEvent(BaseEventProperties):
    event_name: Literal["form_abandoned"] = "form_abandoned"
    form_name: str
    fields_filled: list[str]
    fields_with_errors: list[str]
    time_spent_bucket: str = UNKNOWN_BUCKET


class EmptyStateShownEvent(BaseEventProperties):
    event_name: Literal["empty_state_shown"] = "empty_state_shown"
    empty_state_context: str
    cta_shown: Optional[str] = None


class WebVitalsEvent(BaseEventProperties):
    event_name: Literal["web_vitals"] = "web_vitals"
    metric_name: MetricName
    metric_value: float
    metric_rating: MetricRating


class ToolInteractionEvent(BaseEventProperties):
    event_name: Literal["tool_interaction"] = "tool_interaction"
    tool_name: str
    interaction_type: InteractionType
    step_name: Optional[str] = None
    result_bucket: Optional[str] = None


AnalyticsEvent = Union[
    SignUpCompleteEvent,
    ProfileCompletedEvent,
    RideCreatedEvent,
    RideRequestedEvent,
    RideAcceptedEvent,
    MessageSentEvent,
    WhatsappHandoffEvent,
    ErrorStateShownEvent,
    FunnelStepEvent,
    FormAbandonedEvent,
    EmptyStateShownEvent,
    WebVitalsEvent,
    ToolInteractionEvent,
]
