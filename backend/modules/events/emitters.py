"""
Typed emitter namespaces.

analytics.track, analytics.funnel, analytics.performance and
analytics.tools are instances of the classes below. Each emitter checks
the disabled flag before anything else, buckets its numeric inputs, and
hands the fields to Analytics.emit, which may first move the flow stage
and only then reads the base properties.
"""

import functools
import logging
from typing import TYPE_CHECKING, Any, Optional, Sequence

from shared.models import FlowStage
from modules.privacy import buckets, sanitize_properties

from .models import (
    UNKNOWN_BUCKET,
    EmptyStateShownEvent,
    ErrorStateShownEvent,
    FormAbandonedEvent,
    FunnelStepEvent,
    MessageSentEvent,
    ProfileCompletedEvent,
    RideAcceptedEvent,
    RideCreatedEvent,
    RideRequestedEvent,
    SignUpCompleteEvent,
    ToolInteractionEvent,
    WebVitalsEvent,
    WhatsappHandoffEvent,
)

if TYPE_CHECKING:
    from .service import Analytics

logger = logging.getLogger(__name__)

Payload = Optional[dict[str, Any]]

CONVERSION_FUNNEL = "conversion"


def emitter(method):
    """
    Turn an emitter into a no-op while analytics is disabled.

    Inputs that cannot be bucketed or coerced are logged and dropped.
    """

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        if not self._analytics.enabled:
            return None
        try:
            return method(self, *args, **kwargs)
        except (TypeError, ValueError) as e:
            logger.warning(f"Dropped {method.__name__} event: {e}")
            return None

    return wrapper


def _bucket_or_unknown(value: Optional[float], bucket) -> str:
    return bucket(value) if value is not None else UNKNOWN_BUCKET


class _Namespace:
    def __init__(self, analytics: "Analytics"):
        self._analytics = analytics


class TrackEmitters(_Namespace):
    """Core marketplace milestones."""

    @emitter
    def sign_up_complete(self, signup_method: str) -> Payload:
        return self._analytics.emit(
            SignUpCompleteEvent,
            stage=FlowStage.SIGNUP_COMPLETE,
            signup_method=signup_method,
        )

    @emitter
    def profile_completed(
        self,
        fields_completed: Sequence[str],
        time_to_complete_seconds: Optional[float] = None,
    ) -> Payload:
        return self._analytics.emit(
            ProfileCompletedEvent,
            stage=FlowStage.PROFILE_COMPLETE,
            fields_completed=list(fields_completed),
            time_to_complete_bucket=_bucket_or_unknown(time_to_complete_seconds, buckets.time_seconds),
        )

    @emitter
    def ride_created(self, seats: int, is_recurring: bool, distance_km: Optional[float] = None) -> Payload:
        return self._analytics.emit(
            RideCreatedEvent,
            stage=FlowStage.RIDE_CREATE,
            seats_bucket=buckets.seats(seats),
            is_recurring=is_recurring,
            distance_bucket=_bucket_or_unknown(distance_km, buckets.distance),
        )

    @emitter
    def ride_requested(self, seats_requested: int, has_target_ride: bool) -> Payload:
        return self._analytics.emit(
            RideRequestedEvent,
            stage=FlowStage.RIDE_REQUEST,
            seats_bucket=buckets.seats(seats_requested),
            has_target_ride=has_target_ride,
        )

    @emitter
    def ride_accepted(
        self,
        time_to_accept_hours: Optional[float] = None,
        acceptance_rate: Optional[float] = None,
    ) -> Payload:
        return self._analytics.emit(
            RideAcceptedEvent,
            stage=FlowStage.RIDE_ACCEPT,
            time_to_accept_bucket=_bucket_or_unknown(time_to_accept_hours, buckets.time_hours),
            acceptance_rate_bucket=_bucket_or_unknown(acceptance_rate, buckets.rate),
        )

    @emitter
    def message_sent(self, message_context: str, is_first_message: bool) -> Payload:
        return self._analytics.emit(
            MessageSentEvent,
            stage=FlowStage.MESSAGING,
            message_context=message_context,
            is_first_message=is_first_message,
        )

    @emitter
    def whatsapp_handoff(self, handoff_context: str) -> Payload:
        return self._analytics.emit(
            WhatsappHandoffEvent,
            stage=FlowStage.HANDOFF,
            handoff_context=handoff_context,
        )

    @emitter
    def conversion(self, conversion_type: str) -> Payload:
        """Final stage of the journey, reported as a one-step funnel."""
        return self._analytics.emit(
            FunnelStepEvent,
            stage=FlowStage.CONVERSION,
            funnel_name=CONVERSION_FUNNEL,
            step_name=conversion_type,
            step_number=1,
            total_steps=1,
        )

    @emitter
    def error_state_shown(
        self,
        error_type: str,
        error_source: str,
        error_code: Optional[str] = None,
    ) -> Payload:
        return self._analytics.emit(
            ErrorStateShownEvent,
            error_type=error_type,
            error_source=error_source,
            error_code=error_code,
        )


class FunnelEmitters(_Namespace):
    """Funnel progress and drop-off signals."""

    @emitter
    def step(
        self,
        funnel_name: str,
        step_name: str,
        step_number: int,
        total_steps: int,
        custom_properties: Optional[dict[str, Any]] = None,
    ) -> Payload:
        return self._analytics.emit(
            FunnelStepEvent,
            funnel_name=funnel_name,
            step_name=step_name,
            step_number=step_number,
            total_steps=total_steps,
            custom_properties=sanitize_properties(custom_properties),
        )

    @emitter
    def form_abandoned(
        self,
        form_name: str,
        fields_filled: Sequence[str],
        fields_with_errors: Sequence[str],
        time_spent_seconds: Optional[float] = None,
    ) -> Payload:
        return self._analytics.emit(
            FormAbandonedEvent,
            form_name=form_name,
            fields_filled=sorted(fields_filled),
            fields_with_errors=sorted(fields_with_errors),
            time_spent_bucket=_bucket_or_unknown(time_spent_seconds, buckets.time_seconds),
        )

    @emitter
    def empty_state_shown(self, empty_state_context: str, cta_shown: Optional[str] = None) -> Payload:
        return self._analytics.emit(
            EmptyStateShownEvent,
            empty_state_context=empty_state_context,
            cta_shown=cta_shown,
        )

    @emitter
    def route_step(self, funnel_id: str, path: Optional[str] = None) -> Payload:
        """Emit a funnel_step for the step the path belongs to, if any."""
        registry = self._analytics.registry
        path = path or self._analytics.context.current_path
        step = registry.get_current_funnel_step(funnel_id, path)
        if step is None:
            return None
        funnel = registry.get_funnel(funnel_id)
        return self._analytics.emit(
            FunnelStepEvent,
            funnel_name=funnel.id,
            step_name=step.id,
            step_number=step.position,
            total_steps=funnel.total_steps,
        )


class PerformanceEmitters(_Namespace):
    @emitter
    def web_vital(self, metric_name: str, metric_value: float, metric_rating: str) -> Payload:
        # CLS is unitless; the rest are milliseconds
        value = round(metric_value, 3) if metric_name == "CLS" else round(metric_value)
        return self._analytics.emit(
            WebVitalsEvent,
            metric_name=metric_name,
            metric_value=value,
            metric_rating=metric_rating,
        )


class ToolEmitters(_Namespace):
    @emitter
    def interaction(
        self,
        tool_name: str,
        interaction_type: str,
        step_name: Optional[str] = None,
        result_bucket: Optional[str] = None,
    ) -> Payload:
        return self._analytics.emit(
            ToolInteractionEvent,
            tool_name=tool_name,
            interaction_type=interaction_type,
            step_name=step_name,
            result_bucket=result_bucket,
        )
