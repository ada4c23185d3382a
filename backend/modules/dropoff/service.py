"""
Drop-off tracker.

Keeps a registry of active forms and reports the friction points where
users leave a flow: abandoned forms, validation errors, empty states,
denied permissions, network failures and auth interruptions.

Active forms are torn down automatically when the analytics façade
reports a route change or a page unload.
"""

import logging
from typing import TYPE_CHECKING, Any, Mapping, Optional, Union

from modules.funnels import FunnelRegistry, get_funnel_registry
from modules.privacy import sanitize_page_path

from .models import DropOffCategory, PermissionAction
from .trackers import Clock, FormTracker

if TYPE_CHECKING:
    from modules.events import Analytics

logger = logging.getLogger(__name__)

# Field errors recorded from one validation summary
MAX_TRACKED_VALIDATION_FIELDS = 5
# Retry budget assumed when reporting retry attempts
MAX_RETRIES = 3


class DropOffTracker:
    """
    Registry of active forms plus one-shot drop-off reporters.

    Example:
        dropoff = DropOffTracker(analytics)
        dropoff.start_form_tracking("signup")
        dropoff.track_field_interaction("signup", "email")
        analytics.route_changed("/home")   # reports signup as abandoned
    """

    def __init__(
        self,
        analytics: "Analytics",
        registry: Optional[FunnelRegistry] = None,
        clock: Optional[Clock] = None,
        subscribe: bool = True,
    ):
        """
        Args:
            analytics: Façade events are emitted through
            registry: Funnel registry used to position drop-offs
            clock: Monotonic seconds, shared with the form trackers
            subscribe: Tear down forms on route change and page unload
        """
        self._analytics = analytics
        self._registry = registry
        self._clock = clock
        self._forms: dict[str, FormTracker] = {}
        self._empty_states: set[str] = set()
        self._unsubscribers = []

        if subscribe:
            self._unsubscribers.append(analytics.add_route_listener(self._on_route_change))
            self._unsubscribers.append(analytics.add_unload_listener(self.track_all_form_abandonments))

    @property
    def registry(self) -> FunnelRegistry:
        return self._registry or get_funnel_registry()

    def close(self) -> None:
        """Stop listening to navigation signals."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    def _on_route_change(self, previous_path: str, new_path: str) -> None:
        count = self.track_all_form_abandonments()
        if count:
            logger.debug(f"Route change {previous_path} -> {new_path} abandoned {count} forms")

    # =========================================================================
    # Forms
    # =========================================================================

    def start_form_tracking(self, form_name: str, current_step: int = 1, total_steps: int = 1) -> FormTracker:
        """
        Start (or restart) tracking a form.

        A form already being tracked under the same name is torn down first.
        """
        existing = self._forms.pop(form_name, None)
        if existing is not None:
            existing.teardown()

        tracker = FormTracker(
            self._analytics,
            form_name,
            current_step=current_step,
            total_steps=total_steps,
            clock=self._clock,
        )
        tracker.start()
        self._forms[form_name] = tracker
        return tracker

    def get_form(self, form_name: str) -> Optional[FormTracker]:
        return self._forms.get(form_name)

    def active_forms(self) -> list[str]:
        return list(self._forms)

    def track_field_interaction(self, form_name: str, field_name: str) -> None:
        tracker = self._forms.get(form_name)
        if tracker:
            tracker.field_interaction(field_name)

    def track_field_error(self, form_name: str, field_name: str) -> None:
        tracker = self._forms.get(form_name)
        if tracker:
            tracker.field_error(field_name)

    def clear_field_error(self, form_name: str, field_name: str) -> None:
        tracker = self._forms.get(form_name)
        if tracker:
            tracker.clear_field_error(field_name)

    def mark_form_submitted(self, form_name: str) -> None:
        tracker = self._forms.pop(form_name, None)
        if tracker:
            tracker.submit()

    def track_form_abandonment(self, form_name: str) -> bool:
        """Tear down one form. Returns True if abandonment was reported."""
        tracker = self._forms.pop(form_name, None)
        if tracker is None:
            return False
        return tracker.teardown()

    def track_all_form_abandonments(self) -> int:
        """Tear down every active form. Returns how many were reported."""
        trackers = list(self._forms.values())
        self._forms.clear()
        return sum(1 for tracker in trackers if tracker.teardown())

    # =========================================================================
    # Validation
    # =========================================================================

    def track_validation_error(self, form_name: str, field_name: str, error_type: str) -> None:
        self._analytics.track.error_state_shown(
            error_type="validation",
            error_source=f"{form_name}/{field_name}",
            error_code=error_type,
        )

    def track_validation_errors(self, form_name: str, errors: Mapping[str, str]) -> None:
        """Report a failed submit as one summary event and record the failing fields."""
        fields = list(errors)
        self._analytics.funnel.step(
            funnel_name="form_validation",
            step_name="validation_failed",
            step_number=1,
            total_steps=1,
            custom_properties={
                "form_name": form_name,
                "error_count": len(fields),
                "error_fields": fields,
            },
        )
        for field_name in fields[:MAX_TRACKED_VALIDATION_FIELDS]:
            self.track_field_error(form_name, field_name)

    # =========================================================================
    # Empty states
    # =========================================================================

    def track_empty_state(self, location: str, reason: str, cta_shown: Optional[str] = None) -> bool:
        """Report an empty state once per location and reason."""
        key = f"{location}:{reason}"
        if key in self._empty_states:
            return False

        self._empty_states.add(key)
        self._analytics.funnel.empty_state_shown(empty_state_context=location, cta_shown=cta_shown)
        return True

    def reset_empty_state_tracking(self) -> None:
        self._empty_states.clear()

    # =========================================================================
    # Permissions, network, auth
    # =========================================================================

    def track_permission(
        self,
        permission: str,
        action: Union[PermissionAction, str],
        context: str,
    ) -> None:
        try:
            action = PermissionAction(action)
        except ValueError:
            logger.warning(f"Ignored unknown permission action {action!r}")
            return
        outcome = f"{permission}_{action.value}"

        if action in (PermissionAction.DENIED, PermissionAction.DISMISSED):
            self._analytics.track.error_state_shown(
                error_type="permission",
                error_source=context,
                error_code=outcome,
            )

        self._analytics.funnel.step(
            funnel_name="permission_flow",
            step_name=outcome,
            step_number=1 if action == PermissionAction.REQUESTED else 2,
            total_steps=2,
            custom_properties={"permission_type": permission, "context": context},
        )

    def track_network_failure(
        self,
        operation: str,
        status_code: Optional[int] = None,
        retry_count: int = 0,
        endpoint: Optional[str] = None,
    ) -> None:
        self._analytics.track.error_state_shown(
            error_type="network",
            error_source=operation,
            error_code=f"HTTP_{status_code}" if status_code else "NETWORK_ERROR",
        )

        if retry_count > 0:
            self._analytics.funnel.step(
                funnel_name="error_recovery",
                step_name="retry_attempted",
                step_number=retry_count,
                total_steps=MAX_RETRIES,
                custom_properties={
                    "operation": operation,
                    "endpoint": sanitize_page_path(endpoint) if endpoint else None,
                },
            )

    def track_session_expired(self, context: str) -> None:
        self._analytics.track.error_state_shown(
            error_type="auth",
            error_source=context,
            error_code="SESSION_EXPIRED",
        )

    def track_auth_redirect(self, intended_destination: str) -> None:
        self._analytics.funnel.step(
            funnel_name="auth_interrupt",
            step_name="redirect_to_login",
            step_number=1,
            total_steps=2,
            custom_properties={"intended_destination": sanitize_page_path(intended_destination)},
        )

    def track_drop_off(
        self,
        category: Union[DropOffCategory, str],
        context: str,
        funnel: Optional[str] = None,
        path: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        """
        Report a generic drop-off.

        total_steps is 0 to mark the event as a drop-off rather than progress.
        """
        try:
            category = DropOffCategory(category)
        except ValueError:
            logger.warning(f"Ignored unknown drop-off category {category!r}")
            return
        step = None
        if funnel and path:
            step = self.registry.get_current_funnel_step(funnel, path)

        self._analytics.funnel.step(
            funnel_name=funnel or "general",
            step_name=f"dropoff_{category.value}",
            step_number=step.position if step else 0,
            total_steps=0,
            custom_properties={
                "category": category.value,
                "context": context,
                **(details or {}),
            },
        )
