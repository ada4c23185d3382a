"""
Per-unit abandonment trackers.

Each tracker follows one form, wizard, list or error source. Teardown
triggers (unmount, route change, page unload) can arrive in any order and
any number of times; a started unit reports abandonment at most once.
"""

import logging
import time
from typing import TYPE_CHECKING, Callable, Iterable, Optional

from modules.privacy import buckets

from .models import FormTrackingState, TrackingPhase

if TYPE_CHECKING:
    from modules.events import Analytics

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class FormTracker:
    """
    Tracks one form through idle -> started -> (submitted | torn_down).

    Example:
        form = FormTracker(analytics, "post_ride")
        form.start()
        form.field_interaction("origin")
        form.teardown()   # emits form_abandoned
        form.teardown()   # no-op
    """

    def __init__(
        self,
        analytics: "Analytics",
        form_name: str,
        current_step: int = 1,
        total_steps: int = 1,
        clock: Optional[Clock] = None,
    ):
        self._analytics = analytics
        self._clock = clock or time.monotonic
        self.current_step = current_step
        self.total_steps = total_steps
        self.state = FormTrackingState(form_name=form_name)

    @property
    def form_name(self) -> str:
        return self.state.form_name

    @property
    def phase(self) -> TrackingPhase:
        return self.state.phase

    @property
    def is_multi_step(self) -> bool:
        return self.total_steps > 1

    def start(self) -> None:
        """Begin a tracked session of the form."""
        self.state.begin(self._clock())
        if self.is_multi_step:
            self._analytics.funnel.step(
                funnel_name=self.form_name,
                step_name=f"step_{self.current_step}",
                step_number=self.current_step,
                total_steps=self.total_steps,
            )

    def field_interaction(self, field_name: str) -> None:
        if self.state.phase != TrackingPhase.STARTED:
            return
        self.state.fields_interacted.add(field_name)
        self.state.last_field_focused = field_name

    def field_error(self, field_name: str) -> None:
        if self.state.phase != TrackingPhase.STARTED:
            return
        self.state.fields_with_errors.add(field_name)

    def clear_field_error(self, field_name: str) -> None:
        self.state.fields_with_errors.discard(field_name)

    def report_errors(self, field_names: Iterable[str]) -> None:
        """Record failed fields and report a validation error state."""
        for name in field_names:
            self.field_error(name)
        self._analytics.track.error_state_shown(error_type="validation", error_source=self.form_name)

    def submit(self) -> None:
        """Mark the form as completed; abandonment can no longer be reported."""
        self.state.started_at = None
        self.state.phase = TrackingPhase.SUBMITTED

        if self.is_multi_step and self.current_step == self.total_steps:
            self._analytics.funnel.step(
                funnel_name=self.form_name,
                step_name="complete",
                step_number=self.total_steps + 1,
                total_steps=self.total_steps,
            )

    def teardown(self) -> bool:
        """
        Report abandonment if the form was started, touched and not submitted.

        Returns:
            True if a form_abandoned event was emitted
        """
        state = self.state
        abandoned = state.started_at is not None and bool(state.fields_interacted)
        fields_filled = set(state.fields_interacted)
        fields_with_errors = set(state.fields_with_errors)
        started_at = state.started_at

        # clear before emitting so a re-entrant teardown finds nothing to report
        if state.phase == TrackingPhase.STARTED:
            state.phase = TrackingPhase.TORN_DOWN
        state.clear()

        if abandoned:
            self._analytics.funnel.form_abandoned(
                form_name=self.form_name,
                fields_filled=fields_filled,
                fields_with_errors=fields_with_errors,
                time_spent_seconds=self._clock() - started_at,
            )
            logger.debug(f"Form '{self.form_name}' abandoned")
        return abandoned


class WizardTracker:
    """
    Tracks a multi-step tool.

    Leaving while somewhere in steps 1..total-1 counts as abandonment.
    complete() moves past the last step so no later teardown reports it.
    """

    def __init__(
        self,
        analytics: "Analytics",
        tool_name: str,
        total_steps: int,
        clock: Optional[Clock] = None,
        on_abandonment: Optional[Callable[[int, list[str]], None]] = None,
    ):
        self._analytics = analytics
        self._clock = clock or time.monotonic
        self._on_abandonment = on_abandonment
        self.tool_name = tool_name
        self.total_steps = total_steps
        self.current_step = 0
        self.fields_completed: set[str] = set()
        self._step_started_at: Optional[float] = None
        self._started = False

    @property
    def funnel_name(self) -> str:
        return f"wizard_{self.tool_name}"

    def start(self) -> None:
        if self._started:
            return
        self._started = True
        self._analytics.tools.interaction(tool_name=self.tool_name, interaction_type="tool_started")

    def step_view(self, step_number: int, step_name: Optional[str] = None) -> None:
        self.current_step = step_number
        self._step_started_at = self._clock()
        name = step_name or f"step_{step_number}"

        self._analytics.tools.interaction(
            tool_name=self.tool_name,
            interaction_type="step_changed",
            step_name=name,
        )
        self._analytics.funnel.step(
            funnel_name=self.funnel_name,
            step_name=name,
            step_number=step_number,
            total_steps=self.total_steps,
        )

    def step_complete(self, step_number: int, step_name: Optional[str] = None) -> None:
        name = f"{step_name or f'step_{step_number}'}_complete"

        self._analytics.tools.interaction(
            tool_name=self.tool_name,
            interaction_type="step_changed",
            step_name=name,
        )
        self._analytics.funnel.step(
            funnel_name=self.funnel_name,
            step_name=name,
            step_number=step_number,
            total_steps=self.total_steps,
            custom_properties={"time_on_step_bucket": buckets.time_seconds(self._time_on_step())},
        )

    def field_fill(self, field_name: str) -> None:
        self.fields_completed.add(field_name)

    def back(self, from_step: int, to_step: int) -> None:
        self._analytics.tools.interaction(
            tool_name=self.tool_name,
            interaction_type="step_changed",
            step_name=f"back_{from_step}_to_{to_step}",
        )

    def complete(self) -> None:
        self.current_step = self.total_steps + 1

        self._analytics.tools.interaction(tool_name=self.tool_name, interaction_type="result_calculated")
        self._analytics.funnel.step(
            funnel_name=self.funnel_name,
            step_name="wizard_complete",
            step_number=self.total_steps + 1,
            total_steps=self.total_steps,
            custom_properties={"fields_completed": sorted(self.fields_completed)},
        )

    def teardown(self) -> bool:
        """Report abandonment once if the wizard was left part-way."""
        if not 0 < self.current_step < self.total_steps:
            return False

        abandoned_at = self.current_step
        fields = sorted(self.fields_completed)
        self._analytics.funnel.form_abandoned(
            form_name=self.tool_name,
            fields_filled=fields,
            fields_with_errors=[],
            time_spent_seconds=self._time_on_step(),
        )
        self.current_step = 0
        self._step_started_at = None

        if self._on_abandonment is not None:
            try:
                self._on_abandonment(abandoned_at, fields)
            except Exception as e:
                logger.warning(f"Wizard abandonment callback failed: {e}")
        return True

    def _time_on_step(self) -> float:
        if self._step_started_at is None:
            return 0
        return self._clock() - self._step_started_at


class EmptyStateWatcher:
    """Reports an empty state once per episode of emptiness."""

    def __init__(self, analytics: "Analytics", context: str, cta_shown: Optional[str] = None):
        self._analytics = analytics
        self.context = context
        self.cta_shown = cta_shown
        self._reported = False

    def update(self, is_empty: bool) -> bool:
        """
        Feed the current emptiness.

        Returns:
            True if an empty_state_shown event was emitted
        """
        if not is_empty:
            self._reported = False
            return False
        if self._reported:
            return False

        self._reported = True
        self._analytics.funnel.empty_state_shown(
            empty_state_context=self.context,
            cta_shown=self.cta_shown,
        )
        return True


class ErrorStateTracker:
    """Reports each distinct error type/code of one source once until cleared."""

    def __init__(self, analytics: "Analytics", source: str):
        self._analytics = analytics
        self.source = source
        self._seen: set[str] = set()

    def track(self, error_type: str, error_code: Optional[str] = None) -> bool:
        key = f"{error_type}-{error_code or 'none'}"
        if key in self._seen:
            return False

        self._seen.add(key)
        self._analytics.track.error_state_shown(
            error_type=error_type,
            error_source=self.source,
            error_code=error_code,
        )
        return True

    def clear(self) -> None:
        self._seen.clear()
