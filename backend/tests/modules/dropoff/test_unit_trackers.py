"""Tests for the per-unit abandonment trackers."""

import pytest

from modules.dropoff import (
    EmptyStateWatcher,
    ErrorStateTracker,
    FormTracker,
    TrackingPhase,
    WizardTracker,
)


class TestFormTracker:
    def test_lifecycle(self, analytics, clock):
        form = FormTracker(analytics, "post_ride", clock=clock)
        assert form.phase == TrackingPhase.IDLE

        form.start()
        assert form.phase == TrackingPhase.STARTED
        assert form.state.started_at == clock.now

        form.field_interaction("origin")
        assert form.state.last_field_focused == "origin"

        assert form.teardown() is True
        assert form.phase == TrackingPhase.TORN_DOWN
        assert form.teardown() is False

    def test_reentrant_teardown_reports_once(self, analytics, clock, events_named):
        form = FormTracker(analytics, "post_ride", clock=clock)
        reentered = []

        class TearingDownSink:
            name = "tearing_down"

            def send_event(self, payload):
                if payload["event_name"] == "form_abandoned":
                    reentered.append(form.teardown())

            def send_page_view(self, page_path, page_title=None):
                pass

            def set_user_properties(self, properties):
                pass

            def clear_user_properties(self):
                pass

        analytics.publisher.add_sink(TearingDownSink())
        form.start()
        form.field_interaction("origin")

        assert form.teardown() is True
        assert reentered == [False]
        assert len(events_named("form_abandoned")) == 1

    def test_ignores_fields_before_start(self, analytics, clock):
        form = FormTracker(analytics, "post_ride", clock=clock)
        form.field_interaction("origin")
        form.field_error("origin")
        assert form.state.fields_interacted == set()
        assert form.state.fields_with_errors == set()

    def test_ignores_fields_after_submit(self, analytics, clock, events_named):
        form = FormTracker(analytics, "post_ride", clock=clock)
        form.start()
        form.submit()
        form.field_interaction("origin")
        assert form.teardown() is False
        assert events_named("form_abandoned") == []
        assert form.phase == TrackingPhase.SUBMITTED

    def test_restart_clears_fields(self, analytics, clock):
        form = FormTracker(analytics, "post_ride", clock=clock)
        form.start()
        form.field_interaction("origin")
        form.teardown()
        form.start()
        assert form.state.fields_interacted == set()

    def test_report_errors(self, analytics, clock, events_named):
        form = FormTracker(analytics, "signup", clock=clock)
        form.start()
        form.report_errors(["email", "password"])
        assert form.state.fields_with_errors == {"email", "password"}
        record = events_named("error_state_shown")[0]
        assert record["analytics_error_type"] == "validation"
        assert record["analytics_error_source"] == "signup"

    def test_submit_before_last_step(self, analytics, clock, events_named):
        form = FormTracker(analytics, "post_ride", current_step=1, total_steps=3, clock=clock)
        form.start()
        form.submit()
        assert [r["analytics_step_name"] for r in events_named("funnel_step")] == ["step_1"]


class TestWizardTracker:
    @pytest.fixture
    def abandonments(self):
        return []

    @pytest.fixture
    def wizard(self, analytics, clock, abandonments):
        return WizardTracker(
            analytics,
            "fare_calculator",
            total_steps=3,
            clock=clock,
            on_abandonment=lambda step, fields: abandonments.append((step, fields)),
        )

    def test_start_once(self, wizard, events_named):
        wizard.start()
        wizard.start()
        assert len(events_named("tool_interaction")) == 1

    def test_step_view(self, wizard, events_named):
        wizard.step_view(1)
        interaction = events_named("tool_interaction")[0]
        step = events_named("funnel_step")[0]
        assert interaction["analytics_step_name"] == "step_1"
        assert step["analytics_funnel_name"] == "wizard_fare_calculator"
        assert wizard.current_step == 1

    def test_step_complete_buckets_time(self, wizard, clock, events_named):
        wizard.step_view(1, "route")
        clock.advance(75)
        wizard.step_complete(1, "route")

        step = events_named("funnel_step")[-1]
        assert step["analytics_step_name"] == "route_complete"
        assert step["analytics_custom_properties"] == {"time_on_step_bucket": "1-5m"}

    def test_abandon_mid_way(self, wizard, abandonments, events_named):
        wizard.step_view(1)
        wizard.field_fill("origin")
        wizard.step_view(2)

        assert wizard.teardown() is True
        assert wizard.teardown() is False

        record = events_named("form_abandoned")[0]
        assert record["analytics_form_name"] == "fare_calculator"
        assert record["analytics_fields_filled"] == ["origin"]
        assert abandonments == [(2, ["origin"])]
        assert wizard.current_step == 0

    def test_last_step_is_not_abandonment(self, wizard, events_named):
        wizard.step_view(3)
        assert wizard.teardown() is False

    def test_complete(self, wizard, events_named):
        wizard.step_view(1)
        wizard.field_fill("seats")
        wizard.complete()

        assert wizard.teardown() is False
        step = events_named("funnel_step")[-1]
        assert step["analytics_step_name"] == "wizard_complete"
        assert step["analytics_step_number"] == 4
        assert step["analytics_custom_properties"] == {"fields_completed": ["seats"]}

    def test_never_started(self, wizard, events_named):
        assert wizard.teardown() is False
        assert events_named("form_abandoned") == []

    def test_back(self, wizard, events_named):
        wizard.back(2, 1)
        assert events_named("tool_interaction")[0]["analytics_step_name"] == "back_2_to_1"

    def test_failing_callback_is_isolated(self, analytics, clock):
        def broken(step, fields):
            raise RuntimeError("callback bug")

        wizard = WizardTracker(analytics, "fare_calculator", total_steps=3, clock=clock, on_abandonment=broken)
        wizard.step_view(1)
        assert wizard.teardown() is True


class TestEmptyStateWatcher:
    def test_once_per_episode(self, analytics, events_named):
        watcher = EmptyStateWatcher(analytics, "my_rides", cta_shown="post_ride")
        assert watcher.update(True) is True
        assert watcher.update(True) is False
        assert watcher.update(False) is False
        assert watcher.update(True) is True
        assert len(events_named("empty_state_shown")) == 2


class TestErrorStateTracker:
    def test_distinct_errors(self, analytics, events_named):
        tracker = ErrorStateTracker(analytics, "inbox")
        assert tracker.track("network", "HTTP_500") is True
        assert tracker.track("network", "HTTP_500") is False
        assert tracker.track("network") is True
        assert len(events_named("error_state_shown")) == 2

    def test_clear(self, analytics, events_named):
        tracker = ErrorStateTracker(analytics, "inbox")
        tracker.track("server")
        tracker.clear()
        assert tracker.track("server") is True
