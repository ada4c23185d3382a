"""Tests for the drop-off tracker registry."""

import pytest

from modules.dropoff import (
    MAX_TRACKED_VALIDATION_FIELDS,
    DropOffCategory,
    DropOffTracker,
    PermissionAction,
    TrackingPhase,
)


@pytest.fixture
def dropoff(analytics, registry, clock):
    tracker = DropOffTracker(analytics, registry=registry, clock=clock)
    yield tracker
    tracker.close()


class TestFormAbandonment:
    def test_route_change_reports_once(self, analytics, dropoff, events_named, clock):
        """Every teardown trigger after the first is a no-op."""
        dropoff.start_form_tracking("post_ride")
        dropoff.track_field_interaction("post_ride", "origin")
        clock.advance(45)

        analytics.route_changed("/home")
        analytics.page_unload()
        analytics.route_changed("/search")

        abandoned = events_named("form_abandoned")
        assert len(abandoned) == 1
        assert abandoned[0]["analytics_form_name"] == "post_ride"
        assert abandoned[0]["analytics_fields_filled"] == ["origin"]
        assert abandoned[0]["analytics_time_spent_bucket"] == "30s-1m"

    def test_abandonment_is_reported_from_previous_path(self, analytics, dropoff, events_named):
        analytics.route_changed("/post-ride")
        dropoff.start_form_tracking("post_ride")
        dropoff.track_field_interaction("post_ride", "origin")

        analytics.route_changed("/home")

        assert events_named("form_abandoned")[0]["analytics_page_path"] == "/post-ride"

    def test_page_unload_reports(self, analytics, dropoff, events_named):
        dropoff.start_form_tracking("signup")
        dropoff.track_field_interaction("signup", "email")
        analytics.page_unload()
        assert len(events_named("form_abandoned")) == 1
        assert dropoff.active_forms() == []

    def test_submitted_form_is_not_abandoned(self, analytics, dropoff, events_named):
        dropoff.start_form_tracking("signup")
        dropoff.track_field_interaction("signup", "email")
        dropoff.mark_form_submitted("signup")

        analytics.route_changed("/home")

        assert events_named("form_abandoned") == []

    def test_untouched_form_is_not_abandoned(self, analytics, dropoff, events_named):
        dropoff.start_form_tracking("signup")
        assert dropoff.track_form_abandonment("signup") is False
        assert events_named("form_abandoned") == []

    def test_errors_are_reported(self, dropoff, events_named):
        dropoff.start_form_tracking("signup")
        dropoff.track_field_interaction("signup", "email")
        dropoff.track_field_interaction("signup", "password")
        dropoff.track_field_error("signup", "password")
        dropoff.track_field_error("signup", "email")
        dropoff.clear_field_error("signup", "email")

        assert dropoff.track_form_abandonment("signup") is True
        record = events_named("form_abandoned")[0]
        assert record["analytics_fields_filled"] == ["email", "password"]
        assert record["analytics_fields_with_errors"] == ["password"]

    def test_restart_tears_down_previous(self, dropoff, events_named):
        first = dropoff.start_form_tracking("signup")
        dropoff.track_field_interaction("signup", "email")

        second = dropoff.start_form_tracking("signup")

        assert first.phase == TrackingPhase.TORN_DOWN
        assert second.phase == TrackingPhase.STARTED
        assert len(events_named("form_abandoned")) == 1

    def test_unknown_form_is_ignored(self, dropoff):
        dropoff.track_field_interaction("nope", "email")
        dropoff.mark_form_submitted("nope")
        assert dropoff.track_form_abandonment("nope") is False

    def test_track_all(self, dropoff):
        for name in ("a", "b", "c"):
            dropoff.start_form_tracking(name)
        dropoff.track_field_interaction("a", "x")
        dropoff.track_field_interaction("c", "x")
        assert dropoff.track_all_form_abandonments() == 2

    def test_close_unsubscribes(self, analytics, dropoff, events_named):
        dropoff.start_form_tracking("signup")
        dropoff.track_field_interaction("signup", "email")
        dropoff.close()

        analytics.route_changed("/home")

        assert events_named("form_abandoned") == []
        assert dropoff.active_forms() == ["signup"]

    def test_multi_step_form(self, dropoff, events_named):
        dropoff.start_form_tracking("post_ride", current_step=3, total_steps=3)
        dropoff.mark_form_submitted("post_ride")

        steps = events_named("funnel_step")
        assert [s["analytics_step_name"] for s in steps] == ["step_3", "complete"]
        assert steps[1]["analytics_step_number"] == 4


class TestValidation:
    def test_single_error(self, dropoff, events_named):
        dropoff.track_validation_error("signup", "email", "invalid_format")
        record = events_named("error_state_shown")[0]
        assert record["analytics_error_type"] == "validation"
        assert record["analytics_error_source"] == "signup/email"
        assert record["analytics_error_code"] == "invalid_format"

    def test_summary_caps_recorded_fields(self, dropoff, events_named):
        dropoff.start_form_tracking("profile")
        errors = {f"field_{i}": "required" for i in range(7)}

        dropoff.track_validation_errors("profile", errors)

        summary = events_named("funnel_step")[0]["analytics_custom_properties"]
        assert summary["error_count"] == 7
        assert summary["form_name"] == "profile"
        tracked = dropoff.get_form("profile").state.fields_with_errors
        assert len(tracked) == MAX_TRACKED_VALIDATION_FIELDS


class TestEmptyStates:
    def test_once_per_location_and_reason(self, dropoff, events_named):
        assert dropoff.track_empty_state("search", "no_results", cta_shown="post_ride") is True
        assert dropoff.track_empty_state("search", "no_results") is False
        assert dropoff.track_empty_state("search", "no_location") is True
        assert len(events_named("empty_state_shown")) == 2

    def test_reset(self, dropoff, events_named):
        dropoff.track_empty_state("search", "no_results")
        dropoff.reset_empty_state_tracking()
        assert dropoff.track_empty_state("search", "no_results") is True


class TestInterruptions:
    def test_permission_denied(self, dropoff, events_named):
        dropoff.track_permission("geolocation", PermissionAction.DENIED, "ride_search")

        error = events_named("error_state_shown")[0]
        assert error["analytics_error_type"] == "permission"
        assert error["analytics_error_code"] == "geolocation_denied"

        step = events_named("funnel_step")[0]
        assert step["analytics_funnel_name"] == "permission_flow"
        assert step["analytics_step_number"] == 2

    def test_permission_requested(self, dropoff, events_named):
        dropoff.track_permission("notifications", "requested", "onboarding")
        assert events_named("error_state_shown") == []
        assert events_named("funnel_step")[0]["analytics_step_number"] == 1

    def test_network_failure_with_status(self, dropoff, events_named):
        dropoff.track_network_failure("load_rides", status_code=503, retry_count=2, endpoint="/api/rides/42?page=1")

        assert events_named("error_state_shown")[0]["analytics_error_code"] == "HTTP_503"
        step = events_named("funnel_step")[0]
        assert step["analytics_step_number"] == 2
        assert step["analytics_total_steps"] == 3
        assert step["analytics_custom_properties"]["endpoint"] == "/api/rides/:id"

    def test_network_failure_without_status(self, dropoff, events_named):
        dropoff.track_network_failure("load_rides")
        assert events_named("error_state_shown")[0]["analytics_error_code"] == "NETWORK_ERROR"
        assert events_named("funnel_step") == []

    def test_session_expired(self, dropoff, events_named):
        dropoff.track_session_expired("booking")
        record = events_named("error_state_shown")[0]
        assert record["analytics_error_type"] == "auth"
        assert record["analytics_error_code"] == "SESSION_EXPIRED"

    def test_auth_redirect_is_sanitized(self, dropoff, events_named):
        dropoff.track_auth_redirect("/bookings/981?token=abc")
        props = events_named("funnel_step")[0]["analytics_custom_properties"]
        assert props == {"intended_destination": "/bookings/:id"}

    def test_generic_drop_off(self, dropoff, events_named):
        dropoff.track_drop_off(
            DropOffCategory.NETWORK_FAILURE,
            "ride_details",
            funnel="rider",
            path="/rides/abc-123",
            details={"attempts": 2},
        )
        record = events_named("funnel_step")[0]
        assert record["analytics_step_name"] == "dropoff_network_failure"
        assert record["analytics_step_number"] == 3
        assert record["analytics_total_steps"] == 0
        assert record["analytics_custom_properties"] == {
            "category": "network_failure",
            "context": "ride_details",
            "attempts": 2,
        }

    def test_generic_drop_off_without_funnel(self, dropoff, events_named):
        dropoff.track_drop_off("user_cancelled", "post_ride")
        record = events_named("funnel_step")[0]
        assert record["analytics_funnel_name"] == "general"
        assert record["analytics_step_number"] == 0

    def test_unknown_category_is_ignored(self, dropoff, data_layer):
        dropoff.track_drop_off("bored", "post_ride")
        assert data_layer.records == []

    def test_unknown_permission_action_is_ignored(self, dropoff, data_layer):
        dropoff.track_permission("location", "blocked", "search")
        assert data_layer.records == []
