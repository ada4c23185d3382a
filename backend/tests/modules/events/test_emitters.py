"""Tests for the typed emitter namespaces and the analytics context."""

import pytest
from pydantic import ValidationError

from shared.models import FlowStage
from modules.events import AnalyticsContext, UNKNOWN_BUCKET
from modules.session import UserContext


class TestTrackEmitters:
    def test_ride_created_buckets(self, analytics):
        payload = analytics.track.ride_created(seats=5, is_recurring=False, distance_km=7)
        assert payload["seats_bucket"] == "5+"
        assert payload["distance_bucket"] == "<10"

    def test_missing_values_are_unknown(self, analytics):
        payload = analytics.track.ride_accepted()
        assert payload["time_to_accept_bucket"] == UNKNOWN_BUCKET
        assert payload["acceptance_rate_bucket"] == UNKNOWN_BUCKET

    def test_unbucketable_input_is_dropped(self, analytics, data_layer):
        assert analytics.track.ride_created(seats=None, is_recurring=False) is None
        assert analytics.track.ride_accepted(time_to_accept_hours="soon") is None
        assert data_layer.records == []

    def test_ride_accepted_buckets(self, analytics):
        payload = analytics.track.ride_accepted(time_to_accept_hours=2, acceptance_rate=0.85)
        assert payload["time_to_accept_bucket"] == "1-4h"
        assert payload["acceptance_rate_bucket"] == "80%+"
        assert payload["flow_stage"] == "ride_accept"

    def test_profile_completed(self, analytics):
        payload = analytics.track.profile_completed(("photo", "bio"), time_to_complete_seconds=95)
        assert payload["fields_completed"] == ["photo", "bio"]
        assert payload["time_to_complete_bucket"] == "1-5m"
        assert payload["flow_stage"] == "profile_complete"

    def test_conversion(self, analytics):
        payload = analytics.track.conversion("first_booking")
        assert payload["event_name"] == "funnel_step"
        assert payload["funnel_name"] == "conversion"
        assert payload["step_name"] == "first_booking"
        assert (payload["step_number"], payload["total_steps"]) == (1, 1)
        assert payload["flow_stage"] == "conversion"

    @pytest.mark.parametrize(
        "emit, stage",
        [
            (lambda a: a.track.sign_up_complete("google"), FlowStage.SIGNUP_COMPLETE),
            (lambda a: a.track.message_sent("booking_chat", False), FlowStage.MESSAGING),
            (lambda a: a.track.whatsapp_handoff("booking_confirmed"), FlowStage.HANDOFF),
        ],
    )
    def test_milestones_move_stage(self, analytics, emit, stage):
        emit(analytics)
        assert analytics.context.flow_stage == stage


class TestFunnelEmitters:
    def test_step_sanitizes_custom_properties(self, analytics):
        payload = analytics.funnel.step(
            "post_ride",
            "step_2",
            2,
            3,
            custom_properties={"email": "a@b.com", "from": "/rides/981"},
        )
        assert payload["custom_properties"] == {"from": "/rides/:id"}

    def test_step_without_custom_properties(self, analytics):
        payload = analytics.funnel.step("post_ride", "step_1", 1, 3)
        assert "custom_properties" not in payload

    def test_negative_step_is_dropped(self, analytics, data_layer):
        assert analytics.funnel.step("post_ride", "step_0", -1, 3) is None
        assert data_layer.records == []

    def test_form_abandoned(self, analytics):
        payload = analytics.funnel.form_abandoned(
            "signup",
            {"password", "email"},
            ["password"],
            time_spent_seconds=40,
        )
        assert payload["fields_filled"] == ["email", "password"]
        assert payload["fields_with_errors"] == ["password"]
        assert payload["time_spent_bucket"] == "30s-1m"

    def test_empty_state(self, analytics):
        payload = analytics.funnel.empty_state_shown("search_results", cta_shown="post_ride")
        assert payload["empty_state_context"] == "search_results"
        assert payload["cta_shown"] == "post_ride"

    def test_route_step(self, analytics):
        analytics.route_changed("/rides/abc-123")
        payload = analytics.funnel.route_step("rider")
        assert payload["funnel_name"] == "rider_journey"
        assert payload["step_name"] == "ride_viewed"
        assert payload["step_number"] == 3
        assert payload["total_steps"] == 7

    def test_route_step_explicit_path(self, analytics):
        payload = analytics.funnel.route_step("onboarding", "/verify-email")
        assert payload["step_name"] == "signup_complete"

    def test_route_step_without_match(self, analytics, data_layer):
        assert analytics.funnel.route_step("onboarding", "/settings") is None
        assert analytics.funnel.route_step("nope", "/") is None
        assert data_layer.records == []


class TestPerformanceAndTools:
    def test_cls_keeps_three_decimals(self, analytics):
        payload = analytics.performance.web_vital("CLS", 0.123456, "needs-improvement")
        assert payload["metric_value"] == 0.123

    def test_timings_are_whole_milliseconds(self, analytics):
        payload = analytics.performance.web_vital("LCP", 2345.6, "good")
        assert payload["metric_value"] == 2346

    def test_unknown_metric_is_dropped(self, analytics):
        assert analytics.performance.web_vital("FID", 12, "good") is None

    def test_tool_interaction(self, analytics):
        payload = analytics.tools.interaction("fare_calculator", "result_calculated", result_bucket="10-25")
        assert payload["tool_name"] == "fare_calculator"
        assert payload["result_bucket"] == "10-25"
        assert "step_name" not in payload


class TestAnalyticsContext:
    def test_defaults(self):
        context = AnalyticsContext()
        assert context.user_context is None
        assert context.flow_stage == FlowStage.VISIT
        assert context.current_path == "/"

    def test_update_merges(self):
        context = AnalyticsContext()
        context.update_user_context(anonymous_id="anon_1")
        updated = context.update_user_context(user_role="driver")
        assert updated.anonymous_id == "anon_1"
        assert updated.user_role.value == "driver"

    def test_update_rejects_pii(self):
        context = AnalyticsContext(user_context=UserContext(anonymous_id="anon_1"))
        with pytest.raises(ValidationError):
            context.update_user_context(anonymous_id="someone@example.com")
        assert context.user_context.anonymous_id == "anon_1"

    def test_set_flow_stage_accepts_strings(self):
        context = AnalyticsContext()
        assert context.set_flow_stage("ride_search") == FlowStage.RIDE_SEARCH
        with pytest.raises(ValueError):
            context.set_flow_stage("teleport")

    def test_reset(self):
        context = AnalyticsContext(
            user_context=UserContext(anonymous_id="user_abc", user_role="both", is_authenticated=True),
            flow_stage=FlowStage.HANDOFF,
        )
        user = context.reset("anon_2")
        assert user.anonymous_id == "anon_2"
        assert user.is_authenticated is False
        assert user.user_role.value == "unknown"
        assert context.flow_stage == FlowStage.VISIT

    def test_empty_path_becomes_root(self):
        context = AnalyticsContext()
        context.set_current_path("")
        assert context.current_path == "/"

    def test_snapshot(self):
        context = AnalyticsContext(viewport_width=390)
        snapshot = context.snapshot()
        assert snapshot == {
            "initialized": False,
            "user_context": None,
            "flow_stage": "visit",
            "current_path": "/",
            "viewport_width": 390,
        }
