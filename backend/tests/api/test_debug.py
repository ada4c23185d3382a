"""Tests for the debug inspection endpoints."""

import pytest
from fastapi.testclient import TestClient

from api import create_app


DEBUG_ROUTES = [
    ("get", "/api/debug/state"),
    ("get", "/api/debug/events"),
    ("post", "/api/debug/test-event"),
    ("post", "/api/debug/reset"),
    ("get", "/api/debug/funnels/match?path=/rides/1"),
    ("get", "/api/debug/experiments"),
    ("post", "/api/debug/experiments/cta_copy_test/force?variant=action"),
    ("delete", "/api/debug/experiments"),
]


class TestDebugGuard:
    @pytest.mark.parametrize("method, path", DEBUG_ROUTES)
    def test_hidden_outside_debug(self, client, method, path):
        """Every debug route answers 404 unless debug mode is on."""
        response = getattr(client, method)(path)
        assert response.status_code == 404

    def test_web_vital_hidden_outside_debug(self, client):
        response = client.post("/api/debug/web-vital", json={"metric_name": "LCP", "value": 1000})
        assert response.status_code == 404


class TestDebugState:
    def test_state(self, debug_client):
        response = debug_client.get("/api/debug/state")
        assert response.status_code == 200
        data = response.json()
        assert data["flow_stage"] == "visit"
        assert data["initialized"] is True
        assert data["user_context"]["anonymous_id"].startswith("anon_")
        assert data["config"]["debug"] is True
        assert data["sinks"] == ["data_layer", "diagnostics"]

    def test_reset_after_identify(self, make_container):
        container = make_container(debug=True)
        container.analytics.identify("user-42", {"total_rides_offered": 1})
        container.analytics.track.ride_created(seats=2, is_recurring=False)

        with TestClient(create_app()) as client:
            data = client.post("/api/debug/reset").json()

        assert data["flow_stage"] == "visit"
        assert data["user_context"]["is_authenticated"] is False
        assert data["user_context"]["anonymous_id"].startswith("anon_")

    def test_reset_abandons_active_forms(self, make_container):
        container = make_container(debug=True)
        form = container.dropoff.start_form_tracking("post_ride")
        form.field_interaction("origin")

        with TestClient(create_app()) as client:
            summary = client.post("/api/debug/reset").json()["data_layer_summary"]

        assert summary["form_abandoned"] == 1


class TestDebugEvents:
    def test_test_event(self, debug_client):
        response = debug_client.post("/api/debug/test-event")
        assert response.status_code == 200
        assert response.json() == {"accepted": True, "event": "analytics_test"}

        events = debug_client.get("/api/debug/events").json()
        assert events["data_layer"][-1]["event"] == "analytics_test"
        assert events["summary"]["analytics_test"] == 1

    def test_events_limit(self, debug_client):
        for _ in range(3):
            debug_client.post("/api/debug/test-event")
        events = debug_client.get("/api/debug/events", params={"limit": 2}).json()
        assert len(events["data_layer"]) == 2

    def test_events_limit_validation(self, debug_client):
        assert debug_client.get("/api/debug/events", params={"limit": 0}).status_code == 422

    def test_diagnostics_mirror(self, make_container):
        container = make_container(debug=True)
        container.analytics.track.message_sent(message_context="general", is_first_message=True)

        with TestClient(create_app()) as client:
            diagnostics = client.get("/api/debug/events").json()["diagnostics"]

        assert diagnostics[-1]["kind"] == "message_sent"


class TestDebugFunnels:
    def test_match(self, debug_client):
        response = debug_client.get("/api/debug/funnels/match", params={"path": "/rides/abc-123"})
        assert response.status_code == 200
        data = response.json()
        assert data["path"] == "/rides/:id"

        matches = {m["funnel_id"]: m for m in data["matches"]}
        assert matches["rider_journey"]["step_id"] == "ride_viewed"
        assert matches["rider_journey"]["position"] == 3
        assert matches["rider_journey"]["total_steps"] == 7
        assert matches["rider_journey"]["progress"] == 43
        assert matches["driver_journey"]["step_id"] == "ride_created"
        assert "onboarding" not in matches

    def test_match_sanitizes_reported_path(self, debug_client):
        data = debug_client.get("/api/debug/funnels/match", params={"path": "/bookings/981"}).json()
        assert data["path"] == "/bookings/:id"
        assert [m["funnel_id"] for m in data["matches"]] == ["driver_journey", "rider_journey"]

    def test_no_match(self, debug_client):
        data = debug_client.get("/api/debug/funnels/match", params={"path": "/settings"}).json()
        assert data["matches"] == []


class TestDebugWebVitals:
    def test_report(self, debug_client):
        response = debug_client.post("/api/debug/web-vital", json={"metric_name": "CLS", "value": 0.3})
        assert response.status_code == 200
        assert response.json() == {"metric_name": "CLS", "rating": "poor"}

        summary = debug_client.get("/api/debug/events").json()["summary"]
        assert summary["web_vitals"] == 1

    def test_unknown_metric(self, debug_client):
        response = debug_client.post("/api/debug/web-vital", json={"metric_name": "FID", "value": 5})
        assert response.json() == {"metric_name": "FID", "rating": None}


class TestDebugExperiments:
    def test_list(self, debug_client):
        data = debug_client.get("/api/debug/experiments").json()
        assert [e["id"] for e in data["experiments"]] == ["signup_flow_v2", "ride_card_redesign", "cta_copy_test"]
        assert all(e["enabled"] is False for e in data["experiments"])
        assert data["assignments"] == []

    def test_force_and_clear(self, debug_client):
        response = debug_client.post("/api/debug/experiments/cta_copy_test/force", params={"variant": "action"})
        assert response.status_code == 200
        assert response.json()["variant_id"] == "action"
        assert response.json()["is_control"] is False

        assignments = debug_client.get("/api/debug/experiments").json()["assignments"]
        assert [a["experiment_id"] for a in assignments] == ["cta_copy_test"]

        assert debug_client.delete("/api/debug/experiments").json() == {"cleared": True}
        assert debug_client.get("/api/debug/experiments").json()["assignments"] == []

    def test_force_unknown_variant(self, debug_client):
        response = debug_client.post("/api/debug/experiments/cta_copy_test/force", params={"variant": "nope"})
        assert response.status_code == 404
        assert response.json()["error"] == "UNKNOWN_VARIANT"
