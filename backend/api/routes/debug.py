"""
Debug inspection endpoints.

Expose the current session, user context, flow stage and recent emissions
for manual verification. Every route answers 404 unless debug mode is on.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from shared.config import Settings
from api.dependencies import (
    get_analytics_service,
    get_app_settings,
    get_dropoff_tracker,
    get_experiments,
    get_funnel_registry,
    get_vitals_reporter,
)
from modules.dropoff import DropOffTracker
from modules.events import Analytics
from modules.experiments import ExperimentAssignment, ExperimentService, UnknownVariantError
from modules.funnels import FunnelRegistry
from modules.privacy import sanitize_page_path
from modules.vitals import WebVitalsReporter


def require_debug(settings: Settings = Depends(get_app_settings)) -> None:
    """Hide the debug surface outside debug mode."""
    if not settings.debug:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")


router = APIRouter(dependencies=[Depends(require_debug)])


class EventsResponse(BaseModel):
    """Recent emissions."""

    data_layer: list[dict[str, Any]]
    diagnostics: list[dict[str, Any]]
    summary: dict[str, int]


class TestEventResponse(BaseModel):
    accepted: bool
    event: str


class FunnelMatch(BaseModel):
    funnel_id: str
    step_id: str
    position: int
    total_steps: int
    progress: int


class FunnelMatchResponse(BaseModel):
    path: str
    matches: list[FunnelMatch]


class ExperimentState(BaseModel):
    id: str
    name: str
    enabled: bool
    variants: list[str]


class ExperimentsResponse(BaseModel):
    experiments: list[ExperimentState]
    assignments: list[ExperimentAssignment]


class WebVitalRequest(BaseModel):
    metric_name: str = Field(..., description="LCP, CLS, INP, FCP or TTFB")
    value: float


class WebVitalResponse(BaseModel):
    metric_name: str
    rating: Optional[str]


@router.get("/state")
async def get_state(analytics: Analytics = Depends(get_analytics_service)) -> dict[str, Any]:
    """Current session, user context, flow stage and configuration."""
    return analytics.get_debug_state()


@router.get("/events", response_model=EventsResponse)
async def get_events(
    limit: int = Query(50, ge=1, le=200),
    analytics: Analytics = Depends(get_analytics_service),
) -> EventsResponse:
    """Most recent data-layer records and diagnostic mirror entries."""
    data_layer = analytics.data_layer
    diagnostics = analytics.diagnostics
    records = data_layer.records if data_layer else []
    mirrored = diagnostics.records if diagnostics else []

    return EventsResponse(
        data_layer=records[-limit:],
        diagnostics=mirrored[-limit:],
        summary=data_layer.summary() if data_layer else {},
    )


@router.post("/test-event", response_model=TestEventResponse)
async def send_test_event(analytics: Analytics = Depends(get_analytics_service)) -> TestEventResponse:
    """Push a marker record so delivery can be checked end to end."""
    accepted = analytics.push_event(
        {
            "event": "analytics_test",
            "test_timestamp": datetime.now(timezone.utc).isoformat(),
        }
    )
    return TestEventResponse(accepted=accepted, event="analytics_test")


@router.post("/reset")
async def reset_state(
    analytics: Analytics = Depends(get_analytics_service),
    dropoff: DropOffTracker = Depends(get_dropoff_tracker),
) -> dict[str, Any]:
    """Return to the signed-out state and report the result."""
    dropoff.track_all_form_abandonments()
    analytics.reset()
    return analytics.get_debug_state()


@router.get("/funnels/match", response_model=FunnelMatchResponse)
async def match_funnels(
    path: str = Query(..., description="Route to match, e.g. /rides/abc-123"),
    registry: FunnelRegistry = Depends(get_funnel_registry),
) -> FunnelMatchResponse:
    """Which step of each funnel a route belongs to."""
    matches = [
        FunnelMatch(
            funnel_id=funnel.id,
            step_id=step.id,
            position=step.position,
            total_steps=funnel.total_steps,
            progress=registry.get_funnel_progress(funnel.id, step.id),
        )
        for funnel, step in registry.match_all(path)
    ]
    return FunnelMatchResponse(path=sanitize_page_path(path), matches=matches)


@router.post("/web-vital", response_model=WebVitalResponse)
async def report_web_vital(
    request: WebVitalRequest,
    reporter: WebVitalsReporter = Depends(get_vitals_reporter),
) -> WebVitalResponse:
    """Feed a metric through the web vitals reporter."""
    rating = reporter.report(request.metric_name, request.value)
    return WebVitalResponse(metric_name=request.metric_name, rating=rating)


@router.get("/experiments", response_model=ExperimentsResponse)
async def get_experiment_state(experiments: ExperimentService = Depends(get_experiments)) -> ExperimentsResponse:
    """Registered experiments and the current user's stored assignments."""
    return ExperimentsResponse(
        experiments=[
            ExperimentState(
                id=experiment.id,
                name=experiment.name,
                enabled=experiment.enabled,
                variants=[variant.id for variant in experiment.variants],
            )
            for experiment in experiments.list_experiments()
        ],
        assignments=experiments.get_active(),
    )


@router.post("/experiments/{experiment_id}/force", response_model=ExperimentAssignment)
async def force_experiment_variant(
    experiment_id: str,
    variant: str = Query(..., description="Variant id to pin the current user to"),
    experiments: ExperimentService = Depends(get_experiments),
) -> ExperimentAssignment:
    """Pin the current user to a variant."""
    assignment = experiments.force_variant(experiment_id, variant)
    if assignment is None:
        raise UnknownVariantError(experiment_id, variant)
    return assignment


@router.delete("/experiments")
async def clear_experiments(experiments: ExperimentService = Depends(get_experiments)) -> dict[str, Any]:
    """Forget every stored assignment."""
    experiments.clear()
    return {"cleared": True}
