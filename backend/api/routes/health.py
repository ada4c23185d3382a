"""
Health check endpoints.

Provides endpoints for monitoring the debug console.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from shared.config import Settings
from api.dependencies import get_app_settings

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str
    environment: str


class ReadinessResponse(BaseModel):
    """Readiness check response model."""

    status: str
    analytics: str
    warnings: list[str]


@router.get("/health", response_model=HealthResponse)
async def health_check(settings: Settings = Depends(get_app_settings)) -> HealthResponse:
    """
    Basic health check endpoint.

    Returns 200 if the API is running.
    """
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        environment=settings.environment.value,
    )


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check(settings: Settings = Depends(get_app_settings)) -> ReadinessResponse:
    """
    Readiness check endpoint.

    Reports whether events are delivered anywhere beyond the data layer.
    """
    if settings.disabled:
        analytics = "disabled"
    elif settings.ga4_measurement_id:
        analytics = "ga4"
    else:
        analytics = "data_layer_only"

    return ReadinessResponse(
        status="ready",
        analytics=analytics,
        warnings=settings.validate_analytics(),
    )
