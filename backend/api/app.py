"""
FastAPI application factory.

Creates and configures the debug console application.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from shared.config import get_settings
from shared.exceptions import TelemetryError
from .dependencies import get_container
from .routes import debug, health

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Runs startup and shutdown logic.
    """
    # Startup
    settings = get_settings()
    logger.info(f"Starting {settings.app_name} debug console on {settings.host}:{settings.port}")
    yield
    # Shutdown
    await get_container().analytics.flush()
    logger.info(f"Shutting down {settings.app_name} debug console")


async def telemetry_error_handler(request: Request, exc: TelemetryError) -> JSONResponse:
    """Render TelemetryError subclasses in the standard error shape."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI instance
    """
    settings = get_settings()

    app = FastAPI(
        title=f"{settings.app_name} Debug Console",
        description="Inspection surface for the anonymized telemetry engine",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/api/docs" if settings.debug else None,
        redoc_url="/api/redoc" if settings.debug else None,
    )

    app.add_exception_handler(TelemetryError, telemetry_error_handler)

    # Register routes
    app.include_router(health.router, prefix="/api", tags=["health"])
    app.include_router(debug.router, prefix="/api/debug", tags=["debug"])

    return app


# Application instance for uvicorn
app = create_app()
