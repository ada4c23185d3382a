"""
Carpool Telemetry API package.

Provides the FastAPI debug console for the telemetry engine.
"""

from .app import app, create_app

__all__ = ["app", "create_app"]
