"""
Shared infrastructure for the telemetry engine.

This package contains cross-cutting concerns that are used by multiple modules:
- config: Centralized settings management
- exceptions: Base exception classes
- models: Enumerations shared by every event
- cache: Single-flight memoized fetch cache

Note: Business logic should NOT go here. This is for infrastructure only.
"""

from .cache import CacheEntry, MemoizedCache, DEGRADED_TTL_MS, get_cache, reset_cache
from .config import Settings, get_settings
from .exceptions import (
    TelemetryError,
    NotFoundError,
    ValidationError,
    ConfigurationError,
    StorageError,
    ExternalServiceError,
)
from .models import AnalyticsEnvironment, DeviceType, FlowStage, UserRole

__all__ = [
    "CacheEntry",
    "MemoizedCache",
    "DEGRADED_TTL_MS",
    "get_cache",
    "reset_cache",
    "Settings",
    "get_settings",
    "TelemetryError",
    "NotFoundError",
    "ValidationError",
    "ConfigurationError",
    "StorageError",
    "ExternalServiceError",
    "AnalyticsEnvironment",
    "DeviceType",
    "FlowStage",
    "UserRole",
]
