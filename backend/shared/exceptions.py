"""
Base exception classes for the telemetry engine.

The instrumentation core degrades instead of raising; these types cover the
few places that do raise (construction-time validation, strict lookups, the
memoized cache, storage adapters). Each carries the HTTP status the debug
console renders it with.
"""

from typing import Optional, Any


class TelemetryError(Exception):
    """Base exception for all telemetry errors."""

    status_code = 500

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Error body returned by the debug console."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class NotFoundError(TelemetryError):
    """A funnel, step or other registered item does not exist."""

    status_code = 404


class ValidationError(TelemetryError):
    """A metric, funnel table or event field was rejected."""

    status_code = 422


class ConfigurationError(TelemetryError):
    """A setting is missing or malformed for the component being built."""

    def __init__(self, message: str, setting: Optional[str] = None, details: Optional[dict[str, Any]] = None):
        super().__init__(message, code="CONFIGURATION_ERROR", details=details)
        if setting:
            self.details["setting"] = setting


class StorageError(TelemetryError):
    """Client storage could not be read or written."""

    status_code = 503


class ExternalServiceError(TelemetryError):
    """A delivery endpoint (GA4 collect) failed."""

    status_code = 502

    def __init__(
        self,
        message: str,
        service: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, details)
        self.service = service
        self.details["service"] = service
