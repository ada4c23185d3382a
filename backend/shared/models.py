"""
Shared enumerations used across modules.

These describe the coarse, non-identifying dimensions every event carries.
Module-specific models should stay in their respective module directories.
"""

from enum import Enum


class AnalyticsEnvironment(str, Enum):
    """Deployment environment the events are tagged with."""

    PRODUCTION = "production"
    STAGING = "staging"
    DEVELOPMENT = "development"


class UserRole(str, Enum):
    """Role of the user on the platform."""

    DRIVER = "driver"
    RIDER = "rider"
    BOTH = "both"
    UNKNOWN = "unknown"


class DeviceType(str, Enum):
    """Device class derived from viewport width."""

    MOBILE = "mobile"
    TABLET = "tablet"
    DESKTOP = "desktop"


class FlowStage(str, Enum):
    """
    Where the current session is in the overall user journey.

    Exactly one stage is current at any time. Used for funnel analysis
    and drop-off attribution.
    """

    VISIT = "visit"
    SIGNUP_STARTED = "signup_started"
    SIGNUP_COMPLETE = "signup_complete"
    PROFILE_STARTED = "profile_started"
    PROFILE_COMPLETE = "profile_complete"
    RIDE_SEARCH = "ride_search"
    RIDE_CREATE = "ride_create"
    RIDE_REQUEST = "ride_request"
    RIDE_ACCEPT = "ride_accept"
    MESSAGING = "messaging"
    HANDOFF = "handoff"
    CONVERSION = "conversion"
