"""
Funnels module.

Static funnel table plus the route-to-step matcher used to attribute page
views and form steps to a journey.

Usage:
    from modules.funnels import get_funnel_registry

    registry = get_funnel_registry()
    step = registry.get_current_funnel_step("rider_journey", "/rides/abc-123")
    registry.get_funnel_progress("rider_journey", step.id)   # 43
"""

from .definitions import (
    DEFAULT_ALIASES,
    DEFAULT_FUNNELS,
    DRIVER_FUNNEL,
    ONBOARDING_FUNNEL,
    RIDER_FUNNEL,
)
from .exceptions import InvalidFunnelError, UnknownFunnelError
from .models import FunnelDefinition, FunnelStep
from .registry import FunnelRegistry, get_funnel_registry, reset_funnel_registry
from .routes import compile_route_pattern, normalize_path

__all__ = [
    # Implementation
    "FunnelRegistry",
    "get_funnel_registry",
    "reset_funnel_registry",
    "compile_route_pattern",
    "normalize_path",
    # Models
    "FunnelDefinition",
    "FunnelStep",
    # Definitions
    "ONBOARDING_FUNNEL",
    "DRIVER_FUNNEL",
    "RIDER_FUNNEL",
    "DEFAULT_FUNNELS",
    "DEFAULT_ALIASES",
    # Exceptions
    "InvalidFunnelError",
    "UnknownFunnelError",
]
