"""
Experiments module.

Deterministic A/B variant assignment and feature flags, persisted next to
the anonymous id and reported through the "experiment" funnel.

Usage:
    from modules.experiments import get_experiment_service

    experiments = get_experiment_service()
    if experiments.is_feature_enabled("signup_flow_v2"):
        ...
"""

from .definitions import CTA_COPY_TEST, DEFAULT_EXPERIMENTS, RIDE_CARD_REDESIGN, SIGNUP_FLOW_V2
from .exceptions import UnknownVariantError
from .models import ExperimentAssignment, ExperimentConfig, StoredAssignments, VariantConfig
from .service import (
    EXPERIMENT_FUNNEL,
    EXPERIMENTS_STORAGE_KEY,
    ExperimentService,
    assign_variant,
    get_experiment_service,
    reset_experiment_service,
)

__all__ = [
    # Implementation
    "ExperimentService",
    "assign_variant",
    "get_experiment_service",
    "reset_experiment_service",
    # Models
    "ExperimentConfig",
    "VariantConfig",
    "ExperimentAssignment",
    "StoredAssignments",
    # Definitions
    "SIGNUP_FLOW_V2",
    "RIDE_CARD_REDESIGN",
    "CTA_COPY_TEST",
    "DEFAULT_EXPERIMENTS",
    # Exceptions
    "UnknownVariantError",
    # Constants
    "EXPERIMENT_FUNNEL",
    "EXPERIMENTS_STORAGE_KEY",
]
