"""
Experiments module data models.

Experiment tables are static configuration and frozen like funnel tables.
Assignments are persisted in client storage as a StoredAssignments record.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class VariantConfig(BaseModel):
    """One arm of an experiment."""

    id: str = Field(..., description="Variant identifier sent with events")
    name: str = Field(..., description="Human-readable variant name")
    weight: float = Field(..., ge=0, le=100, description="Share of allocated traffic, in percent")
    is_control: bool = False

    model_config = {"frozen": True}


class ExperimentConfig(BaseModel):
    """
    An A/B test or feature flag.

    Variant ids must be unique and at most one variant may be the control.
    Weights are expected to sum to 100; users whose bucket falls past the
    cumulative weight land in the last variant.
    """

    id: str = Field(..., description="Experiment identifier")
    name: str = Field(..., description="Human-readable experiment name")
    variants: tuple[VariantConfig, ...] = Field(..., min_length=1)
    traffic_allocation: float = Field(100, ge=0, le=100, description="Percent of users included")
    enabled: bool = False
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    target_segments: tuple[str, ...] = Field(default=(), description="User roles to include; empty for all")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def variants_are_consistent(self) -> "ExperimentConfig":
        ids = [variant.id for variant in self.variants]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Experiment '{self.id}' has duplicate variant ids")
        if sum(1 for variant in self.variants if variant.is_control) > 1:
            raise ValueError(f"Experiment '{self.id}' has more than one control variant")
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError(f"Experiment '{self.id}' ends before it starts")
        return self

    @property
    def control(self) -> VariantConfig:
        """The control variant, or the first variant when none is marked."""
        for variant in self.variants:
            if variant.is_control:
                return variant
        return self.variants[0]

    def get_variant(self, variant_id: str) -> Optional[VariantConfig]:
        for variant in self.variants:
            if variant.id == variant_id:
                return variant
        return None


class ExperimentAssignment(BaseModel):
    """The variant a user was placed in."""

    experiment_id: str
    variant_id: str
    is_control: bool
    assigned_at: str = Field(..., description="ISO 8601 UTC timestamp")


class StoredAssignments(BaseModel):
    """Persisted record: the assignment seed plus every assignment made."""

    user_id: str
    assignments: dict[str, ExperimentAssignment] = Field(default_factory=dict)
