"""
Funnel module data models.

Funnel tables are static configuration, so both models are frozen and
validated once at construction.
"""

from typing import Optional

from pydantic import BaseModel, Field, model_validator

from shared.models import FlowStage


class FunnelStep(BaseModel):
    """One step of a funnel and the routes that indicate it."""

    id: str = Field(..., description="Step identifier used in events")
    name: str = Field(..., description="Human-readable step name")
    position: int = Field(..., ge=1, description="1-indexed position in the funnel")
    routes: tuple[str, ...] = Field(..., description="Route patterns, ':param' allowed")
    completion_events: tuple[str, ...] = Field(default=())
    drop_off_reasons: tuple[str, ...] = Field(default=())
    flow_stage: FlowStage

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def routes_are_absolute(self) -> "FunnelStep":
        for route in self.routes:
            if not route.startswith("/"):
                raise ValueError(f"Route pattern '{route}' of step '{self.id}' must start with '/'")
        return self


class FunnelDefinition(BaseModel):
    """
    An ordered user journey.

    Step positions must run 1..n in declaration order and step ids must be
    unique within the funnel.
    """

    id: str = Field(..., description="Funnel identifier")
    name: str = Field(..., description="Human-readable funnel name")
    description: str = Field(default="")
    target_conversion_rate: Optional[float] = Field(
        None,
        ge=0,
        le=1,
        description="Benchmark conversion rate from first to last step",
    )
    steps: tuple[FunnelStep, ...] = Field(..., min_length=1)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def steps_are_ordered(self) -> "FunnelDefinition":
        positions = [step.position for step in self.steps]
        if positions != list(range(1, len(self.steps) + 1)):
            raise ValueError(
                f"Funnel '{self.id}' step positions must be 1..{len(self.steps)} in order, got {positions}"
            )

        ids = [step.id for step in self.steps]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Funnel '{self.id}' has duplicate step ids")
        return self

    @property
    def total_steps(self) -> int:
        return len(self.steps)

    def step_index(self, step_id: str) -> int:
        """Index of a step by id, or -1 when absent."""
        for i, step in enumerate(self.steps):
            if step.id == step_id:
                return i
        return -1
