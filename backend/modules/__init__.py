"""
Feature modules of the telemetry engine.

Each module is self-contained with its own:
- interfaces.py: Protocol definitions for the module's seams
- models.py: Pydantic models / dataclasses
- service.py: Implementation
- exceptions.py: Module-specific exceptions

Dependency order: privacy <- session <- funnels <- events <- dropoff, vitals, experiments.
"""
