"""
Experiments module exceptions.
"""

from shared.exceptions import NotFoundError


class UnknownVariantError(NotFoundError):
    """Raised by strict callers when an experiment or variant is not registered."""

    def __init__(self, experiment_id: str, variant_id: str):
        super().__init__(
            f"Unknown variant '{variant_id}' of experiment '{experiment_id}'",
            code="UNKNOWN_VARIANT",
            details={"experiment_id": experiment_id, "variant_id": variant_id},
        )
