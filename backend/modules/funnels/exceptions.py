"""
Funnel module exceptions.
"""

from shared.exceptions import NotFoundError, ValidationError


class InvalidFunnelError(ValidationError):
    """Raised when a funnel table cannot be registered."""

    def __init__(self, funnel_id: str, reason: str):
        super().__init__(
            f"Invalid funnel '{funnel_id}': {reason}",
            code="INVALID_FUNNEL",
            details={"funnel_id": funnel_id, "reason": reason},
        )


class UnknownFunnelError(NotFoundError):
    """Raised by strict lookups when a funnel id is not registered."""

    def __init__(self, funnel_id: str):
        super().__init__(
            f"Unknown funnel: {funnel_id}",
            code="UNKNOWN_FUNNEL",
            details={"funnel_id": funnel_id},
        )
