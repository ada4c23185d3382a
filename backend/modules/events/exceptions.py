"""
Events module exceptions.
"""

from shared.exceptions import ExternalServiceError


class SinkDeliveryError(ExternalServiceError):
    """Raised when a sink cannot hand an event to its destination."""

    def __init__(self, sink: str, message: str):
        super().__init__(
            f"Failed to deliver to {sink}: {message}",
            service=sink,
            code="SINK_DELIVERY_ERROR",
            details={"error": message},
        )
