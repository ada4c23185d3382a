"""
Event sink interface.

The pipeline composes events and hands them to sinks; sinks never see the
analytics context. Anything that can receive the four calls below can be
registered with EventPublisher.
"""

from typing import Any, Optional, Protocol, runtime_checkable


@runtime_checkable
class IEventSink(Protocol):
    """
    Destination for composed events.

    Implementations may raise; the publisher isolates each sink so one
    failure never reaches the caller or the other sinks.
    """

    name: str

    def send_event(self, payload: dict[str, Any]) -> None:
        """
        Deliver a composed event.

        Args:
            payload: Event fields including "event_name" and base properties
        """
        ...

    def send_page_view(self, page_path: str, page_title: Optional[str] = None) -> None:
        """Deliver a page view for an already sanitized path."""
        ...

    def set_user_properties(self, properties: dict[str, Any]) -> None:
        """Attach anonymized user properties to subsequent events."""
        ...

    def clear_user_properties(self) -> None:
        """Forget user properties (sign-out)."""
        ...
