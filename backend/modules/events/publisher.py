"""
Event publisher.

Fans each call out to every registered sink in registration order. A sink
that raises is logged and skipped; the remaining sinks still receive the
call and the caller never sees the error.
"""

import logging
from typing import Any, Iterable, Optional

from .interfaces import IEventSink

logger = logging.getLogger(__name__)


class EventPublisher:
    """Ordered, failure-isolated fan-out to event sinks."""

    def __init__(self, sinks: Optional[Iterable[IEventSink]] = None):
        self._sinks: list[IEventSink] = list(sinks or [])

    @property
    def sinks(self) -> list[IEventSink]:
        return list(self._sinks)

    def add_sink(self, sink: IEventSink) -> None:
        self._sinks.append(sink)

    def remove_sink(self, sink: IEventSink) -> None:
        if sink in self._sinks:
            self._sinks.remove(sink)

    def get_sink(self, name: str) -> Optional[IEventSink]:
        for sink in self._sinks:
            if getattr(sink, "name", None) == name:
                return sink
        return None

    def publish_event(self, payload: dict[str, Any]) -> int:
        """
        Send an event to every sink.

        Returns:
            Number of sinks that accepted it
        """
        return self._fan_out("send_event", payload)

    def publish_page_view(self, page_path: str, page_title: Optional[str] = None) -> int:
        return self._fan_out("send_page_view", page_path, page_title)

    def publish_user_properties(self, properties: dict[str, Any]) -> int:
        return self._fan_out("set_user_properties", properties)

    def clear_user_properties(self) -> int:
        return self._fan_out("clear_user_properties")

    def _fan_out(self, method: str, *args: Any) -> int:
        delivered = 0
        for sink in self._sinks:
            try:
                getattr(sink, method)(*args)
                delivered += 1
            except Exception as e:
                logger.warning(
                    f"Sink '{getattr(sink, 'name', type(sink).__name__)}' failed on {method}: {e}"
                )
        return delivered
