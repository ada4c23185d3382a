"""
Event sinks.

- DataLayerSink: the tag-manager data layer, a flat list of records
- GA4Sink: Google Analytics 4 collection hits sent over HTTP
- DiagnosticChannel: debug mirror of every emission
"""

import asyncio
import logging
from collections import Counter, deque
from typing import Any, Optional

import httpx

from shared.exceptions import ConfigurationError
from shared.models import AnalyticsEnvironment

from .exceptions import SinkDeliveryError

logger = logging.getLogger(__name__)

DATA_LAYER_PREFIX = "analytics_"
# Records kept by the default data layer of a long-running process
DATA_LAYER_MAX_RECORDS = 500


def event_to_data_layer(payload: dict[str, Any]) -> dict[str, Any]:
    """
    Flatten an event into data-layer format.

    Example:
        {"event_name": "ride_created", "seats_bucket": "3-4"}
        -> {"event": "ride_created", "analytics_seats_bucket": "3-4"}
    """
    record: dict[str, Any] = {"event": payload["event_name"]}
    for key, value in payload.items():
        if key == "event_name":
            continue
        record[f"{DATA_LAYER_PREFIX}{key}"] = value
    return record


class DataLayerSink:
    """In-memory tag-manager data layer."""

    name = "data_layer"

    def __init__(self, max_records: Optional[int] = None):
        """
        Args:
            max_records: Keep only the most recent records. None keeps all.
        """
        self._records: deque[dict[str, Any]] = deque(maxlen=max_records)

    @property
    def records(self) -> list[dict[str, Any]]:
        return list(self._records)

    def push(self, record: dict[str, Any]) -> None:
        """
        Push a raw record.

        Raises:
            ValueError: If the record has no string "event" key
        """
        if not isinstance(record, dict) or not isinstance(record.get("event"), str):
            raise ValueError("Data layer records need a string 'event' key")
        self._records.append(dict(record))

    def send_event(self, payload: dict[str, Any]) -> None:
        self.push(event_to_data_layer(payload))

    def send_page_view(self, page_path: str, page_title: Optional[str] = None) -> None:
        self.push({"event": "page_view", "page_path": page_path, "page_title": page_title or ""})

    def set_user_properties(self, properties: dict[str, Any]) -> None:
        self.push({"event": "user_properties_set", **properties})

    def clear_user_properties(self) -> None:
        self.push(
            {
                "event": "user_properties_clear",
                "user_role": None,
                "is_authenticated": False,
                "profile_completion_bucket": None,
            }
        )

    def summary(self) -> dict[str, int]:
        """Number of records per event name."""
        return dict(Counter(record["event"] for record in self._records))

    def clear(self) -> None:
        self._records.clear()


class GA4Sink:
    """
    Sends GA4 collection hits.

    Hits are fire-and-forget tasks on the running event loop. Without a
    running loop they are queued until flush() is awaited. Delivery errors
    are logged at debug level and dropped.
    """

    name = "ga4"

    COLLECT_URL = "https://www.google-analytics.com/g/collect"

    def __init__(
        self,
        measurement_id: str,
        environment: AnalyticsEnvironment = AnalyticsEnvironment.DEVELOPMENT,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        if not measurement_id:
            raise ConfigurationError("GA4 delivery needs a measurement id", setting="ga4_measurement_id")
        self.measurement_id = measurement_id
        self.environment = AnalyticsEnvironment(environment)
        self._client = client
        self._timeout = timeout
        self._user_id: Optional[str] = None
        self._user_properties: dict[str, Any] = {}
        self._queue: list[dict[str, str]] = []
        self._tasks: set[asyncio.Task] = set()

    @property
    def queued(self) -> int:
        return len(self._queue)

    def build_hit(self, event_name: str, params: dict[str, Any], client_id: str) -> dict[str, str]:
        """
        Build the query parameters of one collection hit.

        Numbers go under "epn.", everything else under "ep.". Lists are
        joined with commas; nested mappings are dropped.
        """
        hit = {"v": "2", "tid": self.measurement_id, "cid": client_id, "en": event_name}
        if self._user_id:
            hit["uid"] = self._user_id
        if self.environment != AnalyticsEnvironment.PRODUCTION:
            hit["ep.traffic_type"] = "internal"

        for key, value in params.items():
            if value is None or isinstance(value, dict):
                continue
            if isinstance(value, bool):
                hit[f"ep.{key}"] = str(value).lower()
            elif isinstance(value, (int, float)):
                hit[f"epn.{key}"] = str(value)
            elif isinstance(value, (list, tuple, set)):
                hit[f"ep.{key}"] = ",".join(str(v) for v in value)
            else:
                hit[f"ep.{key}"] = str(value)

        for key, value in self._user_properties.items():
            if value is not None:
                hit[f"up.{key}"] = str(value)
        return hit

    def send_event(self, payload: dict[str, Any]) -> None:
        params = {k: v for k, v in payload.items() if k != "event_name"}
        client_id = self._user_id or str(payload.get("session_id", "anonymous"))
        self._dispatch(self.build_hit(payload["event_name"], params, client_id))

        # Web vitals also go out under the metric's own name for GA reports
        if payload["event_name"] == "web_vitals":
            value = payload["metric_value"]
            if payload["metric_name"] == "CLS":
                value = value * 1000
            metric_params = {
                "value": round(value),
                "metric_rating": payload["metric_rating"],
                "metric_value": payload["metric_value"],
                "non_interaction": True,
            }
            self._dispatch(self.build_hit(payload["metric_name"], metric_params, client_id))

    def send_page_view(self, page_path: str, page_title: Optional[str] = None) -> None:
        params = {"page_path": page_path, "page_title": page_title}
        self._dispatch(self.build_hit("page_view", params, self._user_id or "anonymous"))

    def set_user_properties(self, properties: dict[str, Any]) -> None:
        self._user_id = properties.get("user_id") or self._user_id
        self._user_properties = {k: v for k, v in properties.items() if k != "user_id"}

    def clear_user_properties(self) -> None:
        self._user_id = None
        self._user_properties = {}

    def _dispatch(self, hit: dict[str, str]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._queue.append(hit)
            return

        task = loop.create_task(self._deliver(hit))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def flush(self) -> int:
        """
        Send queued hits and wait for in-flight ones.

        Returns:
            Number of hits that were queued
        """
        queued, self._queue = self._queue, []
        for hit in queued:
            await self._deliver(hit)
        if self._tasks:
            await asyncio.gather(*list(self._tasks))
        return len(queued)

    async def _deliver(self, hit: dict[str, str]) -> None:
        try:
            await self._send(hit)
        except SinkDeliveryError as e:
            logger.debug(f"Dropped GA4 hit '{hit.get('en')}': {e.message}")
        except Exception as e:
            logger.debug(f"Dropped GA4 hit '{hit.get('en')}': {e!r}")

    async def _send(self, hit: dict[str, str]) -> None:
        try:
            if self._client is not None:
                response = await self._client.post(self.COLLECT_URL, params=hit, timeout=self._timeout)
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.post(self.COLLECT_URL, params=hit, timeout=self._timeout)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise SinkDeliveryError(self.name, str(e)) from e


class DiagnosticChannel:
    """
    Debug mirror of every emission.

    Each record is logged on the "telemetry.debug" logger and the most
    recent ones are kept for the debug console.
    """

    name = "diagnostics"

    def __init__(self, max_records: int = 200):
        self._log = logging.getLogger("telemetry.debug")
        self._records: deque[dict[str, Any]] = deque(maxlen=max_records)

    @property
    def records(self) -> list[dict[str, Any]]:
        return list(self._records)

    def _record(self, kind: str, data: dict[str, Any]) -> None:
        self._records.append({"kind": kind, **data})
        self._log.debug(f"[{kind}] {data}")

    def send_event(self, payload: dict[str, Any]) -> None:
        self._record(payload["event_name"], payload)

    def send_page_view(self, page_path: str, page_title: Optional[str] = None) -> None:
        self._record("page_view", {"page_path": page_path, "page_title": page_title})

    def set_user_properties(self, properties: dict[str, Any]) -> None:
        self._record("user_properties_set", properties)

    def clear_user_properties(self) -> None:
        self._record("user_properties_clear", {})

    def clear(self) -> None:
        self._records.clear()
