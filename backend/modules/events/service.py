"""
Analytics façade.

The single entry point for instrumentation:

    analytics = get_analytics()
    analytics.initialize(viewport_width=390)
    analytics.route_changed("/rides/98234")
    analytics.track.ride_requested(seats_requested=2, has_target_ride=True)

Every emission merges the base properties (sanitized path, flow stage,
role, device, environment, timestamp, session id) with the event fields
and fans the result out to the configured sinks. Nothing here raises into
host code: invalid events are logged and dropped, sink failures are
isolated by the publisher.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping, Optional, Type

from pydantic import ValidationError as PydanticValidationError

from shared.config import Settings, get_settings
from shared.models import FlowStage, UserRole
from modules.funnels import FunnelRegistry, get_funnel_registry
from modules.privacy import buckets, sanitize_page_path
from modules.session import SessionManager, detect_device_type, determine_user_role

from .context import AnalyticsContext
from .emitters import FunnelEmitters, PerformanceEmitters, ToolEmitters, TrackEmitters
from .interfaces import IEventSink
from .models import BaseEventProperties
from .publisher import EventPublisher
from .sinks import DATA_LAYER_MAX_RECORDS, DataLayerSink, DiagnosticChannel, GA4Sink

logger = logging.getLogger(__name__)

RouteListener = Callable[[str, str], None]
UnloadListener = Callable[[], None]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _iso_timestamp(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _profile_value(profile: Any, key: str) -> Any:
    if profile is None:
        return None
    if isinstance(profile, Mapping):
        return profile.get(key)
    return getattr(profile, key, None)


def build_default_sinks(settings: Settings) -> list[IEventSink]:
    """Data layer always; GA4 when a measurement id is configured."""
    sinks: list[IEventSink] = [DataLayerSink(max_records=DATA_LAYER_MAX_RECORDS)]
    if settings.ga4_measurement_id:
        sinks.append(GA4Sink(settings.ga4_measurement_id, settings.environment))
    return sinks


class Analytics:
    """
    Event emission pipeline.

    Owns the analytics context, the session manager and the publisher.
    Emitters live on the track, funnel, performance and tools namespaces.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        context: Optional[AnalyticsContext] = None,
        session: Optional[SessionManager] = None,
        sinks: Optional[Iterable[IEventSink]] = None,
        registry: Optional[FunnelRegistry] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Args:
            settings: Analytics settings (defaults to environment settings)
            context: Shared state holder
            session: Session and identity manager
            sinks: Event sinks. Defaults to the data layer plus GA4 when configured.
            registry: Funnel registry used by funnel.route_step
            clock: Returns the current UTC datetime
        """
        self.settings = settings or get_settings()
        self.context = context or AnalyticsContext()
        self.session = session or SessionManager()
        self._registry = registry
        self._clock = clock or _utc_now

        sink_list = list(sinks) if sinks is not None else build_default_sinks(self.settings)
        if self.settings.debug and not any(isinstance(s, DiagnosticChannel) for s in sink_list):
            sink_list.append(DiagnosticChannel())
        self.publisher = EventPublisher(sink_list)

        self._route_listeners: list[RouteListener] = []
        self._unload_listeners: list[UnloadListener] = []

        self.track = TrackEmitters(self)
        self.funnel = FunnelEmitters(self)
        self.performance = PerformanceEmitters(self)
        self.tools = ToolEmitters(self)

    @property
    def enabled(self) -> bool:
        return not self.settings.disabled

    @property
    def registry(self) -> FunnelRegistry:
        return self._registry or get_funnel_registry()

    @property
    def data_layer(self) -> Optional[DataLayerSink]:
        for sink in self.publisher.sinks:
            if isinstance(sink, DataLayerSink):
                return sink
        return None

    @property
    def diagnostics(self) -> Optional[DiagnosticChannel]:
        for sink in self.publisher.sinks:
            if isinstance(sink, DiagnosticChannel):
                return sink
        return None

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def initialize(self, viewport_width: Optional[float] = None) -> None:
        """
        Prepare the pipeline. Safe to call more than once.

        Configuration problems are reported only in debug mode and never
        stop initialization; a missing measurement id simply means no GA4
        sink.
        """
        if self.context.initialized:
            return

        warnings = self.settings.validate_analytics()
        if warnings and self.settings.debug:
            for warning in warnings:
                logger.warning(f"Analytics configuration: {warning}")

        if not self.enabled:
            if self.settings.debug:
                logger.info("Analytics disabled via configuration")
            self.context.initialized = True
            return

        if viewport_width is not None:
            self.context.viewport_width = viewport_width

        user = self.context.update_user_context(
            anonymous_id=self.session.create_anonymous_id(),
            user_role=UserRole.UNKNOWN,
            device_type=detect_device_type(self.context.viewport_width),
            is_authenticated=False,
            profile_completion_bucket=0,
        )
        self.publisher.publish_user_properties(
            {
                "user_role": user.user_role.value,
                "device_type": user.device_type.value,
                "is_authenticated": False,
                "environment": self.settings.environment.value,
            }
        )
        self.context.initialized = True
        logger.debug(f"Analytics initialized with sinks {[s.name for s in self.publisher.sinks]}")

    # =========================================================================
    # Emission
    # =========================================================================

    def base_properties(self) -> dict[str, Any]:
        """Current base properties. Refreshes the session as a side effect."""
        user = self.context.user_context
        return {
            "page_path": sanitize_page_path(self.context.current_path),
            "flow_stage": self.context.flow_stage,
            "user_role": user.user_role if user else UserRole.UNKNOWN,
            "device_type": user.device_type if user else detect_device_type(self.context.viewport_width),
            "environment": self.settings.environment,
            "timestamp": _iso_timestamp(self._clock()),
            "session_id": self.session.get_session_id(),
        }

    def emit(
        self,
        event_cls: Type[BaseEventProperties],
        stage: Optional[FlowStage] = None,
        **fields: Any,
    ) -> Optional[dict[str, Any]]:
        """
        Compose and publish one event.

        Args:
            event_cls: Event model to build
            stage: Flow stage to enter before the base properties are read
            **fields: Event-specific fields

        Returns:
            The published payload, or None if disabled or invalid
        """
        if not self.enabled:
            return None

        if stage is not None:
            self.context.set_flow_stage(stage)

        try:
            event = event_cls(**self.base_properties(), **fields)
        except PydanticValidationError as e:
            logger.warning(f"Dropped invalid {event_cls.__name__}: {e.error_count()} validation errors")
            return None

        payload = event.to_payload()
        self.publisher.publish_event(payload)
        return payload

    def page_view(self, path: Optional[str] = None, title: Optional[str] = None) -> Optional[str]:
        """Publish a page view for the given or current path. Returns the sanitized path."""
        if not self.enabled:
            return None
        page_path = sanitize_page_path(path or self.context.current_path)
        self.publisher.publish_page_view(page_path, title)
        return page_path

    def push_event(self, record: dict[str, Any]) -> bool:
        """Push a raw record onto the data layer. Malformed records are dropped."""
        if not self.enabled:
            return False
        data_layer = self.data_layer
        if data_layer is None:
            return False
        try:
            data_layer.push(record)
        except ValueError as e:
            logger.debug(f"Ignored data layer push: {e}")
            return False
        return True

    # =========================================================================
    # Inbound signals
    # =========================================================================

    def add_route_listener(self, listener: RouteListener) -> Callable[[], None]:
        """
        Subscribe to navigation. Listeners receive (previous_path, new_path)
        while the previous path is still current.

        Returns:
            A callable that unsubscribes the listener
        """
        self._route_listeners.append(listener)
        return lambda: self._remove(self._route_listeners, listener)

    def add_unload_listener(self, listener: UnloadListener) -> Callable[[], None]:
        self._unload_listeners.append(listener)
        return lambda: self._remove(self._unload_listeners, listener)

    def route_changed(self, new_path: str) -> None:
        """Handle a navigation reported by the host router."""
        previous = self.context.current_path
        self._notify(self._route_listeners, previous, new_path)
        self.context.set_current_path(new_path)
        self.page_view()

    def page_unload(self) -> None:
        """Handle the page going away."""
        self._notify(self._unload_listeners)

    @staticmethod
    def _remove(listeners: list, listener: Callable) -> None:
        if listener in listeners:
            listeners.remove(listener)

    @staticmethod
    def _notify(listeners: list, *args: Any) -> None:
        for listener in list(listeners):
            try:
                listener(*args)
            except Exception as e:
                logger.warning(f"Analytics listener {listener!r} failed: {e}")

    # =========================================================================
    # User lifecycle and context
    # =========================================================================

    def identify(self, user_id: str, profile: Any = None) -> None:
        """Switch to an authenticated user. Only a one-way hash of user_id is kept."""
        completion = _profile_value(profile, "profile_completion_percentage")
        self.update_user_context(
            anonymous_id=self.session.create_anonymous_id(user_id),
            user_role=determine_user_role(profile),
            is_authenticated=True,
            profile_completion_bucket=buckets.percentage(completion) if completion is not None else 0,
        )

    def reset(self) -> None:
        """Sign-out: anonymous identity, cleared user properties, stage back to visit."""
        self.context.reset(self.session.create_anonymous_id())
        if self.enabled:
            self.publisher.publish_user_properties(self._user_properties())
            self.publisher.clear_user_properties()

    def update_user_context(self, **updates: Any) -> None:
        """
        Apply updates to the user context and sync user properties.

        Invalid updates (for example an email as anonymous id) are logged
        and the previous context is kept.
        """
        if self.context.user_context is None and "anonymous_id" not in updates:
            updates["anonymous_id"] = self.session.create_anonymous_id()
        try:
            self.context.update_user_context(**updates)
        except PydanticValidationError as e:
            logger.warning(f"Rejected user context update: {e.error_count()} validation errors")
            return

        if self.enabled:
            self.publisher.publish_user_properties(self._user_properties())

    def set_flow_stage(self, stage: FlowStage) -> None:
        self.context.set_flow_stage(stage)

    def set_viewport(self, width: Optional[float]) -> None:
        self.context.viewport_width = width
        if self.context.user_context is not None:
            self.update_user_context(device_type=detect_device_type(width))

    def _user_properties(self) -> dict[str, Any]:
        user = self.context.user_context
        if user is None:
            return {}
        return {
            "user_id": user.anonymous_id,
            "user_role": user.user_role.value,
            "device_type": user.device_type.value,
            "is_authenticated": user.is_authenticated,
            "profile_completion_bucket": user.profile_completion_bucket,
        }

    # =========================================================================
    # Diagnostics
    # =========================================================================

    async def flush(self) -> None:
        """Wait for network sinks to deliver what they have queued."""
        for sink in self.publisher.sinks:
            if isinstance(sink, GA4Sink):
                await sink.flush()

    def get_debug_state(self) -> dict[str, Any]:
        """Snapshot for manual verification. Does not refresh the session."""
        session = self.session.get_session()
        data_layer = self.data_layer
        return {
            "session_id": session.id if session else None,
            **self.context.snapshot(),
            "config": {
                "environment": self.settings.environment.value,
                "debug": self.settings.debug,
                "disabled": self.settings.disabled,
                "ga4_configured": bool(self.settings.ga4_measurement_id),
                "gtm_configured": bool(self.settings.gtm_container_id),
            },
            "sinks": [sink.name for sink in self.publisher.sinks],
            "data_layer_summary": data_layer.summary() if data_layer else {},
        }


# Module-level instance getter
_analytics: Optional[Analytics] = None


def get_analytics() -> Analytics:
    """Get the process-wide analytics façade."""
    global _analytics
    if _analytics is None:
        _analytics = Analytics()
    return _analytics


def reset_analytics() -> None:
    """Reset the analytics singleton (for testing)."""
    global _analytics
    _analytics = None
