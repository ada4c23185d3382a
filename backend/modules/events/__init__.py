"""
Events module.

The emission pipeline: shared analytics context, typed emitters, event
models and the sinks events are delivered to.

Usage:
    from modules.events import get_analytics

    analytics = get_analytics()
    analytics.initialize()
    analytics.track.sign_up_complete(signup_method="email")
"""

from .context import AnalyticsContext
from .emitters import FunnelEmitters, PerformanceEmitters, ToolEmitters, TrackEmitters
from .exceptions import SinkDeliveryError
from .interfaces import IEventSink
from .models import (
    UNKNOWN_BUCKET,
    AnalyticsEvent,
    BaseEventProperties,
    EmptyStateShownEvent,
    ErrorStateShownEvent,
    FormAbandonedEvent,
    FunnelStepEvent,
    MessageSentEvent,
    ProfileCompletedEvent,
    RideAcceptedEvent,
    RideCreatedEvent,
    RideRequestedEvent,
    SignUpCompleteEvent,
    ToolInteractionEvent,
    WebVitalsEvent,
    WhatsappHandoffEvent,
)
from .publisher import EventPublisher
from .service import Analytics, build_default_sinks, get_analytics, reset_analytics
from .sinks import DataLayerSink, DiagnosticChannel, GA4Sink, event_to_data_layer

__all__ = [
    # Interface
    "IEventSink",
    # Implementation
    "Analytics",
    "AnalyticsContext",
    "EventPublisher",
    "build_default_sinks",
    "get_analytics",
    "reset_analytics",
    # Emitters
    "TrackEmitters",
    "FunnelEmitters",
    "PerformanceEmitters",
    "ToolEmitters",
    # Sinks
    "DataLayerSink",
    "GA4Sink",
    "DiagnosticChannel",
    "event_to_data_layer",
    # Models
    "AnalyticsEvent",
    "BaseEventProperties",
    "SignUpCompleteEvent",
    "ProfileCompletedEvent",
    "RideCreatedEvent",
    "RideRequestedEvent",
    "RideAcceptedEvent",
    "MessageSentEvent",
    "WhatsappHandoffEvent",
    "ErrorStateShownEvent",
    "FunnelStepEvent",
    "FormAbandonedEvent",
    "EmptyStateShownEvent",
    "WebVitalsEvent",
    "ToolInteractionEvent",
    "UNKNOWN_BUCKET",
    # Exceptions
    "SinkDeliveryError",
]
