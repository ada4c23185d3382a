"""
Shared test fixtures and utilities.

This module provides common test infrastructure used across all test modules.
"""

from datetime import datetime, timezone

import pytest

from api.dependencies import reset_container
from modules.events import Analytics, AnalyticsContext, DataLayerSink, reset_analytics
from modules.experiments import reset_experiment_service
from modules.funnels import FunnelRegistry, reset_funnel_registry
from modules.session import InMemoryStorage, SessionManager
from shared.cache import reset_cache
from shared.config import Settings, get_settings


class FakeClock:
    """Manually advanced clock returning seconds."""

    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeMillisClock(FakeClock):
    """Manually advanced clock returning epoch milliseconds."""

    def __init__(self, start: float = 1_700_000_000_000.0):
        super().__init__(start)

    def advance_minutes(self, minutes: float) -> None:
        self.now += minutes * 60 * 1000


def make_settings(**overrides) -> Settings:
    """Build settings that ignore the developer's .env file."""
    return Settings(_env_file=None, **overrides)


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset every module-level singleton before and after each test."""
    get_settings.cache_clear()
    reset_cache()
    reset_funnel_registry()
    reset_analytics()
    reset_experiment_service()
    reset_container()
    yield
    reset_container()
    reset_experiment_service()
    reset_analytics()
    reset_funnel_registry()
    reset_cache()
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    """Development settings without any vendor identifiers."""
    return make_settings()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def ms_clock() -> FakeMillisClock:
    return FakeMillisClock()


@pytest.fixture
def utc_clock():
    """Fixed UTC datetime source."""
    moment = datetime(2024, 5, 1, 12, 30, 15, 123000, tzinfo=timezone.utc)
    return lambda: moment


@pytest.fixture
def session_manager(ms_clock) -> SessionManager:
    counter = iter(range(1, 10_000))
    return SessionManager(
        InMemoryStorage(),
        InMemoryStorage(),
        clock=ms_clock,
        id_factory=lambda: f"id-{next(counter)}",
    )


@pytest.fixture
def data_layer() -> DataLayerSink:
    return DataLayerSink()


@pytest.fixture
def registry() -> FunnelRegistry:
    return FunnelRegistry()


@pytest.fixture
def analytics(settings, session_manager, data_layer, registry, utc_clock) -> Analytics:
    """Initialized analytics façade publishing only to a data layer."""
    instance = Analytics(
        settings=settings,
        context=AnalyticsContext(),
        session=session_manager,
        sinks=[data_layer],
        registry=registry,
        clock=utc_clock,
    )
    instance.initialize()
    data_layer.clear()
    return instance


@pytest.fixture
def settings_factory():
    """Factory for settings that ignore the developer's .env file."""
    return make_settings


@pytest.fixture
def events_named(data_layer):
    """Data-layer records for one event name."""

    def _events_named(name: str) -> list[dict]:
        return [record for record in data_layer.records if record["event"] == name]

    return _events_named

