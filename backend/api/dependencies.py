"""
Dependency injection setup for FastAPI.

This module provides the "container" that wires together all module
implementations. Services are built from the settings on first access
and shared by every request, the same way the instrumentation engine
shares one analytics context per process.
"""

from typing import TYPE_CHECKING

from shared.config import Settings, get_settings

# Type checking imports (avoids import cycles at module load)
if TYPE_CHECKING:
    from modules.dropoff import DropOffTracker
    from modules.events import Analytics
    from modules.experiments import ExperimentService
    from modules.funnels import FunnelRegistry
    from modules.session import SessionManager
    from modules.vitals import WebVitalsReporter
    from shared.cache import MemoizedCache


class ServiceContainer:
    """
    Container for all service instances.

    Services are created lazily on first access and cached as singletons
    within the container. Use reset() to clear them between tests.
    """

    def __init__(self, settings: "Settings | None" = None) -> None:
        self._settings = settings
        self._session: "SessionManager | None" = None
        self._funnels: "FunnelRegistry | None" = None
        self._analytics: "Analytics | None" = None
        self._dropoff: "DropOffTracker | None" = None
        self._vitals: "WebVitalsReporter | None" = None
        self._experiments: "ExperimentService | None" = None
        self._cache: "MemoizedCache | None" = None

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def session(self) -> "SessionManager":
        """Get the session manager instance."""
        if self._session is None:
            from modules.session import FileStorage, InMemoryStorage, SessionManager

            persistent = (
                FileStorage(self.settings.storage_path)
                if self.settings.storage_path
                else InMemoryStorage()
            )
            self._session = SessionManager(InMemoryStorage(), persistent)
        return self._session

    @property
    def funnels(self) -> "FunnelRegistry":
        """Get the funnel registry instance."""
        if self._funnels is None:
            from modules.funnels import FunnelRegistry
            self._funnels = FunnelRegistry()
        return self._funnels

    @property
    def analytics(self) -> "Analytics":
        """Get the initialized analytics façade."""
        if self._analytics is None:
            from modules.events import Analytics
            self._analytics = Analytics(
                settings=self.settings,
                session=self.session,
                registry=self.funnels,
            )
            self._analytics.initialize()
        return self._analytics

    @property
    def dropoff(self) -> "DropOffTracker":
        """Get the drop-off tracker, subscribed to the analytics signals."""
        if self._dropoff is None:
            from modules.dropoff import DropOffTracker
            self._dropoff = DropOffTracker(self.analytics, registry=self.funnels)
        return self._dropoff

    @property
    def vitals(self) -> "WebVitalsReporter":
        """Get the web vitals reporter."""
        if self._vitals is None:
            from modules.vitals import WebVitalsReporter
            self._vitals = WebVitalsReporter(self.analytics)
        return self._vitals

    @property
    def experiments(self) -> "ExperimentService":
        """Get the experiment service, persisting next to the anonymous id."""
        if self._experiments is None:
            from modules.experiments import ExperimentService
            self._experiments = ExperimentService(self.analytics, self.session.persistent_storage)
        return self._experiments

    @property
    def cache(self) -> "MemoizedCache":
        """Get the memoized fetch cache."""
        if self._cache is None:
            from shared.cache import get_cache
            self._cache = get_cache()
        return self._cache

    def reset(self) -> None:
        """
        Reset all cached services.

        This is primarily for testing - allows tests to get fresh
        service instances with different settings.
        """
        if self._dropoff is not None:
            self._dropoff.close()
        self._session = None
        self._funnels = None
        self._analytics = None
        self._dropoff = None
        self._vitals = None
        self._experiments = None
        self._cache = None


# Module-level container singleton
_container: ServiceContainer | None = None


def get_container() -> ServiceContainer:
    """Get the singleton service container."""
    global _container
    if _container is None:
        _container = ServiceContainer()
    return _container


def reset_container() -> None:
    """
    Reset the service container.

    The next call to get_container() creates a fresh container with new
    service instances. Primarily used for testing.
    """
    global _container
    if _container is not None:
        _container.reset()
    _container = None


# FastAPI dependency functions
# These are the functions that should be used in route Depends() calls


def get_app_settings() -> Settings:
    """FastAPI dependency for the container's settings."""
    return get_container().settings


def get_analytics_service() -> "Analytics":
    """FastAPI dependency for the analytics façade."""
    return get_container().analytics


def get_dropoff_tracker() -> "DropOffTracker":
    """FastAPI dependency for the drop-off tracker."""
    return get_container().dropoff


def get_funnel_registry() -> "FunnelRegistry":
    """FastAPI dependency for the funnel registry."""
    return get_container().funnels


def get_vitals_reporter() -> "WebVitalsReporter":
    """FastAPI dependency for the web vitals reporter."""
    return get_container().vitals


def get_experiments() -> "ExperimentService":
    """FastAPI dependency for the experiment service."""
    return get_container().experiments
