"""
Web vitals and custom timings.

Core web vitals are rated against the published thresholds and reported
through analytics.performance. Custom timings go out as steps of the
"performance" funnel carrying only a bucketed duration.
"""

import logging
import time
from contextlib import contextmanager
from typing import TYPE_CHECKING, Awaitable, Callable, Iterator, Optional, TypeVar

from shared.exceptions import ValidationError
from modules.privacy import buckets

from .models import RATING_GOOD, RATING_NEEDS_IMPROVEMENT, RATING_POOR, THRESHOLDS

if TYPE_CHECKING:
    from modules.events import Analytics

logger = logging.getLogger(__name__)

T = TypeVar("T")

PERFORMANCE_FUNNEL = "performance"


def get_rating(metric_name: str, value: float) -> str:
    """
    Rate a metric value.

    Raises:
        ValidationError: If the metric is not a known web vital
    """
    threshold = THRESHOLDS.get(metric_name)
    if threshold is None:
        raise ValidationError(
            f"Unknown web vital: {metric_name}",
            code="UNKNOWN_METRIC",
            details={"metric_name": metric_name},
        )
    if value <= threshold.good:
        return RATING_GOOD
    if value <= threshold.poor:
        return RATING_NEEDS_IMPROVEMENT
    return RATING_POOR


class WebVitalsReporter:
    """Receives metric callbacks from the host and reports them."""

    def __init__(self, analytics: "Analytics"):
        self._analytics = analytics
        self.reported: dict[str, float] = {}

    def report(self, metric_name: str, value: float) -> Optional[str]:
        """
        Rate and report one metric.

        Unknown metric names are logged and ignored.

        Returns:
            The rating, or None if the metric was ignored
        """
        try:
            rating = get_rating(metric_name, value)
        except ValidationError as e:
            logger.debug(e.message)
            return None

        self.reported[metric_name] = value
        self._analytics.performance.web_vital(
            metric_name=metric_name,
            metric_value=value,
            metric_rating=rating,
        )
        return rating


def track_timing(analytics: "Analytics", category: str, name: str, duration_ms: float) -> None:
    """Report a custom timing with its duration bucketed."""
    analytics.funnel.step(
        funnel_name=PERFORMANCE_FUNNEL,
        step_name=f"timing_{category}_{name}",
        step_number=1,
        total_steps=1,
        custom_properties={
            "category": category,
            "metric_name": name,
            "duration_bucket": buckets.duration_ms(duration_ms),
        },
    )


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000


@contextmanager
def measure(analytics: "Analytics", name: str, category: str) -> Iterator[None]:
    """
    Time a block.

    Example:
        with measure(analytics, "search", "api"):
            run_search()

    A block that raises is reported as "<name>_error" and the exception
    propagates.
    """
    started = time.perf_counter()
    try:
        yield
    except Exception:
        track_timing(analytics, category, f"{name}_error", _elapsed_ms(started))
        raise
    track_timing(analytics, category, name, _elapsed_ms(started))


async def measure_async(
    analytics: "Analytics",
    name: str,
    category: str,
    operation: Callable[[], Awaitable[T]],
) -> T:
    """Await an operation and report how long it took."""
    started = time.perf_counter()
    try:
        result = await operation()
    except Exception:
        track_timing(analytics, category, f"{name}_error", _elapsed_ms(started))
        raise
    track_timing(analytics, category, name, _elapsed_ms(started))
    return result
