"""
Vitals module.

Usage:
    from modules.vitals import WebVitalsReporter, measure

    reporter = WebVitalsReporter(analytics)
    reporter.report("LCP", 2300)   # "good"
"""

from .models import THRESHOLDS, Threshold
from .service import (
    PERFORMANCE_FUNNEL,
    WebVitalsReporter,
    get_rating,
    measure,
    measure_async,
    track_timing,
)

__all__ = [
    "WebVitalsReporter",
    "get_rating",
    "track_timing",
    "measure",
    "measure_async",
    "THRESHOLDS",
    "Threshold",
    "PERFORMANCE_FUNNEL",
]
