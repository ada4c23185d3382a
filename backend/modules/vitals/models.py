"""
Web vital thresholds.
"""

from typing import NamedTuple


class Threshold(NamedTuple):
    """Upper bounds (inclusive) of the good and needs-improvement bands."""

    good: float
    poor: float


THRESHOLDS: dict[str, Threshold] = {
    "LCP": Threshold(good=2500, poor=4000),
    "CLS": Threshold(good=0.1, poor=0.25),
    "INP": Threshold(good=200, poor=500),
    "FCP": Threshold(good=1800, poor=3000),
    "TTFB": Threshold(good=800, poor=1800),
}

RATING_GOOD = "good"
RATING_NEEDS_IMPROVEMENT = "needs-improvement"
RATING_POOR = "poor"
