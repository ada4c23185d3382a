"""
Value bucketing helpers.

Exact values (trip distance, time on a form, a driver's acceptance rate)
can single out a person or a route. Every numeric field leaves the
pipeline as one of these coarse labels instead.

Usage:
    from modules.privacy import buckets

    buckets.seats(3)         # "3-4"
    buckets.percentage(73)   # 50
"""

from typing import Sequence


DISTANCE_BOUNDARIES_KM = (10, 25, 50, 100, 200)


def bucket_number(value: float, boundaries: Sequence[float]) -> str:
    """
    Bucket a number into ranges defined by ascending boundaries.

    Args:
        value: The exact value
        boundaries: Range edges (sorted before use)

    Returns:
        "<b0" below the first edge, "a-b" inside a band, "bN+" above the last
    """
    edges = sorted(boundaries)
    if not edges:
        raise ValueError("At least one bucket boundary is required")

    for i, edge in enumerate(edges):
        if value < edge:
            if i == 0:
                return f"<{_fmt(edge)}"
            return f"{_fmt(edges[i - 1])}-{_fmt(edge)}"

    return f"{_fmt(edges[-1])}+"


def _fmt(edge: float) -> str:
    return str(int(edge)) if float(edge).is_integer() else str(edge)


def seats(count: int) -> str:
    """Bucket a seat count."""
    if count <= 2:
        return "1-2"
    if count <= 4:
        return "3-4"
    return "5+"


def distance(km: float) -> str:
    """Bucket a distance in kilometres."""
    return bucket_number(km, DISTANCE_BOUNDARIES_KM)


def time_seconds(seconds: float) -> str:
    """Bucket a duration given in seconds."""
    if seconds < 30:
        return "<30s"
    if seconds < 60:
        return "30s-1m"
    if seconds < 300:
        return "1-5m"
    if seconds < 900:
        return "5-15m"
    if seconds < 1800:
        return "15-30m"
    return "30m+"


def time_hours(hours: float) -> str:
    """Bucket a duration given in hours."""
    if hours < 1:
        return "<1h"
    if hours < 4:
        return "1-4h"
    if hours < 24:
        return "4-24h"
    if hours < 72:
        return "1-3d"
    return "3d+"


def percentage(pct: float) -> int:
    """Bucket a 0-100 percentage down to the nearest quarter."""
    if pct < 25:
        return 0
    if pct < 50:
        return 25
    if pct < 75:
        return 50
    if pct < 100:
        return 75
    return 100


def rate(value: float) -> str:
    """Bucket a 0-1 rate (acceptance, response)."""
    if value < 0.2:
        return "<20%"
    if value < 0.4:
        return "20-40%"
    if value < 0.6:
        return "40-60%"
    if value < 0.8:
        return "60-80%"
    return "80%+"


def duration_ms(ms: float) -> str:
    """Bucket a timing measurement given in milliseconds."""
    if ms < 100:
        return "<100ms"
    if ms < 500:
        return "100-500ms"
    if ms < 1000:
        return "500ms-1s"
    if ms < 3000:
        return "1-3s"
    return ">3s"
