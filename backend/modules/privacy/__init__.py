"""
Privacy module.

Everything that leaves the telemetry pipeline passes through here first:
numeric values are bucketed and paths are stripped of identifiers.

Usage:
    from modules.privacy import buckets, sanitize_page_path

    buckets.distance(42)                # "25-50"
    sanitize_page_path("/rides/981")    # "/rides/:id"
"""

from . import buckets
from .buckets import bucket_number
from .sanitize import ID_PLACEHOLDER, PII_KEYS, sanitize_page_path, sanitize_properties

__all__ = [
    "buckets",
    "bucket_number",
    "ID_PLACEHOLDER",
    "PII_KEYS",
    "sanitize_page_path",
    "sanitize_properties",
]
