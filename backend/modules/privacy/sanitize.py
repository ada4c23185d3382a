"""
Path and property sanitization.

URLs like /user/3f2a.../edit or /rides/98234 embed identifiers. Before a
path is attached to any event every identifier-looking segment is replaced
with ":id", and query strings (which may carry emails or tokens) are dropped.
"""

import re
from typing import Any, Mapping, Optional

ID_PLACEHOLDER = ":id"

UUID_PATTERN = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
    re.IGNORECASE,
)
DIGIT = re.compile(r"\d")

# Keys never forwarded from free-form custom properties
PII_KEYS = frozenset(
    {
        "email",
        "phone",
        "phone_number",
        "name",
        "first_name",
        "last_name",
        "full_name",
        "user_id",
        "ip",
        "ip_address",
        "address",
    }
)


def _sanitize_segment(segment: str) -> str:
    if not segment:
        return segment
    segment = UUID_PATTERN.sub(ID_PLACEHOLDER, segment)
    # any remaining digit marks the whole segment as an identifier
    if DIGIT.search(segment):
        return ID_PLACEHOLDER
    return segment


def sanitize_page_path(path: Optional[str]) -> str:
    """
    Replace identifiers in a URL path with ":id".

    Args:
        path: Raw path, optionally with query string or fragment

    Returns:
        Sanitized path, e.g. "/rides/98234/edit" -> "/rides/:id/edit"
    """
    if not path:
        return "/"

    path = path.split("#", 1)[0].split("?", 1)[0]
    segments = [_sanitize_segment(s) for s in path.split("/")]
    cleaned = re.sub(r"/{2,}", "/", "/".join(segments))

    if not cleaned.startswith("/"):
        cleaned = "/" + cleaned
    return cleaned


def sanitize_properties(properties: Optional[Mapping[str, Any]]) -> Optional[dict[str, Any]]:
    """
    Drop PII-named keys from free-form event properties.

    Nested mappings are cleaned recursively. String values that look like
    paths are passed through sanitize_page_path.
    """
    if properties is None:
        return None

    cleaned: dict[str, Any] = {}
    for key, value in properties.items():
        if key.lower() in PII_KEYS:
            continue
        if isinstance(value, Mapping):
            cleaned[key] = sanitize_properties(value)
        elif isinstance(value, str) and value.startswith("/"):
            cleaned[key] = sanitize_page_path(value)
        else:
            cleaned[key] = value
    return cleaned
