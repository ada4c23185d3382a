"""
Route pattern compilation.

Patterns are literal paths where a ":name" segment matches any single
non-empty path segment. Matching is against the whole normalized path.
"""

import re

_PARAM = re.compile(r":[^/]+")


def normalize_path(path: str) -> str:
    """
    Strip query string, fragment and trailing slash.

    The root path stays "/".
    """
    path = path.split("#", 1)[0].split("?", 1)[0]
    if len(path) > 1:
        path = path.rstrip("/") or "/"
    return path or "/"


def compile_route_pattern(pattern: str) -> re.Pattern[str]:
    """
    Compile a route pattern into a full-match regex.

    Example:
        compile_route_pattern("/rides/:id").fullmatch("/rides/abc-123")  # matches
    """
    parts = []
    last = 0
    for match in _PARAM.finditer(pattern):
        parts.append(re.escape(pattern[last:match.start()]))
        parts.append("[^/]+")
        last = match.end()
    parts.append(re.escape(pattern[last:]))
    return re.compile("".join(parts))
