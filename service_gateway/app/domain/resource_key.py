"""
Resource key extraction from request paths.
"""

import re
from typing import Optional


RESOURCE_KEY_PATTERN = re.compile(r"[0-9]+")


def is_valid_resource_key(candidate: Optional[str]) -> bool:
    """Return True when ``candidate`` is a non-empty run of ASCII digits."""
    return bool(candidate) and RESOURCE_KEY_PATTERN.fullmatch(candidate) is not None


def parse_resource_key(path: str) -> Optional[str]:
    """Extract the resource key from the first non-empty path segment.

    Any query string is ignored. Segments after the first are not inspected.
    Returns ``None`` when the segment is missing or not numeric.
    """
    path = path.split("?", 1)[0]
    segments = [segment for segment in path.split("/") if segment]
    if not segments:
        return None

    candidate = segments[0]
    return candidate if is_valid_resource_key(candidate) else None
