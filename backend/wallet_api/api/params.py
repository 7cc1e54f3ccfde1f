"""
Query parameter parsing shared by routes.
"""
from typing import Optional

INVALID_LIMIT_MESSAGE = "Invalid limit parameter"


def parse_limit(value: Optional[str], default: int) -> Optional[int]:
    """Positive page size from a raw query value.

    Returns ``default`` when the value is missing or empty, None when it is
    not a positive integer.
    """
    if value is None or not value.strip():
        return default
    try:
        limit = int(value)
    except ValueError:
        return None
    return limit if limit > 0 else None
