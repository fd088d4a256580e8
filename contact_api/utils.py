"""
Utility functions for the Contact API.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Optional, Union

from contact_api.errors import TimestampParseError

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100

# Largest page whose offset still fits a signed 64-bit SQL integer
MAX_PAGE = (2**63 - 1) // MAX_LIMIT + 1

# Format written by SQLite's CURRENT_TIMESTAMP (always UTC)
STORE_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def _to_int(value: Union[str, int, None]) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def resolve_page(value: Union[str, int, None]) -> int:
    """
    Clamp a requested page number.

    Absent, non-numeric, below 1 or above MAX_PAGE become page 1.
    """
    page = _to_int(value)
    if page is None or page < 1 or page > MAX_PAGE:
        return DEFAULT_PAGE
    return page


def resolve_limit(value: Union[str, int, None]) -> int:
    """
    Clamp a requested page size to [1, MAX_LIMIT].

    Absent, non-numeric or values below 1 fall back to DEFAULT_LIMIT;
    values above MAX_LIMIT are capped at MAX_LIMIT.
    """
    limit = _to_int(value)
    if limit is None or limit < 1:
        return DEFAULT_LIMIT
    return min(limit, MAX_LIMIT)


def total_pages(total_items: int, limit: int) -> int:
    return math.ceil(total_items / limit)


def parse_store_timestamp(value: str) -> datetime:
    """Parse the store's native 'YYYY-MM-DD HH:MM:SS' format as UTC."""
    try:
        return datetime.strptime(value, STORE_TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)
    except (TypeError, ValueError) as e:
        raise TimestampParseError(f"not a store timestamp: {value!r}") from e


def parse_iso8601(value: str) -> datetime:
    """Parse an RFC 3339 / ISO-8601 timestamp; a trailing 'Z' means UTC."""
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, TypeError, ValueError) as e:
        raise TimestampParseError(f"not an ISO-8601 timestamp: {value!r}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_created_at(value: Optional[str]) -> datetime:
    """
    Decode a stored created_at value.

    Tries the store's native format, then ISO-8601. If neither matches,
    the current time is substituted so that one bad row cannot fail a
    whole listing. Never raises.

    Args:
        value: Raw column value

    Returns:
        Timezone-aware datetime
    """
    for parser in (parse_store_timestamp, parse_iso8601):
        try:
            return parser(value)
        except TimestampParseError:
            continue

    logger.warning(f"Unparsable created_at value {value!r}, substituting current time")
    return datetime.now(timezone.utc)
