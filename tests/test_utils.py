"""
Tests for pagination clamping and timestamp decoding helpers.
"""

from datetime import datetime, timedelta, timezone

import pytest

from contact_api.errors import TimestampParseError
from contact_api.utils import (
    parse_created_at,
    parse_iso8601,
    parse_store_timestamp,
    resolve_limit,
    resolve_page,
    total_pages,
)


class TestResolvePage:

    @pytest.mark.parametrize("value,expected", [
        (None, 1), ("", 1), ("abc", 1), ("0", 1), ("-3", 1), (0, 1),
        ("1", 1), ("7", 7), (42, 42),
        ("1000000000000000000", 1), (2**63, 1),
    ])
    def test_resolve_page(self, value, expected):
        assert resolve_page(value) == expected


class TestResolveLimit:

    @pytest.mark.parametrize("value,expected", [
        (None, 10), ("", 10), ("ten", 10), ("0", 10), ("-1", 10), ("1.5", 10),
        ("1", 1), ("55", 55), ("100", 100), ("101", 100), ("500", 100), (250, 100),
    ])
    def test_resolve_limit(self, value, expected):
        assert resolve_limit(value) == expected


class TestTotalPages:

    @pytest.mark.parametrize("total,limit,expected", [
        (0, 10, 0), (1, 10, 1), (10, 10, 1), (11, 10, 2), (100, 7, 15),
    ])
    def test_total_pages(self, total, limit, expected):
        assert total_pages(total, limit) == expected


class TestTimestampParsing:
    """Test the two-stage parse with current-time fallback."""

    def test_store_format(self):
        """Test the store's native format is read as UTC."""
        parsed = parse_created_at("2025-01-15 10:30:45")

        assert parsed == datetime(2025, 1, 15, 10, 30, 45, tzinfo=timezone.utc)

    def test_iso8601_zulu(self):
        """Test RFC 3339 with a Z suffix."""
        parsed = parse_created_at("2025-01-15T10:30:45Z")

        assert parsed == datetime(2025, 1, 15, 10, 30, 45, tzinfo=timezone.utc)

    def test_iso8601_offset(self):
        """Test RFC 3339 with a numeric offset keeps the offset."""
        parsed = parse_created_at("2025-01-15T12:30:45+02:00")

        assert parsed == datetime(2025, 1, 15, 10, 30, 45, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", ["garbage", "", "15/01/2025", None])
    def test_fallback_to_now(self, value):
        """Test unparsable values are replaced by the current time."""
        before = datetime.now(timezone.utc)
        parsed = parse_created_at(value)
        after = datetime.now(timezone.utc)

        assert before - timedelta(seconds=1) <= parsed <= after + timedelta(seconds=1)

    def test_strict_parsers_raise(self):
        """Test each stage raises on values it does not understand."""
        with pytest.raises(TimestampParseError):
            parse_store_timestamp("2025-01-15T10:30:45Z")
        with pytest.raises(TimestampParseError):
            parse_iso8601("yesterday")
