# tests/utils/test_date_utils.py
"""
Tests for date utility functions.
"""

from datetime import date, datetime
from zoneinfo import ZoneInfo

import pytest

from fund_positions.utils.date_utils import parse_iso_date, today


class TestParseIsoDate:
    """Tests for parse_iso_date function."""

    def test_valid_date(self):
        """Should parse a plain YYYY-MM-DD date."""
        assert parse_iso_date("2024-01-10") == date(2024, 1, 10)

    def test_leap_day(self):
        """Should accept Feb 29 in a leap year."""
        assert parse_iso_date("2024-02-29") == date(2024, 2, 29)

    @pytest.mark.parametrize("value", [
        "2024-1-10",
        "2024-01-1",
        "24-01-10",
        "2024/01/10",
        "20240110",
        "2024-01-10T00:00:00",
        " 2024-01-10",
        "abc",
        "",
    ])
    def test_wrong_shape_rejected(self, value):
        """Should reject anything that is not exactly YYYY-MM-DD."""
        with pytest.raises(ValueError):
            parse_iso_date(value)

    @pytest.mark.parametrize("value", ["2024-02-30", "2023-02-29", "2024-13-01", "2024-00-10"])
    def test_impossible_date_rejected(self, value):
        """Should reject well-formed strings that are not calendar dates."""
        with pytest.raises(ValueError):
            parse_iso_date(value)


class TestToday:
    """Tests for today function."""

    def test_explicit_zone(self):
        """Should use the given IANA zone."""
        expected = datetime.now(ZoneInfo("Asia/Tokyo")).date()
        assert today("Asia/Tokyo") == expected

    def test_host_zone_by_default(self):
        """Should return a date, not a datetime."""
        result = today()
        assert type(result) is date
