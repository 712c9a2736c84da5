# fund_positions/utils/date_utils.py
"""
Date utility functions for the fund position services.

"Today" is the current date in the configured local calendar
(LOCAL_TIMEZONE, or the host's zone when unset), without a time of day.
Textual dates are accepted only in strict YYYY-MM-DD form.

Usage:
    from fund_positions.utils.date_utils import today, parse_iso_date

    as_of = today()
    trade_date = parse_iso_date("2024-01-10")
"""

import re
from datetime import date, datetime
from zoneinfo import ZoneInfo

from fund_positions.config import settings

# Exactly four-digit year, two-digit month and day
_ISO_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def today(tz_name: str | None = None) -> date:
    """
    Get the current date in the local calendar.

    Args:
        tz_name: IANA zone name (default: settings.local_timezone,
                 falling back to the host's local zone)

    Returns:
        Today's date, truncated to the date component
    """
    tz_name = tz_name or settings.local_timezone
    if tz_name:
        return datetime.now(ZoneInfo(tz_name)).date()
    return datetime.now().astimezone().date()


def parse_iso_date(value: str) -> date:
    """
    Parse a YYYY-MM-DD string into a date.

    Args:
        value: Text to parse; surrounding whitespace is not allowed

    Returns:
        The parsed date

    Raises:
        ValueError: If the text is not exactly YYYY-MM-DD or not a real date

    Example:
        >>> parse_iso_date("2024-02-29")
        datetime.date(2024, 2, 29)
        >>> parse_iso_date("2024-2-29")
        Traceback (most recent call last):
        ValueError: ...
    """
    if not _ISO_DATE_RE.fullmatch(value):
        raise ValueError(f"'{value}' is not in YYYY-MM-DD format")
    return date.fromisoformat(value)

