# fund_positions/utils/__init__.py
"""
Cross-cutting utilities for the fund positions API.

- logging: Logging configuration with correlation ID support
- context: Request context (correlation IDs)
- date_utils: Local "today" and strict YYYY-MM-DD parsing

Usage:
    from fund_positions.utils import setup_logging
    from fund_positions.utils import get_correlation_id, set_correlation_id
    from fund_positions.utils.date_utils import today, parse_iso_date
"""

from fund_positions.utils.context import (
    get_correlation_id,
    set_correlation_id,
    clear_correlation_id,
)
from fund_positions.utils.logging import setup_logging

__all__ = [
    # Logging
    "setup_logging",
    # Context
    "get_correlation_id",
    "set_correlation_id",
    "clear_correlation_id",
]
