# fund_positions/services/constants.py
"""
Centralized constants for the fund position services.

Usage:
    from fund_positions.services.constants import UNIT_BASE, ZERO
"""

from decimal import Decimal


# =============================================================================
# VALUATION CONSTANTS
# =============================================================================

# Reference prices are quoted per UNIT_BASE fund units:
#   value = price * quantity / UNIT_BASE
# Applied identically to cost basis and current value
UNIT_BASE: int = 10000

# Aggregated cost sums keep this many decimals (price has 2, quantity is an
# integer). Precision is left unbounded: a few max-size rows exceed 20 digits
COST_SUM_SCALE: int = 2


# =============================================================================
# DATE FORMAT
# =============================================================================

# Only accepted textual date form for API parameters and CSV fields
DATE_FORMAT_HINT: str = "YYYY-MM-DD"


# =============================================================================
# LEDGER IMPORT
# =============================================================================

# Expected column counts per CSV format (header row is skipped)
TRADE_HISTORY_COLUMNS: int = 4
REFERENCE_PRICE_COLUMNS: int = 3

# Reference prices are stored as DECIMAL(10, 2)
PRICE_MAX_DIGITS: int = 10
PRICE_DECIMAL_PLACES: int = 2


# =============================================================================
# UTILITY CONSTANTS
# =============================================================================

# Type-safe zero for Decimal comparisons
ZERO: Decimal = Decimal("0")


# =============================================================================
# RATE LIMITING CONSTANTS
# =============================================================================
# Format follows slowapi/limits syntax: "100/minute", "10/hour", etc.

# Default rate limit for ledger read endpoints
RATE_LIMIT_DEFAULT: str = "100/minute"

# Valuation endpoints run aggregate queries, moderate limit
RATE_LIMIT_VALUATION: str = "60/minute"

# Higher limit for monitoring tools that poll frequently
RATE_LIMIT_HEALTH: str = "300/minute"
