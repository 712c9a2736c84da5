# fund_positions/services/valuation/types.py
"""
Internal data types for the Valuation Service.

These dataclasses are used by the ledger store and the valuation
calculators. They are NOT Pydantic schemas - those are defined in
fund_positions/schemas/positions.py for API serialization.

Design Principles:
- Immutable value objects (frozen=True)
- Use Decimal for ALL monetary values (never float)
- Use date (not datetime) for as-of dates
- Reported amounts are whole currency units (int), floored once after summing

Type Hierarchy:
    Position          - Net quantity and cost basis of one fund
    YearPosition      - Position restricted to one purchase year
    PriceQuote        - Reference price resolved for a fund
    AssetValuation    - Single-date valuation of a user's holdings
    YearlyValuation   - Valuation of one purchase-year cohort
    AssetsByYear      - All cohorts, newest year first
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal


# =============================================================================
# POSITIONS
# =============================================================================

@dataclass(frozen=True)
class Position:
    """
    Aggregated trade data for one fund as of a date.

    Only trades that have a reference price on their exact trade date
    take part in the aggregate. Trades without one contribute neither
    quantity nor cost.

    Attributes:
        fund_id: Fund identifier
        total_quantity: Net units held (sum of signed trade quantities)
        total_buy_cost: Sum of quantity × trade-date price ÷ UNIT_BASE
    """

    fund_id: int
    total_quantity: int
    total_buy_cost: Decimal

    @property
    def is_open(self) -> bool:
        """True if units are currently held."""
        return self.total_quantity > 0


@dataclass(frozen=True)
class YearPosition(Position):
    """
    Position limited to trades made in one calendar year.

    Attributes:
        year: Calendar year of the trade dates
    """

    year: int = 0


# =============================================================================
# PRICES
# =============================================================================

@dataclass(frozen=True)
class PriceQuote:
    """
    Latest reference price of a fund on or before an as-of date.

    Attributes:
        fund_id: Fund identifier
        price: Price per UNIT_BASE units
        price_date: Date the price was published for
    """

    fund_id: int
    price: Decimal
    price_date: date


# =============================================================================
# VALUATION RESULTS
# =============================================================================

@dataclass(frozen=True)
class AssetValuation:
    """
    Valuation of all of a user's open positions on a single date.

    Attributes:
        user_id: Owner of the trades
        valuation_date: As-of date used for trades and prices
        current_value: floor(Σ price × quantity ÷ UNIT_BASE)
        current_pl: floor(Σ value - Σ buy cost)
        total_value: Unfloored value sum
        total_buy_cost: Buy cost of the valued funds
        valued_fund_ids: Funds included in the totals
        skipped_fund_ids: Open funds left out for lack of a current price
    """

    user_id: str
    valuation_date: date
    current_value: int
    current_pl: int
    total_value: Decimal
    total_buy_cost: Decimal
    valued_fund_ids: tuple[int, ...] = ()
    skipped_fund_ids: tuple[int, ...] = ()


@dataclass(frozen=True)
class YearlyValuation:
    """
    Valuation of the units bought in one calendar year, at today's prices.

    Attributes:
        year: Purchase year
        current_value: floor of that cohort's value sum
        current_pl: floor of that cohort's value sum minus its buy cost
    """

    year: int
    current_value: int
    current_pl: int


@dataclass(frozen=True)
class AssetsByYear:
    """
    Year-bucketed valuation, years strictly descending.

    Attributes:
        user_id: Owner of the trades
        valuation_date: Date used for the current prices (today)
        years: One entry per purchase year that has a valued fund
        skipped_fund_ids: Funds with no current price
    """

    user_id: str
    valuation_date: date
    years: list[YearlyValuation] = field(default_factory=list)
    skipped_fund_ids: tuple[int, ...] = ()
