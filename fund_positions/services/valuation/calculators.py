# fund_positions/services/valuation/calculators.py
"""
Point-in-time valuation calculators.

Each calculator does one thing:
- PositionAggregator: Open positions per fund (optionally per purchase year)
- PriceResolver: Latest reference price on or before a date
- CachingPriceResolver: PriceResolver memoized for one aggregation call
- ValueCalculator: Market value of a quantity and the flooring policy

Design Principles:
- Stateless (the request-scoped cache is a separate, short-lived object)
- Receive the ledger store explicitly
- Use Decimal for ALL monetary calculations

Usage:
    aggregator = PositionAggregator()
    positions = aggregator.calculate(store, user_id="u1", as_of_date=date(2024, 6, 1))
"""

from __future__ import annotations

import logging
import math
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from fund_positions.services.constants import UNIT_BASE
from fund_positions.services.exceptions import NoPriceAvailableError
from fund_positions.services.valuation.types import (
    Position,
    YearPosition,
    PriceQuote,
)

if TYPE_CHECKING:
    from fund_positions.services.protocols import LedgerStoreProtocol

logger = logging.getLogger(__name__)


# =============================================================================
# POSITION AGGREGATOR
# =============================================================================

class PositionAggregator:
    """
    Computes net quantity and cost basis per fund from the trade ledger.

    Cost basis uses the reference price of each trade's exact trade date.
    A trade without a same-day price is absent from the aggregate: it adds
    neither quantity nor cost.

    Note:
        Only returns positions where total_quantity > 0. Closed and short
        positions are never valued.
    """

    def calculate(
            self,
            store: LedgerStoreProtocol,
            user_id: str,
            as_of_date: date,
    ) -> list[Position]:
        """
        Aggregate trades on or before as_of_date into one Position per fund.

        Args:
            store: Ledger store to query
            user_id: Owner of the trades
            as_of_date: Last trade date included

        Returns:
            Open positions ordered by fund_id
        """
        rows = store.query_positions(user_id, as_of_date)
        positions = sorted(
            (row for row in rows if row.is_open),
            key=lambda p: p.fund_id,
        )
        logger.debug(f"User {user_id}: {len(positions)} open position(s) as of {as_of_date}")
        return positions

    def calculate_by_year(
            self,
            store: LedgerStoreProtocol,
            user_id: str,
            as_of_date: date,
    ) -> list[YearPosition]:
        """
        Aggregate trades on or before as_of_date per (purchase year, fund).

        The open-position filter applies to each year bucket separately.

        Returns:
            Open year positions ordered by year, then fund_id
        """
        rows = store.query_positions_by_year(user_id, as_of_date)
        positions = sorted(
            (row for row in rows if row.is_open),
            key=lambda p: (p.year, p.fund_id),
        )
        logger.debug(
            f"User {user_id}: {len(positions)} open year position(s) as of {as_of_date}"
        )
        return positions


# =============================================================================
# PRICE RESOLVERS
# =============================================================================

class PriceResolver:
    """
    Resolves the price a fund is valued at on a date.

    Uses the most recent reference price with price_date <= as_of_date.
    Never looks ahead and never averages.
    """

    def resolve(
            self,
            store: LedgerStoreProtocol,
            fund_id: int,
            as_of_date: date,
    ) -> PriceQuote:
        """
        Get the latest reference price on or before as_of_date.

        Raises:
            NoPriceAvailableError: If the fund has no price up to that date
        """
        quote = store.query_latest_price(fund_id, as_of_date)
        if quote is None:
            raise NoPriceAvailableError(fund_id, as_of_date)
        return quote


class CachingPriceResolver:
    """
    PriceResolver bound to one store and date, memoized per fund.

    Create one per aggregation call and discard it afterwards. Misses are
    remembered too, so an unpriced fund is queried once.
    """

    def __init__(
            self,
            store: LedgerStoreProtocol,
            as_of_date: date,
            resolver: PriceResolver | None = None,
    ) -> None:
        self._store = store
        self._as_of_date = as_of_date
        self._resolver = resolver or PriceResolver()
        self._cache: dict[int, PriceQuote | None] = {}

    def resolve(self, fund_id: int) -> PriceQuote:
        """
        Get the cached price for a fund, querying the store on first use.

        Raises:
            NoPriceAvailableError: If the fund has no price up to the date
        """
        if fund_id not in self._cache:
            try:
                self._cache[fund_id] = self._resolver.resolve(
                    self._store, fund_id, self._as_of_date
                )
            except NoPriceAvailableError:
                self._cache[fund_id] = None
                raise

        quote = self._cache[fund_id]
        if quote is None:
            raise NoPriceAvailableError(fund_id, self._as_of_date)
        return quote

    @property
    def lookups(self) -> int:
        """Number of distinct funds resolved so far."""
        return len(self._cache)


# =============================================================================
# VALUE CALCULATOR
# =============================================================================

class ValueCalculator:
    """
    Monetary value of fund units and conversion to whole currency units.
    """

    @staticmethod
    def market_value(price: Decimal, quantity: int) -> Decimal:
        """value = price × quantity ÷ UNIT_BASE (exact)."""
        return price * quantity / UNIT_BASE

    @staticmethod
    def floor_amount(amount: Decimal) -> int:
        """
        Round toward negative infinity.

        99.99 -> 99, -0.01 -> -1
        """
        return math.floor(amount)
