# fund_positions/services/valuation/service.py
"""
Valuation Service - Main orchestrator for fund position valuation.

This is the single entry point for all valuation operations:
- get_trade_count(): Raw number of trades for a user
- get_valuation(): Value and profit/loss of all holdings on one date
- get_valuation_by_year(): Value and profit/loss per purchase year, today

Design Principles:
- Stateless: the ledger store is passed into every call
- No HTTP Knowledge: Raises domain exceptions, not HTTPException
- Composable: Uses specialized calculators for each task
- Sum first, floor once: fractional amounts are floored after aggregation

Usage:
    from fund_positions.services.valuation import ValuationService

    service = ValuationService()
    store = SqlLedgerStore(db)

    result = service.get_valuation(store, "u1", date(2024, 6, 1))
    by_year = service.get_valuation_by_year(store, "u1")
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from fund_positions.services.constants import ZERO
from fund_positions.services.exceptions import NoPriceAvailableError
from fund_positions.services.valuation.calculators import (
    PositionAggregator,
    PriceResolver,
    CachingPriceResolver,
    ValueCalculator,
)
from fund_positions.services.valuation.types import (
    AssetValuation,
    YearlyValuation,
    AssetsByYear,
)
from fund_positions.utils.date_utils import today

if TYPE_CHECKING:
    from fund_positions.services.protocols import LedgerStoreProtocol

logger = logging.getLogger(__name__)


class ValuationService:
    """
    Main service for fund position valuation.

    Attributes:
        _aggregator: Calculator for open positions
        _price_resolver: Resolver for latest prices
        _value_calc: Value and flooring helpers
    """

    def __init__(
            self,
            aggregator: PositionAggregator | None = None,
            price_resolver: PriceResolver | None = None,
    ) -> None:
        self._aggregator = aggregator or PositionAggregator()
        self._price_resolver = price_resolver or PriceResolver()
        self._value_calc = ValueCalculator()

        logger.info("ValuationService initialized")

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def get_trade_count(self, store: LedgerStoreProtocol, user_id: str) -> int:
        """Total number of trade records for the user, regardless of date."""
        count = store.count_trades(user_id)
        logger.info(f"User {user_id} has {count} trade(s)")
        return count

    def get_valuation(
            self,
            store: LedgerStoreProtocol,
            user_id: str,
            valuation_date: date | None = None,
    ) -> AssetValuation:
        """
        Value all open positions of a user as of a single date.

        Each fund is valued at its latest price on or before the date. A
        fund with no such price is logged and left out of both value and
        cost basis. Value and profit/loss are floored after summing.

        Args:
            store: Ledger store to read from
            user_id: Owner of the trades
            valuation_date: As-of date (default: today in the local calendar)

        Returns:
            AssetValuation with floored totals

        Raises:
            StoreUnavailableError: If the store cannot be queried
        """
        if valuation_date is None:
            valuation_date = today()

        logger.info(f"Calculating valuation for user {user_id} as of {valuation_date}")

        positions = self._aggregator.calculate(store, user_id, valuation_date)

        total_value = ZERO
        total_buy_cost = ZERO
        valued: list[int] = []
        skipped: list[int] = []

        for position in positions:
            try:
                quote = self._price_resolver.resolve(store, position.fund_id, valuation_date)
            except NoPriceAvailableError as e:
                logger.warning(f"{e}; excluding fund from valuation of user {user_id}")
                skipped.append(position.fund_id)
                continue

            total_value += self._value_calc.market_value(quote.price, position.total_quantity)
            total_buy_cost += position.total_buy_cost
            valued.append(position.fund_id)

        result = AssetValuation(
            user_id=user_id,
            valuation_date=valuation_date,
            current_value=self._value_calc.floor_amount(total_value),
            current_pl=self._value_calc.floor_amount(total_value - total_buy_cost),
            total_value=total_value,
            total_buy_cost=total_buy_cost,
            valued_fund_ids=tuple(valued),
            skipped_fund_ids=tuple(skipped),
        )

        logger.info(
            f"Valuation for user {user_id} on {valuation_date}: "
            f"value={result.current_value}, pl={result.current_pl}, "
            f"funds={len(valued)}, skipped={len(skipped)}"
        )
        return result

    def get_valuation_by_year(
            self,
            store: LedgerStoreProtocol,
            user_id: str,
            valuation_date: date | None = None,
    ) -> AssetsByYear:
        """
        Value each purchase-year cohort of a user's holdings.

        Trades up to the valuation date are grouped by (trade year, fund).
        Every cohort of a fund uses the same current price, resolved once
        per call. Each year is floored independently and years are
        returned newest first.

        Args:
            store: Ledger store to read from
            user_id: Owner of the trades
            valuation_date: As-of date (default: today in the local calendar)

        Returns:
            AssetsByYear with years strictly descending

        Raises:
            StoreUnavailableError: If the store cannot be queried
        """
        if valuation_date is None:
            valuation_date = today()

        logger.info(f"Calculating yearly valuation for user {user_id} as of {valuation_date}")

        year_positions = self._aggregator.calculate_by_year(store, user_id, valuation_date)
        prices = CachingPriceResolver(store, valuation_date, self._price_resolver)

        value_by_year: dict[int, Decimal] = defaultdict(lambda: ZERO)
        cost_by_year: dict[int, Decimal] = defaultdict(lambda: ZERO)
        skipped: set[int] = set()

        for position in year_positions:
            try:
                quote = prices.resolve(position.fund_id)
            except NoPriceAvailableError as e:
                if position.fund_id not in skipped:
                    logger.warning(f"{e}; excluding fund from yearly valuation of user {user_id}")
                    skipped.add(position.fund_id)
                continue

            value_by_year[position.year] += self._value_calc.market_value(
                quote.price, position.total_quantity
            )
            cost_by_year[position.year] += position.total_buy_cost

        years = [
            YearlyValuation(
                year=year,
                current_value=self._value_calc.floor_amount(value_by_year[year]),
                current_pl=self._value_calc.floor_amount(value_by_year[year] - cost_by_year[year]),
            )
            for year in sorted(value_by_year, reverse=True)
        ]

        logger.info(
            f"Yearly valuation for user {user_id}: {len(years)} year(s), "
            f"{prices.lookups} price lookup(s), skipped={len(skipped)}"
        )
        return AssetsByYear(
            user_id=user_id,
            valuation_date=valuation_date,
            years=years,
            skipped_fund_ids=tuple(sorted(skipped)),
        )
