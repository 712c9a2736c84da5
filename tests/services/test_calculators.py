# tests/services/test_calculators.py
"""
Unit tests for valuation calculators.

These tests verify the calculation logic WITHOUT database dependencies,
using the in-memory ledger store from conftest.

Test Coverage:
- PositionAggregator: open position filter and ordering
- PriceResolver: latest price or NoPriceAvailableError
- CachingPriceResolver: one store lookup per fund, misses included
- ValueCalculator: unit base and floor policy
"""

from datetime import date
from decimal import Decimal

import pytest

from fund_positions.services.exceptions import NoPriceAvailableError
from fund_positions.services.valuation.calculators import (
    PositionAggregator,
    PriceResolver,
    CachingPriceResolver,
    ValueCalculator,
)
from fund_positions.services.valuation.types import Position, YearPosition


class StubStore:
    """Store returning fixed rows, including ones a real query would filter."""

    def __init__(self, positions=(), year_positions=()):
        self._positions = list(positions)
        self._year_positions = list(year_positions)

    def query_positions(self, user_id, as_of_date):
        return self._positions

    def query_positions_by_year(self, user_id, as_of_date):
        return self._year_positions


# =============================================================================
# POSITION AGGREGATOR
# =============================================================================

class TestPositionAggregator:
    """Tests for PositionAggregator."""

    def test_filters_non_positive_quantities(self):
        store = StubStore(positions=[
            Position(fund_id=1, total_quantity=100, total_buy_cost=Decimal("1")),
            Position(fund_id=2, total_quantity=0, total_buy_cost=Decimal("0")),
            Position(fund_id=3, total_quantity=-5, total_buy_cost=Decimal("-1")),
        ])

        positions = PositionAggregator().calculate(store, "u1", date(2024, 1, 1))

        assert [p.fund_id for p in positions] == [1]

    def test_sorted_by_fund(self):
        store = StubStore(positions=[
            Position(fund_id=9, total_quantity=1, total_buy_cost=Decimal("1")),
            Position(fund_id=4, total_quantity=1, total_buy_cost=Decimal("1")),
        ])

        positions = PositionAggregator().calculate(store, "u1", date(2024, 1, 1))

        assert [p.fund_id for p in positions] == [4, 9]

    def test_by_year_sorted_and_filtered(self):
        store = StubStore(year_positions=[
            YearPosition(year=2024, fund_id=1, total_quantity=10, total_buy_cost=Decimal("1")),
            YearPosition(year=2023, fund_id=2, total_quantity=10, total_buy_cost=Decimal("1")),
            YearPosition(year=2023, fund_id=1, total_quantity=-10, total_buy_cost=Decimal("1")),
        ])

        rows = PositionAggregator().calculate_by_year(store, "u1", date(2024, 1, 1))

        assert [(r.year, r.fund_id) for r in rows] == [(2023, 2), (2024, 1)]

    def test_uses_same_day_prices_for_cost(self, memory_store):
        """Only trades with a price on their own date count."""
        memory_store.add_trade("u1", 1, 20000, date(2024, 1, 10))
        memory_store.add_trade("u1", 2, 10000, date(2024, 2, 1))
        memory_store.add_price(1, "100.00", date(2024, 1, 10))

        positions = PositionAggregator().calculate(memory_store, "u1", date(2024, 6, 1))

        assert positions == [Position(fund_id=1, total_quantity=20000, total_buy_cost=Decimal("200"))]


# =============================================================================
# PRICE RESOLVERS
# =============================================================================

class TestPriceResolver:
    """Tests for PriceResolver."""

    def test_returns_latest_price(self, memory_store):
        memory_store.add_price(1, "100.00", date(2024, 1, 10))
        memory_store.add_price(1, "110.00", date(2024, 6, 1))

        quote = PriceResolver().resolve(memory_store, 1, date(2024, 12, 31))

        assert quote.price == Decimal("110.00")

    def test_never_looks_ahead(self, memory_store):
        memory_store.add_price(1, "110.00", date(2024, 6, 1))

        with pytest.raises(NoPriceAvailableError) as exc_info:
            PriceResolver().resolve(memory_store, 1, date(2024, 5, 1))

        assert exc_info.value.fund_id == 1
        assert exc_info.value.as_of_date == date(2024, 5, 1)


class TestCachingPriceResolver:
    """Tests for CachingPriceResolver."""

    def test_queries_store_once_per_fund(self, memory_store):
        memory_store.add_price(1, "100.00", date(2024, 1, 10))
        prices = CachingPriceResolver(memory_store, date(2024, 6, 1))

        first = prices.resolve(1)
        second = prices.resolve(1)

        assert first == second
        assert memory_store.price_queries == [(1, date(2024, 6, 1))]
        assert prices.lookups == 1

    def test_misses_are_cached(self, memory_store):
        prices = CachingPriceResolver(memory_store, date(2024, 6, 1))

        for _ in range(3):
            with pytest.raises(NoPriceAvailableError):
                prices.resolve(7)

        assert len(memory_store.price_queries) == 1

    def test_separate_instances_do_not_share(self, memory_store):
        memory_store.add_price(1, "100.00", date(2024, 1, 10))

        CachingPriceResolver(memory_store, date(2024, 6, 1)).resolve(1)
        CachingPriceResolver(memory_store, date(2024, 6, 1)).resolve(1)

        assert len(memory_store.price_queries) == 2


# =============================================================================
# VALUE CALCULATOR
# =============================================================================

class TestValueCalculator:
    """Tests for ValueCalculator."""

    def test_market_value_uses_unit_base(self):
        assert ValueCalculator.market_value(Decimal("100.00"), 20000) == Decimal("200")

    def test_market_value_exact_decimal(self):
        assert ValueCalculator.market_value(Decimal("99.99"), 10000) == Decimal("99.99")

    @pytest.mark.parametrize("amount, expected", [
        (Decimal("99.99"), 99),
        (Decimal("-0.01"), -1),
        (Decimal("0"), 0),
        (Decimal("-20"), -20),
        (Decimal("220.5"), 220),
    ])
    def test_floor_amount(self, amount, expected):
        assert ValueCalculator.floor_amount(amount) == expected
