# tests/services/test_ledger_store.py
"""
Tests for the SQL ledger store.

Run against in-memory SQLite with the real models, covering:
- Exact trade-date join for cost basis
- Positive net quantity filter
- Per-year grouping
- Latest price lookup
- Trade counting
- Database errors surfacing as StoreUnavailableError
"""

from datetime import date
from decimal import Decimal
from unittest.mock import patch

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from fund_positions.services.exceptions import StoreUnavailableError
from fund_positions.services.ledger_store import SqlLedgerStore
from tests.conftest import seed_trade, seed_price


class TestQueryPositions:
    """Tests for SqlLedgerStore.query_positions()."""

    def test_single_trade_with_same_day_price(self, db: Session):
        """Buy cost is quantity × trade-date price ÷ 10000."""
        seed_trade(db, "u1", 1, 20000, date(2024, 1, 10))
        seed_price(db, 1, "100.00", date(2024, 1, 10))

        positions = SqlLedgerStore(db).query_positions("u1", date(2024, 1, 10))

        assert len(positions) == 1
        assert positions[0].fund_id == 1
        assert positions[0].total_quantity == 20000
        assert positions[0].total_buy_cost == Decimal("200")

    def test_trades_after_as_of_date_excluded(self, db: Session):
        """Trades dated after the as-of date are not aggregated."""
        seed_trade(db, "u1", 1, 20000, date(2024, 1, 10))
        seed_trade(db, "u1", 1, 10000, date(2024, 3, 1))
        seed_price(db, 1, "100.00", date(2024, 1, 10))
        seed_price(db, 1, "120.00", date(2024, 3, 1))

        positions = SqlLedgerStore(db).query_positions("u1", date(2024, 2, 1))

        assert positions[0].total_quantity == 20000
        assert positions[0].total_buy_cost == Decimal("200")

    def test_trade_without_same_day_price_is_dropped(self, db: Session):
        """A trade with no price on its own date adds neither quantity nor cost."""
        seed_trade(db, "u1", 1, 20000, date(2024, 1, 10))
        seed_trade(db, "u1", 1, 5000, date(2024, 1, 11))
        seed_price(db, 1, "100.00", date(2024, 1, 10))

        positions = SqlLedgerStore(db).query_positions("u1", date(2024, 6, 1))

        assert positions[0].total_quantity == 20000

    def test_fund_with_no_priced_trades_absent(self, db: Session):
        """Fund 2 traded on an unpriced day does not appear at all."""
        seed_trade(db, "u1", 1, 20000, date(2024, 1, 10))
        seed_trade(db, "u1", 2, 10000, date(2024, 2, 1))
        seed_price(db, 1, "100.00", date(2024, 1, 10))
        seed_price(db, 2, "50.00", date(2024, 1, 31))

        positions = SqlLedgerStore(db).query_positions("u1", date(2024, 6, 1))

        assert [p.fund_id for p in positions] == [1]

    def test_closed_position_filtered(self, db: Session):
        """Net quantity of zero is not returned."""
        seed_trade(db, "u1", 1, 20000, date(2024, 1, 10))
        seed_trade(db, "u1", 1, -20000, date(2024, 2, 1))
        seed_price(db, 1, "100.00", date(2024, 1, 10))
        seed_price(db, 1, "110.00", date(2024, 2, 1))

        assert SqlLedgerStore(db).query_positions("u1", date(2024, 6, 1)) == []

    def test_partial_sell_reduces_cost(self, db: Session):
        """Sells contribute negative cost at their own trade-date price."""
        seed_trade(db, "u1", 1, 20000, date(2024, 1, 10))
        seed_trade(db, "u1", 1, -5000, date(2024, 2, 1))
        seed_price(db, 1, "100.00", date(2024, 1, 10))
        seed_price(db, 1, "120.00", date(2024, 2, 1))

        position = SqlLedgerStore(db).query_positions("u1", date(2024, 6, 1))[0]

        assert position.total_quantity == 15000
        # 200 - 60
        assert position.total_buy_cost == Decimal("140")

    def test_other_users_ignored(self, db: Session):
        seed_trade(db, "u1", 1, 20000, date(2024, 1, 10))
        seed_trade(db, "u2", 1, 30000, date(2024, 1, 10))
        seed_price(db, 1, "100.00", date(2024, 1, 10))

        positions = SqlLedgerStore(db).query_positions("u1", date(2024, 6, 1))

        assert positions[0].total_quantity == 20000

    def test_unknown_user_returns_empty(self, db: Session):
        assert SqlLedgerStore(db).query_positions("nobody", date(2024, 6, 1)) == []

    def test_results_ordered_by_fund(self, db: Session):
        for fund_id in (3, 1, 2):
            seed_trade(db, "u1", fund_id, 10000, date(2024, 1, 10))
            seed_price(db, fund_id, "10.00", date(2024, 1, 10))

        positions = SqlLedgerStore(db).query_positions("u1", date(2024, 6, 1))

        assert [p.fund_id for p in positions] == [1, 2, 3]


class TestQueryPositionsByYear:
    """Tests for SqlLedgerStore.query_positions_by_year()."""

    def test_groups_by_trade_year(self, db: Session):
        """Each year's trades form a separate cohort."""
        seed_trade(db, "u1", 1, 10000, date(2023, 5, 2))
        seed_trade(db, "u1", 1, 20000, date(2024, 1, 10))
        seed_price(db, 1, "90.00", date(2023, 5, 2))
        seed_price(db, 1, "100.00", date(2024, 1, 10))

        rows = SqlLedgerStore(db).query_positions_by_year("u1", date(2024, 6, 1))

        assert [(r.year, r.fund_id, r.total_quantity) for r in rows] == [
            (2023, 1, 10000),
            (2024, 1, 20000),
        ]
        assert rows[0].total_buy_cost == Decimal("90")
        assert rows[1].total_buy_cost == Decimal("200")

    def test_filter_applies_per_year(self, db: Session):
        """A year whose own net quantity is not positive is dropped."""
        seed_trade(db, "u1", 1, 20000, date(2023, 5, 2))
        seed_trade(db, "u1", 1, -5000, date(2024, 1, 10))
        seed_price(db, 1, "90.00", date(2023, 5, 2))
        seed_price(db, 1, "100.00", date(2024, 1, 10))

        rows = SqlLedgerStore(db).query_positions_by_year("u1", date(2024, 6, 1))

        assert [r.year for r in rows] == [2023]


class TestQueryLatestPrice:
    """Tests for SqlLedgerStore.query_latest_price()."""

    def test_picks_latest_on_or_before_date(self, db: Session):
        seed_price(db, 1, "100.00", date(2024, 1, 10))
        seed_price(db, 1, "110.00", date(2024, 6, 1))
        seed_price(db, 1, "130.00", date(2024, 9, 1))

        quote = SqlLedgerStore(db).query_latest_price(1, date(2024, 7, 1))

        assert quote.price == Decimal("110.00")
        assert quote.price_date == date(2024, 6, 1)

    def test_price_on_exact_date_used(self, db: Session):
        seed_price(db, 1, "110.00", date(2024, 6, 1))

        quote = SqlLedgerStore(db).query_latest_price(1, date(2024, 6, 1))

        assert quote.price_date == date(2024, 6, 1)

    def test_no_price_returns_none(self, db: Session):
        """Only future prices: nothing to value at."""
        seed_price(db, 1, "110.00", date(2024, 6, 1))

        assert SqlLedgerStore(db).query_latest_price(1, date(2024, 5, 31)) is None

    def test_other_fund_prices_ignored(self, db: Session):
        seed_price(db, 2, "110.00", date(2024, 6, 1))

        assert SqlLedgerStore(db).query_latest_price(1, date(2024, 6, 1)) is None


class TestCountTrades:
    """Tests for SqlLedgerStore.count_trades()."""

    def test_counts_all_rows_regardless_of_date_or_price(self, db: Session):
        seed_trade(db, "u1", 1, 20000, date(2024, 1, 10))
        seed_trade(db, "u1", 2, -100, date(2030, 1, 1))
        seed_trade(db, "u2", 1, 100, date(2024, 1, 10))

        assert SqlLedgerStore(db).count_trades("u1") == 2

    def test_unknown_user_zero(self, db: Session):
        assert SqlLedgerStore(db).count_trades("nobody") == 0


class TestStoreErrors:
    """Database failures are reported as StoreUnavailableError."""

    @pytest.mark.parametrize("method, args", [
        ("query_positions", ("u1", date(2024, 1, 1))),
        ("query_positions_by_year", ("u1", date(2024, 1, 1))),
        ("query_latest_price", (1, date(2024, 1, 1))),
        ("count_trades", ("u1",)),
    ])
    def test_operational_error_wrapped(self, db: Session, method, args):
        store = SqlLedgerStore(db)
        error = OperationalError("SELECT", {}, Exception("connection refused"))

        with patch.object(db, "execute", side_effect=error), \
                patch.object(db, "scalars", side_effect=error), \
                patch.object(db, "scalar", side_effect=error):
            with pytest.raises(StoreUnavailableError) as exc_info:
                getattr(store, method)(*args)

        assert exc_info.value.operation == method
        assert isinstance(exc_info.value.__cause__, OperationalError)


class TestCostSumExpression:
    """The SQL cost aggregate must not overflow a fixed NUMERIC precision."""

    def test_postgres_cast_has_no_precision_limit(self):
        sql = str(SqlLedgerStore._cost_sum().compile(dialect=postgresql.dialect()))

        assert "AS NUMERIC)" in sql

    def test_large_cost_sum_on_sqlite(self, db: Session):
        """Near-INT-max quantities at an eight-digit price stay exact."""
        for day in (10, 11):
            seed_trade(db, "u1", 1, 2_000_000_000, date(2024, 1, day))
            seed_price(db, 1, "50000000.00", date(2024, 1, day))

        positions = SqlLedgerStore(db).query_positions("u1", date(2024, 1, 31))

        assert positions[0].total_quantity == 4_000_000_000
        assert positions[0].total_buy_cost == Decimal("20000000000000")
