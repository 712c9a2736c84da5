# fund_positions/services/ledger_store.py
"""
SQL implementation of the ledger store.

Wraps one SQLAlchemy session and answers the four read queries the
valuation engine needs. Cost basis is joined on the exact trade date:

    SELECT th.fund_id,
           SUM(th.quantity),
           SUM(th.quantity * rp.price)
    FROM trade_histories th
    JOIN reference_prices rp
      ON th.fund_id = rp.fund_id AND th.trade_date = rp.price_date
    WHERE th.user_id = :user_id AND th.trade_date <= :as_of
    GROUP BY th.fund_id
    HAVING SUM(th.quantity) > 0

The price × quantity sum is cast to a fixed-scale NUMERIC so the driver
returns an exact Decimal, then divided by UNIT_BASE here.

Any SQLAlchemy error is raised as StoreUnavailableError.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date
from decimal import Decimal

from sqlalchemy import select, and_, func, cast, extract, Numeric
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fund_positions.models import TradeHistory, ReferencePrice
from fund_positions.services.constants import (
    UNIT_BASE,
    COST_SUM_SCALE,
)
from fund_positions.services.exceptions import StoreUnavailableError
from fund_positions.services.valuation.types import (
    Position,
    YearPosition,
    PriceQuote,
)

logger = logging.getLogger(__name__)


@contextmanager
def _store_operation(operation: str) -> Iterator[None]:
    """Translate database errors into StoreUnavailableError."""
    try:
        yield
    except SQLAlchemyError as e:
        reason = str(e).splitlines()[0] if str(e) else type(e).__name__
        logger.error(f"Ledger store {operation} failed: {reason}")
        raise StoreUnavailableError(operation, reason) from e


def _to_buy_cost(raw_sum: Decimal | None) -> Decimal:
    """Convert a Σ quantity × price sum into a monetary amount."""
    if raw_sum is None:
        return Decimal("0")
    return Decimal(raw_sum) / UNIT_BASE


class SqlLedgerStore:
    """
    Ledger store backed by the trade_histories and reference_prices tables.

    One instance per request; the session is owned by the caller.
    """

    def __init__(self, db: Session) -> None:
        self._db = db

    def query_positions(self, user_id: str, as_of_date: date) -> list[Position]:
        """
        Net quantity and buy cost per fund for trades on or before as_of_date.

        Only funds with a positive net quantity are returned.
        """
        total_quantity = func.sum(TradeHistory.quantity)
        stmt = (
            select(
                TradeHistory.fund_id,
                total_quantity.label("total_quantity"),
                self._cost_sum().label("cost_sum"),
            )
            .join(ReferencePrice, self._trade_date_price_join())
            .where(
                and_(
                    TradeHistory.user_id == user_id,
                    TradeHistory.trade_date <= as_of_date,
                )
            )
            .group_by(TradeHistory.fund_id)
            .having(total_quantity > 0)
            .order_by(TradeHistory.fund_id)
        )

        with _store_operation("query_positions"):
            rows = self._db.execute(stmt).all()

        return [
            Position(
                fund_id=row.fund_id,
                total_quantity=int(row.total_quantity),
                total_buy_cost=_to_buy_cost(row.cost_sum),
            )
            for row in rows
        ]

    def query_positions_by_year(self, user_id: str, as_of_date: date) -> list[YearPosition]:
        """
        Same aggregate as query_positions, grouped by (trade year, fund).

        The positive-quantity filter applies within each year bucket.
        """
        trade_year = extract("year", TradeHistory.trade_date)
        total_quantity = func.sum(TradeHistory.quantity)
        stmt = (
            select(
                trade_year.label("trade_year"),
                TradeHistory.fund_id,
                total_quantity.label("total_quantity"),
                self._cost_sum().label("cost_sum"),
            )
            .join(ReferencePrice, self._trade_date_price_join())
            .where(
                and_(
                    TradeHistory.user_id == user_id,
                    TradeHistory.trade_date <= as_of_date,
                )
            )
            .group_by(trade_year, TradeHistory.fund_id)
            .having(total_quantity > 0)
            .order_by(trade_year, TradeHistory.fund_id)
        )

        with _store_operation("query_positions_by_year"):
            rows = self._db.execute(stmt).all()

        return [
            YearPosition(
                year=int(row.trade_year),
                fund_id=row.fund_id,
                total_quantity=int(row.total_quantity),
                total_buy_cost=_to_buy_cost(row.cost_sum),
            )
            for row in rows
        ]

    def query_latest_price(self, fund_id: int, as_of_date: date) -> PriceQuote | None:
        """Most recent reference price with price_date <= as_of_date, or None."""
        stmt = (
            select(ReferencePrice)
            .where(
                and_(
                    ReferencePrice.fund_id == fund_id,
                    ReferencePrice.price_date <= as_of_date,
                )
            )
            .order_by(ReferencePrice.price_date.desc())
            .limit(1)
        )

        with _store_operation("query_latest_price"):
            price = self._db.scalars(stmt).first()

        if price is None:
            return None

        return PriceQuote(
            fund_id=price.fund_id,
            price=Decimal(price.price),
            price_date=price.price_date,
        )

    def count_trades(self, user_id: str) -> int:
        """Raw number of trade rows for the user, all dates."""
        stmt = (
            select(func.count())
            .select_from(TradeHistory)
            .where(TradeHistory.user_id == user_id)
        )

        with _store_operation("count_trades"):
            return self._db.scalar(stmt) or 0

    # =========================================================================
    # QUERY FRAGMENTS
    # =========================================================================

    @staticmethod
    def _trade_date_price_join():
        return and_(
            TradeHistory.fund_id == ReferencePrice.fund_id,
            TradeHistory.trade_date == ReferencePrice.price_date,
        )

    @staticmethod
    def _cost_sum():
        return cast(
            func.sum(TradeHistory.quantity * ReferencePrice.price),
            Numeric(asdecimal=True, decimal_return_scale=COST_SUM_SCALE),
        )
