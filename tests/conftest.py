# tests/conftest.py
"""
Pytest configuration and fixtures.

This module provides shared fixtures for all tests:
- Test environment variables (set before any fund_positions import)
- Database session fixtures (in-memory SQLite)
- An in-memory ledger store for calculator tests
- Sample data factories
"""

import os

# Settings are read on first import of fund_positions.config
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("APP_NAME", "Test App")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from fund_positions.models import Base, TradeHistory, ReferencePrice
from fund_positions.services.constants import UNIT_BASE
from fund_positions.services.valuation.types import Position, YearPosition, PriceQuote


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture(scope="function")
def db_engine():
    """Create an in-memory SQLite database engine for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def db(db_engine) -> Iterator[Session]:
    """Create a database session for testing."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


# =============================================================================
# IN-MEMORY LEDGER STORE
# =============================================================================

class InMemoryLedgerStore:
    """
    Ledger store over plain lists, for tests that need no database.

    Mirrors SqlLedgerStore: cost basis joins each trade to the price of its
    exact trade date, and only positive net quantities are returned.
    """

    def __init__(self):
        self.trades: list[tuple[str, int, int, date]] = []
        self.prices: dict[tuple[int, date], Decimal] = {}
        self.price_queries: list[tuple[int, date]] = []

    def add_trade(self, user_id: str, fund_id: int, quantity: int, trade_date: date) -> None:
        self.trades.append((user_id, fund_id, quantity, trade_date))

    def add_price(self, fund_id: int, price: str | Decimal, price_date: date) -> None:
        self.prices[(fund_id, price_date)] = Decimal(price)

    def _priced_trades(self, user_id: str, as_of_date: date):
        for trade_user, fund_id, quantity, trade_date in self.trades:
            if trade_user != user_id or trade_date > as_of_date:
                continue
            price = self.prices.get((fund_id, trade_date))
            if price is not None:
                yield fund_id, quantity, trade_date, price

    def query_positions(self, user_id: str, as_of_date: date) -> list[Position]:
        quantity = defaultdict(int)
        cost = defaultdict(Decimal)
        for fund_id, qty, _, price in self._priced_trades(user_id, as_of_date):
            quantity[fund_id] += qty
            cost[fund_id] += qty * price
        return [
            Position(fund_id=f, total_quantity=quantity[f], total_buy_cost=cost[f] / UNIT_BASE)
            for f in sorted(quantity)
            if quantity[f] > 0
        ]

    def query_positions_by_year(self, user_id: str, as_of_date: date) -> list[YearPosition]:
        quantity = defaultdict(int)
        cost = defaultdict(Decimal)
        for fund_id, qty, trade_date, price in self._priced_trades(user_id, as_of_date):
            key = (trade_date.year, fund_id)
            quantity[key] += qty
            cost[key] += qty * price
        return [
            YearPosition(
                year=year,
                fund_id=fund_id,
                total_quantity=quantity[(year, fund_id)],
                total_buy_cost=cost[(year, fund_id)] / UNIT_BASE,
            )
            for year, fund_id in sorted(quantity)
            if quantity[(year, fund_id)] > 0
        ]

    def query_latest_price(self, fund_id: int, as_of_date: date) -> PriceQuote | None:
        self.price_queries.append((fund_id, as_of_date))
        candidates = [
            (price_date, price)
            for (price_fund, price_date), price in self.prices.items()
            if price_fund == fund_id and price_date <= as_of_date
        ]
        if not candidates:
            return None
        price_date, price = max(candidates)
        return PriceQuote(fund_id=fund_id, price=price, price_date=price_date)

    def count_trades(self, user_id: str) -> int:
        return sum(1 for trade in self.trades if trade[0] == user_id)


@pytest.fixture
def memory_store() -> InMemoryLedgerStore:
    """Create a fresh in-memory ledger store for each test."""
    return InMemoryLedgerStore()


# =============================================================================
# SAMPLE DATA FACTORIES
# =============================================================================

def seed_trade(
        db: Session,
        user_id: str = "u1",
        fund_id: int = 1,
        quantity: int = 20000,
        trade_date: date = date(2024, 1, 10),
) -> TradeHistory:
    """Factory function for creating TradeHistory rows in the database."""
    trade = TradeHistory(
        user_id=user_id,
        fund_id=fund_id,
        quantity=quantity,
        trade_date=trade_date,
    )
    db.add(trade)
    db.commit()
    return trade


def seed_price(
        db: Session,
        fund_id: int = 1,
        price: str = "100.00",
        price_date: date = date(2024, 1, 10),
) -> ReferencePrice:
    """Factory function for creating ReferencePrice rows in the database."""
    reference_price = ReferencePrice(
        fund_id=fund_id,
        price=Decimal(price),
        price_date=price_date,
    )
    db.add(reference_price)
    db.commit()
    return reference_price
