# fund_positions/services/protocols.py
"""
Protocol interfaces for service dependency injection.

Using typing.Protocol enables structural subtyping:
- SqlLedgerStore satisfies LedgerStoreProtocol without inheritance
- Test fakes work without explicit inheritance
- The valuation engine never touches a session or a module-level handle
"""

from __future__ import annotations

from datetime import date
from typing import Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from fund_positions.services.valuation.types import (
        Position,
        YearPosition,
        PriceQuote,
    )


class LedgerStoreProtocol(Protocol):
    """Read access to the trade and reference price ledgers."""

    def query_positions(self, user_id: str, as_of_date: date) -> list[Position]:
        ...

    def query_positions_by_year(self, user_id: str, as_of_date: date) -> list[YearPosition]:
        ...

    def query_latest_price(self, fund_id: int, as_of_date: date) -> PriceQuote | None:
        ...

    def count_trades(self, user_id: str) -> int:
        ...

