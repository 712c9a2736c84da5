# fund_positions/models.py
from datetime import date
from decimal import Decimal

from sqlalchemy import String, Date, Integer, Numeric, Index
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


class TradeHistory(Base):
    """
    One buy (positive quantity) or sell (negative quantity) of a fund.

    Rows are written once by the ledger import and never updated.
    The composite primary key allows a single trade per user, fund and day.
    """
    __tablename__ = "trade_histories"
    __table_args__ = (
        # Position queries filter by user and date, then group by fund
        Index('ix_trade_histories_user_date', 'user_id', 'trade_date'),
    )

    user_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    fund_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    trade_date: Mapped[date] = mapped_column(Date, primary_key=True)
    quantity: Mapped[int] = mapped_column(Integer)  # Units, priced per UNIT_BASE

    def __repr__(self) -> str:
        return (
            f"TradeHistory(user_id={self.user_id!r}, fund_id={self.fund_id}, "
            f"quantity={self.quantity}, trade_date={self.trade_date})"
        )


class ReferencePrice(Base):
    """
    Daily reference price (NAV) of a fund, quoted per UNIT_BASE units.

    At most one price per fund per day.
    """
    __tablename__ = "reference_prices"

    fund_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    price_date: Mapped[date] = mapped_column(Date, primary_key=True)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2))

    def __repr__(self) -> str:
        return f"ReferencePrice(fund_id={self.fund_id}, price={self.price}, price_date={self.price_date})"
