# fund_positions/services/valuation/__init__.py
"""
Valuation Service Package.

- Trade count (get_trade_count)
- Single date valuation (get_valuation)
- Purchase-year cohort valuation (get_valuation_by_year)

Usage:
    from fund_positions.services.valuation import ValuationService

    service = ValuationService()
    result = service.get_valuation(store, "u1", date(2024, 6, 1))

Architecture:
    valuation/
    ├── __init__.py      # This file - package exports
    ├── types.py         # Internal data classes
    ├── calculators.py   # Aggregator, price resolvers, value helpers
    └── service.py       # ValuationService (orchestrator)

Data Flow:
    Ledger store → PositionAggregator → Positions
    Ledger store → PriceResolver → PriceQuote per fund
    Positions + Quotes → ValueCalculator → floored totals
"""

from fund_positions.services.valuation.calculators import (
    PositionAggregator,
    PriceResolver,
    CachingPriceResolver,
    ValueCalculator,
)
from fund_positions.services.valuation.service import ValuationService
from fund_positions.services.valuation.types import (
    Position,
    YearPosition,
    PriceQuote,
    AssetValuation,
    YearlyValuation,
    AssetsByYear,
)

__all__ = [
    # Main service
    "ValuationService",

    # Data types
    "Position",
    "YearPosition",
    "PriceQuote",
    "AssetValuation",
    "YearlyValuation",
    "AssetsByYear",

    # Calculators
    "PositionAggregator",
    "PriceResolver",
    "CachingPriceResolver",
    "ValueCalculator",
]
