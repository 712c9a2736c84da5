# fund_positions/services/ingestion/__init__.py
"""
Ledger ingestion package.

Imports trade_history.csv and reference_prices.csv into the ledger tables.

Usage:
    from fund_positions.services.ingestion import LedgerImportService

    service = LedgerImportService()
    service.import_paths(db, Path("trade_history.csv"), Path("reference_prices.csv"))
"""

from fund_positions.services.ingestion.parsers import (
    LedgerCsvParser,
    TradeHistoryCsvParser,
    ReferencePriceCsvParser,
    TradeRow,
    PriceRow,
    ParseError,
    ParseResult,
)
from fund_positions.services.ingestion.service import (
    LedgerImportService,
    ImportResult,
)

__all__ = [
    "LedgerImportService",
    "ImportResult",
    "LedgerCsvParser",
    "TradeHistoryCsvParser",
    "ReferencePriceCsvParser",
    "TradeRow",
    "PriceRow",
    "ParseError",
    "ParseResult",
]
