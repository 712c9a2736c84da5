#!/usr/bin/env python3
# scripts/import_ledger.py
"""
Load the ledger CSV files into the database.

Usage:
    python scripts/import_ledger.py
    python scripts/import_ledger.py --trades data/trade_history.csv --prices data/reference_prices.csv

Trades are imported first, then prices. Each file is all-or-nothing.
Exits with status 1 if either file is rejected.
"""
import argparse
import logging
import sys
from pathlib import Path

# Setup path to import fund_positions modules
project_dir = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_dir))

from fund_positions.config import settings
from fund_positions.database import SessionLocal, engine, wait_for_database
from fund_positions.models import Base
from fund_positions.services.exceptions import IngestionError
from fund_positions.services.ingestion import LedgerImportService
from fund_positions.utils import setup_logging

logger = logging.getLogger("import_ledger")


def import_ledger(trades: Path, prices: Path, wait: bool = True) -> int:
    """
    Import both ledger files.

    Returns:
        Process exit status (0 on success)
    """
    if wait:
        wait_for_database()
    Base.metadata.create_all(bind=engine)

    service = LedgerImportService()
    db = SessionLocal()
    try:
        results = service.import_paths(db, trades, prices)
    except IngestionError as e:
        logger.error(f"Import failed: {e}")
        return 1
    finally:
        db.close()

    logger.info("=" * 60)
    logger.info("IMPORT COMPLETE")
    for result in results:
        logger.info(f"  {result.table}: {result.inserted_count} row(s) from {result.source}")
    logger.info("=" * 60)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Import trade history and reference prices")
    parser.add_argument(
        "--trades",
        type=Path,
        default=settings.trade_history_csv,
        help=f"Trade history CSV (default: {settings.trade_history_csv})",
    )
    parser.add_argument(
        "--prices",
        type=Path,
        default=settings.reference_prices_csv,
        help=f"Reference prices CSV (default: {settings.reference_prices_csv})",
    )
    parser.add_argument(
        "--no-wait",
        action="store_true",
        help="Do not wait for the database to accept connections",
    )
    args = parser.parse_args(argv)

    setup_logging()
    return import_ledger(args.trades, args.prices, wait=not args.no_wait)


if __name__ == "__main__":
    sys.exit(main())
