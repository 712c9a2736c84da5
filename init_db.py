#!/usr/bin/env python3
# init_db.py
"""
Database initialization script.

Waits for the ledger database, then creates any missing tables.
Existing tables and rows are left untouched.

This script can be run from any directory:
    python init_db.py
    python path/to/init_db.py --no-wait
"""
import argparse
import logging
import sys
from pathlib import Path

# Add the project root to Python path so 'fund_positions' is importable
project_dir = Path(__file__).parent
sys.path.insert(0, str(project_dir))

from fund_positions.database import engine, wait_for_database
from fund_positions.models import Base
from fund_positions.utils import setup_logging

logger = logging.getLogger("init_db")


def init_db(wait: bool = True) -> None:
    """Create all ledger tables defined in models."""
    if wait:
        wait_for_database()

    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    logger.info(f"Tables ready: {', '.join(sorted(Base.metadata.tables))}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the ledger tables")
    parser.add_argument(
        "--no-wait",
        action="store_true",
        help="Fail immediately if the database is not reachable",
    )
    args = parser.parse_args()

    setup_logging()
    init_db(wait=not args.no_wait)
