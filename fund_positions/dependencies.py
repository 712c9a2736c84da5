# fund_positions/dependencies.py
"""
Dependency injection module for FastAPI.

- get_valuation_service: process-wide singleton (the service is stateless)
- get_ledger_store: one SqlLedgerStore per request, around the request's session
- get_valuation_date: optional ?date=YYYY-MM-DD query parameter

Usage in routers:
    @router.get("/{user_id}/assets")
    def get_assets(
        store: LedgerStoreProtocol = Depends(get_ledger_store),
        service: ValuationService = Depends(get_valuation_service),
    ):
        ...
"""

import logging
from datetime import date
from functools import lru_cache

from fastapi import Depends, Query
from sqlalchemy.orm import Session

from fund_positions.database import get_db
from fund_positions.services.exceptions import InvalidDateError
from fund_positions.services.ledger_store import SqlLedgerStore
from fund_positions.services.protocols import LedgerStoreProtocol
from fund_positions.services.valuation.service import ValuationService
from fund_positions.utils.date_utils import parse_iso_date

logger = logging.getLogger(__name__)


# =============================================================================
# SINGLETON SERVICE INSTANCES
# =============================================================================

@lru_cache(maxsize=1)
def get_valuation_service() -> ValuationService:
    """Get the singleton ValuationService instance."""
    return ValuationService()


# =============================================================================
# REQUEST-SCOPED DEPENDENCIES
# =============================================================================

def get_ledger_store(db: Session = Depends(get_db)) -> LedgerStoreProtocol:
    """Ledger store bound to this request's database session."""
    return SqlLedgerStore(db)


def get_valuation_date(
        raw_date: str | None = Query(
            default=None,
            alias="date",
            description="Valuation date, YYYY-MM-DD (default: today)",
            examples=["2024-06-01"],
        ),
) -> date | None:
    """
    Parse the optional ?date= parameter.

    Missing or empty means "today" (returned as None). Anything else must be
    a real calendar date written as YYYY-MM-DD.

    Raises:
        InvalidDateError: For any other value (mapped to 400)
    """
    if raw_date is None or raw_date == "":
        return None

    try:
        return parse_iso_date(raw_date)
    except ValueError:
        logger.info(f"Rejected date parameter: {raw_date!r}")
        raise InvalidDateError(raw_date) from None
