# fund_positions/services/__init__.py
"""
Service layer for business logic.

Services:
- Have NO knowledge of HTTP (no HTTPException, no status codes)
- Raise domain-specific exceptions
- Receive their collaborators (ledger store, session) as parameters

Architecture:
    services/
    ├── __init__.py        # This file - main exports
    ├── exceptions.py      # Domain exceptions
    ├── constants.py       # Business constants and limits
    ├── protocols.py       # Service interfaces (Protocol classes)
    ├── ledger_store.py    # SQL ledger store
    ├── ingestion/         # Ledger CSV import
    │   ├── service.py     # Import orchestration (one transaction per file)
    │   └── parsers.py     # Trade history / reference price CSV parsers
    └── valuation/         # Valuation engine
        ├── service.py     # ValuationService
        ├── types.py       # Valuation data types
        └── calculators.py # Aggregator, price resolvers, value helpers
"""

from fund_positions.services.exceptions import (
    ServiceError,
    ValidationError,
    InvalidDateError,
    PriceError,
    NoPriceAvailableError,
    StoreError,
    StoreUnavailableError,
    IngestionError,
)
from fund_positions.services.ledger_store import SqlLedgerStore
from fund_positions.services.valuation import ValuationService
from fund_positions.services.ingestion import LedgerImportService

__all__ = [
    # Services
    "SqlLedgerStore",
    "ValuationService",
    "LedgerImportService",
    # Exceptions
    "ServiceError",
    "ValidationError",
    "InvalidDateError",
    "PriceError",
    "NoPriceAvailableError",
    "StoreError",
    "StoreUnavailableError",
    "IngestionError",
]
