# fund_positions/services/exceptions.py
"""
Service layer exceptions.

These exceptions represent domain-specific errors and contain NO HTTP knowledge.
The application module is responsible for mapping these to HTTP responses.

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError
    │   └── InvalidDateError
    ├── PriceError
    │   └── NoPriceAvailableError
    ├── StoreError
    │   └── StoreUnavailableError
    └── IngestionError
"""

from datetime import date


class ServiceError(Exception):
    """
    Base exception for all service layer errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(ServiceError):
    """
    Raised when input validation fails.

    Attributes:
        field: The field that failed validation (optional)
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class InvalidDateError(ValidationError):
    """
    Raised when a date parameter is not a real calendar date in YYYY-MM-DD form.

    Attributes:
        value: The rejected input
    """

    def __init__(self, value: str, field: str = "date") -> None:
        self.value = value
        super().__init__(
            f"Invalid date format: '{value}'. Use YYYY-MM-DD",
            field=field,
        )


# =============================================================================
# PRICE ERRORS
# =============================================================================


class PriceError(ServiceError):
    """
    Base exception for reference price lookups.

    Attributes:
        fund_id: Fund whose price was requested
    """

    def __init__(self, message: str, fund_id: int | None = None) -> None:
        self.fund_id = fund_id
        super().__init__(message)


class NoPriceAvailableError(PriceError):
    """
    Raised when a fund has no reference price on or before the as-of date.

    This is an expected state (fund not priced yet), not a failure. The
    valuation engine catches it and leaves the fund out of the totals.

    Attributes:
        as_of_date: The date the price was requested for
    """

    def __init__(self, fund_id: int, as_of_date: date) -> None:
        self.as_of_date = as_of_date
        super().__init__(
            f"No reference price for fund {fund_id} on or before {as_of_date}",
            fund_id=fund_id,
        )


# =============================================================================
# STORE ERRORS
# =============================================================================


class StoreError(ServiceError):
    """
    Base exception for ledger store failures.

    Attributes:
        operation: Store operation that failed (e.g. "query_positions")
    """

    def __init__(self, message: str, operation: str | None = None) -> None:
        self.operation = operation
        super().__init__(message)


class StoreUnavailableError(StoreError):
    """
    Raised when the ledger store cannot be queried.

    Wraps the underlying database error. Requests fail as a whole; no
    partial valuation is returned and nothing is retried.

    Attributes:
        reason: Description of the underlying failure
    """

    def __init__(self, operation: str, reason: str) -> None:
        self.reason = reason
        super().__init__(
            f"Ledger store unavailable during {operation}: {reason}",
            operation=operation,
        )


# =============================================================================
# INGESTION ERRORS
# =============================================================================


class IngestionError(ServiceError):
    """
    Raised when a ledger CSV cannot be imported.

    Any failure aborts the whole file; nothing is committed.

    Attributes:
        source: Name of the file being imported
        errors: Row-level problems found while parsing
    """

    def __init__(
            self,
            message: str,
            source: str | None = None,
            errors: list | None = None,
    ) -> None:
        self.source = source
        self.errors = errors or []
        super().__init__(message)


__all__ = [
    # Base
    "ServiceError",
    # Validation
    "ValidationError",
    "InvalidDateError",
    # Prices
    "PriceError",
    "NoPriceAvailableError",
    # Store
    "StoreError",
    "StoreUnavailableError",
    # Ingestion
    "IngestionError",
]
