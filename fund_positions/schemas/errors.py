# fund_positions/schemas/errors.py
"""
Pydantic schemas for error responses.

Every failure of the ledger API, from a malformed ?date= to an
unreachable trade store, is returned as {"error", "message", "details"}.
`error` is the exception class name so clients can branch on it without
parsing the message. Built by the global exception handlers in main.py.
"""

from pydantic import BaseModel, ConfigDict, Field


class ErrorDetail(BaseModel):
    """
    Standard error response format.

    `details` depends on `error`:
        InvalidDateError       -> {"field": "date", "value": <raw input>}
        StoreUnavailableError  -> {"operation": <store query that failed>}
        anything else          -> null
    """

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "error": "InvalidDateError",
                    "message": "Invalid date format: '2024-1-10'. Use YYYY-MM-DD",
                    "details": {"field": "date", "value": "2024-1-10"},
                },
                {
                    "error": "StoreUnavailableError",
                    "message": "The ledger store could not be queried",
                    "details": {"operation": "query_positions"},
                },
            ]
        }
    )

    error: str = Field(
        ...,
        description="Exception class name (e.g., 'InvalidDateError', 'StoreUnavailableError')"
    )
    message: str = Field(
        ...,
        description="Human-readable error message; never carries raw database errors"
    )
    details: dict | None = Field(
        default=None,
        description="Offending query parameter for 400s, failed store operation for ledger 500s"
    )


class ValidationErrorDetail(BaseModel):
    """Path or query parameters rejected by FastAPI (422), e.g. an over-long user_id."""

    error: str = Field(default="ValidationError")
    message: str = Field(default="Request validation failed")
    details: list[dict] = Field(
        ...,
        description="One {field, message, type} entry per rejected parameter"
    )
