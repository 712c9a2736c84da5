# fund_positions/schemas/positions.py
"""
Pydantic schemas for the ledger endpoints.

- GET /{user_id}/trades        -> TradesCountResponse
- GET /{user_id}/assets        -> AssetValuationResponse
- GET /{user_id}/assets/byYear -> AssetsByYearResponse

Monetary figures are whole currency units, floored.
Dates serialize as YYYY-MM-DD.
"""

import datetime as dt

from pydantic import BaseModel, Field


class TradesCountResponse(BaseModel):
    """Number of trades recorded for a user."""

    count: int = Field(
        ...,
        ge=0,
        description="Raw number of trade records for the user (all dates)"
    )


class AssetValuationResponse(BaseModel):
    """Value and profit/loss of all holdings on one date."""

    date: dt.date = Field(
        ...,
        description="Valuation date (YYYY-MM-DD)"
    )
    current_value: int = Field(
        ...,
        description="floor(Σ price × quantity ÷ 10000) over priced funds"
    )
    current_pl: int = Field(
        ...,
        description="floor(current value - buy cost) over priced funds"
    )


class YearlyAsset(BaseModel):
    """Value and profit/loss of the units bought in one year."""

    year: int = Field(
        ...,
        description="Purchase year"
    )
    current_value: int = Field(
        ...,
        description="Today's value of that year's units, floored"
    )
    current_pl: int = Field(
        ...,
        description="Today's value minus that year's buy cost, floored"
    )


class AssetsByYearResponse(BaseModel):
    """Purchase-year breakdown, newest year first."""

    date: dt.date = Field(
        ...,
        description="Date the current prices are taken from (today)"
    )
    assets: list[YearlyAsset] = Field(
        default_factory=list,
        description="One entry per purchase year, descending"
    )
