# fund_positions/schemas/__init__.py
"""
Pydantic schemas for API request and response serialization.
"""

from fund_positions.schemas.errors import ErrorDetail, ValidationErrorDetail
from fund_positions.schemas.positions import (
    TradesCountResponse,
    AssetValuationResponse,
    YearlyAsset,
    AssetsByYearResponse,
)

__all__ = [
    "ErrorDetail",
    "ValidationErrorDetail",
    "TradesCountResponse",
    "AssetValuationResponse",
    "YearlyAsset",
    "AssetsByYearResponse",
]
