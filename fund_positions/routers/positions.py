# fund_positions/routers/positions.py
"""
Ledger position endpoints.

- GET /{user_id}/trades - Number of trades recorded for the user
- GET /{user_id}/assets - Value and profit/loss on a date (default: today)
- GET /{user_id}/assets/byYear - Value and profit/loss per purchase year, today

Handlers only translate parameters and results. Domain exceptions
(InvalidDateError, StoreUnavailableError) propagate to the global handlers.
"""

from datetime import date

from fastapi import APIRouter, Depends, Path, Request

from fund_positions.dependencies import (
    get_ledger_store,
    get_valuation_date,
    get_valuation_service,
)
from fund_positions.middleware.rate_limit import (
    limiter,
    RATE_LIMIT_DEFAULT,
    RATE_LIMIT_VALUATION,
)
from fund_positions.schemas.errors import ErrorDetail
from fund_positions.schemas.positions import (
    TradesCountResponse,
    AssetValuationResponse,
    YearlyAsset,
    AssetsByYearResponse,
)
from fund_positions.services.protocols import LedgerStoreProtocol
from fund_positions.services.valuation import (
    ValuationService,
    AssetValuation,
    AssetsByYear,
)

# =============================================================================
# ROUTER SETUP
# =============================================================================

router = APIRouter(
    tags=["Positions"],
    responses={
        500: {"model": ErrorDetail, "description": "Ledger store unavailable"},
    },
)

_USER_ID = Path(..., min_length=1, max_length=255, description="Ledger user identifier")


# =============================================================================
# MAPPER FUNCTIONS (Internal Types -> Pydantic Schemas)
# =============================================================================

def _map_valuation(valuation: AssetValuation) -> AssetValuationResponse:
    """Map internal AssetValuation to Pydantic schema."""
    return AssetValuationResponse(
        date=valuation.valuation_date,
        current_value=valuation.current_value,
        current_pl=valuation.current_pl,
    )


def _map_by_year(by_year: AssetsByYear) -> AssetsByYearResponse:
    """Map internal AssetsByYear to Pydantic schema."""
    return AssetsByYearResponse(
        date=by_year.valuation_date,
        assets=[
            YearlyAsset(
                year=item.year,
                current_value=item.current_value,
                current_pl=item.current_pl,
            )
            for item in by_year.years
        ],
    )


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get(
    "/{user_id}/trades",
    response_model=TradesCountResponse,
    summary="Count a user's trades",
)
@limiter.limit(RATE_LIMIT_DEFAULT)
def get_trades_count(
        request: Request,
        user_id: str = _USER_ID,
        store: LedgerStoreProtocol = Depends(get_ledger_store),
        service: ValuationService = Depends(get_valuation_service),
) -> TradesCountResponse:
    """
    Total number of trade records for the user, regardless of date.

    Unknown users have zero trades.
    """
    return TradesCountResponse(count=service.get_trade_count(store, user_id))


@router.get(
    "/{user_id}/assets",
    response_model=AssetValuationResponse,
    summary="Get a user's asset valuation",
    responses={400: {"model": ErrorDetail, "description": "Malformed date"}},
)
@limiter.limit(RATE_LIMIT_VALUATION)
def get_assets(
        request: Request,
        user_id: str = _USER_ID,
        valuation_date: date | None = Depends(get_valuation_date),
        store: LedgerStoreProtocol = Depends(get_ledger_store),
        service: ValuationService = Depends(get_valuation_service),
) -> AssetValuationResponse:
    """
    Market value and profit/loss of the user's open positions.

    - Trades up to **date** count, each at its trade-date price for cost basis
    - Each fund is valued at its latest price on or before **date**
    - Funds without such a price are left out entirely
    - Both figures are floored to whole units after summing

    Raises **400** if `date` is not a valid YYYY-MM-DD date.
    """
    valuation = service.get_valuation(store, user_id, valuation_date)
    return _map_valuation(valuation)


@router.get(
    "/{user_id}/assets/byYear",
    response_model=AssetsByYearResponse,
    summary="Get a user's asset valuation by purchase year",
)
@limiter.limit(RATE_LIMIT_VALUATION)
def get_assets_by_year(
        request: Request,
        user_id: str = _USER_ID,
        store: LedgerStoreProtocol = Depends(get_ledger_store),
        service: ValuationService = Depends(get_valuation_service),
) -> AssetsByYearResponse:
    """
    Today's value and profit/loss of the units bought in each calendar year.

    Years are sorted newest first. A fund bought in several years appears
    in each of those years with that year's units and cost.
    """
    by_year = service.get_valuation_by_year(store, user_id)
    return _map_by_year(by_year)
