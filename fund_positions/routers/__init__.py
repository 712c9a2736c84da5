# fund_positions/routers/__init__.py
"""
API routers for the Fund Positions API.

- positions: Trade counts and asset valuations per ledger user
"""

from fund_positions.routers.positions import router as positions_router

__all__ = [
    "positions_router",
]
