"""pm_market REST endpoints.

GET /markets                          - list with status filter, search, cursor pagination
GET /markets/{market_id}              - detail with prices, trial and recent activity
GET /markets/{market_id}/quote        - price a trade without executing it
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.database import get_db_session
from src.pm_common.response import ApiResponse, success_response
from src.pm_market.application.service import MarketApplicationService

router = APIRouter(prefix="/markets", tags=["markets"])

_service = MarketApplicationService()


@router.get("")
async def list_markets(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    status: str | None = Query(
        None, description="Filter by status. Default: OPEN. Use ALL for no filter."
    ),
    search: str | None = Query(None, max_length=200),
    limit: int = Query(20, ge=1, le=100),
    cursor: str | None = Query(None),
) -> ApiResponse:
    result = await _service.list_markets(db, status, search, cursor, limit)
    return success_response(result.model_dump(), request)


@router.get("/{market_id}")
async def get_market(
    market_id: str,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.get_market(db, market_id)
    return success_response(result.model_dump(), request)


@router.get("/{market_id}/quote")
async def quote_trade(
    market_id: str,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    type: str = Query(..., description="BUY_YES | BUY_NO | SELL_YES | SELL_NO"),
    amount: float = Query(..., description="Currency for buys, shares for sells"),
) -> ApiResponse:
    result = await _service.quote(db, market_id, type, amount)
    return success_response(result.model_dump(), request)
