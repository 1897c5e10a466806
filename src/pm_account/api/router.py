"""pm_account REST API - portfolio, transaction history, leaderboard.

GET /user/portfolio       - balance + mark-to-market positions (JWT)
GET /user/transactions    - own trade history, cursor pagination (JWT)
GET /leaderboard          - users ranked by total value (public)
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_account.application.service import AccountApplicationService
from src.pm_common.database import get_db_session
from src.pm_common.response import ApiResponse, success_response
from src.pm_gateway.auth.dependencies import get_current_user
from src.pm_gateway.user.db_models import UserModel

router = APIRouter(tags=["account"])

_service = AccountApplicationService()


@router.get("/user/portfolio")
async def get_portfolio(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_portfolio(db, str(current_user.id))
    return success_response(data.model_dump(), request)


@router.get("/user/transactions")
async def list_transactions(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    limit: int = Query(20, ge=1, le=100),
    cursor: str | None = Query(None),
) -> ApiResponse:
    data = await _service.list_transactions(db, str(current_user.id), cursor, limit)
    return success_response(data.model_dump(), request)


@router.get("/leaderboard")
async def get_leaderboard(
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    limit: int = Query(20, ge=1, le=100),
) -> ApiResponse:
    data = await _service.get_leaderboard(db, limit)
    return success_response(data.model_dump(), request)
