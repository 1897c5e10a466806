"""Trade endpoint.

POST /markets/{market_id}/trade   - buy or sell YES/NO against the AMM

Rate limited per user (Redis fixed window, TRADE_RATE_LIMIT_PER_MINUTE).
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.database import get_db_session
from src.pm_common.response import ApiResponse, success_response
from src.pm_gateway.middleware.rate_limit import trade_rate_limit
from src.pm_gateway.user.db_models import UserModel
from src.pm_trade.application.schemas import TradeRequestBody, TradeResponse
from src.pm_trade.application.service import TradeExecutor
from src.pm_trade.domain.models import TradeRequest

router = APIRouter(prefix="/markets", tags=["trade"])

_executor = TradeExecutor()


@router.post("/{market_id}/trade")
async def trade(
    market_id: str,
    body: TradeRequestBody,
    request: Request,
    current_user: Annotated[UserModel, Depends(trade_rate_limit)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _executor.execute_trade(
        db,
        TradeRequest(
            user_id=str(current_user.id),
            market_id=market_id,
            trade_type=body.type,
            amount=body.amount,
        ),
    )
    data = TradeResponse.from_result(market_id, body.type, result)
    return success_response(data.model_dump(), request)
