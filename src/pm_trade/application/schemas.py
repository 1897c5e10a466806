"""Pydantic schemas for the trade endpoint.

`type` and `amount` are validated by the domain (InvalidTradeType 4002,
InvalidAmount 4001) so the client gets the same error codes as for quotes.
"""

from pydantic import BaseModel, Field

from src.pm_common.money import amount_to_display
from src.pm_trade.domain.models import TradeResult


class TradeRequestBody(BaseModel):
    type: str = Field(..., description="BUY_YES | BUY_NO | SELL_YES | SELL_NO")
    amount: float = Field(..., description="Currency for buys, shares for sells")


class TradeResponse(BaseModel):
    market_id: str
    type: str
    shares: float
    avg_price: float
    new_balance: float
    new_balance_display: str
    yes_price: float
    no_price: float
    yes_pool: float
    no_pool: float
    transaction_id: str

    @classmethod
    def from_result(cls, market_id: str, trade_type: str, r: TradeResult) -> "TradeResponse":
        total = r.new_yes_pool + r.new_no_pool
        return cls(
            market_id=market_id,
            type=trade_type,
            shares=r.shares,
            avg_price=r.avg_price,
            new_balance=r.new_balance,
            new_balance_display=amount_to_display(r.new_balance),
            yes_price=r.new_no_pool / total,
            no_price=r.new_yes_pool / total,
            yes_pool=r.new_yes_pool,
            no_pool=r.new_no_pool,
            transaction_id=r.transaction_id,
        )
