"""Trade request/result value objects."""

from dataclasses import dataclass

from src.pm_common.enums import TradeType
from src.pm_common.errors import InvalidTradeTypeError


@dataclass(frozen=True)
class TradeRequest:
    """One buy/sell against the AMM.

    For BUY_* `amount` is the currency to spend; for SELL_* it is the number
    of shares to sell.
    """

    user_id: str
    market_id: str
    trade_type: str
    amount: float


@dataclass(frozen=True)
class TradeResult:
    shares: float
    avg_price: float
    new_balance: float
    new_yes_pool: float
    new_no_pool: float
    transaction_id: str


def parse_trade_type(value: str) -> TradeType:
    try:
        return TradeType(value)
    except ValueError:
        raise InvalidTradeTypeError(value) from None
