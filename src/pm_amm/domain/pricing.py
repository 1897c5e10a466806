"""Constant-product AMM pricing for binary YES/NO markets.

    yes_pool * no_pool = k       (held constant by every trade, no fee)
    price(YES) = no_pool / (yes_pool + no_pool)
    price(NO)  = yes_pool / (yes_pool + no_pool)

Buying a side injects the currency amount into the *opposite* pool and removes
shares from the bought pool; selling injects shares into the sold pool and
pays out the delta of the opposite pool. The removed pool follows k / x, so it
approaches zero for large trades but never reaches it: pools stay > 0.

Pure functions, no I/O. Used identically for quotes and for execution; the
caller persists the new reserves.
"""

from dataclasses import dataclass

from src.pm_common.enums import Side, TradeType
from src.pm_common.errors import InvalidAmountError
from src.pm_common.money import require_positive


@dataclass(frozen=True)
class MarketPrices:
    yes: float
    no: float


@dataclass(frozen=True)
class TradeQuote:
    """Outcome of one AMM trade.

    shares: shares received (buy) or shares sold (sell)
    amount: currency paid (buy) or received (sell)
    price:  average price per share, amount / shares
    """

    shares: float
    amount: float
    price: float
    new_yes_pool: float
    new_no_pool: float


def get_market_prices(yes_pool: float, no_pool: float) -> MarketPrices:
    total = yes_pool + no_pool
    return MarketPrices(yes=no_pool / total, no=yes_pool / total)


def calculate_buy(yes_pool: float, no_pool: float, amount: float, side: Side) -> TradeQuote:
    require_positive(amount, "amount")
    k = yes_pool * no_pool
    if side is Side.YES:
        new_no_pool = no_pool + amount
        new_yes_pool = k / new_no_pool
        shares = yes_pool - new_yes_pool
    else:
        new_yes_pool = yes_pool + amount
        new_no_pool = k / new_yes_pool
        shares = no_pool - new_no_pool
    if shares <= 0:
        raise InvalidAmountError(f"amount {amount} is too small to move the pool")
    return TradeQuote(
        shares=shares,
        amount=amount,
        price=amount / shares,
        new_yes_pool=new_yes_pool,
        new_no_pool=new_no_pool,
    )


def calculate_sell(yes_pool: float, no_pool: float, shares: float, side: Side) -> TradeQuote:
    require_positive(shares, "shares")
    k = yes_pool * no_pool
    if side is Side.YES:
        new_yes_pool = yes_pool + shares
        new_no_pool = k / new_yes_pool
        payout = no_pool - new_no_pool
    else:
        new_no_pool = no_pool + shares
        new_yes_pool = k / new_no_pool
        payout = yes_pool - new_yes_pool
    if payout <= 0:
        raise InvalidAmountError(f"shares {shares} is too small to move the pool")
    return TradeQuote(
        shares=shares,
        amount=payout,
        price=payout / shares,
        new_yes_pool=new_yes_pool,
        new_no_pool=new_no_pool,
    )


def calculate_buy_yes(yes_pool: float, no_pool: float, amount: float) -> TradeQuote:
    return calculate_buy(yes_pool, no_pool, amount, Side.YES)


def calculate_buy_no(yes_pool: float, no_pool: float, amount: float) -> TradeQuote:
    return calculate_buy(yes_pool, no_pool, amount, Side.NO)


def calculate_sell_yes(yes_pool: float, no_pool: float, shares: float) -> TradeQuote:
    return calculate_sell(yes_pool, no_pool, shares, Side.YES)


def calculate_sell_no(yes_pool: float, no_pool: float, shares: float) -> TradeQuote:
    return calculate_sell(yes_pool, no_pool, shares, Side.NO)


def quote_trade(
    trade_type: TradeType, yes_pool: float, no_pool: float, amount: float
) -> TradeQuote:
    """Dispatch on trade type. For sells, `amount` is the number of shares to sell."""
    if trade_type.is_buy:
        return calculate_buy(yes_pool, no_pool, amount, trade_type.side)
    return calculate_sell(yes_pool, no_pool, amount, trade_type.side)


def estimate_buy_shares(yes_pool: float, no_pool: float, amount: float, side: Side) -> float:
    return calculate_buy(yes_pool, no_pool, amount, side).shares


def estimate_sell_payout(yes_pool: float, no_pool: float, shares: float, side: Side) -> float:
    return calculate_sell(yes_pool, no_pool, shares, side).amount


@dataclass(frozen=True)
class PositionValue:
    yes_value: float
    no_value: float

    @property
    def total_value(self) -> float:
        return self.yes_value + self.no_value


def calculate_position_value(
    yes_shares: float, no_shares: float, yes_price: float
) -> PositionValue:
    """Mark-to-market value of a holding at the current YES price."""
    return PositionValue(
        yes_value=yes_shares * yes_price,
        no_value=no_shares * (1 - yes_price),
    )
