"""Unit tests for shared enums."""

import pytest

from src.pm_common.enums import MarketStatus, ResolutionOutcome, Side, TradeType
from src.pm_common.errors import InvalidTradeTypeError
from src.pm_trade.domain.models import parse_trade_type


def test_market_status_values() -> None:
    assert {s.value for s in MarketStatus} == {"OPEN", "CLOSED", "RESOLVED", "CANCELLED"}


def test_side_opposite() -> None:
    assert Side.YES.opposite is Side.NO
    assert Side.NO.opposite is Side.YES


@pytest.mark.parametrize(
    "trade_type,is_buy,side",
    [
        (TradeType.BUY_YES, True, Side.YES),
        (TradeType.BUY_NO, True, Side.NO),
        (TradeType.SELL_YES, False, Side.YES),
        (TradeType.SELL_NO, False, Side.NO),
    ],
)
def test_trade_type_properties(trade_type: TradeType, is_buy: bool, side: Side) -> None:
    assert trade_type.is_buy is is_buy
    assert trade_type.side is side


def test_resolution_outcome_includes_cancel() -> None:
    assert ResolutionOutcome("CANCEL") is ResolutionOutcome.CANCEL


def test_parse_trade_type() -> None:
    assert parse_trade_type("SELL_NO") is TradeType.SELL_NO
    with pytest.raises(InvalidTradeTypeError):
        parse_trade_type("buy_yes")
