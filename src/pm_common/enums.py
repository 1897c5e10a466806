"""Global enums - must match DB CHECK constraints exactly (see alembic/versions)."""

from enum import Enum


class MarketStatus(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    RESOLVED = "RESOLVED"
    CANCELLED = "CANCELLED"


class Side(str, Enum):
    """Outcome side of a binary market; also the resolved outcome."""

    YES = "YES"
    NO = "NO"

    @property
    def opposite(self) -> "Side":
        return Side.NO if self is Side.YES else Side.YES


class TradeType(str, Enum):
    BUY_YES = "BUY_YES"
    BUY_NO = "BUY_NO"
    SELL_YES = "SELL_YES"
    SELL_NO = "SELL_NO"

    @property
    def is_buy(self) -> bool:
        return self in (TradeType.BUY_YES, TradeType.BUY_NO)

    @property
    def side(self) -> Side:
        return Side.YES if self in (TradeType.BUY_YES, TradeType.SELL_YES) else Side.NO


class ResolutionOutcome(str, Enum):
    """Admin resolution request: settle to a side, or void the market."""

    YES = "YES"
    NO = "NO"
    CANCEL = "CANCEL"
