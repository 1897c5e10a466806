"""Domain models for pm_account - pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.pm_common.enums import Side


@dataclass
class User:
    id: str
    email: str
    name: str | None
    balance: float                 # play-money units, never negative
    is_admin: bool = False
    is_active: bool = True
    created_at: datetime | None = None


@dataclass
class Position:
    """A user's holdings and cost basis in one market; one row per (user, market)."""

    id: str
    user_id: str
    market_id: str
    yes_shares: float = 0.0
    no_shares: float = 0.0
    total_invested: float = 0.0    # sum of buy amounts; sells do not reduce it
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def shares(self, side: Side) -> float:
        return self.yes_shares if side is Side.YES else self.no_shares


@dataclass
class Transaction:
    """Append-only trade record."""

    id: str
    user_id: str
    market_id: str
    type: str                      # TradeType value
    shares: float
    price: float                   # average price per share
    amount: float                  # currency paid (buy) or received (sell)
    created_at: datetime | None = None
