"""Pydantic schemas for portfolio, transaction history and leaderboard.

Position value is marked to market at the current pool prices:
  value = yes_shares * yes_price + no_shares * (1 - yes_price)
Profit is measured against the starting play-money balance.
"""

from typing import Any

from pydantic import BaseModel

from src.pm_common.datetime_utils import iso_or_none
from src.pm_common.money import amount_to_display


class PortfolioPosition(BaseModel):
    market_id: str
    question: str
    status: str
    nct_id: str | None
    trial_title: str | None
    yes_shares: float
    no_shares: float
    total_invested: float
    yes_price: float
    current_value: float
    unrealized_pnl: float
    unrealized_pnl_percent: float   # 0 when nothing was invested


class PortfolioResponse(BaseModel):
    user_id: str
    name: str | None
    balance: float
    balance_display: str
    positions_value: float
    total_value: float
    total_value_display: str
    profit: float
    positions: list[PortfolioPosition]


class TransactionItem(BaseModel):
    id: str
    market_id: str
    question: str
    nct_id: str | None
    type: str
    shares: float
    price: float
    amount: float
    amount_display: str
    created_at: str | None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "TransactionItem":
        return cls(
            id=row["id"],
            market_id=row["market_id"],
            question=row["question"],
            nct_id=row["nct_id"],
            type=row["type"],
            shares=row["shares"],
            price=row["price"],
            amount=row["amount"],
            amount_display=amount_to_display(row["amount"]),
            created_at=iso_or_none(row["created_at"]),
        )


class TransactionListResponse(BaseModel):
    items: list[TransactionItem]
    next_cursor: str | None
    has_more: bool


class LeaderboardEntry(BaseModel):
    rank: int
    user_id: str
    name: str | None
    balance: float
    positions_value: float
    total_value: float
    profit: float
    trades_count: int


class LeaderboardResponse(BaseModel):
    items: list[LeaderboardEntry]
