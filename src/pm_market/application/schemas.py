"""Pydantic schemas for pm_market API responses.

Prices are derived from the pools at read time and never stored:
  yes_price = no_pool / (yes_pool + no_pool), no_price = 1 - yes_price
"""

from typing import Any

from pydantic import BaseModel

from src.pm_amm.domain.pricing import TradeQuote
from src.pm_common.datetime_utils import iso_or_none
from src.pm_common.money import amount_to_display
from src.pm_market.domain.models import Market, MarketCounts, Trial

# ---------------------------------------------------------------------------
# Trial
# ---------------------------------------------------------------------------


class TrialOut(BaseModel):
    id: str
    nct_id: str
    title: str
    phase: str | None
    status: str | None
    sponsor: str | None
    conditions: list[str]
    interventions: list[str]

    @classmethod
    def from_domain(cls, t: Trial) -> "TrialOut":
        return cls(
            id=t.id,
            nct_id=t.nct_id,
            title=t.title,
            phase=t.phase,
            status=t.status,
            sponsor=t.sponsor,
            conditions=list(t.conditions),
            interventions=list(t.interventions),
        )


# ---------------------------------------------------------------------------
# Market list item
# ---------------------------------------------------------------------------


class MarketListItem(BaseModel):
    id: str
    question: str
    status: str
    yes_price: float
    no_price: float
    yes_pool: float
    no_pool: float
    resolved_outcome: str | None
    resolved_at: str | None
    created_at: str | None
    trial: TrialOut | None

    @classmethod
    def from_domain(cls, m: Market) -> "MarketListItem":
        prices = m.prices
        return cls(
            id=m.id,
            question=m.question,
            status=m.status,
            yes_price=prices.yes,
            no_price=prices.no,
            yes_pool=m.yes_pool,
            no_pool=m.no_pool,
            resolved_outcome=m.resolved_outcome,
            resolved_at=iso_or_none(m.resolved_at),
            created_at=iso_or_none(m.created_at),
            trial=TrialOut.from_domain(m.trial) if m.trial else None,
        )


class MarketListResponse(BaseModel):
    items: list[MarketListItem]
    next_cursor: str | None
    has_more: bool


# ---------------------------------------------------------------------------
# Market detail
# ---------------------------------------------------------------------------


class MarketTransactionOut(BaseModel):
    id: str
    user_id: str
    type: str
    shares: float
    price: float
    amount: float
    created_at: str | None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "MarketTransactionOut":
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            type=row["type"],
            shares=row["shares"],
            price=row["price"],
            amount=row["amount"],
            created_at=iso_or_none(row["created_at"]),
        )


class MarketDetail(MarketListItem):
    k: float
    positions_count: int
    transactions_count: int
    recent_transactions: list[MarketTransactionOut]


# ---------------------------------------------------------------------------
# Quote
# ---------------------------------------------------------------------------


class QuoteResponse(BaseModel):
    market_id: str
    type: str
    input_amount: float       # currency for buys, shares for sells
    shares: float
    amount: float
    amount_display: str
    avg_price: float
    yes_price_before: float
    yes_price_after: float
    new_yes_pool: float
    new_no_pool: float

    @classmethod
    def from_quote(
        cls, market: Market, trade_type: str, input_amount: float, quote: TradeQuote
    ) -> "QuoteResponse":
        total_after = quote.new_yes_pool + quote.new_no_pool
        return cls(
            market_id=market.id,
            type=trade_type,
            input_amount=input_amount,
            shares=quote.shares,
            amount=quote.amount,
            amount_display=amount_to_display(quote.amount),
            avg_price=quote.price,
            yes_price_before=market.prices.yes,
            yes_price_after=quote.new_no_pool / total_after,
            new_yes_pool=quote.new_yes_pool,
            new_no_pool=quote.new_no_pool,
        )


class MarketStatsOut(BaseModel):
    total: int
    open: int
    closed: int
    resolved: int
    cancelled: int

    @classmethod
    def from_domain(cls, c: MarketCounts) -> "MarketStatsOut":
        return cls(
            total=c.total,
            open=c.open,
            closed=c.closed,
            resolved=c.resolved,
            cancelled=c.cancelled,
        )
