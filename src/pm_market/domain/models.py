"""Domain models for pm_market - pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import datetime

from src.pm_amm.domain.pricing import MarketPrices, get_market_prices


@dataclass
class Trial:
    """The clinical trial a market is written on."""

    id: str
    nct_id: str
    title: str
    phase: str | None = None
    status: str | None = None
    sponsor: str | None = None
    conditions: list[str] = field(default_factory=list)
    interventions: list[str] = field(default_factory=list)
    created_at: datetime | None = None


@dataclass
class Market:
    id: str
    trial_id: str
    question: str
    yes_pool: float
    no_pool: float
    status: str                       # MarketStatus value
    resolved_outcome: str | None      # Side value, set only when RESOLVED
    resolved_at: datetime | None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    trial: Trial | None = None        # populated by read queries that join trials

    @property
    def k(self) -> float:
        return self.yes_pool * self.no_pool

    @property
    def prices(self) -> MarketPrices:
        return get_market_prices(self.yes_pool, self.no_pool)


@dataclass
class MarketCounts:
    total: int = 0
    open: int = 0
    closed: int = 0
    resolved: int = 0
    cancelled: int = 0
