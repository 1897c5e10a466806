# src/pm_market/domain/repository.py
"""Repository Protocol - dependency inversion for testability.

Unit tests inject a mock (or the in-memory fake in tests/unit/fakes.py) that
conforms to this Protocol. Infrastructure layer provides the real implementation.

Mutating methods never commit; the caller owns the transaction
(see src/pm_common/unit_of_work.py).
"""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_market.domain.models import Market, MarketCounts, Trial


class MarketRepositoryProtocol(Protocol):
    async def get_market_by_id(
        self, db: AsyncSession, market_id: str
    ) -> Market | None: ...

    async def get_market_for_update(
        self, db: AsyncSession, market_id: str
    ) -> Market | None: ...

    async def list_markets(
        self,
        db: AsyncSession,
        status: str | None,
        search: str | None,
        cursor_ts: datetime | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Market]: ...

    async def list_open_markets(self, db: AsyncSession) -> list[Market]: ...

    async def update_pools(
        self, db: AsyncSession, market_id: str, yes_pool: float, no_pool: float
    ) -> None: ...

    async def mark_resolved(
        self, db: AsyncSession, market_id: str, outcome: str, resolved_at: datetime
    ) -> None: ...

    async def mark_cancelled(self, db: AsyncSession, market_id: str) -> None: ...

    async def get_trial_by_nct_id(
        self, db: AsyncSession, nct_id: str
    ) -> Trial | None: ...

    async def create_trial(self, db: AsyncSession, trial: Trial) -> Trial: ...

    async def get_market_by_trial(
        self, db: AsyncSession, trial_id: str
    ) -> Market | None: ...

    async def create_market(
        self, db: AsyncSession, trial_id: str, question: str, initial_pool: float
    ) -> Market: ...

    async def count_by_status(self, db: AsyncSession) -> MarketCounts: ...
