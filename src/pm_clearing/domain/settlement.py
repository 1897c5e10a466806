"""Market settlement - terminal RESOLVED / CANCELLED transitions.

resolve(): every winning share pays 1.0, losing shares expire worthless.
cancel():  every position is refunded its total_invested (cost basis), not its
           market value.

Both run in one unit of work: the market row is locked first, then every
position of the market (ordered by user_id), and all credits plus the status
change commit together. Positions are kept as history; shares are not zeroed.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_account.domain.repository import LedgerRepositoryProtocol
from src.pm_account.infrastructure.persistence import LedgerRepository
from src.pm_common.datetime_utils import utc_now
from src.pm_common.enums import MarketStatus, Side
from src.pm_common.errors import (
    MarketAlreadyResolvedError,
    MarketNotCancellableError,
    MarketNotFoundError,
)
from src.pm_common.unit_of_work import run_in_transaction
from src.pm_market.domain.repository import MarketRepositoryProtocol
from src.pm_market.infrastructure.persistence import MarketRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SettlementSummary:
    market_id: str
    status: str
    outcome: str | None
    positions_settled: int
    users_credited: int
    total_paid: float


class MarketResolver:
    def __init__(
        self,
        ledger_repo: LedgerRepositoryProtocol | None = None,
        market_repo: MarketRepositoryProtocol | None = None,
    ) -> None:
        self._ledger: LedgerRepositoryProtocol = ledger_repo or LedgerRepository()
        self._markets: MarketRepositoryProtocol = market_repo or MarketRepository()

    async def resolve(
        self,
        db: AsyncSession,
        market_id: str,
        outcome: Side,
        resolved_at: datetime | None = None,
    ) -> SettlementSummary:
        summary = await run_in_transaction(
            db, lambda: self._resolve(db, market_id, outcome, resolved_at or utc_now())
        )
        logger.info(
            "Market resolved: market=%s outcome=%s positions=%d paid=%.6f",
            market_id,
            outcome.value,
            summary.positions_settled,
            summary.total_paid,
        )
        return summary

    async def cancel(self, db: AsyncSession, market_id: str) -> SettlementSummary:
        summary = await run_in_transaction(db, lambda: self._cancel(db, market_id))
        logger.info(
            "Market cancelled: market=%s positions=%d refunded=%.6f",
            market_id,
            summary.positions_settled,
            summary.total_paid,
        )
        return summary

    async def _resolve(
        self, db: AsyncSession, market_id: str, outcome: Side, resolved_at: datetime
    ) -> SettlementSummary:
        market = await self._markets.get_market_for_update(db, market_id)
        if market is None:
            raise MarketNotFoundError(market_id)
        if market.status != MarketStatus.OPEN:
            raise MarketAlreadyResolvedError(market_id, market.status)

        positions = await self._ledger.list_market_positions_for_update(db, market_id)
        total_paid = 0.0
        credited = 0
        for position in positions:
            payout = position.shares(outcome)
            if payout > 0:
                await self._ledger.credit_balance(db, position.user_id, payout)
                total_paid += payout
                credited += 1

        await self._markets.mark_resolved(db, market_id, outcome.value, resolved_at)
        return SettlementSummary(
            market_id=market_id,
            status=MarketStatus.RESOLVED.value,
            outcome=outcome.value,
            positions_settled=len(positions),
            users_credited=credited,
            total_paid=total_paid,
        )

    async def _cancel(self, db: AsyncSession, market_id: str) -> SettlementSummary:
        market = await self._markets.get_market_for_update(db, market_id)
        if market is None:
            raise MarketNotFoundError(market_id)
        if market.status != MarketStatus.OPEN:
            raise MarketNotCancellableError(market_id, market.status)

        positions = await self._ledger.list_market_positions_for_update(db, market_id)
        total_refunded = 0.0
        credited = 0
        for position in positions:
            if position.total_invested > 0:
                await self._ledger.credit_balance(db, position.user_id, position.total_invested)
                total_refunded += position.total_invested
                credited += 1

        await self._markets.mark_cancelled(db, market_id)
        return SettlementSummary(
            market_id=market_id,
            status=MarketStatus.CANCELLED.value,
            outcome=None,
            positions_settled=len(positions),
            users_credited=credited,
            total_paid=total_refunded,
        )
