# src/pm_admin/application/service.py
"""Admin application service: resolution, market creation, stats, bulk clear, audit."""
import logging
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pm_clearing.domain.invariants import verify_ledger_invariants
from src.pm_clearing.domain.settlement import MarketResolver, SettlementSummary
from src.pm_common.enums import ResolutionOutcome, Side
from src.pm_common.errors import InvalidOutcomeError, TrialExistsError
from src.pm_common.unit_of_work import run_in_transaction
from src.pm_market.domain.models import Market, Trial
from src.pm_market.domain.repository import MarketRepositoryProtocol
from src.pm_market.infrastructure.persistence import MarketRepository

logger = logging.getLogger(__name__)

_DELETE_TRANSACTIONS_SQL = text("DELETE FROM transactions")
_DELETE_POSITIONS_SQL = text("DELETE FROM positions")
_DELETE_MARKETS_SQL = text("DELETE FROM markets")
_DELETE_TRIALS_SQL = text("DELETE FROM trials")
_RESET_BALANCES_SQL = text("UPDATE users SET balance = :balance, updated_at = NOW()")


def _summary_to_dict(s: SettlementSummary) -> dict[str, Any]:
    return {
        "market_id": s.market_id,
        "status": s.status,
        "outcome": s.outcome,
        "positions_settled": s.positions_settled,
        "users_credited": s.users_credited,
        "total_paid": s.total_paid,
    }


def _market_to_dict(m: Market) -> dict[str, Any]:
    return {
        "id": m.id,
        "trial_id": m.trial_id,
        "question": m.question,
        "yes_pool": m.yes_pool,
        "no_pool": m.no_pool,
        "status": m.status,
    }


class AdminService:
    def __init__(
        self,
        resolver: MarketResolver | None = None,
        market_repo: MarketRepositoryProtocol | None = None,
    ) -> None:
        self._resolver = resolver or MarketResolver()
        self._markets: MarketRepositoryProtocol = market_repo or MarketRepository()

    async def resolve_market(
        self, market_id: str, outcome: str, db: AsyncSession
    ) -> dict[str, Any]:
        try:
            parsed = ResolutionOutcome(outcome)
        except ValueError:
            raise InvalidOutcomeError(outcome) from None

        if parsed is ResolutionOutcome.CANCEL:
            summary = await self._resolver.cancel(db, market_id)
        else:
            summary = await self._resolver.resolve(db, market_id, Side(parsed.value))
        return _summary_to_dict(summary)

    async def create_market_for_trial(
        self, trial: Trial, question: str | None, db: AsyncSession
    ) -> dict[str, Any]:
        """Upsert the trial by NCT id and open its market with symmetric pools."""

        async def _work() -> Market:
            existing = await self._markets.get_trial_by_nct_id(db, trial.nct_id)
            stored = existing or await self._markets.create_trial(db, trial)
            if existing is not None:
                if await self._markets.get_market_by_trial(db, existing.id) is not None:
                    raise TrialExistsError(trial.nct_id)
            return await self._markets.create_market(
                db,
                stored.id,
                question or f"Will {stored.title} receive FDA approval?",
                settings.INITIAL_POOL_SIZE,
            )

        market = await run_in_transaction(db, _work)
        logger.info("Market created: market=%s nct_id=%s", market.id, trial.nct_id)
        return _market_to_dict(market)

    async def get_stats(self, db: AsyncSession) -> dict[str, int]:
        counts = await self._markets.count_by_status(db)
        return {
            "total": counts.total,
            "open": counts.open,
            "closed": counts.closed,
            "resolved": counts.resolved,
            "cancelled": counts.cancelled,
        }

    async def clear_all(self, db: AsyncSession) -> dict[str, int]:
        """Delete every market-related row and reset balances, in one transaction."""

        async def _work() -> dict[str, int]:
            tx = await db.execute(_DELETE_TRANSACTIONS_SQL)
            pos = await db.execute(_DELETE_POSITIONS_SQL)
            mkt = await db.execute(_DELETE_MARKETS_SQL)
            tri = await db.execute(_DELETE_TRIALS_SQL)
            users = await db.execute(
                _RESET_BALANCES_SQL, {"balance": settings.INITIAL_USER_BALANCE}
            )
            return {
                "transactions_deleted": tx.rowcount,  # type: ignore[attr-defined]
                "positions_deleted": pos.rowcount,  # type: ignore[attr-defined]
                "markets_deleted": mkt.rowcount,  # type: ignore[attr-defined]
                "trials_deleted": tri.rowcount,  # type: ignore[attr-defined]
                "users_reset": users.rowcount,  # type: ignore[attr-defined]
            }

        result = await run_in_transaction(db, _work)
        logger.warning("Bulk clear executed: %s", result)
        return result

    async def verify_invariants(self, db: AsyncSession) -> dict[str, Any]:
        violations = await verify_ledger_invariants(db)
        return {"ok": not violations, "violations": violations}
