"""Market and ledger invariant checks.

check_trade_invariants() runs inside every trade before anything is written:
  INV-1: new pools are finite and > 0
  INV-2: yes_pool * no_pool is unchanged (relative tolerance, IEEE doubles)
  INV-3: shares and amount of the quote are > 0

verify_ledger_invariants() is the admin audit over persisted state:
  INV-4: every market has yes_pool > 0 and no_pool > 0
  INV-5: no position holds negative shares or negative cost basis
  INV-6: no user balance is negative
  INV-7: RESOLVED markets carry an outcome and a resolved_at; others carry no outcome
"""

import logging
import math

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_amm.domain.pricing import TradeQuote
from src.pm_common.errors import InternalError

logger = logging.getLogger(__name__)

K_REL_TOLERANCE = 1e-9

_BAD_POOLS_SQL = text("""
    SELECT id, yes_pool, no_pool FROM markets
    WHERE NOT (yes_pool > 0 AND no_pool > 0)
""")
_BAD_POSITIONS_SQL = text("""
    SELECT id, user_id, market_id, yes_shares, no_shares, total_invested FROM positions
    WHERE yes_shares < 0 OR no_shares < 0 OR total_invested < 0
""")
_BAD_BALANCES_SQL = text("SELECT id, balance FROM users WHERE balance < 0")
_BAD_RESOLUTIONS_SQL = text("""
    SELECT id, status, resolved_outcome FROM markets
    WHERE (status = 'RESOLVED' AND (resolved_outcome IS NULL OR resolved_at IS NULL))
       OR (status <> 'RESOLVED' AND resolved_outcome IS NOT NULL)
""")


def check_trade_invariants(market_id: str, yes_pool: float, no_pool: float, quote: TradeQuote) -> None:
    """Raise InternalError if a computed trade would break pool invariants."""
    violations: list[str] = []
    new_yes, new_no = quote.new_yes_pool, quote.new_no_pool

    if not (math.isfinite(new_yes) and math.isfinite(new_no) and new_yes > 0 and new_no > 0):
        violations.append(f"INV-1 violated: pools ({new_yes}, {new_no}) must be > 0")
    k_before = yes_pool * no_pool
    k_after = new_yes * new_no
    if not math.isclose(k_before, k_after, rel_tol=K_REL_TOLERANCE):
        violations.append(f"INV-2 violated: k {k_before} -> {k_after}")
    if not (quote.shares > 0 and quote.amount > 0):
        violations.append(
            f"INV-3 violated: shares={quote.shares} amount={quote.amount} must be > 0"
        )

    if violations:
        msg = f"market={market_id}: " + "; ".join(violations)
        logger.error("Trade invariant check failed: %s", msg)
        raise InternalError(f"Trade rejected by invariant check: {msg}")


async def verify_ledger_invariants(db: AsyncSession) -> list[str]:
    """Audit persisted state. Returns a list of violation strings (empty when healthy)."""
    violations: list[str] = []

    for row in (await db.execute(_BAD_POOLS_SQL)).fetchall():
        violations.append(
            f"INV-4 violated: market {row.id} pools=({row.yes_pool}, {row.no_pool})"
        )
    for row in (await db.execute(_BAD_POSITIONS_SQL)).fetchall():
        violations.append(
            f"INV-5 violated: position {row.id} (user {row.user_id}, market {row.market_id}) "
            f"yes={row.yes_shares} no={row.no_shares} invested={row.total_invested}"
        )
    for row in (await db.execute(_BAD_BALANCES_SQL)).fetchall():
        violations.append(f"INV-6 violated: user {row.id} balance={row.balance}")
    for row in (await db.execute(_BAD_RESOLUTIONS_SQL)).fetchall():
        violations.append(
            f"INV-7 violated: market {row.id} status={row.status} "
            f"outcome={row.resolved_outcome}"
        )

    for msg in violations:
        logger.error(msg)
    if not violations:
        logger.debug("Ledger invariants OK")
    return violations
