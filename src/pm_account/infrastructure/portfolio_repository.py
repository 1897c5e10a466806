# src/pm_account/infrastructure/portfolio_repository.py
"""Read-only queries behind portfolio, history and leaderboard views.

Positions in RESOLVED/CANCELLED markets are excluded from valuation queries:
their value has already been credited to the balance by settlement.
"""
from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

_LIVE_POSITIONS_BY_USER_SQL = text("""
    SELECT p.market_id, p.yes_shares, p.no_shares, p.total_invested,
           m.question, m.status, m.yes_pool, m.no_pool,
           t.nct_id, t.title AS trial_title
    FROM positions p
    JOIN markets m ON m.id = p.market_id
    LEFT JOIN trials t ON t.id = m.trial_id
    WHERE p.user_id = :user_id
      AND (p.yes_shares > 0 OR p.no_shares > 0)
      AND m.status IN ('OPEN', 'CLOSED')
    ORDER BY p.updated_at DESC
""")

_GET_USER_SQL = text("SELECT id, email, name, balance FROM users WHERE id = :user_id")

_LIST_USER_TRANSACTIONS_SQL = text("""
    SELECT x.id, x.market_id, x.type, x.shares, x.price, x.amount, x.created_at,
           m.question, t.nct_id
    FROM transactions x
    JOIN markets m ON m.id = x.market_id
    LEFT JOIN trials t ON t.id = m.trial_id
    WHERE x.user_id = :user_id
      AND (
          CAST(:cursor_ts AS TIMESTAMPTZ) IS NULL
          OR x.created_at < CAST(:cursor_ts AS TIMESTAMPTZ)
          OR (
              x.created_at = CAST(:cursor_ts AS TIMESTAMPTZ)
              AND x.id < CAST(:cursor_id AS TEXT)
          )
      )
    ORDER BY x.created_at DESC, x.id DESC
    LIMIT :limit
""")

_LIST_MARKET_TRANSACTIONS_SQL = text("""
    SELECT id, user_id, type, shares, price, amount, created_at
    FROM transactions
    WHERE market_id = :market_id
    ORDER BY created_at DESC, id DESC
    LIMIT :limit
""")

_MARKET_ACTIVITY_SQL = text("""
    SELECT
        (SELECT COUNT(*) FROM positions WHERE market_id = :market_id) AS positions,
        (SELECT COUNT(*) FROM transactions WHERE market_id = :market_id) AS transactions
""")

_LEADERBOARD_USERS_SQL = text("""
    SELECT u.id, u.name, u.balance, COUNT(x.id) AS trades_count
    FROM users u
    LEFT JOIN transactions x ON x.user_id = u.id
    WHERE u.is_active
    GROUP BY u.id, u.name, u.balance
""")

_LEADERBOARD_HOLDINGS_SQL = text("""
    SELECT p.user_id, p.yes_shares, p.no_shares, m.yes_pool, m.no_pool
    FROM positions p
    JOIN markets m ON m.id = p.market_id
    WHERE (p.yes_shares > 0 OR p.no_shares > 0)
      AND m.status IN ('OPEN', 'CLOSED')
""")


class PortfolioRepository:
    async def get_user(self, user_id: str, db: AsyncSession) -> dict[str, Any] | None:
        row = (await db.execute(_GET_USER_SQL, {"user_id": user_id})).fetchone()
        if row is None:
            return None
        return {
            "id": str(row.id),
            "email": row.email,
            "name": row.name,
            "balance": float(row.balance),
        }

    async def list_live_positions(
        self, user_id: str, db: AsyncSession
    ) -> list[dict[str, Any]]:
        rows = (await db.execute(_LIVE_POSITIONS_BY_USER_SQL, {"user_id": user_id})).fetchall()
        return [
            {
                "market_id": str(r.market_id),
                "question": r.question,
                "status": r.status,
                "nct_id": r.nct_id,
                "trial_title": r.trial_title,
                "yes_shares": float(r.yes_shares),
                "no_shares": float(r.no_shares),
                "total_invested": float(r.total_invested),
                "yes_pool": float(r.yes_pool),
                "no_pool": float(r.no_pool),
            }
            for r in rows
        ]

    async def list_user_transactions(
        self,
        user_id: str,
        cursor_ts: datetime | None,
        cursor_id: str | None,
        limit: int,
        db: AsyncSession,
    ) -> list[dict[str, Any]]:
        rows = (
            await db.execute(
                _LIST_USER_TRANSACTIONS_SQL,
                {
                    "user_id": user_id,
                    "cursor_ts": cursor_ts,
                    "cursor_id": cursor_id,
                    "limit": limit,
                },
            )
        ).fetchall()
        return [
            {
                "id": str(r.id),
                "market_id": str(r.market_id),
                "question": r.question,
                "nct_id": r.nct_id,
                "type": r.type,
                "shares": float(r.shares),
                "price": float(r.price),
                "amount": float(r.amount),
                "created_at": r.created_at,
            }
            for r in rows
        ]

    async def list_market_transactions(
        self, market_id: str, limit: int, db: AsyncSession
    ) -> list[dict[str, Any]]:
        rows = (
            await db.execute(
                _LIST_MARKET_TRANSACTIONS_SQL, {"market_id": market_id, "limit": limit}
            )
        ).fetchall()
        return [
            {
                "id": str(r.id),
                "user_id": str(r.user_id),
                "type": r.type,
                "shares": float(r.shares),
                "price": float(r.price),
                "amount": float(r.amount),
                "created_at": r.created_at,
            }
            for r in rows
        ]

    async def count_market_activity(
        self, market_id: str, db: AsyncSession
    ) -> tuple[int, int]:
        row = (await db.execute(_MARKET_ACTIVITY_SQL, {"market_id": market_id})).fetchone()
        if row is None:
            return 0, 0
        return int(row.positions), int(row.transactions)

    async def list_leaderboard_users(self, db: AsyncSession) -> list[dict[str, Any]]:
        rows = (await db.execute(_LEADERBOARD_USERS_SQL)).fetchall()
        return [
            {
                "id": str(r.id),
                "name": r.name,
                "balance": float(r.balance),
                "trades_count": int(r.trades_count),
            }
            for r in rows
        ]

    async def list_live_holdings(self, db: AsyncSession) -> list[dict[str, Any]]:
        rows = (await db.execute(_LEADERBOARD_HOLDINGS_SQL)).fetchall()
        return [
            {
                "user_id": str(r.user_id),
                "yes_shares": float(r.yes_shares),
                "no_shares": float(r.no_shares),
                "yes_pool": float(r.yes_pool),
                "no_pool": float(r.no_pool),
            }
            for r in rows
        ]
