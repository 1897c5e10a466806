"""MarketRepository - concrete implementation of MarketRepositoryProtocol.

All queries use raw text() SQL (no ORM).
asyncpg NULL parameter pattern: CAST(:param AS TYPE) IS NULL required for None values.

Locking: get_market_for_update() takes the row lock that serializes every
writer of one market's pools/status. It selects from `markets` alone because
FOR UPDATE cannot lock the nullable side of an outer join.
"""

from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.enums import MarketStatus
from src.pm_common.errors import InternalError
from src.pm_market.domain.models import Market, MarketCounts, Trial

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_MARKET_COLUMNS = """
    m.id, m.trial_id, m.question, m.yes_pool, m.no_pool, m.status,
    m.resolved_outcome, m.resolved_at, m.created_at, m.updated_at
"""

_TRIAL_COLUMNS = """
    t.nct_id, t.title, t.phase, t.status AS trial_status, t.sponsor,
    t.conditions, t.interventions, t.created_at AS trial_created_at
"""

_GET_MARKET_SQL = text(f"""
    SELECT {_MARKET_COLUMNS}, {_TRIAL_COLUMNS}
    FROM markets m
    LEFT JOIN trials t ON t.id = m.trial_id
    WHERE m.id = :market_id
""")

_GET_MARKET_FOR_UPDATE_SQL = text(f"""
    SELECT {_MARKET_COLUMNS}
    FROM markets m
    WHERE m.id = :market_id
    FOR UPDATE
""")

_LIST_MARKETS_SQL = text(f"""
    SELECT {_MARKET_COLUMNS}, {_TRIAL_COLUMNS}
    FROM markets m
    LEFT JOIN trials t ON t.id = m.trial_id
    WHERE
        (CAST(:status AS TEXT) IS NULL OR m.status = CAST(:status AS TEXT))
        AND (
            CAST(:search AS TEXT) IS NULL
            OR m.question ILIKE '%' || CAST(:search AS TEXT) || '%'
            OR t.title ILIKE '%' || CAST(:search AS TEXT) || '%'
            OR t.sponsor ILIKE '%' || CAST(:search AS TEXT) || '%'
        )
        AND (
            CAST(:cursor_ts AS TIMESTAMPTZ) IS NULL
            OR m.created_at < CAST(:cursor_ts AS TIMESTAMPTZ)
            OR (
                m.created_at = CAST(:cursor_ts AS TIMESTAMPTZ)
                AND m.id < CAST(:cursor_id AS TEXT)
            )
        )
    ORDER BY m.created_at DESC, m.id DESC
    LIMIT :limit
""")

_LIST_OPEN_MARKETS_SQL = text(f"""
    SELECT {_MARKET_COLUMNS}, {_TRIAL_COLUMNS}
    FROM markets m
    LEFT JOIN trials t ON t.id = m.trial_id
    WHERE m.status = 'OPEN'
    ORDER BY m.created_at, m.id
""")

_UPDATE_POOLS_SQL = text("""
    UPDATE markets
    SET yes_pool = :yes_pool,
        no_pool = :no_pool,
        updated_at = NOW()
    WHERE id = :market_id AND status = 'OPEN'
    RETURNING id
""")

_MARK_RESOLVED_SQL = text("""
    UPDATE markets
    SET status = 'RESOLVED',
        resolved_outcome = :outcome,
        resolved_at = :resolved_at,
        updated_at = NOW()
    WHERE id = :market_id AND status = 'OPEN'
    RETURNING id
""")

_MARK_CANCELLED_SQL = text("""
    UPDATE markets
    SET status = 'CANCELLED',
        updated_at = NOW()
    WHERE id = :market_id AND status = 'OPEN'
    RETURNING id
""")

_GET_TRIAL_SQL = text("""
    SELECT id, nct_id, title, phase, status, sponsor, conditions, interventions, created_at
    FROM trials
    WHERE nct_id = :nct_id
""")

_INSERT_TRIAL_SQL = text("""
    INSERT INTO trials (nct_id, title, phase, status, sponsor, conditions, interventions)
    VALUES (:nct_id, :title, :phase, :status, :sponsor, :conditions, :interventions)
    RETURNING id, nct_id, title, phase, status, sponsor, conditions, interventions, created_at
""")

_GET_MARKET_BY_TRIAL_SQL = text(f"""
    SELECT {_MARKET_COLUMNS}
    FROM markets m
    WHERE m.trial_id = :trial_id
""")

_INSERT_MARKET_SQL = text("""
    INSERT INTO markets (trial_id, question, yes_pool, no_pool, status)
    VALUES (:trial_id, :question, :initial_pool, :initial_pool, 'OPEN')
    RETURNING id, trial_id, question, yes_pool, no_pool, status,
              resolved_outcome, resolved_at, created_at, updated_at
""")

_COUNT_BY_STATUS_SQL = text("""
    SELECT status, COUNT(*) AS n
    FROM markets
    GROUP BY status
""")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_trial(row: object) -> Trial:
    return Trial(
        id=str(row.id),  # type: ignore[attr-defined]
        nct_id=row.nct_id,  # type: ignore[attr-defined]
        title=row.title,  # type: ignore[attr-defined]
        phase=row.phase,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        sponsor=row.sponsor,  # type: ignore[attr-defined]
        conditions=list(row.conditions or []),  # type: ignore[attr-defined]
        interventions=list(row.interventions or []),  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


def _joined_trial(row: object) -> Trial | None:
    if getattr(row, "nct_id", None) is None:
        return None
    return Trial(
        id=str(row.trial_id),  # type: ignore[attr-defined]
        nct_id=row.nct_id,  # type: ignore[attr-defined]
        title=row.title,  # type: ignore[attr-defined]
        phase=row.phase,  # type: ignore[attr-defined]
        status=row.trial_status,  # type: ignore[attr-defined]
        sponsor=row.sponsor,  # type: ignore[attr-defined]
        conditions=list(row.conditions or []),  # type: ignore[attr-defined]
        interventions=list(row.interventions or []),  # type: ignore[attr-defined]
        created_at=row.trial_created_at,  # type: ignore[attr-defined]
    )


def _row_to_market(row: object, with_trial: bool = False) -> Market:
    return Market(
        id=str(row.id),  # type: ignore[attr-defined]
        trial_id=str(row.trial_id),  # type: ignore[attr-defined]
        question=row.question,  # type: ignore[attr-defined]
        yes_pool=float(row.yes_pool),  # type: ignore[attr-defined]
        no_pool=float(row.no_pool),  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        resolved_outcome=row.resolved_outcome,  # type: ignore[attr-defined]
        resolved_at=row.resolved_at,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
        trial=_joined_trial(row) if with_trial else None,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class MarketRepository:
    """Concrete repository - writes are guarded by `status = 'OPEN'` in SQL."""

    async def get_market_by_id(
        self, db: AsyncSession, market_id: str
    ) -> Market | None:
        row = (await db.execute(_GET_MARKET_SQL, {"market_id": market_id})).fetchone()
        return _row_to_market(row, with_trial=True) if row else None

    async def get_market_for_update(
        self, db: AsyncSession, market_id: str
    ) -> Market | None:
        row = (
            await db.execute(_GET_MARKET_FOR_UPDATE_SQL, {"market_id": market_id})
        ).fetchone()
        return _row_to_market(row) if row else None

    async def list_markets(
        self,
        db: AsyncSession,
        status: str | None,
        search: str | None,
        cursor_ts: datetime | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Market]:
        result = await db.execute(
            _LIST_MARKETS_SQL,
            {
                "status": status,
                "search": search,
                "cursor_ts": cursor_ts,
                "cursor_id": cursor_id,
                "limit": limit,
            },
        )
        return [_row_to_market(row, with_trial=True) for row in result.fetchall()]

    async def list_open_markets(self, db: AsyncSession) -> list[Market]:
        result = await db.execute(_LIST_OPEN_MARKETS_SQL)
        return [_row_to_market(row, with_trial=True) for row in result.fetchall()]

    async def update_pools(
        self, db: AsyncSession, market_id: str, yes_pool: float, no_pool: float
    ) -> None:
        row = (
            await db.execute(
                _UPDATE_POOLS_SQL,
                {"market_id": market_id, "yes_pool": yes_pool, "no_pool": no_pool},
            )
        ).fetchone()
        if row is None:
            # Caller holds the row lock and checked status; reaching here is a bug.
            raise InternalError(f"Pool update matched no OPEN market: {market_id}")

    async def mark_resolved(
        self, db: AsyncSession, market_id: str, outcome: str, resolved_at: datetime
    ) -> None:
        row = (
            await db.execute(
                _MARK_RESOLVED_SQL,
                {"market_id": market_id, "outcome": outcome, "resolved_at": resolved_at},
            )
        ).fetchone()
        if row is None:
            raise InternalError(f"Resolve matched no OPEN market: {market_id}")

    async def mark_cancelled(self, db: AsyncSession, market_id: str) -> None:
        row = (await db.execute(_MARK_CANCELLED_SQL, {"market_id": market_id})).fetchone()
        if row is None:
            raise InternalError(f"Cancel matched no OPEN market: {market_id}")

    async def get_trial_by_nct_id(
        self, db: AsyncSession, nct_id: str
    ) -> Trial | None:
        row = (await db.execute(_GET_TRIAL_SQL, {"nct_id": nct_id})).fetchone()
        return _row_to_trial(row) if row else None

    async def create_trial(self, db: AsyncSession, trial: Trial) -> Trial:
        row = (
            await db.execute(
                _INSERT_TRIAL_SQL,
                {
                    "nct_id": trial.nct_id,
                    "title": trial.title,
                    "phase": trial.phase,
                    "status": trial.status,
                    "sponsor": trial.sponsor,
                    "conditions": trial.conditions,
                    "interventions": trial.interventions,
                },
            )
        ).fetchone()
        if row is None:
            raise InternalError("Trial insert returned no rows")
        return _row_to_trial(row)

    async def get_market_by_trial(
        self, db: AsyncSession, trial_id: str
    ) -> Market | None:
        row = (await db.execute(_GET_MARKET_BY_TRIAL_SQL, {"trial_id": trial_id})).fetchone()
        return _row_to_market(row) if row else None

    async def create_market(
        self, db: AsyncSession, trial_id: str, question: str, initial_pool: float
    ) -> Market:
        row = (
            await db.execute(
                _INSERT_MARKET_SQL,
                {"trial_id": trial_id, "question": question, "initial_pool": initial_pool},
            )
        ).fetchone()
        if row is None:
            raise InternalError("Market insert returned no rows")
        return _row_to_market(row)

    async def count_by_status(self, db: AsyncSession) -> MarketCounts:
        rows = (await db.execute(_COUNT_BY_STATUS_SQL)).fetchall()
        counts = MarketCounts()
        for status, n in rows:
            counts.total += n
            if status == MarketStatus.OPEN:
                counts.open = n
            elif status == MarketStatus.CLOSED:
                counts.closed = n
            elif status == MarketStatus.RESOLVED:
                counts.resolved = n
            elif status == MarketStatus.CANCELLED:
                counts.cancelled = n
        return counts
