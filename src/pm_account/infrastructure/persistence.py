"""LedgerRepository - concrete implementation of LedgerRepositoryProtocol.

Balance and share mutations use atomic PostgreSQL UPDATE ... RETURNING.
A result of 0 rows on a guarded UPDATE means a business constraint was
violated (insufficient funds/shares) and is raised as the domain error.

Transaction ownership: the CALLER (TradeExecutor / MarketResolver) runs these
inside run_in_transaction() and holds the market row lock first.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_account.domain.models import Position, Transaction, User
from src.pm_common.enums import Side
from src.pm_common.errors import (
    InsufficientBalanceError,
    InsufficientSharesError,
    InternalError,
    UserNotFoundError,
)

# ---------------------------------------------------------------------------
# SQL: users.balance
# ---------------------------------------------------------------------------

_GET_USER_FOR_UPDATE_SQL = text("""
    SELECT id, email, name, balance, is_admin, is_active, created_at
    FROM users
    WHERE id = :user_id
    FOR UPDATE
""")

_DEBIT_SQL = text("""
    UPDATE users
    SET balance = balance - :amount,
        updated_at = NOW()
    WHERE id = :user_id AND balance >= :amount
    RETURNING balance
""")

_CREDIT_SQL = text("""
    UPDATE users
    SET balance = balance + :amount,
        updated_at = NOW()
    WHERE id = :user_id
    RETURNING balance
""")

_GET_BALANCE_SQL = text("SELECT balance FROM users WHERE id = :user_id")

# ---------------------------------------------------------------------------
# SQL: positions
# ---------------------------------------------------------------------------

_POSITION_COLUMNS = """
    id, user_id, market_id, yes_shares, no_shares, total_invested, created_at, updated_at
"""

_GET_POSITION_FOR_UPDATE_SQL = text(f"""
    SELECT {_POSITION_COLUMNS}
    FROM positions
    WHERE user_id = :user_id AND market_id = :market_id
    FOR UPDATE
""")

_INSERT_POSITION_SQL = text(f"""
    INSERT INTO positions (user_id, market_id, yes_shares, no_shares, total_invested)
    VALUES (:user_id, :market_id, :yes_shares, :no_shares, :invested)
    RETURNING {_POSITION_COLUMNS}
""")

_ADD_SHARES_SQL = {
    Side.YES: text(f"""
        UPDATE positions
        SET yes_shares = yes_shares + :shares,
            total_invested = total_invested + :invested,
            updated_at = NOW()
        WHERE id = :position_id
        RETURNING {_POSITION_COLUMNS}
    """),
    Side.NO: text(f"""
        UPDATE positions
        SET no_shares = no_shares + :shares,
            total_invested = total_invested + :invested,
            updated_at = NOW()
        WHERE id = :position_id
        RETURNING {_POSITION_COLUMNS}
    """),
}

_REMOVE_SHARES_SQL = {
    Side.YES: text(f"""
        UPDATE positions
        SET yes_shares = yes_shares - :shares,
            updated_at = NOW()
        WHERE id = :position_id AND yes_shares >= :shares
        RETURNING {_POSITION_COLUMNS}
    """),
    Side.NO: text(f"""
        UPDATE positions
        SET no_shares = no_shares - :shares,
            updated_at = NOW()
        WHERE id = :position_id AND no_shares >= :shares
        RETURNING {_POSITION_COLUMNS}
    """),
}

# ORDER BY user_id: settlement credits users in a fixed order (deadlock-free with trades)
_LIST_MARKET_POSITIONS_FOR_UPDATE_SQL = text(f"""
    SELECT {_POSITION_COLUMNS}
    FROM positions
    WHERE market_id = :market_id
    ORDER BY user_id
    FOR UPDATE
""")

# ---------------------------------------------------------------------------
# SQL: transactions (append-only)
# ---------------------------------------------------------------------------

_INSERT_TRANSACTION_SQL = text("""
    INSERT INTO transactions (user_id, market_id, type, shares, price, amount)
    VALUES (:user_id, :market_id, :type, :shares, :price, :amount)
    RETURNING id, user_id, market_id, type, shares, price, amount, created_at
""")


def _row_to_user(row: object) -> User:
    return User(
        id=str(row.id),  # type: ignore[attr-defined]
        email=row.email,  # type: ignore[attr-defined]
        name=row.name,  # type: ignore[attr-defined]
        balance=float(row.balance),  # type: ignore[attr-defined]
        is_admin=row.is_admin,  # type: ignore[attr-defined]
        is_active=row.is_active,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


def _row_to_position(row: object) -> Position:
    return Position(
        id=str(row.id),  # type: ignore[attr-defined]
        user_id=str(row.user_id),  # type: ignore[attr-defined]
        market_id=str(row.market_id),  # type: ignore[attr-defined]
        yes_shares=float(row.yes_shares),  # type: ignore[attr-defined]
        no_shares=float(row.no_shares),  # type: ignore[attr-defined]
        total_invested=float(row.total_invested),  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_transaction(row: object) -> Transaction:
    return Transaction(
        id=str(row.id),  # type: ignore[attr-defined]
        user_id=str(row.user_id),  # type: ignore[attr-defined]
        market_id=str(row.market_id),  # type: ignore[attr-defined]
        type=row.type,  # type: ignore[attr-defined]
        shares=float(row.shares),  # type: ignore[attr-defined]
        price=float(row.price),  # type: ignore[attr-defined]
        amount=float(row.amount),  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class LedgerRepository:
    """Concrete repository - all mutations atomic at the SQL level."""

    async def get_user_for_update(
        self, db: AsyncSession, user_id: str
    ) -> User | None:
        row = (await db.execute(_GET_USER_FOR_UPDATE_SQL, {"user_id": user_id})).fetchone()
        return _row_to_user(row) if row else None

    async def debit_balance(
        self, db: AsyncSession, user_id: str, amount: float
    ) -> float:
        row = (
            await db.execute(_DEBIT_SQL, {"user_id": user_id, "amount": amount})
        ).fetchone()
        if row is None:
            current = (
                await db.execute(_GET_BALANCE_SQL, {"user_id": user_id})
            ).scalar_one_or_none()
            if current is None:
                raise UserNotFoundError(user_id)
            raise InsufficientBalanceError(amount, float(current))
        return float(row.balance)

    async def credit_balance(
        self, db: AsyncSession, user_id: str, amount: float
    ) -> float:
        row = (
            await db.execute(_CREDIT_SQL, {"user_id": user_id, "amount": amount})
        ).fetchone()
        if row is None:
            raise UserNotFoundError(user_id)
        return float(row.balance)

    async def get_position_for_update(
        self, db: AsyncSession, user_id: str, market_id: str
    ) -> Position | None:
        row = (
            await db.execute(
                _GET_POSITION_FOR_UPDATE_SQL, {"user_id": user_id, "market_id": market_id}
            )
        ).fetchone()
        return _row_to_position(row) if row else None

    async def create_position(
        self,
        db: AsyncSession,
        user_id: str,
        market_id: str,
        side: Side,
        shares: float,
        invested: float,
    ) -> Position:
        row = (
            await db.execute(
                _INSERT_POSITION_SQL,
                {
                    "user_id": user_id,
                    "market_id": market_id,
                    "yes_shares": shares if side is Side.YES else 0.0,
                    "no_shares": shares if side is Side.NO else 0.0,
                    "invested": invested,
                },
            )
        ).fetchone()
        if row is None:
            raise InternalError("Position insert returned no rows")
        return _row_to_position(row)

    async def add_shares(
        self, db: AsyncSession, position_id: str, side: Side, shares: float, invested: float
    ) -> Position:
        row = (
            await db.execute(
                _ADD_SHARES_SQL[side],
                {"position_id": position_id, "shares": shares, "invested": invested},
            )
        ).fetchone()
        if row is None:
            raise InternalError(f"Position vanished under lock: {position_id}")
        return _row_to_position(row)

    async def remove_shares(
        self, db: AsyncSession, position_id: str, side: Side, shares: float
    ) -> Position:
        row = (
            await db.execute(
                _REMOVE_SHARES_SQL[side], {"position_id": position_id, "shares": shares}
            )
        ).fetchone()
        if row is None:
            raise InsufficientSharesError(side.value, shares, 0.0)
        return _row_to_position(row)

    async def insert_transaction(
        self,
        db: AsyncSession,
        user_id: str,
        market_id: str,
        trade_type: str,
        shares: float,
        price: float,
        amount: float,
    ) -> Transaction:
        row = (
            await db.execute(
                _INSERT_TRANSACTION_SQL,
                {
                    "user_id": user_id,
                    "market_id": market_id,
                    "type": trade_type,
                    "shares": shares,
                    "price": price,
                    "amount": amount,
                },
            )
        ).fetchone()
        if row is None:
            raise InternalError("Transaction insert returned no rows")
        return _row_to_transaction(row)

    async def list_market_positions_for_update(
        self, db: AsyncSession, market_id: str
    ) -> list[Position]:
        result = await db.execute(_LIST_MARKET_POSITIONS_FOR_UPDATE_SQL, {"market_id": market_id})
        return [_row_to_position(row) for row in result.fetchall()]
