"""Repository Protocol - dependency inversion for testability.

Unit tests inject a mock (or the in-memory fake in tests/unit/fakes.py) that
conforms to this Protocol. Infrastructure layer provides the real implementation.

Mutating methods never commit; the caller owns the transaction
(see src/pm_common/unit_of_work.py). Guarded mutations re-check their
precondition in SQL and raise the domain error when it no longer holds.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_account.domain.models import Position, Transaction, User
from src.pm_common.enums import Side


class LedgerRepositoryProtocol(Protocol):
    async def get_user_for_update(
        self, db: AsyncSession, user_id: str
    ) -> User | None: ...

    async def debit_balance(
        self, db: AsyncSession, user_id: str, amount: float
    ) -> float: ...

    async def credit_balance(
        self, db: AsyncSession, user_id: str, amount: float
    ) -> float: ...

    async def get_position_for_update(
        self, db: AsyncSession, user_id: str, market_id: str
    ) -> Position | None: ...

    async def create_position(
        self,
        db: AsyncSession,
        user_id: str,
        market_id: str,
        side: Side,
        shares: float,
        invested: float,
    ) -> Position: ...

    async def add_shares(
        self, db: AsyncSession, position_id: str, side: Side, shares: float, invested: float
    ) -> Position: ...

    async def remove_shares(
        self, db: AsyncSession, position_id: str, side: Side, shares: float
    ) -> Position: ...

    async def insert_transaction(
        self,
        db: AsyncSession,
        user_id: str,
        market_id: str,
        trade_type: str,
        shares: float,
        price: float,
        amount: float,
    ) -> Transaction: ...

    async def list_market_positions_for_update(
        self, db: AsyncSession, market_id: str
    ) -> list[Position]: ...
