"""In-memory fakes for the ledger and market repositories.

FakeStore implements both LedgerRepositoryProtocol and MarketRepositoryProtocol
over plain dicts. FakeSession mimics the commit/rollback surface the unit of
work uses: rollback restores the state captured at the last commit, so tests
can assert that a failed operation leaves nothing behind.
"""

import copy
import itertools
from datetime import UTC, datetime

from src.pm_account.domain.models import Position, Transaction, User
from src.pm_common.enums import MarketStatus, Side
from src.pm_common.errors import (
    InsufficientBalanceError,
    InsufficientSharesError,
    InternalError,
    UserNotFoundError,
)
from src.pm_market.domain.models import Market, MarketCounts, Trial


class FakeStore:
    def __init__(self) -> None:
        self.users: dict[str, User] = {}
        self.markets: dict[str, Market] = {}
        self.trials: dict[str, Trial] = {}
        self.positions: dict[str, Position] = {}
        self.transactions: list[Transaction] = []
        self._ids = itertools.count(1)

    # -- setup helpers -----------------------------------------------------

    def next_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._ids)}"

    def add_user(self, user_id: str = "u1", balance: float = 1000.0) -> User:
        user = User(id=user_id, email=f"{user_id}@example.com", name=user_id, balance=balance)
        self.users[user_id] = user
        return user

    def add_market(
        self,
        market_id: str = "m1",
        yes_pool: float = 1000.0,
        no_pool: float = 1000.0,
        status: str = MarketStatus.OPEN.value,
    ) -> Market:
        market = Market(
            id=market_id,
            trial_id=f"trial-{market_id}",
            question=f"Will {market_id} receive FDA approval?",
            yes_pool=yes_pool,
            no_pool=no_pool,
            status=status,
            resolved_outcome=None,
            resolved_at=None,
            created_at=datetime.now(UTC),
        )
        self.markets[market_id] = market
        return market

    def position_of(self, user_id: str, market_id: str) -> Position | None:
        for p in self.positions.values():
            if p.user_id == user_id and p.market_id == market_id:
                return p
        return None

    def snapshot(self) -> dict:
        return copy.deepcopy(
            {
                "users": self.users,
                "markets": self.markets,
                "trials": self.trials,
                "positions": self.positions,
                "transactions": self.transactions,
            }
        )

    def restore(self, state: dict) -> None:
        state = copy.deepcopy(state)
        self.users = state["users"]
        self.markets = state["markets"]
        self.trials = state["trials"]
        self.positions = state["positions"]
        self.transactions = state["transactions"]

    # -- LedgerRepositoryProtocol -----------------------------------------

    async def get_user_for_update(self, db, user_id: str) -> User | None:
        user = self.users.get(user_id)
        return copy.copy(user) if user else None

    async def debit_balance(self, db, user_id: str, amount: float) -> float:
        user = self.users.get(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        if user.balance < amount:
            raise InsufficientBalanceError(amount, user.balance)
        user.balance -= amount
        return user.balance

    async def credit_balance(self, db, user_id: str, amount: float) -> float:
        user = self.users.get(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        user.balance += amount
        return user.balance

    async def get_position_for_update(self, db, user_id: str, market_id: str) -> Position | None:
        position = self.position_of(user_id, market_id)
        return copy.copy(position) if position else None

    async def create_position(
        self, db, user_id: str, market_id: str, side: Side, shares: float, invested: float
    ) -> Position:
        position = Position(
            id=self.next_id("pos"),
            user_id=user_id,
            market_id=market_id,
            yes_shares=shares if side is Side.YES else 0.0,
            no_shares=shares if side is Side.NO else 0.0,
            total_invested=invested,
        )
        self.positions[position.id] = position
        return copy.copy(position)

    async def add_shares(
        self, db, position_id: str, side: Side, shares: float, invested: float
    ) -> Position:
        position = self.positions[position_id]
        if side is Side.YES:
            position.yes_shares += shares
        else:
            position.no_shares += shares
        position.total_invested += invested
        return copy.copy(position)

    async def remove_shares(self, db, position_id: str, side: Side, shares: float) -> Position:
        position = self.positions[position_id]
        held = position.shares(side)
        if held < shares:
            raise InsufficientSharesError(side.value, shares, held)
        if side is Side.YES:
            position.yes_shares -= shares
        else:
            position.no_shares -= shares
        return copy.copy(position)

    async def insert_transaction(
        self,
        db,
        user_id: str,
        market_id: str,
        trade_type: str,
        shares: float,
        price: float,
        amount: float,
    ) -> Transaction:
        tx = Transaction(
            id=self.next_id("tx"),
            user_id=user_id,
            market_id=market_id,
            type=trade_type,
            shares=shares,
            price=price,
            amount=amount,
            created_at=datetime.now(UTC),
        )
        self.transactions.append(tx)
        return tx

    async def list_market_positions_for_update(self, db, market_id: str) -> list[Position]:
        rows = [copy.copy(p) for p in self.positions.values() if p.market_id == market_id]
        return sorted(rows, key=lambda p: p.user_id)

    # -- MarketRepositoryProtocol -----------------------------------------

    async def get_market_by_id(self, db, market_id: str) -> Market | None:
        market = self.markets.get(market_id)
        return copy.copy(market) if market else None

    async def get_market_for_update(self, db, market_id: str) -> Market | None:
        return await self.get_market_by_id(db, market_id)

    async def list_markets(self, db, status, search, cursor_ts, cursor_id, limit) -> list[Market]:
        rows = [
            copy.copy(m)
            for m in self.markets.values()
            if status is None or m.status == status
        ]
        if search:
            rows = [m for m in rows if search.lower() in m.question.lower()]
        return rows[:limit]

    async def list_open_markets(self, db) -> list[Market]:
        return [copy.copy(m) for m in self.markets.values() if m.status == MarketStatus.OPEN]

    async def update_pools(self, db, market_id: str, yes_pool: float, no_pool: float) -> None:
        market = self.markets[market_id]
        if market.status != MarketStatus.OPEN:
            raise InternalError(f"Market {market_id} not OPEN during pool update")
        market.yes_pool = yes_pool
        market.no_pool = no_pool

    async def mark_resolved(self, db, market_id: str, outcome: str, resolved_at) -> None:
        market = self.markets[market_id]
        if market.status != MarketStatus.OPEN:
            raise InternalError(f"Market {market_id} not OPEN during resolve")
        market.status = MarketStatus.RESOLVED.value
        market.resolved_outcome = outcome
        market.resolved_at = resolved_at

    async def mark_cancelled(self, db, market_id: str) -> None:
        market = self.markets[market_id]
        if market.status != MarketStatus.OPEN:
            raise InternalError(f"Market {market_id} not OPEN during cancel")
        market.status = MarketStatus.CANCELLED.value

    async def get_trial_by_nct_id(self, db, nct_id: str) -> Trial | None:
        for t in self.trials.values():
            if t.nct_id == nct_id:
                return t
        return None

    async def create_trial(self, db, trial: Trial) -> Trial:
        stored = copy.copy(trial)
        stored.id = self.next_id("trial")
        self.trials[stored.id] = stored
        return stored

    async def get_market_by_trial(self, db, trial_id: str) -> Market | None:
        for m in self.markets.values():
            if m.trial_id == trial_id:
                return copy.copy(m)
        return None

    async def create_market(
        self, db, trial_id: str, question: str, initial_pool: float
    ) -> Market:
        market_id = self.next_id("mkt")
        market = self.add_market(market_id, initial_pool, initial_pool)
        market.trial_id = trial_id
        market.question = question
        return copy.copy(market)

    async def count_by_status(self, db) -> MarketCounts:
        counts = MarketCounts()
        for m in self.markets.values():
            counts.total += 1
            setattr(counts, m.status.lower(), getattr(counts, m.status.lower()) + 1)
        return counts


class FakeSession:
    """commit()/rollback() over a FakeStore, as seen by run_in_transaction."""

    def __init__(self, store: FakeStore) -> None:
        self.store = store
        self.commits = 0
        self.rollbacks = 0
        self._committed = store.snapshot()

    async def commit(self) -> None:
        self.commits += 1
        self._committed = self.store.snapshot()

    async def rollback(self) -> None:
        self.rollbacks += 1
        self.store.restore(self._committed)
