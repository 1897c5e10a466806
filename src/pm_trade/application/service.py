"""TradeExecutor - executes one AMM trade as a single unit of work.

Steps (all inside run_in_transaction):
  1. Lock market row, then user row, then the position row (if any).
  2. Check every precondition; nothing has been written yet.
  3. Price the trade with the constant-product engine.
  4. Write balance, position, pools and the transaction record.

Lock order market -> user matches MarketResolver, so a trade and a settlement
on the same market serialize on the market row instead of deadlocking.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_account.domain.models import Position, User
from src.pm_account.domain.repository import LedgerRepositoryProtocol
from src.pm_account.infrastructure.persistence import LedgerRepository
from src.pm_amm.domain.pricing import TradeQuote, calculate_buy, calculate_sell
from src.pm_clearing.domain.invariants import check_trade_invariants
from src.pm_common.enums import MarketStatus, TradeType
from src.pm_common.errors import (
    InsufficientBalanceError,
    InsufficientSharesError,
    MarketNotFoundError,
    MarketNotOpenError,
    NoPositionError,
    UserNotFoundError,
)
from src.pm_common.money import require_positive
from src.pm_common.unit_of_work import run_in_transaction
from src.pm_market.domain.models import Market
from src.pm_market.domain.repository import MarketRepositoryProtocol
from src.pm_market.infrastructure.persistence import MarketRepository
from src.pm_trade.domain.models import TradeRequest, TradeResult, parse_trade_type

logger = logging.getLogger(__name__)


class TradeExecutor:
    def __init__(
        self,
        ledger_repo: LedgerRepositoryProtocol | None = None,
        market_repo: MarketRepositoryProtocol | None = None,
    ) -> None:
        self._ledger: LedgerRepositoryProtocol = ledger_repo or LedgerRepository()
        self._markets: MarketRepositoryProtocol = market_repo or MarketRepository()

    async def execute_trade(self, db: AsyncSession, request: TradeRequest) -> TradeResult:
        trade_type = parse_trade_type(request.trade_type)
        require_positive(request.amount, "amount" if trade_type.is_buy else "shares")

        result = await run_in_transaction(db, lambda: self._execute(db, request, trade_type))
        logger.info(
            "Trade executed: user=%s market=%s type=%s amount=%.6f shares=%.6f price=%.6f",
            request.user_id,
            request.market_id,
            trade_type.value,
            request.amount,
            result.shares,
            result.avg_price,
        )
        return result

    async def _execute(
        self, db: AsyncSession, request: TradeRequest, trade_type: TradeType
    ) -> TradeResult:
        market = await self._markets.get_market_for_update(db, request.market_id)
        if market is None:
            raise MarketNotFoundError(request.market_id)
        user = await self._ledger.get_user_for_update(db, request.user_id)
        if user is None:
            raise UserNotFoundError(request.user_id)
        if market.status != MarketStatus.OPEN:
            raise MarketNotOpenError(market.id, market.status)

        position = await self._ledger.get_position_for_update(db, user.id, market.id)

        if trade_type.is_buy:
            return await self._buy(db, trade_type, user, market, position, request.amount)
        return await self._sell(db, trade_type, user, market, position, request.amount)

    async def _buy(
        self,
        db: AsyncSession,
        trade_type: TradeType,
        user: User,
        market: Market,
        position: Position | None,
        amount: float,
    ) -> TradeResult:
        if amount > user.balance:
            raise InsufficientBalanceError(amount, user.balance)

        quote = calculate_buy(market.yes_pool, market.no_pool, amount, trade_type.side)
        check_trade_invariants(market.id, market.yes_pool, market.no_pool, quote)

        new_balance = await self._ledger.debit_balance(db, user.id, amount)
        if position is None:
            await self._ledger.create_position(
                db, user.id, market.id, trade_type.side, quote.shares, amount
            )
        else:
            await self._ledger.add_shares(db, position.id, trade_type.side, quote.shares, amount)
        return await self._apply_market_and_record(db, trade_type, user, market, quote, new_balance)

    async def _sell(
        self,
        db: AsyncSession,
        trade_type: TradeType,
        user: User,
        market: Market,
        position: Position | None,
        shares: float,
    ) -> TradeResult:
        if position is None:
            raise NoPositionError(market.id)
        held = position.shares(trade_type.side)
        if held < shares:
            raise InsufficientSharesError(trade_type.side.value, shares, held)

        quote = calculate_sell(market.yes_pool, market.no_pool, shares, trade_type.side)
        check_trade_invariants(market.id, market.yes_pool, market.no_pool, quote)

        await self._ledger.remove_shares(db, position.id, trade_type.side, shares)
        new_balance = await self._ledger.credit_balance(db, user.id, quote.amount)
        return await self._apply_market_and_record(db, trade_type, user, market, quote, new_balance)

    async def _apply_market_and_record(
        self,
        db: AsyncSession,
        trade_type: TradeType,
        user: User,
        market: Market,
        quote: TradeQuote,
        new_balance: float,
    ) -> TradeResult:
        await self._markets.update_pools(db, market.id, quote.new_yes_pool, quote.new_no_pool)
        tx = await self._ledger.insert_transaction(
            db,
            user.id,
            market.id,
            trade_type.value,
            quote.shares,
            quote.price,
            quote.amount,
        )
        return TradeResult(
            shares=quote.shares,
            avg_price=quote.price,
            new_balance=new_balance,
            new_yes_pool=quote.new_yes_pool,
            new_no_pool=quote.new_no_pool,
            transaction_id=tx.id,
        )
