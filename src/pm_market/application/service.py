"""MarketApplicationService - thin composition layer.

All methods are read-only; no commit/rollback needed.
The caller (router) passes db session; service delegates to repositories.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_account.infrastructure.portfolio_repository import PortfolioRepository
from src.pm_amm.domain.pricing import quote_trade
from src.pm_common.enums import MarketStatus
from src.pm_common.errors import MarketNotFoundError, MarketNotOpenError
from src.pm_common.money import require_positive
from src.pm_common.pagination import cursor_decode, cursor_encode
from src.pm_market.application.schemas import (
    MarketDetail,
    MarketListItem,
    MarketListResponse,
    MarketTransactionOut,
    QuoteResponse,
)
from src.pm_market.domain.repository import MarketRepositoryProtocol
from src.pm_market.infrastructure.persistence import MarketRepository
from src.pm_trade.domain.models import parse_trade_type

RECENT_TRANSACTIONS_LIMIT = 50


class MarketApplicationService:
    def __init__(
        self,
        repo: MarketRepositoryProtocol | None = None,
        portfolio_repo: PortfolioRepository | None = None,
    ) -> None:
        self._repo: MarketRepositoryProtocol = repo or MarketRepository()
        self._portfolio = portfolio_repo or PortfolioRepository()

    async def list_markets(
        self,
        db: AsyncSession,
        status: str | None,
        search: str | None,
        cursor: str | None,
        limit: int,
    ) -> MarketListResponse:
        # status=None -> default OPEN; status='ALL' -> no filter
        sql_status = None if status == "ALL" else (status or MarketStatus.OPEN.value)
        cursor_ts, cursor_id = cursor_decode(cursor)

        # Fetch limit+1 to detect has_more without COUNT(*)
        markets = await self._repo.list_markets(
            db, sql_status, search or None, cursor_ts, cursor_id, limit + 1
        )
        has_more = len(markets) > limit
        page = markets[:limit]

        items = [MarketListItem.from_domain(m) for m in page]
        next_cursor = None
        if has_more and page and page[-1].created_at is not None:
            next_cursor = cursor_encode(page[-1].created_at, page[-1].id)
        return MarketListResponse(items=items, next_cursor=next_cursor, has_more=has_more)

    async def get_market(self, db: AsyncSession, market_id: str) -> MarketDetail:
        market = await self._repo.get_market_by_id(db, market_id)
        if market is None:
            raise MarketNotFoundError(market_id)
        positions, transactions = await self._portfolio.count_market_activity(market_id, db)
        recent = await self._portfolio.list_market_transactions(
            market_id, RECENT_TRANSACTIONS_LIMIT, db
        )
        base = MarketListItem.from_domain(market)
        return MarketDetail(
            **base.model_dump(exclude={"trial"}),
            trial=base.trial,
            k=market.k,
            positions_count=positions,
            transactions_count=transactions,
            recent_transactions=[MarketTransactionOut.from_row(r) for r in recent],
        )

    async def quote(
        self, db: AsyncSession, market_id: str, trade_type: str, amount: float
    ) -> QuoteResponse:
        """Price a trade against the current pools without executing it."""
        parsed = parse_trade_type(trade_type)
        require_positive(amount, "amount" if parsed.is_buy else "shares")
        market = await self._repo.get_market_by_id(db, market_id)
        if market is None:
            raise MarketNotFoundError(market_id)
        if market.status != MarketStatus.OPEN:
            raise MarketNotOpenError(market_id, market.status)
        quote = quote_trade(parsed, market.yes_pool, market.no_pool, amount)
        return QuoteResponse.from_quote(market, parsed.value, amount, quote)
