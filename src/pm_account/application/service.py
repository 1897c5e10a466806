"""AccountApplicationService - portfolio, history and leaderboard views.

All operations are read-only and run without explicit transaction. Only
positions in OPEN/CLOSED markets carry value; positions in settled markets
were already paid out (or refunded) into the balance.
"""

from collections import defaultdict

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pm_account.application.schemas import (
    LeaderboardEntry,
    LeaderboardResponse,
    PortfolioPosition,
    PortfolioResponse,
    TransactionItem,
    TransactionListResponse,
)
from src.pm_account.infrastructure.portfolio_repository import PortfolioRepository
from src.pm_amm.domain.pricing import calculate_position_value, get_market_prices
from src.pm_common.errors import UserNotFoundError
from src.pm_common.money import amount_to_display
from src.pm_common.pagination import cursor_decode, cursor_encode


class AccountApplicationService:
    def __init__(self, repo: PortfolioRepository | None = None) -> None:
        self._repo = repo or PortfolioRepository()

    async def get_portfolio(self, db: AsyncSession, user_id: str) -> PortfolioResponse:
        user = await self._repo.get_user(user_id, db)
        if user is None:
            raise UserNotFoundError(user_id)

        positions: list[PortfolioPosition] = []
        for row in await self._repo.list_live_positions(user_id, db):
            yes_price = get_market_prices(row["yes_pool"], row["no_pool"]).yes
            value = calculate_position_value(row["yes_shares"], row["no_shares"], yes_price)
            invested = row["total_invested"]
            pnl = value.total_value - invested
            positions.append(
                PortfolioPosition(
                    market_id=row["market_id"],
                    question=row["question"],
                    status=row["status"],
                    nct_id=row["nct_id"],
                    trial_title=row["trial_title"],
                    yes_shares=row["yes_shares"],
                    no_shares=row["no_shares"],
                    total_invested=invested,
                    yes_price=yes_price,
                    current_value=value.total_value,
                    unrealized_pnl=pnl,
                    unrealized_pnl_percent=pnl / invested * 100 if invested > 0 else 0.0,
                )
            )

        positions_value = sum(p.current_value for p in positions)
        total_value = user["balance"] + positions_value
        return PortfolioResponse(
            user_id=user["id"],
            name=user["name"],
            balance=user["balance"],
            balance_display=amount_to_display(user["balance"]),
            positions_value=positions_value,
            total_value=total_value,
            total_value_display=amount_to_display(total_value),
            profit=total_value - settings.INITIAL_USER_BALANCE,
            positions=positions,
        )

    async def list_transactions(
        self, db: AsyncSession, user_id: str, cursor: str | None, limit: int
    ) -> TransactionListResponse:
        cursor_ts, cursor_id = cursor_decode(cursor)
        rows = await self._repo.list_user_transactions(
            user_id, cursor_ts, cursor_id, limit + 1, db
        )
        has_more = len(rows) > limit
        page = rows[:limit]
        next_cursor = (
            cursor_encode(page[-1]["created_at"], page[-1]["id"]) if has_more and page else None
        )
        return TransactionListResponse(
            items=[TransactionItem.from_row(r) for r in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )

    async def get_leaderboard(self, db: AsyncSession, limit: int) -> LeaderboardResponse:
        """Rank active users by total value (balance + mark-to-market positions)."""
        holdings: dict[str, float] = defaultdict(float)
        for h in await self._repo.list_live_holdings(db):
            yes_price = get_market_prices(h["yes_pool"], h["no_pool"]).yes
            holdings[h["user_id"]] += calculate_position_value(
                h["yes_shares"], h["no_shares"], yes_price
            ).total_value

        users = await self._repo.list_leaderboard_users(db)
        ranked = sorted(
            users,
            key=lambda u: (-(u["balance"] + holdings[u["id"]]), u["id"]),
        )[:limit]

        items = []
        for rank, u in enumerate(ranked, start=1):
            positions_value = holdings[u["id"]]
            total = u["balance"] + positions_value
            items.append(
                LeaderboardEntry(
                    rank=rank,
                    user_id=u["id"],
                    name=u["name"],
                    balance=u["balance"],
                    positions_value=positions_value,
                    total_value=total,
                    profit=total - settings.INITIAL_USER_BALANCE,
                    trades_count=u["trades_count"],
                )
            )
        return LeaderboardResponse(items=items)
