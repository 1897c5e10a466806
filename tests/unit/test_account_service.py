"""Unit tests for AccountApplicationService (portfolio, history, leaderboard)."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.pm_account.application.service import AccountApplicationService
from src.pm_common.errors import UserNotFoundError
from src.pm_common.pagination import cursor_decode


@pytest.fixture
def db():
    return MagicMock()


@pytest.fixture
def repo():
    return MagicMock()


class TestPortfolio:
    async def test_marks_positions_to_market(self, db, repo) -> None:
        repo.get_user = AsyncMock(
            return_value={"id": "u1", "email": "a@x.io", "name": "A", "balance": 900.0}
        )
        repo.list_live_positions = AsyncMock(return_value=[
            {
                "market_id": "m1", "question": "Q?", "status": "OPEN",
                "nct_id": "NCT1", "trial_title": "T",
                "yes_shares": 100.0, "no_shares": 0.0, "total_invested": 100.0,
                # yes_price = 1500 / 2000 = 0.75
                "yes_pool": 500.0, "no_pool": 1500.0,
            }
        ])

        portfolio = await AccountApplicationService(repo=repo).get_portfolio(db, "u1")

        position = portfolio.positions[0]
        assert position.yes_price == pytest.approx(0.75)
        assert position.current_value == pytest.approx(75.0)
        assert position.unrealized_pnl == pytest.approx(-25.0)
        assert position.unrealized_pnl_percent == pytest.approx(-25.0)
        assert portfolio.total_value == pytest.approx(975.0)
        assert portfolio.profit == pytest.approx(-25.0)

    async def test_unknown_user(self, db, repo) -> None:
        repo.get_user = AsyncMock(return_value=None)
        with pytest.raises(UserNotFoundError):
            await AccountApplicationService(repo=repo).get_portfolio(db, "ghost")

    async def test_profit_percent_is_zero_without_cost_basis(self, db, repo) -> None:
        repo.get_user = AsyncMock(
            return_value={"id": "u1", "email": "a@x.io", "name": "A", "balance": 1000.0}
        )
        repo.list_live_positions = AsyncMock(return_value=[
            {
                "market_id": "m1", "question": "Q?", "status": "OPEN",
                "nct_id": None, "trial_title": None,
                "yes_shares": 10.0, "no_shares": 0.0, "total_invested": 0.0,
                "yes_pool": 1000.0, "no_pool": 1000.0,
            }
        ])

        portfolio = await AccountApplicationService(repo=repo).get_portfolio(db, "u1")

        position = portfolio.positions[0]
        assert position.unrealized_pnl == pytest.approx(5.0)
        assert position.unrealized_pnl_percent == 0.0


class TestTransactions:
    async def test_pagination_cursor_points_at_last_row(self, db, repo) -> None:
        now = datetime.now(UTC)
        rows = [
            {
                "id": f"tx-{i}", "market_id": "m1", "question": "Q?", "nct_id": None,
                "type": "BUY_NO", "shares": 1.0, "price": 0.5, "amount": 0.5,
                "created_at": now - timedelta(seconds=i),
            }
            for i in range(3)
        ]
        repo.list_user_transactions = AsyncMock(return_value=rows)

        resp = await AccountApplicationService(repo=repo).list_transactions(db, "u1", None, 2)

        assert resp.has_more is True
        assert [t.id for t in resp.items] == ["tx-0", "tx-1"]
        assert cursor_decode(resp.next_cursor)[1] == "tx-1"
        # limit+1 requested to detect has_more
        assert repo.list_user_transactions.call_args.args[3] == 3


class TestLeaderboard:
    async def test_ranks_by_total_value(self, db, repo) -> None:
        repo.list_live_holdings = AsyncMock(return_value=[
            {"user_id": "bob", "yes_shares": 0.0, "no_shares": 400.0,
             "yes_pool": 1000.0, "no_pool": 1000.0},
        ])
        repo.list_leaderboard_users = AsyncMock(return_value=[
            {"id": "alice", "name": "Alice", "balance": 1100.0, "trades_count": 2},
            {"id": "bob", "name": "Bob", "balance": 700.0, "trades_count": 1},
            {"id": "carol", "name": None, "balance": 1000.0, "trades_count": 0},
        ])

        board = await AccountApplicationService(repo=repo).get_leaderboard(db, limit=2)

        assert [e.user_id for e in board.items] == ["alice", "carol"]
        assert board.items[0].rank == 1
        assert board.items[0].profit == pytest.approx(100.0)

    async def test_open_positions_count_towards_total(self, db, repo) -> None:
        repo.list_live_holdings = AsyncMock(return_value=[
            {"user_id": "bob", "yes_shares": 0.0, "no_shares": 400.0,
             "yes_pool": 1000.0, "no_pool": 1000.0},
        ])
        repo.list_leaderboard_users = AsyncMock(return_value=[
            {"id": "bob", "name": "Bob", "balance": 800.0, "trades_count": 1},
        ])

        board = await AccountApplicationService(repo=repo).get_leaderboard(db, limit=10)

        assert board.items[0].positions_value == pytest.approx(200.0)
        assert board.items[0].total_value == pytest.approx(1000.0)
