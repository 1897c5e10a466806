# tests/unit/test_market_service.py
"""Unit tests for MarketApplicationService using mock repositories."""
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.pm_common.errors import (
    InvalidAmountError,
    InvalidTradeTypeError,
    MarketNotFoundError,
    MarketNotOpenError,
)
from src.pm_common.pagination import cursor_decode
from src.pm_market.application.service import MarketApplicationService
from src.pm_market.domain.models import Market, Trial


def _make_market(**kwargs) -> Market:
    defaults = dict(
        id="MKT-TEST", trial_id="T-1", question="Will Drug X receive FDA approval?",
        yes_pool=1000.0, no_pool=1000.0, status="OPEN",
        resolved_outcome=None, resolved_at=None,
        created_at=datetime.now(UTC), updated_at=datetime.now(UTC),
        trial=Trial(id="T-1", nct_id="NCT04368728", title="Drug X", phase="Phase 3"),
    )
    defaults.update(kwargs)
    return Market(**defaults)


@pytest.fixture
def db():
    return MagicMock()


@pytest.fixture
def mock_repo():
    return MagicMock()


@pytest.fixture
def mock_portfolio():
    portfolio = MagicMock()
    portfolio.count_market_activity = AsyncMock(return_value=(4, 9))
    portfolio.list_market_transactions = AsyncMock(return_value=[
        {
            "id": "tx-1", "user_id": "u1", "type": "BUY_YES", "shares": 90.9,
            "price": 1.1, "amount": 100.0, "created_at": datetime.now(UTC),
        }
    ])
    return portfolio


@pytest.fixture
def svc(mock_repo, mock_portfolio) -> MarketApplicationService:
    return MarketApplicationService(repo=mock_repo, portfolio_repo=mock_portfolio)


class TestListMarkets:
    async def test_returns_items_with_prices(self, db, mock_repo, svc) -> None:
        mock_repo.list_markets = AsyncMock(
            return_value=[_make_market(id="M-1", yes_pool=909.09, no_pool=1100.0)]
        )

        resp = await svc.list_markets(db, status=None, search=None, cursor=None, limit=20)

        assert len(resp.items) == 1
        item = resp.items[0]
        assert item.yes_price == pytest.approx(1100 / 2009.09)
        assert item.yes_price + item.no_price == pytest.approx(1.0)
        assert item.trial.nct_id == "NCT04368728"
        assert resp.has_more is False

    async def test_has_more_when_over_limit(self, db, mock_repo, svc) -> None:
        # repo returns limit+1 items -> has_more=True
        markets = [_make_market(id=f"M-{i}") for i in range(21)]
        mock_repo.list_markets = AsyncMock(return_value=markets)

        resp = await svc.list_markets(db, status=None, search=None, cursor=None, limit=20)

        assert resp.has_more is True
        assert len(resp.items) == 20
        assert cursor_decode(resp.next_cursor)[1] == "M-19"

    async def test_default_status_is_open(self, db, mock_repo, svc) -> None:
        mock_repo.list_markets = AsyncMock(return_value=[])
        await svc.list_markets(db, status=None, search=None, cursor=None, limit=20)
        assert mock_repo.list_markets.call_args.args[1] == "OPEN"

    async def test_status_all_passes_none_to_repo(self, db, mock_repo, svc) -> None:
        mock_repo.list_markets = AsyncMock(return_value=[])
        await svc.list_markets(db, status="ALL", search="lung", cursor=None, limit=20)
        args = mock_repo.list_markets.call_args.args
        assert args[1] is None
        assert args[2] == "lung"


class TestGetMarket:
    async def test_detail_includes_activity(self, db, mock_repo, svc) -> None:
        mock_repo.get_market_by_id = AsyncMock(return_value=_make_market())

        detail = await svc.get_market(db, "MKT-TEST")

        assert detail.k == pytest.approx(1_000_000)
        assert detail.positions_count == 4
        assert detail.transactions_count == 9
        assert detail.recent_transactions[0].type == "BUY_YES"
        assert detail.trial.title == "Drug X"

    async def test_not_found(self, db, mock_repo, svc) -> None:
        mock_repo.get_market_by_id = AsyncMock(return_value=None)
        with pytest.raises(MarketNotFoundError):
            await svc.get_market(db, "nope")


class TestQuote:
    async def test_quote_buy_yes(self, db, mock_repo, svc) -> None:
        mock_repo.get_market_by_id = AsyncMock(return_value=_make_market())

        quote = await svc.quote(db, "MKT-TEST", "BUY_YES", 100)

        assert quote.shares == pytest.approx(90.909090909)
        assert quote.avg_price == pytest.approx(1.1)
        assert quote.yes_price_before == pytest.approx(0.5)
        assert quote.yes_price_after > 0.5

    async def test_quote_on_resolved_market_rejected(self, db, mock_repo, svc) -> None:
        mock_repo.get_market_by_id = AsyncMock(
            return_value=_make_market(status="RESOLVED", resolved_outcome="YES")
        )
        with pytest.raises(MarketNotOpenError):
            await svc.quote(db, "MKT-TEST", "SELL_NO", 5)

    async def test_bad_type_and_amount(self, db, mock_repo, svc) -> None:
        mock_repo.get_market_by_id = AsyncMock(return_value=_make_market())
        with pytest.raises(InvalidTradeTypeError):
            await svc.quote(db, "MKT-TEST", "SHORT", 5)
        with pytest.raises(InvalidAmountError):
            await svc.quote(db, "MKT-TEST", "BUY_NO", 0)
