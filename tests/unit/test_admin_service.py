"""Unit tests for AdminService."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.pm_admin.application.service import AdminService
from src.pm_clearing.domain.settlement import MarketResolver
from src.pm_common.enums import MarketStatus
from src.pm_common.errors import InvalidOutcomeError, TrialExistsError
from src.pm_market.domain.models import Trial
from tests.unit.fakes import FakeSession, FakeStore


@pytest.fixture
def store() -> FakeStore:
    s = FakeStore()
    s.add_user("u1")
    s.add_market("m1")
    s.add_market("m2")
    return s


@pytest.fixture
def service(store: FakeStore) -> AdminService:
    return AdminService(
        resolver=MarketResolver(ledger_repo=store, market_repo=store), market_repo=store
    )


def _trial(nct_id: str = "NCT09990001") -> Trial:
    return Trial(id="", nct_id=nct_id, title="Drug Q for Asthma", phase="Phase 3")


class TestResolveMarket:
    async def test_yes_resolves(self, store: FakeStore, service: AdminService) -> None:
        result = await service.resolve_market("m1", "YES", FakeSession(store))
        assert result["status"] == "RESOLVED"
        assert result["outcome"] == "YES"
        assert store.markets["m1"].status == MarketStatus.RESOLVED

    async def test_cancel_cancels(self, store: FakeStore, service: AdminService) -> None:
        result = await service.resolve_market("m2", "CANCEL", FakeSession(store))
        assert result["status"] == "CANCELLED"
        assert result["outcome"] is None

    async def test_unknown_outcome_rejected(self, store: FakeStore, service: AdminService) -> None:
        with pytest.raises(InvalidOutcomeError):
            await service.resolve_market("m1", "MAYBE", FakeSession(store))
        assert store.markets["m1"].status == MarketStatus.OPEN


class TestCreateMarket:
    async def test_creates_trial_and_symmetric_market(
        self, store: FakeStore, service: AdminService
    ) -> None:
        result = await service.create_market_for_trial(_trial(), None, FakeSession(store))

        assert result["yes_pool"] == result["no_pool"] == 1000.0
        assert result["status"] == "OPEN"
        assert result["question"] == "Will Drug Q for Asthma receive FDA approval?"
        assert store.markets[result["id"]].prices.yes == pytest.approx(0.5)

    async def test_second_market_for_same_trial_rejected(
        self, store: FakeStore, service: AdminService
    ) -> None:
        await service.create_market_for_trial(_trial(), None, FakeSession(store))
        with pytest.raises(TrialExistsError):
            await service.create_market_for_trial(_trial(), "Custom?", FakeSession(store))
        assert len(store.trials) == 1


async def test_stats_counts_by_status(store: FakeStore, service: AdminService) -> None:
    store.markets["m2"].status = MarketStatus.CANCELLED.value
    stats = await service.get_stats(FakeSession(store))
    assert stats == {"total": 2, "open": 1, "closed": 0, "resolved": 0, "cancelled": 1}


async def test_clear_all_runs_in_one_transaction() -> None:
    db = AsyncMock()
    db.execute = AsyncMock(return_value=MagicMock(rowcount=3))
    result = await AdminService(resolver=MagicMock(), market_repo=MagicMock()).clear_all(db)

    assert db.execute.await_count == 5
    db.commit.assert_awaited_once()
    assert result["markets_deleted"] == 3
    reset_params = db.execute.await_args_list[-1].args[1]
    assert reset_params == {"balance": 1000.0}


async def test_verify_invariants_reports_ok() -> None:
    db = AsyncMock()
    db.execute = AsyncMock(return_value=MagicMock(fetchall=MagicMock(return_value=[])))
    result = await AdminService(resolver=MagicMock(), market_repo=MagicMock()).verify_invariants(db)
    assert result == {"ok": True, "violations": []}
