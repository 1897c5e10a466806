"""MarketLifecycleSync - one scan over OPEN markets.

For each OPEN market the injected source is asked for a resolution signal;
markets with a signal are resolved through MarketResolver, each in its own
unit of work. A failure on one market (source error, concurrent resolution,
store error) is logged and counted; the scan continues with the next market.

Sources that call a remote service are throttled by SYNC_CHECK_DELAY_SECONDS
between markets; in-memory sources are scanned without pausing.
"""

import asyncio
import logging
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pm_clearing.domain.settlement import MarketResolver
from src.pm_common.errors import AppError
from src.pm_lifecycle.domain.signals import ResolutionSignalSource
from src.pm_market.domain.repository import MarketRepositoryProtocol
from src.pm_market.infrastructure.persistence import MarketRepository

logger = logging.getLogger(__name__)


@dataclass
class SyncReport:
    checked: int = 0
    resolved: int = 0
    failed: int = 0
    resolved_market_ids: list[str] = field(default_factory=list)


class MarketLifecycleSync:
    def __init__(
        self,
        resolver: MarketResolver | None = None,
        market_repo: MarketRepositoryProtocol | None = None,
        check_delay_seconds: float | None = None,
    ) -> None:
        self._resolver = resolver or MarketResolver()
        self._markets: MarketRepositoryProtocol = market_repo or MarketRepository()
        self._delay = (
            check_delay_seconds
            if check_delay_seconds is not None
            else settings.SYNC_CHECK_DELAY_SECONDS
        )

    async def run_once(self, db: AsyncSession, source: ResolutionSignalSource) -> SyncReport:
        report = SyncReport()
        markets = await self._markets.list_open_markets(db)
        # End the read transaction before resolving; each resolve is its own unit of work.
        await db.commit()

        throttle = self._delay > 0 and getattr(source, "performs_io", True)
        for i, market in enumerate(markets):
            if i and throttle:
                await asyncio.sleep(self._delay)
            report.checked += 1
            try:
                signal = await source.check(market)
            except Exception:
                logger.exception("Signal check failed for market %s", market.id)
                report.failed += 1
                continue
            if signal is None:
                continue

            try:
                await self._resolver.resolve(db, market.id, signal.outcome, signal.resolved_at)
            except AppError as exc:
                logger.warning("Could not resolve market %s: %s", market.id, exc.message)
                report.failed += 1
                continue
            report.resolved += 1
            report.resolved_market_ids.append(market.id)

        logger.info(
            "Lifecycle sync: checked=%d resolved=%d failed=%d",
            report.checked,
            report.resolved,
            report.failed,
        )
        return report
