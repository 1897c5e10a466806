"""Resolution signals - the contract between external outcome detection and the resolver.

How an outcome is detected (registry lookups, FDA approval feeds, ...) lives
outside this codebase. A source only answers: for this OPEN market, is there
an outcome yet?
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from src.pm_common.enums import Side
from src.pm_market.domain.models import Market


@dataclass(frozen=True)
class ResolutionSignal:
    outcome: Side
    resolved_at: datetime | None = None   # e.g. the approval date; None -> now
    source: str | None = None


class ResolutionSignalSource(Protocol):
    # True when check() calls a remote service; the sync pass pauses between such calls.
    performs_io: bool

    async def check(self, market: Market) -> ResolutionSignal | None: ...


class StaticSignalSource:
    """In-memory source keyed by market id, for signals pushed by the detection job."""

    performs_io = False

    def __init__(self, signals: dict[str, ResolutionSignal]) -> None:
        self._signals = dict(signals)

    async def check(self, market: Market) -> ResolutionSignal | None:
        return self._signals.get(market.id)
