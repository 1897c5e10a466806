"""Cron boundary for the external resolution-detection job.

POST /cron/resolutions   Authorization: Bearer <CRON_SECRET>

Body: {"signals": [{"market_id": "...", "outcome": "YES|NO", "resolved_at": "..."}]}
Runs one MarketLifecycleSync pass over the OPEN markets with these signals.
When CRON_SECRET is unset the endpoint rejects every call.
"""

import hmac
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pm_common.database import get_db_session
from src.pm_common.enums import Side
from src.pm_common.response import ApiResponse, success_response
from src.pm_lifecycle.application.service import MarketLifecycleSync
from src.pm_lifecycle.domain.signals import ResolutionSignal, StaticSignalSource

router = APIRouter(prefix="/cron", tags=["cron"])

_sync = MarketLifecycleSync()


class SignalIn(BaseModel):
    market_id: str
    outcome: Side
    resolved_at: datetime | None = None
    source: str | None = None


class ResolutionBatch(BaseModel):
    signals: list[SignalIn] = Field(default_factory=list)


async def verify_cron_secret(
    authorization: Annotated[str | None, Header()] = None,
) -> None:
    expected = settings.CRON_SECRET
    scheme, _, supplied = (authorization or "").partition(" ")
    if (
        not expected
        or scheme.lower() != "bearer"
        or not hmac.compare_digest(supplied.strip().encode(), expected.encode())
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid cron credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )


@router.post("/resolutions", dependencies=[Depends(verify_cron_secret)])
async def run_resolutions(
    body: ResolutionBatch,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    source = StaticSignalSource(
        {
            s.market_id: ResolutionSignal(
                outcome=s.outcome, resolved_at=s.resolved_at, source=s.source
            )
            for s in body.signals
        }
    )
    report = await _sync.run_once(db, source)
    return success_response(
        {
            "checked": report.checked,
            "resolved": report.resolved,
            "failed": report.failed,
            "resolved_market_ids": report.resolved_market_ids,
        },
        request,
    )
