# src/pm_admin/api/router.py
"""Admin REST API. Every endpoint requires an admin account."""
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_admin.application.service import AdminService
from src.pm_common.database import get_db_session
from src.pm_common.response import ApiResponse, success_response
from src.pm_gateway.auth.dependencies import require_admin
from src.pm_gateway.user.db_models import UserModel
from src.pm_market.domain.models import Trial

router = APIRouter(prefix="/admin", tags=["admin"])
_service = AdminService()


class ResolveRequest(BaseModel):
    outcome: str = Field(..., description="YES | NO | CANCEL")


class CreateMarketRequest(BaseModel):
    nct_id: str = Field(..., min_length=1, max_length=20)
    title: str = Field(..., min_length=1, max_length=500)
    phase: str | None = None
    status: str | None = None
    sponsor: str | None = None
    conditions: list[str] = Field(default_factory=list)
    interventions: list[str] = Field(default_factory=list)
    question: str | None = Field(None, max_length=500)


@router.post("/markets/{market_id}/resolve")
async def resolve_market(
    market_id: str,
    body: ResolveRequest,
    request: Request,
    admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.resolve_market(market_id, body.outcome, db)
    return success_response(result, request)


@router.post("/markets", status_code=201)
async def create_market(
    body: CreateMarketRequest,
    request: Request,
    admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    trial = Trial(
        id="",
        nct_id=body.nct_id,
        title=body.title,
        phase=body.phase,
        status=body.status,
        sponsor=body.sponsor,
        conditions=body.conditions,
        interventions=body.interventions,
    )
    result = await _service.create_market_for_trial(trial, body.question, db)
    return success_response(result, request)


@router.get("/stats")
async def get_stats(
    request: Request,
    admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return success_response(await _service.get_stats(db), request)


@router.post("/clear")
async def clear_all(
    request: Request,
    admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return success_response(await _service.clear_all(db), request)


@router.get("/verify-invariants")
async def verify_invariants(
    request: Request,
    admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    return success_response(await _service.verify_invariants(db), request)
