"""Ledger REST API: P&L recalculation and performance history."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.wt_common.database import get_db_session
from src.wt_common.response import ApiResponse, respond
from src.wt_gateway.auth.dependencies import get_current_user, require_creator
from src.wt_gateway.user.db_models import UserModel
from src.wt_ledger.application.performance import PerformanceService
from src.wt_ledger.application.recalculation import RecalculationService
from src.wt_ledger.application.schemas import (
    RecalculateAllResponse,
    RecalculationFailure,
    RecalculationItem,
)
from src.wt_quote.application.service import QuoteResolver, get_quote_resolver

router = APIRouter(tags=["ledger"])


def get_recalculation_service(
    resolver: Annotated[QuoteResolver, Depends(get_quote_resolver)],
) -> RecalculationService:
    return RecalculationService(resolver)


def get_performance_service(
    resolver: Annotated[QuoteResolver, Depends(get_quote_resolver)],
) -> PerformanceService:
    return PerformanceService(resolver)


@router.post("/pnl/recalculate")
async def recalculate_all(
    creator: Annotated[UserModel, Depends(require_creator)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[RecalculationService, Depends(get_recalculation_service)],
    request: Request,
) -> ApiResponse:
    results, failures = await service.recalculate_all(db)
    items: list[RecalculationItem | RecalculationFailure] = [
        RecalculationItem.from_result(r) for r in results
    ]
    items.extend(RecalculationFailure(**f) for f in failures)
    data = RecalculateAllResponse(
        message=f"Recalculated P&L for {len(results)} users",
        results=items,
        total_users=len(results) + len(failures),
        updated_users=len(results),
    )
    return respond(request, data.model_dump(), data.message)


@router.post("/pnl/recalculate/me")
async def recalculate_me(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[RecalculationService, Depends(get_recalculation_service)],
    request: Request,
) -> ApiResponse:
    result = await service.recalculate(db, str(current_user.id))
    return respond(request, RecalculationItem.from_result(result).model_dump(), "P&L recalculated")


@router.get("/performance")
async def get_performance(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[PerformanceService, Depends(get_performance_service)],
    request: Request,
    period: str = Query("30d", description="1d, 7d, 30d, 90d, 1y or all"),
    granularity: str = Query("daily", description="hourly, daily or weekly"),
) -> ApiResponse:
    data = await service.build(db, str(current_user.id), period, granularity)
    return respond(request, data.model_dump())
