"""Account REST API: balance, portfolio, creator adjustments, ledger."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.wt_account.application.positions_service import PositionsService
from src.wt_account.application.schemas import AdjustBalanceRequest
from src.wt_account.application.service import AccountApplicationService
from src.wt_common.database import get_db_session
from src.wt_common.enums import LedgerEntryType
from src.wt_common.response import ApiResponse, respond
from src.wt_gateway.auth.dependencies import get_current_user, require_creator
from src.wt_gateway.user.db_models import UserModel
from src.wt_quote.application.service import QuoteResolver, get_quote_resolver

router = APIRouter(prefix="/account", tags=["account"])

_service = AccountApplicationService()


@router.get("/balance")
async def get_balance(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_balance(db, str(current_user.id))
    return respond(request, data.model_dump())


@router.get("/portfolio")
async def get_portfolio(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    resolver: Annotated[QuoteResolver, Depends(get_quote_resolver)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_portfolio(db, str(current_user.id), PositionsService(resolver))
    return respond(request, data.model_dump())


@router.post("/balance/adjust")
async def adjust_balance(
    body: AdjustBalanceRequest,
    creator: Annotated[UserModel, Depends(require_creator)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.adjust_balance(
        db,
        str(creator.id),
        body.user_id,
        body.action,
        body.amount_cents,
        body.description,
    )
    return respond(request, data.model_dump(), "Balance adjusted")


@router.get("/ledger")
async def list_ledger(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100),
    entry_type: LedgerEntryType | None = Query(None),
) -> ApiResponse:
    data = await _service.list_ledger(
        db,
        str(current_user.id),
        cursor,
        limit,
        entry_type.value if entry_type else None,
    )
    return respond(request, data.model_dump())
