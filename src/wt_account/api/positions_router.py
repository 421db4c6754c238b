"""Positions REST API: enriched reads and liquidation."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.wt_account.application.positions_service import PositionsService
from src.wt_account.application.schemas import PositionListResponse
from src.wt_common.database import get_db_session
from src.wt_common.enums import AssetType
from src.wt_common.response import ApiResponse, respond
from src.wt_gateway.auth.dependencies import get_current_user, require_trader
from src.wt_gateway.user.db_models import UserModel
from src.wt_order.api.router import get_order_service
from src.wt_order.application.service import OrderService
from src.wt_quote.application.service import QuoteResolver, get_quote_resolver

router = APIRouter(prefix="/positions", tags=["positions"])


def get_positions_service(
    resolver: Annotated[QuoteResolver, Depends(get_quote_resolver)],
) -> PositionsService:
    return PositionsService(resolver)


@router.get("")
async def list_positions(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[PositionsService, Depends(get_positions_service)],
    request: Request,
) -> ApiResponse:
    items = await service.list_positions(db, str(current_user.id))
    data = PositionListResponse(items=items, total=len(items))
    return respond(request, data.model_dump())


@router.get("/{symbol}")
async def get_position(
    symbol: str,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[PositionsService, Depends(get_positions_service)],
    request: Request,
    asset_type: AssetType = Query(AssetType.STOCK),
) -> ApiResponse:
    data = await service.get_position(db, str(current_user.id), symbol, asset_type)
    return respond(request, data.model_dump())


@router.delete("")
async def close_position(
    current_user: Annotated[UserModel, Depends(require_trader)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[OrderService, Depends(get_order_service)],
    request: Request,
    symbol: str = Query(..., min_length=1, max_length=32),
    percentage: float | None = Query(
        None, allow_inf_nan=False, description="Share of the position to close, 0-100"
    ),
    asset_type: AssetType = Query(AssetType.STOCK),
) -> ApiResponse:
    data = await service.close_position(
        db, str(current_user.id), symbol, asset_type, percentage
    )
    return respond(request, data.model_dump(), data.message)
