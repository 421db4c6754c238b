"""Order REST API: place, list, get, cancel."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.wt_common.database import get_db_session
from src.wt_common.enums import OrderStatus
from src.wt_common.response import ApiResponse, respond
from src.wt_gateway.auth.dependencies import get_current_user, require_trader
from src.wt_gateway.user.db_models import UserModel
from src.wt_order.application.schemas import PlaceOrderRequest
from src.wt_order.application.service import OrderService
from src.wt_quote.application.service import QuoteResolver, get_quote_resolver

router = APIRouter(prefix="/orders", tags=["orders"])


def get_order_service(
    resolver: Annotated[QuoteResolver, Depends(get_quote_resolver)],
) -> OrderService:
    return OrderService(resolver)


@router.post("", status_code=status.HTTP_201_CREATED)
async def place_order(
    body: PlaceOrderRequest,
    current_user: Annotated[UserModel, Depends(require_trader)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[OrderService, Depends(get_order_service)],
    request: Request,
) -> ApiResponse:
    data = await service.place_order(db, str(current_user.id), body)
    return respond(request, data.model_dump(), "Order filled")


@router.get("")
async def list_orders(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[OrderService, Depends(get_order_service)],
    request: Request,
    status_filter: OrderStatus | None = Query(None, alias="status"),
    symbol: str | None = Query(None, max_length=32),
    limit: int = Query(25, ge=1, le=100),
    offset: int = Query(0, ge=0),
    page: int | None = Query(None, ge=1),
) -> ApiResponse:
    data = await service.list_orders(
        db,
        str(current_user.id),
        status_filter.value if status_filter else None,
        symbol,
        limit,
        offset,
        page,
    )
    return respond(request, data.model_dump())


@router.get("/{order_id}")
async def get_order(
    order_id: str,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[OrderService, Depends(get_order_service)],
    request: Request,
) -> ApiResponse:
    data = await service.get_order(db, str(current_user.id), order_id)
    return respond(request, data.model_dump())


@router.delete("/{order_id}")
async def cancel_order(
    order_id: str,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[OrderService, Depends(get_order_service)],
    request: Request,
) -> ApiResponse:
    data = await service.cancel_order(db, str(current_user.id), order_id)
    return respond(request, data.model_dump(), data.message)
