"""Pydantic schemas for the order and position-close endpoints."""

import math

from pydantic import BaseModel, Field, field_validator

from src.wt_account.domain.models import Position
from src.wt_common.cents import cents_to_display
from src.wt_common.enums import AssetType, OrderSide
from src.wt_order.domain.models import Order


class PlaceOrderRequest(BaseModel):
    symbol: str = Field(..., min_length=1, max_length=32)
    side: OrderSide
    order_type: str = "market"
    quantity: int
    asset_type: AssetType = AssetType.STOCK

    @field_validator("symbol")
    @classmethod
    def normalize_symbol(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("symbol must not be blank")
        return v


class OrderResponse(BaseModel):
    id: str
    symbol: str
    asset_type: str
    side: str
    order_type: str
    quantity: int
    price_cents: int
    price_display: str
    filled_quantity: int
    filled_price_cents: int | None
    status: str
    realized_pnl_cents: int | None
    filled_at: str | None
    cancelled_at: str | None
    created_at: str | None

    @classmethod
    def from_domain(cls, o: Order) -> "OrderResponse":
        return cls(
            id=o.id,
            symbol=o.symbol,
            asset_type=o.asset_type.value,
            side=o.side.value,
            order_type=o.order_type,
            quantity=o.quantity,
            price_cents=o.price,
            price_display=cents_to_display(o.price),
            filled_quantity=o.filled_quantity,
            filled_price_cents=o.filled_price,
            status=o.status.value,
            realized_pnl_cents=o.realized_pnl,
            filled_at=o.filled_at.isoformat() if o.filled_at else None,
            cancelled_at=o.cancelled_at.isoformat() if o.cancelled_at else None,
            created_at=o.created_at.isoformat() if o.created_at else None,
        )


class PositionSnapshot(BaseModel):
    symbol: str
    asset_type: str
    quantity: int
    average_cost_cents: float
    cost_basis_cents: int

    @classmethod
    def from_domain(cls, p: Position) -> "PositionSnapshot":
        return cls(
            symbol=p.symbol,
            asset_type=p.asset_type.value,
            quantity=p.quantity,
            average_cost_cents=p.average_cost,
            cost_basis_cents=p.cost_basis,
        )


class PlaceOrderResponse(BaseModel):
    order: OrderResponse
    available_balance_cents: int
    available_balance_display: str
    position: PositionSnapshot | None


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int

    @classmethod
    def build(cls, total: int, limit: int, offset: int) -> "Pagination":
        return cls(
            total=total,
            page=offset // limit + 1,
            limit=limit,
            total_pages=math.ceil(total / limit) if total else 0,
        )


class OrderListResponse(BaseModel):
    items: list[OrderResponse]
    pagination: Pagination


class CancelOrderResponse(BaseModel):
    success: bool = True
    message: str = "Order cancelled successfully"
    order: OrderResponse


class ClosePositionResponse(BaseModel):
    message: str
    closed_quantity: int
    remaining_quantity: int
    realized_pnl_cents: int | None
    order: OrderResponse
