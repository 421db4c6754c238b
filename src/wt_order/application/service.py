"""OrderService: transaction owner for placing, cancelling and listing orders.

Each mutating call commits once on success and rolls back on any error, so
a failed fill leaves no order, cash or position change behind.
"""

import math
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from src.wt_account.domain.repository import PositionRepositoryProtocol
from src.wt_account.infrastructure.positions_repository import PositionsRepository
from src.wt_common.cents import cents_to_display
from src.wt_common.enums import AssetType, OrderSide
from src.wt_common.errors import (
    InvalidClosePercentageError,
    OrderNotCancellableError,
    OrderNotFoundError,
    PositionNotFoundError,
)
from src.wt_order.application.schemas import (
    CancelOrderResponse,
    ClosePositionResponse,
    OrderListResponse,
    OrderResponse,
    Pagination,
    PlaceOrderRequest,
    PlaceOrderResponse,
    PositionSnapshot,
)
from src.wt_order.domain.repository import OrderRepositoryProtocol
from src.wt_order.engine.executor import ExecutionResult, OrderExecutor, OrderRequest
from src.wt_order.infrastructure.persistence import OrderRepository
from src.wt_quote.application.service import QuoteResolver


def _is_uuid(value: str) -> bool:
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


def close_quantity(held: int, percentage: float | None) -> int:
    """Units to sell for a close request; None or >= 100 closes everything."""
    if percentage is not None and not math.isfinite(percentage):
        raise InvalidClosePercentageError("percentage must be a finite number")
    if percentage is None or percentage >= 100:
        return held
    if percentage <= 0:
        raise InvalidClosePercentageError("percentage must be between 0 and 100")
    quantity = int(held * percentage / 100)
    if quantity < 1:
        raise InvalidClosePercentageError(
            f"{percentage}% of {held} rounds down to zero units"
        )
    return quantity


class OrderService:
    def __init__(
        self,
        resolver: QuoteResolver,
        orders: OrderRepositoryProtocol | None = None,
        positions: PositionRepositoryProtocol | None = None,
        executor: OrderExecutor | None = None,
    ) -> None:
        self._orders: OrderRepositoryProtocol = orders or OrderRepository()
        self._positions: PositionRepositoryProtocol = positions or PositionsRepository()
        self._executor = executor or OrderExecutor(resolver, orders=self._orders)

    async def _execute(self, db: AsyncSession, user_id: str, req: OrderRequest) -> ExecutionResult:
        try:
            result = await self._executor.execute(db, user_id, req)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return result

    async def place_order(
        self, db: AsyncSession, user_id: str, body: PlaceOrderRequest
    ) -> PlaceOrderResponse:
        result = await self._execute(
            db,
            user_id,
            OrderRequest(
                symbol=body.symbol,
                side=body.side,
                quantity=body.quantity,
                asset_type=body.asset_type,
                order_type=body.order_type,
            ),
        )
        available = result.balance.available_balance
        return PlaceOrderResponse(
            order=OrderResponse.from_domain(result.order),
            available_balance_cents=available,
            available_balance_display=cents_to_display(available),
            position=PositionSnapshot.from_domain(result.position) if result.position else None,
        )

    async def close_position(
        self,
        db: AsyncSession,
        user_id: str,
        symbol: str,
        asset_type: AssetType,
        percentage: float | None,
    ) -> ClosePositionResponse:
        """Liquidate all or part of a position through a market sell."""
        symbol = symbol.strip().upper()
        position = await self._positions.get(db, user_id, symbol, asset_type)
        if position is None:
            raise PositionNotFoundError(symbol)
        quantity = close_quantity(position.quantity, percentage)

        result = await self._execute(
            db, user_id, OrderRequest(symbol, OrderSide.SELL, quantity, asset_type)
        )
        remaining = result.position.quantity if result.position else 0
        message = (
            f"Position {symbol} closed"
            if remaining == 0
            else f"Closed {quantity} of {position.quantity} {symbol}"
        )
        return ClosePositionResponse(
            message=message,
            closed_quantity=quantity,
            remaining_quantity=remaining,
            realized_pnl_cents=result.order.realized_pnl,
            order=OrderResponse.from_domain(result.order),
        )

    async def cancel_order(
        self, db: AsyncSession, user_id: str, order_id: str
    ) -> CancelOrderResponse:
        """Only pending orders of the caller can be cancelled; anything else is a 404."""
        if not _is_uuid(order_id):
            raise OrderNotCancellableError(order_id)
        try:
            order = await self._orders.cancel_pending(db, order_id, user_id)
            if order is None:
                raise OrderNotCancellableError(order_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return CancelOrderResponse(order=OrderResponse.from_domain(order))

    async def get_order(self, db: AsyncSession, user_id: str, order_id: str) -> OrderResponse:
        order = await self._orders.get_for_user(db, order_id, user_id) if _is_uuid(order_id) else None
        if order is None:
            raise OrderNotFoundError(order_id)
        return OrderResponse.from_domain(order)

    async def list_orders(
        self,
        db: AsyncSession,
        user_id: str,
        status: str | None,
        symbol: str | None,
        limit: int,
        offset: int,
        page: int | None,
    ) -> OrderListResponse:
        """Newest first; `page` > 1 overrides `offset`."""
        if page is not None and page > 1:
            offset = (page - 1) * limit
        orders, total = await self._orders.list_by_user(
            db, user_id, status, symbol.upper() if symbol else None, limit, offset
        )
        return OrderListResponse(
            items=[OrderResponse.from_domain(o) for o in orders],
            pagination=Pagination.build(total, limit, offset),
        )
