"""OrderRepository: raw SQL persistence implementation."""

from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.wt_common.enums import AssetType, OrderSide, OrderStatus
from src.wt_common.errors import InternalError, OrderNotFoundError
from src.wt_order.domain.models import Order

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_SELECT_COLUMNS = """
    id, user_id, symbol, asset_type, side, order_type,
    quantity, price, filled_quantity, filled_price, status, realized_pnl,
    filled_at, cancelled_at, created_at, updated_at
"""

_INSERT_ORDER_SQL = text(f"""
    INSERT INTO orders (id, user_id, symbol, asset_type, side, order_type,
        quantity, price, filled_quantity, status)
    VALUES (:id, :user_id, :symbol, :asset_type, :side, :order_type,
        :quantity, :price, 0, 'pending')
    RETURNING {_SELECT_COLUMNS}
""")

_MARK_FILLED_SQL = text(f"""
    UPDATE orders
    SET status = 'filled',
        filled_quantity = quantity,
        filled_price = :filled_price,
        realized_pnl = :realized_pnl,
        filled_at = :filled_at
    WHERE id = :id AND status = 'pending'
    RETURNING {_SELECT_COLUMNS}
""")

_SET_REALIZED_SQL = text("""
    UPDATE orders
    SET realized_pnl = :realized_pnl
    WHERE id = :id AND realized_pnl IS DISTINCT FROM :realized_pnl
""")

_CANCEL_PENDING_SQL = text(f"""
    UPDATE orders
    SET status = 'cancelled',
        cancelled_at = NOW()
    WHERE id = :id AND user_id = :user_id AND status = 'pending'
    RETURNING {_SELECT_COLUMNS}
""")

_GET_FOR_USER_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders
    WHERE id = :id AND user_id = :user_id
""")

_FILTER = """
    WHERE user_id = :user_id
      AND (CAST(:status AS TEXT) IS NULL OR status = :status)
      AND (CAST(:symbol AS TEXT) IS NULL OR symbol = :symbol)
"""

_LIST_ORDERS_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders
    {_FILTER}
    ORDER BY created_at DESC, id DESC
    LIMIT :limit OFFSET :offset
""")

_COUNT_ORDERS_SQL = text(f"SELECT COUNT(*) FROM orders {_FILTER}")

_LIST_FILLED_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders
    WHERE user_id = :user_id AND status = 'filled'
    ORDER BY filled_at ASC, created_at ASC, id ASC
""")


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_order(row: Any) -> Order:
    return Order(
        id=str(row.id),
        user_id=str(row.user_id),
        symbol=row.symbol,
        asset_type=AssetType(row.asset_type),
        side=OrderSide(row.side),
        order_type=row.order_type,
        quantity=row.quantity,
        price=row.price,
        status=OrderStatus(row.status),
        filled_quantity=row.filled_quantity,
        filled_price=row.filled_price,
        realized_pnl=row.realized_pnl,
        filled_at=row.filled_at,
        cancelled_at=row.cancelled_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class OrderRepository:
    async def insert(self, db: AsyncSession, order: Order) -> Order:
        row = (
            await db.execute(
                _INSERT_ORDER_SQL,
                {
                    "id": order.id,
                    "user_id": order.user_id,
                    "symbol": order.symbol,
                    "asset_type": order.asset_type.value,
                    "side": order.side.value,
                    "order_type": order.order_type,
                    "quantity": order.quantity,
                    "price": order.price,
                },
            )
        ).fetchone()
        if row is None:
            raise InternalError("Order insert returned no rows")
        return _row_to_order(row)

    async def mark_filled(
        self,
        db: AsyncSession,
        order_id: str,
        filled_price: int,
        realized_pnl: int | None,
        filled_at: datetime,
    ) -> Order:
        row = (
            await db.execute(
                _MARK_FILLED_SQL,
                {
                    "id": order_id,
                    "filled_price": filled_price,
                    "realized_pnl": realized_pnl,
                    "filled_at": filled_at,
                },
            )
        ).fetchone()
        if row is None:
            raise OrderNotFoundError(order_id)
        return _row_to_order(row)

    async def set_realized_pnl(self, db: AsyncSession, realized: dict[str, int | None]) -> None:
        """Write replayed realized P&L back onto historical orders; unchanged rows are skipped."""
        for order_id, pnl in realized.items():
            await db.execute(_SET_REALIZED_SQL, {"id": order_id, "realized_pnl": pnl})

    async def cancel_pending(
        self, db: AsyncSession, order_id: str, user_id: str
    ) -> Order | None:
        row = (
            await db.execute(_CANCEL_PENDING_SQL, {"id": order_id, "user_id": user_id})
        ).fetchone()
        return _row_to_order(row) if row else None

    async def get_for_user(
        self, db: AsyncSession, order_id: str, user_id: str
    ) -> Order | None:
        row = (
            await db.execute(_GET_FOR_USER_SQL, {"id": order_id, "user_id": user_id})
        ).fetchone()
        return _row_to_order(row) if row else None

    async def list_by_user(
        self,
        db: AsyncSession,
        user_id: str,
        status: str | None,
        symbol: str | None,
        limit: int,
        offset: int,
    ) -> tuple[list[Order], int]:
        params: dict[str, Any] = {"user_id": user_id, "status": status, "symbol": symbol}
        total = (await db.execute(_COUNT_ORDERS_SQL, params)).scalar_one()
        rows = (
            await db.execute(_LIST_ORDERS_SQL, {**params, "limit": limit, "offset": offset})
        ).fetchall()
        return [_row_to_order(row) for row in rows], int(total)

    async def list_filled(self, db: AsyncSession, user_id: str) -> list[Order]:
        """Every filled order of the user in fill order."""
        rows = (await db.execute(_LIST_FILLED_SQL, {"user_id": user_id})).fetchall()
        return [_row_to_order(row) for row in rows]
