"""OrderRepository Protocol: interface contract for the persistence layer."""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.wt_order.domain.models import Order


class OrderRepositoryProtocol(Protocol):
    async def insert(self, db: AsyncSession, order: Order) -> Order: ...

    async def mark_filled(
        self,
        db: AsyncSession,
        order_id: str,
        filled_price: int,
        realized_pnl: int | None,
        filled_at: datetime,
    ) -> Order: ...

    async def set_realized_pnl(
        self, db: AsyncSession, realized: dict[str, int | None]
    ) -> None: ...

    async def cancel_pending(
        self, db: AsyncSession, order_id: str, user_id: str
    ) -> Order | None: ...

    async def get_for_user(
        self, db: AsyncSession, order_id: str, user_id: str
    ) -> Order | None: ...

    async def list_by_user(
        self,
        db: AsyncSession,
        user_id: str,
        status: str | None,
        symbol: str | None,
        limit: int,
        offset: int,
    ) -> tuple[list[Order], int]: ...

    async def list_filled(self, db: AsyncSession, user_id: str) -> list[Order]: ...
