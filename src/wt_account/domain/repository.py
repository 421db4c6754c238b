"""Repository Protocols: unit tests inject AsyncMocks shaped like these."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.wt_account.domain.models import Balance, LedgerEntry, Position
from src.wt_common.enums import AssetType
from src.wt_ledger.domain.accounting import CashAdjustment, Lot, PnlBuckets, PositionKey


class AccountRepositoryProtocol(Protocol):
    async def get_balance(self, db: AsyncSession, user_id: str) -> Balance | None: ...

    async def lock_balance(self, db: AsyncSession, user_id: str) -> Balance | None: ...

    async def debit_cash(self, db: AsyncSession, user_id: str, amount: int) -> Balance: ...

    async def credit_cash(self, db: AsyncSession, user_id: str, amount: int) -> Balance: ...

    async def update_pnl(
        self, db: AsyncSession, user_id: str, buckets: PnlBuckets
    ) -> Balance: ...

    async def write_projection(
        self,
        db: AsyncSession,
        user_id: str,
        available: int,
        unrealized: int,
        buckets: PnlBuckets,
    ) -> Balance: ...

    async def insert_ledger_entry(
        self,
        db: AsyncSession,
        user_id: str,
        entry_type: str,
        amount: int,
        balance_after: int,
        reference_type: str | None = None,
        reference_id: str | None = None,
        description: str | None = None,
    ) -> LedgerEntry: ...

    async def list_ledger_entries(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
    ) -> list[LedgerEntry]: ...

    async def list_adjustments(
        self, db: AsyncSession, user_id: str
    ) -> list[CashAdjustment]: ...


class PositionRepositoryProtocol(Protocol):
    async def get(
        self, db: AsyncSession, user_id: str, symbol: str, asset_type: AssetType
    ) -> Position | None: ...

    async def lock(
        self, db: AsyncSession, user_id: str, symbol: str, asset_type: AssetType
    ) -> Position | None: ...

    async def save(
        self, db: AsyncSession, user_id: str, symbol: str, asset_type: AssetType, lot: Lot
    ) -> Position: ...

    async def delete(
        self, db: AsyncSession, user_id: str, symbol: str, asset_type: AssetType
    ) -> None: ...

    async def list_by_user(self, db: AsyncSession, user_id: str) -> list[Position]: ...

    async def replace_all(
        self, db: AsyncSession, user_id: str, lots: dict[PositionKey, Lot]
    ) -> list[Position]: ...
