"""PositionsRepository: one row per (user, symbol, asset_type) with quantity > 0.

A position whose quantity reaches zero is deleted, never stored as zero.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.wt_account.domain.models import Position
from src.wt_common.enums import AssetType
from src.wt_common.errors import InternalError
from src.wt_ledger.domain.accounting import Lot, PositionKey

_COLUMNS = "user_id, symbol, asset_type, quantity, cost_basis, created_at, updated_at"

_GET_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM positions
    WHERE user_id = :user_id AND symbol = :symbol AND asset_type = :asset_type
""")

_LOCK_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM positions
    WHERE user_id = :user_id AND symbol = :symbol AND asset_type = :asset_type
    FOR UPDATE
""")

_UPSERT_SQL = text(f"""
    INSERT INTO positions (user_id, symbol, asset_type, quantity, cost_basis)
    VALUES (:user_id, :symbol, :asset_type, :quantity, :cost_basis)
    ON CONFLICT (user_id, symbol, asset_type) DO UPDATE
        SET quantity = EXCLUDED.quantity,
            cost_basis = EXCLUDED.cost_basis
    RETURNING {_COLUMNS}
""")

_DELETE_SQL = text("""
    DELETE FROM positions
    WHERE user_id = :user_id AND symbol = :symbol AND asset_type = :asset_type
""")

_DELETE_ALL_SQL = text("DELETE FROM positions WHERE user_id = :user_id")

_LIST_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM positions
    WHERE user_id = :user_id
    ORDER BY symbol, asset_type
""")


def _row_to_position(row: object) -> Position:
    return Position(
        user_id=str(row.user_id),  # type: ignore[attr-defined]
        symbol=row.symbol,  # type: ignore[attr-defined]
        asset_type=AssetType(row.asset_type),  # type: ignore[attr-defined]
        quantity=row.quantity,  # type: ignore[attr-defined]
        cost_basis=row.cost_basis,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _key_params(user_id: str, symbol: str, asset_type: AssetType) -> dict[str, str]:
    return {"user_id": user_id, "symbol": symbol, "asset_type": asset_type.value}


class PositionsRepository:
    async def get(
        self, db: AsyncSession, user_id: str, symbol: str, asset_type: AssetType
    ) -> Position | None:
        row = (await db.execute(_GET_SQL, _key_params(user_id, symbol, asset_type))).fetchone()
        return _row_to_position(row) if row else None

    async def lock(
        self, db: AsyncSession, user_id: str, symbol: str, asset_type: AssetType
    ) -> Position | None:
        row = (await db.execute(_LOCK_SQL, _key_params(user_id, symbol, asset_type))).fetchone()
        return _row_to_position(row) if row else None

    async def save(
        self, db: AsyncSession, user_id: str, symbol: str, asset_type: AssetType, lot: Lot
    ) -> Position:
        params = {
            **_key_params(user_id, symbol, asset_type),
            "quantity": lot.quantity,
            "cost_basis": lot.cost_basis,
        }
        row = (await db.execute(_UPSERT_SQL, params)).fetchone()
        if row is None:
            raise InternalError("Position upsert returned no rows")
        return _row_to_position(row)

    async def delete(
        self, db: AsyncSession, user_id: str, symbol: str, asset_type: AssetType
    ) -> None:
        await db.execute(_DELETE_SQL, _key_params(user_id, symbol, asset_type))

    async def list_by_user(self, db: AsyncSession, user_id: str) -> list[Position]:
        rows = (await db.execute(_LIST_SQL, {"user_id": user_id})).fetchall()
        return [_row_to_position(row) for row in rows]

    async def replace_all(
        self, db: AsyncSession, user_id: str, lots: dict[PositionKey, Lot]
    ) -> list[Position]:
        """Swap the user's position rows for `lots` wholesale."""
        await db.execute(_DELETE_ALL_SQL, {"user_id": user_id})
        return [
            await self.save(db, user_id, symbol, asset_type, lot)
            for (symbol, asset_type), lot in sorted(lots.items())
        ]
