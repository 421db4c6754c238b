"""AccountRepository: balances and the append-only ledger.

Cash movements are single conditional UPDATE ... RETURNING statements; a
debit that would overdraw matches zero rows and raises
InsufficientBalanceError. Callers own the transaction.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.wt_account.domain.models import Balance, LedgerEntry
from src.wt_common.enums import LedgerEntryType
from src.wt_common.errors import BalanceNotFoundError, InsufficientBalanceError, InternalError
from src.wt_ledger.domain.accounting import CashAdjustment, PnlBuckets

_BALANCE_COLUMNS = """
    user_id, starting_balance, available_balance, unrealized_pnl, balance,
    total_pnl, daily_pnl, weekly_pnl, monthly_pnl, pnl_updated_at,
    version, created_at, updated_at
"""

_GET_BALANCE_SQL = text(f"SELECT {_BALANCE_COLUMNS} FROM balances WHERE user_id = :user_id")

_LOCK_BALANCE_SQL = text(
    f"SELECT {_BALANCE_COLUMNS} FROM balances WHERE user_id = :user_id FOR UPDATE"
)

_DEBIT_SQL = text(f"""
    UPDATE balances
    SET available_balance = available_balance - :amount,
        version = version + 1
    WHERE user_id = :user_id AND available_balance >= :amount
    RETURNING {_BALANCE_COLUMNS}
""")

_CREDIT_SQL = text(f"""
    UPDATE balances
    SET available_balance = available_balance + :amount,
        version = version + 1
    WHERE user_id = :user_id
    RETURNING {_BALANCE_COLUMNS}
""")

_UPDATE_PNL_SQL = text(f"""
    UPDATE balances
    SET total_pnl = :total,
        daily_pnl = :daily,
        weekly_pnl = :weekly,
        monthly_pnl = :monthly,
        pnl_updated_at = :updated_at,
        version = version + 1
    WHERE user_id = :user_id
    RETURNING {_BALANCE_COLUMNS}
""")

_WRITE_PROJECTION_SQL = text(f"""
    UPDATE balances
    SET available_balance = :available,
        unrealized_pnl = :unrealized,
        total_pnl = :total,
        daily_pnl = :daily,
        weekly_pnl = :weekly,
        monthly_pnl = :monthly,
        pnl_updated_at = :updated_at,
        version = version + 1
    WHERE user_id = :user_id
    RETURNING {_BALANCE_COLUMNS}
""")

_INSERT_LEDGER_SQL = text("""
    INSERT INTO ledger_entries
        (user_id, entry_type, amount, balance_after,
         reference_type, reference_id, description)
    VALUES
        (:user_id, :entry_type, :amount, :balance_after,
         :reference_type, :reference_id, :description)
    RETURNING id, user_id, entry_type, amount, balance_after,
              reference_type, reference_id, description, created_at
""")

_LIST_LEDGER_SQL = text("""
    SELECT id, user_id, entry_type, amount, balance_after,
           reference_type, reference_id, description, created_at
    FROM ledger_entries
    WHERE user_id = :user_id
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < :cursor_id)
      AND (CAST(:entry_type AS VARCHAR) IS NULL OR entry_type = :entry_type)
    ORDER BY id DESC
    LIMIT :limit
""")

_LIST_ADJUSTMENTS_SQL = text("""
    SELECT amount, created_at
    FROM ledger_entries
    WHERE user_id = :user_id
      AND entry_type IN ('CREDIT', 'DEBIT')
    ORDER BY id
""")


def _row_to_balance(row: object) -> Balance:
    return Balance(
        user_id=str(row.user_id),  # type: ignore[attr-defined]
        starting_balance=row.starting_balance,  # type: ignore[attr-defined]
        available_balance=row.available_balance,  # type: ignore[attr-defined]
        unrealized_pnl=row.unrealized_pnl,  # type: ignore[attr-defined]
        balance=row.balance,  # type: ignore[attr-defined]
        total_pnl=row.total_pnl,  # type: ignore[attr-defined]
        daily_pnl=row.daily_pnl,  # type: ignore[attr-defined]
        weekly_pnl=row.weekly_pnl,  # type: ignore[attr-defined]
        monthly_pnl=row.monthly_pnl,  # type: ignore[attr-defined]
        pnl_updated_at=row.pnl_updated_at,  # type: ignore[attr-defined]
        version=row.version,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_ledger(row: object) -> LedgerEntry:
    return LedgerEntry(
        id=row.id,  # type: ignore[attr-defined]
        user_id=str(row.user_id),  # type: ignore[attr-defined]
        entry_type=row.entry_type,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        balance_after=row.balance_after,  # type: ignore[attr-defined]
        reference_type=row.reference_type,  # type: ignore[attr-defined]
        reference_id=row.reference_id,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


def _bucket_params(buckets: PnlBuckets) -> dict[str, object]:
    return {
        "total": buckets.total,
        "daily": buckets.daily,
        "weekly": buckets.weekly,
        "monthly": buckets.monthly,
        "updated_at": buckets.updated_at,
    }


class AccountRepository:
    async def get_balance(self, db: AsyncSession, user_id: str) -> Balance | None:
        row = (await db.execute(_GET_BALANCE_SQL, {"user_id": user_id})).fetchone()
        return _row_to_balance(row) if row else None

    async def lock_balance(self, db: AsyncSession, user_id: str) -> Balance | None:
        """SELECT ... FOR UPDATE: serializes every fill of one user."""
        row = (await db.execute(_LOCK_BALANCE_SQL, {"user_id": user_id})).fetchone()
        return _row_to_balance(row) if row else None

    async def debit_cash(self, db: AsyncSession, user_id: str, amount: int) -> Balance:
        row = (
            await db.execute(_DEBIT_SQL, {"user_id": user_id, "amount": amount})
        ).fetchone()
        if row is None:
            current = await self.get_balance(db, user_id)
            if current is None:
                raise BalanceNotFoundError(user_id)
            raise InsufficientBalanceError(amount, current.available_balance)
        return _row_to_balance(row)

    async def credit_cash(self, db: AsyncSession, user_id: str, amount: int) -> Balance:
        row = (
            await db.execute(_CREDIT_SQL, {"user_id": user_id, "amount": amount})
        ).fetchone()
        if row is None:
            raise BalanceNotFoundError(user_id)
        return _row_to_balance(row)

    async def update_pnl(
        self, db: AsyncSession, user_id: str, buckets: PnlBuckets
    ) -> Balance:
        row = (
            await db.execute(_UPDATE_PNL_SQL, {"user_id": user_id, **_bucket_params(buckets)})
        ).fetchone()
        if row is None:
            raise BalanceNotFoundError(user_id)
        return _row_to_balance(row)

    async def write_projection(
        self,
        db: AsyncSession,
        user_id: str,
        available: int,
        unrealized: int,
        buckets: PnlBuckets,
    ) -> Balance:
        params = {
            "user_id": user_id,
            "available": available,
            "unrealized": unrealized,
            **_bucket_params(buckets),
        }
        row = (await db.execute(_WRITE_PROJECTION_SQL, params)).fetchone()
        if row is None:
            raise BalanceNotFoundError(user_id)
        return _row_to_balance(row)

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
    ) -> LedgerEntry:
        row = (
            await db.execute(
                _INSERT_LEDGER_SQL,
                {
                    "user_id": user_id,
                    "entry_type": str(LedgerEntryType(entry_type).value),
                    "amount": amount,
                    "balance_after": balance_after,
                    "reference_type": reference_type,
                    "reference_id": reference_id,
                    "description": description,
                },
            )
        ).fetchone()
        if row is None:
            raise InternalError("Ledger insert returned no rows")
        return _row_to_ledger(row)

    async def list_ledger_entries(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
    ) -> list[LedgerEntry]:
        result = await db.execute(
            _LIST_LEDGER_SQL,
            {
                "user_id": user_id,
                "cursor_id": cursor_id,
                "entry_type": entry_type,
                "limit": limit,
            },
        )
        return [_row_to_ledger(row) for row in result.fetchall()]

    async def list_adjustments(self, db: AsyncSession, user_id: str) -> list[CashAdjustment]:
        """Creator CREDIT/DEBIT entries in insertion order."""
        result = await db.execute(_LIST_ADJUSTMENTS_SQL, {"user_id": user_id})
        return [
            CashAdjustment(amount=row.amount, created_at=row.created_at)
            for row in result.fetchall()
        ]
