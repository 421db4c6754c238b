"""Domain models for wt_account: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.wt_common.enums import AssetType
from src.wt_ledger.domain.accounting import Lot, PnlBuckets


@dataclass
class Balance:
    user_id: str
    starting_balance: int     # cents
    available_balance: int    # cents, cash; authoritative
    unrealized_pnl: int       # cents, as of the last mark
    balance: int              # cents, available_balance + unrealized_pnl (generated column)
    total_pnl: int = 0
    daily_pnl: int = 0
    weekly_pnl: int = 0
    monthly_pnl: int = 0
    pnl_updated_at: datetime | None = None
    version: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def buckets(self) -> PnlBuckets:
        return PnlBuckets(
            total=self.total_pnl,
            daily=self.daily_pnl,
            weekly=self.weekly_pnl,
            monthly=self.monthly_pnl,
            updated_at=self.pnl_updated_at,
        )


@dataclass
class Position:
    user_id: str
    symbol: str
    asset_type: AssetType
    quantity: int
    cost_basis: int           # cents, total cost of the open quantity
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def lot(self) -> Lot:
        return Lot(quantity=self.quantity, cost_basis=self.cost_basis)

    @property
    def average_cost(self) -> float:
        return self.lot.average_cost


@dataclass
class LedgerEntry:
    id: int                          # BIGSERIAL
    user_id: str
    entry_type: str                  # LedgerEntryType value
    amount: int                      # cents, positive=cash in, negative=cash out
    balance_after: int               # cents, available_balance after the entry
    reference_type: str | None = None
    reference_id: str | None = None
    description: str | None = None
    created_at: datetime | None = None
