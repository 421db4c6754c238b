"""Schemas for recalculation and performance responses."""

from pydantic import BaseModel

from src.wt_ledger.application.recalculation import RecalculationResult
from src.wt_ledger.domain.history import Snapshot


class RecalculationItem(BaseModel):
    user_id: str
    available_balance_cents: int
    balance_cents: int
    total_pnl_cents: int
    unrealized_pnl_cents: int
    daily_pnl_cents: int
    weekly_pnl_cents: int
    monthly_pnl_cents: int
    positions: int
    orders: int
    cash_drift_cents: int
    skipped_orders: list[str]

    @classmethod
    def from_result(cls, r: RecalculationResult) -> "RecalculationItem":
        return cls(
            user_id=r.user_id,
            available_balance_cents=r.available_balance,
            balance_cents=r.balance,
            total_pnl_cents=r.total_pnl,
            unrealized_pnl_cents=r.unrealized_pnl,
            daily_pnl_cents=r.daily_pnl,
            weekly_pnl_cents=r.weekly_pnl,
            monthly_pnl_cents=r.monthly_pnl,
            positions=r.positions,
            orders=r.orders,
            cash_drift_cents=r.cash_drift,
            skipped_orders=r.skipped_orders,
        )


class RecalculationFailure(BaseModel):
    user_id: str
    error: str


class RecalculateAllResponse(BaseModel):
    message: str
    results: list[RecalculationItem | RecalculationFailure]
    total_users: int
    updated_users: int


class SnapshotItem(BaseModel):
    timestamp: str
    cash_balance: int
    portfolio_value: int
    total_value: int
    realized_pnl: int
    unrealized_pnl: int
    total_return: int
    total_return_percent: float
    orders_count: int
    positions: list[dict[str, object]]

    @classmethod
    def from_domain(cls, s: Snapshot) -> "SnapshotItem":
        return cls(
            timestamp=s.timestamp.isoformat(),
            cash_balance=s.cash_balance,
            portfolio_value=s.portfolio_value,
            total_value=s.total_value,
            realized_pnl=s.realized_pnl,
            unrealized_pnl=s.unrealized_pnl,
            total_return=s.total_return,
            total_return_percent=s.total_return_percent,
            orders_count=s.orders_count,
            positions=s.positions,
        )


class PerformanceSummary(BaseModel):
    start_value: int
    end_value: int
    total_return: int
    total_return_percent: float
    realized_pnl: int
    unrealized_pnl: int
    max_drawdown: float
    sharpe_ratio: float
    win_rate: float


class PerformanceResponse(BaseModel):
    period: str
    granularity: str
    history: list[SnapshotItem]
    summary: PerformanceSummary
