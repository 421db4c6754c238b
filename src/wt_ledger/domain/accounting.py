"""Pure accounting rules shared by order execution, recalculation and the
performance history builder.

Money is int cents. A lot keeps its total cost (cost_basis) rather than an
average price, so weighted averages stay exact:

    buy  (q, p):  quantity += q, cost_basis += q * p
    sell (q, p):  released = cost_basis * q // quantity  (all of it when closing)
                  realized = q * p - released
                  quantity -= q, cost_basis -= released

Replaying the same fills through `Replay` always produces the same projection,
which is what makes recalculation idempotent.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

from src.wt_common.cents import notional, release_cost
from src.wt_common.datetime_utils import as_utc, same_day, same_month, same_week
from src.wt_common.enums import AssetType, OrderSide
from src.wt_common.errors import InsufficientPositionError

PositionKey = tuple[str, AssetType]


@dataclass(frozen=True)
class Lot:
    quantity: int
    cost_basis: int  # cents, total cost of the open quantity

    @property
    def average_cost(self) -> float:
        return self.cost_basis / self.quantity if self.quantity else 0.0

    def market_value(self, price_cents: int) -> int:
        return notional(self.quantity, price_cents)

    def unrealized_pnl(self, price_cents: int) -> int:
        return self.market_value(price_cents) - self.cost_basis


@dataclass(frozen=True)
class SellResult:
    proceeds: int
    released_cost: int
    realized_pnl: int
    remaining: Lot | None  # None once the position is closed


def apply_buy(lot: Lot | None, quantity: int, price_cents: int) -> Lot:
    cost = notional(quantity, price_cents)
    if lot is None:
        return Lot(quantity=quantity, cost_basis=cost)
    return Lot(quantity=lot.quantity + quantity, cost_basis=lot.cost_basis + cost)


def apply_sell(lot: Lot | None, quantity: int, price_cents: int) -> SellResult:
    """Close `quantity` of `lot` at `price_cents`.

    Raises:
        InsufficientPositionError: when fewer than `quantity` units are held.
    """
    held = lot.quantity if lot is not None else 0
    if lot is None or held < quantity:
        raise InsufficientPositionError(held, quantity)

    proceeds = notional(quantity, price_cents)
    released = release_cost(lot.cost_basis, held, quantity)
    left = held - quantity
    remaining = Lot(quantity=left, cost_basis=lot.cost_basis - released) if left else None
    return SellResult(
        proceeds=proceeds,
        released_cost=released,
        realized_pnl=proceeds - released,
        remaining=remaining,
    )


# ---------------------------------------------------------------------------
# Periodic P&L buckets
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PnlBuckets:
    total: int = 0
    daily: int = 0
    weekly: int = 0
    monthly: int = 0
    updated_at: datetime | None = None

    def as_of(self, now: datetime) -> "PnlBuckets":
        """Zero every bucket whose period no longer contains `now`."""
        if self.updated_at is None:
            return PnlBuckets(total=self.total, updated_at=None)
        return PnlBuckets(
            total=self.total,
            daily=self.daily if same_day(self.updated_at, now) else 0,
            weekly=self.weekly if same_week(self.updated_at, now) else 0,
            monthly=self.monthly if same_month(self.updated_at, now) else 0,
            updated_at=self.updated_at,
        )


def roll_pnl_buckets(buckets: PnlBuckets, realized: int, at: datetime) -> PnlBuckets:
    current = buckets.as_of(at)
    return PnlBuckets(
        total=current.total + realized,
        daily=current.daily + realized,
        weekly=current.weekly + realized,
        monthly=current.monthly + realized,
        updated_at=as_utc(at),
    )


def bucket_realized(realized: Iterable[tuple[datetime, int]], now: datetime) -> PnlBuckets:
    """Partition realized P&L by the UTC day, Monday week and calendar month of `now`."""
    total = daily = weekly = monthly = 0
    for filled_at, pnl in realized:
        total += pnl
        if same_day(filled_at, now):
            daily += pnl
        if same_week(filled_at, now):
            weekly += pnl
        if same_month(filled_at, now):
            monthly += pnl
    return PnlBuckets(total, daily, weekly, monthly, as_utc(now))


# ---------------------------------------------------------------------------
# Replay
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Fill:
    order_id: str
    symbol: str
    asset_type: AssetType
    side: OrderSide
    quantity: int
    price_cents: int
    filled_at: datetime


@dataclass(frozen=True)
class CashAdjustment:
    amount: int  # signed cents
    created_at: datetime


@dataclass
class Replay:
    """Running cash/position model fed with fills in time order.

    A sell that exceeds the replayed holding is recorded in `skipped` and
    leaves the model untouched.
    """

    cash: int
    positions: dict[PositionKey, Lot] = field(default_factory=dict)
    realized_pnl: int = 0
    contributions: int = 0
    realized_by_order: dict[str, int] = field(default_factory=dict)
    realized_events: list[tuple[datetime, int]] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    def apply(self, fill: Fill) -> None:
        key = (fill.symbol, fill.asset_type)
        lot = self.positions.get(key)
        if fill.side is OrderSide.BUY:
            self.positions[key] = apply_buy(lot, fill.quantity, fill.price_cents)
            self.cash -= notional(fill.quantity, fill.price_cents)
            return

        try:
            result = apply_sell(lot, fill.quantity, fill.price_cents)
        except InsufficientPositionError:
            self.skipped.append(fill.order_id)
            return
        if result.remaining is None:
            del self.positions[key]
        else:
            self.positions[key] = result.remaining
        self.cash += result.proceeds
        self.realized_pnl += result.realized_pnl
        self.realized_by_order[fill.order_id] = result.realized_pnl
        self.realized_events.append((fill.filled_at, result.realized_pnl))

    def adjust(self, adjustment: CashAdjustment) -> None:
        self.cash += adjustment.amount
        self.contributions += adjustment.amount

    @property
    def open_cost_basis(self) -> int:
        return sum(lot.cost_basis for lot in self.positions.values())

    def market_value(self, prices: dict[PositionKey, int]) -> int:
        return sum(lot.market_value(prices[key]) for key, lot in self.positions.items())

    def unrealized_pnl(self, prices: dict[PositionKey, int]) -> int:
        return sum(lot.unrealized_pnl(prices[key]) for key, lot in self.positions.items())
