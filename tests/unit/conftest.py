"""In-memory repositories shared by the service-level unit tests.

They follow the repository Protocols in wt_account/wt_order closely enough
that the executor, recalculation and performance services run unchanged.
"""

import dataclasses
from datetime import datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from src.wt_account.domain.models import Balance, LedgerEntry, Position
from src.wt_common.datetime_utils import utc_now
from src.wt_common.enums import AssetType, LedgerEntryType, OrderStatus, QuoteSource
from src.wt_common.errors import InsufficientBalanceError
from src.wt_ledger.domain.accounting import CashAdjustment, Lot, PnlBuckets, PositionKey
from src.wt_order.domain.models import Order
from src.wt_quote.application.service import QuoteResolver
from src.wt_quote.domain.models import Quote

USER = "00000000-0000-4000-8000-000000000001"
START = 10_000_000


class FakeAccounts:
    def __init__(self) -> None:
        self.balances: dict[str, Balance] = {}
        self.ledger: list[LedgerEntry] = []

    def open(self, user_id: str, starting: int = START) -> Balance:
        self.balances[user_id] = Balance(
            user_id=user_id,
            starting_balance=starting,
            available_balance=starting,
            unrealized_pnl=0,
            balance=starting,
        )
        return self.balances[user_id]

    def _set(self, user_id: str, **changes: object) -> Balance:
        current = self.balances[user_id]
        updated = dataclasses.replace(current, **changes)  # type: ignore[arg-type]
        updated.balance = updated.available_balance + updated.unrealized_pnl
        updated.version = current.version + 1
        self.balances[user_id] = updated
        return updated

    async def get_balance(self, db: object, user_id: str) -> Balance | None:
        return self.balances.get(user_id)

    async def lock_balance(self, db: object, user_id: str) -> Balance | None:
        return self.balances.get(user_id)

    async def debit_cash(self, db: object, user_id: str, amount: int) -> Balance:
        available = self.balances[user_id].available_balance
        if amount > available:
            raise InsufficientBalanceError(amount, available)
        return self._set(user_id, available_balance=available - amount)

    async def credit_cash(self, db: object, user_id: str, amount: int) -> Balance:
        available = self.balances[user_id].available_balance
        return self._set(user_id, available_balance=available + amount)

    async def update_pnl(self, db: object, user_id: str, buckets: PnlBuckets) -> Balance:
        return self._set(
            user_id,
            total_pnl=buckets.total,
            daily_pnl=buckets.daily,
            weekly_pnl=buckets.weekly,
            monthly_pnl=buckets.monthly,
            pnl_updated_at=buckets.updated_at,
        )

    async def write_projection(
        self,
        db: object,
        user_id: str,
        available: int,
        unrealized: int,
        buckets: PnlBuckets,
    ) -> Balance:
        self._set(user_id, available_balance=available, unrealized_pnl=unrealized)
        return await self.update_pnl(db, user_id, buckets)

    async def insert_ledger_entry(
        self,
        db: object,
        user_id: str,
        entry_type: str,
        amount: int,
        balance_after: int,
        reference_type: str | None = None,
        reference_id: str | None = None,
        description: str | None = None,
        created_at: datetime | None = None,
    ) -> LedgerEntry:
        entry = LedgerEntry(
            id=len(self.ledger) + 1,
            user_id=user_id,
            entry_type=entry_type,
            amount=amount,
            balance_after=balance_after,
            reference_type=reference_type,
            reference_id=reference_id,
            description=description,
            created_at=created_at or utc_now(),
        )
        self.ledger.append(entry)
        return entry

    async def list_ledger_entries(
        self,
        db: object,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
    ) -> list[LedgerEntry]:
        rows = [
            e
            for e in reversed(self.ledger)
            if e.user_id == user_id
            and (cursor_id is None or e.id < cursor_id)
            and (entry_type is None or e.entry_type == entry_type)
        ]
        return rows[:limit]

    async def list_adjustments(self, db: object, user_id: str) -> list[CashAdjustment]:
        kinds = {LedgerEntryType.CREDIT.value, LedgerEntryType.DEBIT.value}
        return [
            CashAdjustment(amount=e.amount, created_at=e.created_at)  # type: ignore[arg-type]
            for e in self.ledger
            if e.user_id == user_id and e.entry_type in kinds
        ]


class FakePositions:
    def __init__(self) -> None:
        self.rows: dict[tuple[str, str, AssetType], Position] = {}

    async def get(
        self, db: object, user_id: str, symbol: str, asset_type: AssetType
    ) -> Position | None:
        return self.rows.get((user_id, symbol, asset_type))

    async def lock(
        self, db: object, user_id: str, symbol: str, asset_type: AssetType
    ) -> Position | None:
        return self.rows.get((user_id, symbol, asset_type))

    async def save(
        self, db: object, user_id: str, symbol: str, asset_type: AssetType, lot: Lot
    ) -> Position:
        position = Position(
            user_id=user_id,
            symbol=symbol,
            asset_type=asset_type,
            quantity=lot.quantity,
            cost_basis=lot.cost_basis,
        )
        self.rows[(user_id, symbol, asset_type)] = position
        return position

    async def delete(
        self, db: object, user_id: str, symbol: str, asset_type: AssetType
    ) -> None:
        self.rows.pop((user_id, symbol, asset_type), None)

    async def list_by_user(self, db: object, user_id: str) -> list[Position]:
        return [p for (uid, _, _), p in sorted(self.rows.items()) if uid == user_id]

    async def replace_all(
        self, db: object, user_id: str, lots: dict[PositionKey, Lot]
    ) -> list[Position]:
        for key in [k for k in self.rows if k[0] == user_id]:
            del self.rows[key]
        return [
            await self.save(db, user_id, symbol, asset_type, lot)
            for (symbol, asset_type), lot in lots.items()
        ]


class FakeOrders:
    def __init__(self) -> None:
        self.rows: dict[str, Order] = {}
        self._tick = 0

    def _now(self) -> datetime:
        # strictly increasing timestamps keep fill order deterministic
        self._tick += 1
        return utc_now() + timedelta(microseconds=self._tick)

    async def insert(self, db: object, order: Order) -> Order:
        order.created_at = order.updated_at = self._now()
        self.rows[order.id] = order
        return order

    async def mark_filled(
        self,
        db: object,
        order_id: str,
        filled_price: int,
        realized_pnl: int | None,
        filled_at: datetime,
    ) -> Order:
        order = self.rows[order_id]
        order.status = OrderStatus.FILLED
        order.filled_quantity = order.quantity
        order.filled_price = filled_price
        order.realized_pnl = realized_pnl
        order.filled_at = self._now()
        return order

    async def set_realized_pnl(self, db: object, realized: dict[str, int | None]) -> None:
        for order_id, pnl in realized.items():
            self.rows[order_id].realized_pnl = pnl

    async def cancel_pending(self, db: object, order_id: str, user_id: str) -> Order | None:
        order = self.rows.get(order_id)
        if order is None or order.user_id != user_id or order.status is not OrderStatus.PENDING:
            return None
        order.status = OrderStatus.CANCELLED
        order.cancelled_at = utc_now()
        return order

    async def get_for_user(self, db: object, order_id: str, user_id: str) -> Order | None:
        order = self.rows.get(order_id)
        return order if order is not None and order.user_id == user_id else None

    async def list_by_user(
        self,
        db: object,
        user_id: str,
        status: str | None,
        symbol: str | None,
        limit: int,
        offset: int,
    ) -> tuple[list[Order], int]:
        rows = [
            o
            for o in sorted(self.rows.values(), key=lambda o: o.created_at, reverse=True)  # type: ignore[arg-type, return-value]
            if o.user_id == user_id
            and (status is None or o.status.value == status)
            and (symbol is None or o.symbol == symbol)
        ]
        return rows[offset:offset + limit], len(rows)

    async def list_filled(self, db: object, user_id: str) -> list[Order]:
        filled = [
            o for o in self.rows.values()
            if o.user_id == user_id and o.status is OrderStatus.FILLED
        ]
        return sorted(filled, key=lambda o: o.filled_at)  # type: ignore[arg-type, return-value]


class FixedPriceResolver(QuoteResolver):
    """Resolver with a settable price table; never touches the network."""

    def __init__(self, prices: dict[str, int] | None = None, default: int = 10_000) -> None:
        super().__init__()
        self.prices = dict(prices or {})
        self.default = default
        self.calls = 0

    async def resolve(self, symbol: str, asset_type: AssetType = AssetType.STOCK) -> Quote:
        self.calls += 1
        symbol = symbol.upper()
        price = self.prices.get(symbol, self.default)
        return Quote(symbol, asset_type, price, QuoteSource.LIVE, utc_now())


@pytest.fixture
def accounts() -> FakeAccounts:
    repo = FakeAccounts()
    repo.open(USER)
    return repo


@pytest.fixture
def positions() -> FakePositions:
    return FakePositions()


@pytest.fixture
def orders() -> FakeOrders:
    return FakeOrders()


@pytest.fixture
def resolver() -> FixedPriceResolver:
    return FixedPriceResolver({"AAPL": 15000, "TSLA": 25000})


@pytest.fixture
def db() -> AsyncMock:
    return AsyncMock()
