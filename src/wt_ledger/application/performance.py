"""PerformanceService: time-bucketed account history and summary statistics.

History is recomputed on every call from the filled-order log: the snapshot
stamped t applies the fills inside [t, t + step) to a running Replay, which is
then valued at current quotes.
Quotes are resolved once per (symbol, asset_type) per call.
"""

from collections.abc import AsyncIterator
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.wt_account.domain.repository import AccountRepositoryProtocol
from src.wt_account.infrastructure.persistence import AccountRepository
from src.wt_common.cents import percent
from src.wt_common.datetime_utils import as_utc, utc_now
from src.wt_common.enums import Granularity, OrderSide, PerformancePeriod
from src.wt_common.errors import BalanceNotFoundError, InvalidPeriodError
from src.wt_ledger.application.schemas import (
    PerformanceResponse,
    PerformanceSummary,
    SnapshotItem,
)
from src.wt_ledger.domain.accounting import CashAdjustment, Fill, PositionKey, Replay
from src.wt_ledger.domain.history import (
    Snapshot,
    period_start,
    snapshot_count,
    snapshot_times,
    step_for,
)
from src.wt_ledger.domain.metrics import max_drawdown, sharpe_ratio, win_rate
from src.wt_order.domain.repository import OrderRepositoryProtocol
from src.wt_order.infrastructure.persistence import OrderRepository
from src.wt_quote.application.service import QuoteResolver


def parse_period(value: str) -> PerformancePeriod:
    try:
        return PerformancePeriod(value)
    except ValueError:
        allowed = ", ".join(p.value for p in PerformancePeriod)
        raise InvalidPeriodError(f"period must be one of {allowed}") from None


def parse_granularity(value: str) -> Granularity:
    try:
        return Granularity(value)
    except ValueError:
        allowed = ", ".join(g.value for g in Granularity)
        raise InvalidPeriodError(f"granularity must be one of {allowed}") from None


def _event_time(event: Fill | CashAdjustment) -> datetime:
    return as_utc(event.filled_at if isinstance(event, Fill) else event.created_at)


def _advance(
    replay: Replay,
    events: list[Fill | CashAdjustment],
    cursor: int,
    bound: datetime,
) -> tuple[int, int]:
    """Apply events[cursor:] stamped before `bound`; return (cursor, fills applied)."""
    applied = 0
    while cursor < len(events) and _event_time(events[cursor]) < bound:
        event = events[cursor]
        if isinstance(event, Fill):
            replay.apply(event)
            applied += 1
        else:
            replay.adjust(event)
        cursor += 1
    return cursor, applied


class _PriceCache:
    def __init__(self, resolver: QuoteResolver) -> None:
        self._resolver = resolver
        self._prices: dict[PositionKey, int] = {}

    async def prices_for(self, keys: list[PositionKey]) -> dict[PositionKey, int]:
        for symbol, asset_type in keys:
            if (symbol, asset_type) not in self._prices:
                self._prices[(symbol, asset_type)] = await self._resolver.get_price(
                    symbol, asset_type
                )
        return self._prices


class PerformanceService:
    def __init__(
        self,
        resolver: QuoteResolver,
        accounts: AccountRepositoryProtocol | None = None,
        orders: OrderRepositoryProtocol | None = None,
    ) -> None:
        self._resolver = resolver
        self._accounts: AccountRepositoryProtocol = accounts or AccountRepository()
        self._orders: OrderRepositoryProtocol = orders or OrderRepository()

    async def iter_snapshots(
        self,
        db: AsyncSession,
        user_id: str,
        period: PerformancePeriod,
        granularity: Granularity,
        now: datetime | None = None,
    ) -> AsyncIterator[Snapshot]:
        now = as_utc(now) if now is not None else utc_now()
        start = period_start(period, now)
        step = step_for(granularity)
        count = snapshot_count(start, now, step)
        if count > settings.PERFORMANCE_MAX_SNAPSHOTS:
            raise InvalidPeriodError(
                f"{period.value} at {granularity.value} granularity needs {count} "
                f"snapshots (max {settings.PERFORMANCE_MAX_SNAPSHOTS})"
            )

        balance = await self._accounts.get_balance(db, user_id)
        if balance is None:
            raise BalanceNotFoundError(user_id)
        fills = [o.to_fill() for o in await self._orders.list_filled(db, user_id)]
        adjustments = await self._accounts.list_adjustments(db, user_id)
        events: list[Fill | CashAdjustment] = sorted([*fills, *adjustments], key=_event_time)

        replay = Replay(cash=balance.starting_balance)
        prices = _PriceCache(self._resolver)
        # history before the window is the baseline, not a bucket's orders
        cursor, _ = _advance(replay, events, 0, start)
        for t in snapshot_times(start, now, step):
            cursor, applied = _advance(replay, events, cursor, t + step)
            yield await self._snapshot(replay, t, applied, balance.starting_balance, prices)

    async def _snapshot(
        self,
        replay: Replay,
        at: datetime,
        orders_count: int,
        starting_balance: int,
        prices: _PriceCache,
    ) -> Snapshot:
        marks = await prices.prices_for(list(replay.positions))
        portfolio_value = replay.market_value(marks)
        total_value = replay.cash + portfolio_value
        invested = starting_balance + replay.contributions
        total_return = total_value - invested
        return Snapshot(
            timestamp=at,
            cash_balance=replay.cash,
            portfolio_value=portfolio_value,
            total_value=total_value,
            realized_pnl=replay.realized_pnl,
            unrealized_pnl=replay.unrealized_pnl(marks),
            total_return=total_return,
            total_return_percent=percent(total_return, invested),
            orders_count=orders_count,
            positions=[
                {
                    "symbol": symbol,
                    "asset_type": asset_type.value,
                    "quantity": lot.quantity,
                    "market_value_cents": lot.market_value(marks[(symbol, asset_type)]),
                }
                for (symbol, asset_type), lot in sorted(replay.positions.items())
            ],
        )

    async def build(
        self,
        db: AsyncSession,
        user_id: str,
        period: str,
        granularity: str,
    ) -> PerformanceResponse:
        period_enum = parse_period(period)
        granularity_enum = parse_granularity(granularity)
        now = utc_now()
        history = [
            s async for s in self.iter_snapshots(db, user_id, period_enum, granularity_enum, now)
        ]

        start = period_start(period_enum, now)
        orders = await self._orders.list_filled(db, user_id)
        period_sells = [
            o.realized_pnl
            for o in orders
            if o.side is OrderSide.SELL and o.filled_at is not None and as_utc(o.filled_at) >= start
        ]
        values = [s.total_value for s in history]
        first, last = history[0], history[-1]
        summary = PerformanceSummary(
            start_value=first.total_value,
            end_value=last.total_value,
            total_return=last.total_return,
            total_return_percent=last.total_return_percent,
            realized_pnl=last.realized_pnl,
            unrealized_pnl=last.unrealized_pnl,
            max_drawdown=max_drawdown(values),
            sharpe_ratio=sharpe_ratio(values, settings.RISK_FREE_RATE_ANNUAL),
            win_rate=win_rate(period_sells),
        )
        return PerformanceResponse(
            period=period_enum.value,
            granularity=granularity_enum.value,
            history=[SnapshotItem.from_domain(s) for s in history],
            summary=summary,
        )
