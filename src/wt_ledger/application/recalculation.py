"""RecalculationService: rebuilds a user's balance and positions from history.

Source of truth is the filled-order log plus creator CREDIT/DEBIT ledger
entries. Replaying them through the same accounting rules the executor uses
yields the projection; running it twice without new fills writes the same
values. A difference between the stored and replayed cash is booked as a
RECONCILE ledger entry.
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from src.wt_account.domain.repository import (
    AccountRepositoryProtocol,
    PositionRepositoryProtocol,
)
from src.wt_account.infrastructure.persistence import AccountRepository
from src.wt_account.infrastructure.positions_repository import PositionsRepository
from src.wt_common.datetime_utils import utc_now
from src.wt_common.enums import LedgerEntryType, OrderSide
from src.wt_common.errors import AppError, BalanceNotFoundError
from src.wt_gateway.user.service import UserService
from src.wt_ledger.domain.accounting import Replay, bucket_realized
from src.wt_order.domain.repository import OrderRepositoryProtocol
from src.wt_order.infrastructure.persistence import OrderRepository
from src.wt_quote.application.service import QuoteResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecalculationResult:
    user_id: str
    available_balance: int
    balance: int
    total_pnl: int
    unrealized_pnl: int
    daily_pnl: int
    weekly_pnl: int
    monthly_pnl: int
    positions: int
    orders: int
    cash_drift: int
    skipped_orders: list[str] = field(default_factory=list)


class RecalculationService:
    def __init__(
        self,
        resolver: QuoteResolver,
        accounts: AccountRepositoryProtocol | None = None,
        positions: PositionRepositoryProtocol | None = None,
        orders: OrderRepositoryProtocol | None = None,
        users: UserService | None = None,
    ) -> None:
        self._resolver = resolver
        self._accounts: AccountRepositoryProtocol = accounts or AccountRepository()
        self._positions: PositionRepositoryProtocol = positions or PositionsRepository()
        self._orders: OrderRepositoryProtocol = orders or OrderRepository()
        self._users = users or UserService()

    async def recalculate(self, db: AsyncSession, user_id: str) -> RecalculationResult:
        try:
            result = await self._rebuild(db, user_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return result

    async def _rebuild(self, db: AsyncSession, user_id: str) -> RecalculationResult:
        stored = await self._accounts.lock_balance(db, user_id)
        if stored is None:
            raise BalanceNotFoundError(user_id)

        orders = await self._orders.list_filled(db, user_id)
        replay = Replay(cash=stored.starting_balance)
        for adjustment in await self._accounts.list_adjustments(db, user_id):
            replay.adjust(adjustment)
        for order in orders:
            replay.apply(order.to_fill())

        prices = await self._resolver.get_prices(replay.positions.keys())
        unrealized = replay.unrealized_pnl(prices)
        now = utc_now()
        buckets = bucket_realized(replay.realized_events, now)

        await self._orders.set_realized_pnl(
            db,
            {
                o.id: replay.realized_by_order.get(o.id)
                for o in orders
                if o.side is OrderSide.SELL
            },
        )
        await self._positions.replace_all(db, user_id, replay.positions)
        balance = await self._accounts.write_projection(
            db, user_id, replay.cash, unrealized, buckets
        )

        drift = replay.cash - stored.available_balance
        if drift:
            logger.warning("Cash drift for %s: stored=%d replayed=%d", user_id,
                           stored.available_balance, replay.cash)
            await self._accounts.insert_ledger_entry(
                db,
                user_id,
                LedgerEntryType.RECONCILE.value,
                drift,
                balance.available_balance,
                reference_type="RECALCULATION",
                description="Cash rebuilt from order history",
            )
        if replay.skipped:
            logger.warning("Skipped %d oversized sells for %s", len(replay.skipped), user_id)

        return RecalculationResult(
            user_id=user_id,
            available_balance=balance.available_balance,
            balance=balance.balance,
            total_pnl=buckets.total,
            unrealized_pnl=unrealized,
            daily_pnl=buckets.daily,
            weekly_pnl=buckets.weekly,
            monthly_pnl=buckets.monthly,
            positions=len(replay.positions),
            orders=len(orders),
            cash_drift=drift,
            skipped_orders=list(replay.skipped),
        )

    async def recalculate_all(
        self, db: AsyncSession
    ) -> tuple[list[RecalculationResult], list[dict[str, str]]]:
        """Recalculate every trader, one transaction each.

        A failing user is logged and reported; the batch carries on.
        """
        results: list[RecalculationResult] = []
        failures: list[dict[str, str]] = []
        for user_id in await self._users.list_trader_ids(db):
            try:
                results.append(await self.recalculate(db, user_id))
            except AppError as exc:
                logger.error("Recalculation failed for %s: %s", user_id, exc.message)
                failures.append({"user_id": user_id, "error": exc.message})
            except Exception as exc:
                logger.exception("Recalculation failed for %s", user_id)
                failures.append({"user_id": user_id, "error": str(exc) or type(exc).__name__})
        return results, failures
