"""OrderExecutor: prices, validates and fills a market order.

One call is one unit of work inside the caller's transaction:

  1. reject non-market order types and non-positive quantities
  2. resolve the execution price server-side (QuoteResolver)
  3. lock the balance row, then the position row (SELECT ... FOR UPDATE)
  4. check cash (buy) or held quantity (sell) before anything is written
  5. insert the order as pending, move cash, write the position and a
     ledger entry, roll the P&L buckets (sell), mark the order filled

The quote is fetched before any lock is taken so no row stays locked across
the network call. Locking the balance row first serializes all fills of one
user, so concurrent orders cannot lose updates. Any exception leaves the
transaction for the caller to roll back.
"""

import logging
import uuid
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from src.wt_account.domain.models import Balance, Position
from src.wt_account.domain.repository import (
    AccountRepositoryProtocol,
    PositionRepositoryProtocol,
)
from src.wt_account.infrastructure.persistence import AccountRepository
from src.wt_account.infrastructure.positions_repository import PositionsRepository
from src.wt_common.cents import cents_to_display, notional
from src.wt_common.datetime_utils import utc_now
from src.wt_common.enums import AssetType, LedgerEntryType, OrderSide, OrderType
from src.wt_common.errors import (
    BalanceNotFoundError,
    InsufficientBalanceError,
    InvalidQuantityError,
    UnsupportedOrderTypeError,
)
from src.wt_ledger.domain.accounting import apply_buy, apply_sell, roll_pnl_buckets
from src.wt_order.domain.models import Order
from src.wt_order.domain.repository import OrderRepositoryProtocol
from src.wt_order.infrastructure.persistence import OrderRepository
from src.wt_quote.application.service import QuoteResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderRequest:
    symbol: str
    side: OrderSide
    quantity: int
    asset_type: AssetType = AssetType.STOCK
    order_type: str = OrderType.MARKET.value


@dataclass(frozen=True)
class ExecutionResult:
    order: Order
    balance: Balance
    position: Position | None  # None when the fill closed the position


def validate_request(req: OrderRequest) -> None:
    if req.order_type != OrderType.MARKET.value:
        raise UnsupportedOrderTypeError(req.order_type)
    if req.quantity <= 0:
        raise InvalidQuantityError(req.quantity)


class OrderExecutor:
    def __init__(
        self,
        resolver: QuoteResolver,
        accounts: AccountRepositoryProtocol | None = None,
        positions: PositionRepositoryProtocol | None = None,
        orders: OrderRepositoryProtocol | None = None,
    ) -> None:
        self._resolver = resolver
        self._accounts: AccountRepositoryProtocol = accounts or AccountRepository()
        self._positions: PositionRepositoryProtocol = positions or PositionsRepository()
        self._orders: OrderRepositoryProtocol = orders or OrderRepository()

    async def execute(self, db: AsyncSession, user_id: str, req: OrderRequest) -> ExecutionResult:
        validate_request(req)
        symbol = req.symbol.upper()
        price = await self._resolver.get_price(symbol, req.asset_type)

        balance = await self._accounts.lock_balance(db, user_id)
        if balance is None:
            raise BalanceNotFoundError(user_id)
        held = await self._positions.lock(db, user_id, symbol, req.asset_type)
        lot = held.lot if held is not None else None

        cost = notional(req.quantity, price)
        if req.side is OrderSide.BUY:
            if cost > balance.available_balance:
                raise InsufficientBalanceError(cost, balance.available_balance)
            sell = None
        else:
            sell = apply_sell(lot, req.quantity, price)

        now = utc_now()
        order = await self._orders.insert(
            db,
            Order(
                id=str(uuid.uuid4()),
                user_id=user_id,
                symbol=symbol,
                asset_type=req.asset_type,
                side=req.side,
                order_type=req.order_type,
                quantity=req.quantity,
                price=price,
            ),
        )

        position: Position | None
        if sell is None:
            balance = await self._accounts.debit_cash(db, user_id, cost)
            position = await self._positions.save(
                db, user_id, symbol, req.asset_type, apply_buy(lot, req.quantity, price)
            )
            await self._accounts.insert_ledger_entry(
                db,
                user_id,
                LedgerEntryType.TRADE_BUY.value,
                -cost,
                balance.available_balance,
                reference_type="ORDER",
                reference_id=order.id,
                description=f"Buy {req.quantity} {symbol} @ {cents_to_display(price)}",
            )
            realized = None
        else:
            await self._accounts.credit_cash(db, user_id, sell.proceeds)
            if sell.remaining is None:
                await self._positions.delete(db, user_id, symbol, req.asset_type)
                position = None
            else:
                position = await self._positions.save(
                    db, user_id, symbol, req.asset_type, sell.remaining
                )
            balance = await self._accounts.update_pnl(
                db, user_id, roll_pnl_buckets(balance.buckets, sell.realized_pnl, now)
            )
            await self._accounts.insert_ledger_entry(
                db,
                user_id,
                LedgerEntryType.TRADE_SELL.value,
                sell.proceeds,
                balance.available_balance,
                reference_type="ORDER",
                reference_id=order.id,
                description=f"Sell {req.quantity} {symbol} @ {cents_to_display(price)}",
            )
            realized = sell.realized_pnl

        order = await self._orders.mark_filled(db, order.id, price, realized, now)
        logger.info(
            "Filled %s %s %d %s @ %d (user=%s realized=%s)",
            order.id, req.side.value, req.quantity, symbol, price, user_id, realized,
        )
        return ExecutionResult(order=order, balance=balance, position=position)
