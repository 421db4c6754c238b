"""Unit tests for RecalculationService: rebuild, idempotence, drift, batch mode."""

import dataclasses
from typing import Any
from unittest.mock import AsyncMock

import pytest

from src.wt_account.application.service import AccountApplicationService
from src.wt_common.enums import AssetType, LedgerEntryType, OrderSide
from src.wt_common.errors import BalanceNotFoundError
from src.wt_ledger.application.recalculation import RecalculationService
from src.wt_order.engine.executor import OrderExecutor, OrderRequest

USER = "00000000-0000-4000-8000-000000000001"


@pytest.fixture
def executor(resolver: Any, accounts: Any, positions: Any, orders: Any) -> OrderExecutor:
    return OrderExecutor(resolver, accounts, positions, orders)


@pytest.fixture
def users() -> AsyncMock:
    users = AsyncMock()
    users.list_trader_ids.return_value = [USER]
    return users


@pytest.fixture
def service(
    resolver: Any, accounts: Any, positions: Any, orders: Any, users: AsyncMock
) -> RecalculationService:
    return RecalculationService(resolver, accounts, positions, orders, users)


async def _trade(executor: OrderExecutor, db: AsyncMock) -> None:
    await executor.execute(db, USER, OrderRequest("AAPL", OrderSide.BUY, 20))
    await executor.execute(db, USER, OrderRequest("TSLA", OrderSide.BUY, 4))
    await executor.execute(db, USER, OrderRequest("AAPL", OrderSide.SELL, 5))


class TestRecalculate:
    async def test_matches_incremental_state(
        self,
        service: RecalculationService,
        executor: OrderExecutor,
        accounts: Any,
        positions: Any,
        db: AsyncMock,
    ) -> None:
        await _trade(executor, db)
        before = accounts.balances[USER]
        held_before = dict(positions.rows)

        result = await service.recalculate(db, USER)

        assert result.cash_drift == 0
        assert result.available_balance == before.available_balance
        assert result.total_pnl == before.total_pnl
        assert result.orders == 3
        assert result.positions == 2
        assert result.skipped_orders == []
        assert {k: (p.quantity, p.cost_basis) for k, p in positions.rows.items()} == {
            k: (p.quantity, p.cost_basis) for k, p in held_before.items()
        }
        assert not any(e.entry_type == LedgerEntryType.RECONCILE.value for e in accounts.ledger)
        db.commit.assert_awaited()

    async def test_unrealized_uses_current_quotes(
        self,
        service: RecalculationService,
        executor: OrderExecutor,
        resolver: Any,
        accounts: Any,
        db: AsyncMock,
    ) -> None:
        await executor.execute(db, USER, OrderRequest("AAPL", OrderSide.BUY, 10))
        resolver.prices["AAPL"] = 16000

        result = await service.recalculate(db, USER)

        assert result.unrealized_pnl == 10000
        assert result.balance == result.available_balance + 10000
        assert accounts.balances[USER].unrealized_pnl == 10000

    async def test_is_idempotent(
        self, service: RecalculationService, executor: OrderExecutor, db: AsyncMock
    ) -> None:
        await _trade(executor, db)
        first = await service.recalculate(db, USER)
        second = await service.recalculate(db, USER)
        assert first == second

    async def test_cash_drift_is_repaired_and_booked(
        self,
        service: RecalculationService,
        executor: OrderExecutor,
        accounts: Any,
        db: AsyncMock,
    ) -> None:
        await _trade(executor, db)
        good = accounts.balances[USER].available_balance
        accounts.balances[USER] = dataclasses.replace(
            accounts.balances[USER], available_balance=good - 777
        )

        result = await service.recalculate(db, USER)

        assert result.cash_drift == 777
        assert accounts.balances[USER].available_balance == good
        entry = accounts.ledger[-1]
        assert entry.entry_type == LedgerEntryType.RECONCILE.value
        assert entry.amount == 777
        assert entry.balance_after == good

    async def test_lost_position_is_restored(
        self,
        service: RecalculationService,
        executor: OrderExecutor,
        positions: Any,
        db: AsyncMock,
    ) -> None:
        await _trade(executor, db)
        positions.rows.clear()
        await service.recalculate(db, USER)
        restored = positions.rows[(USER, "AAPL", AssetType.STOCK)]
        assert (restored.quantity, restored.cost_basis) == (15, 225000)

    async def test_creator_adjustments_are_replayed(
        self,
        service: RecalculationService,
        executor: OrderExecutor,
        accounts: Any,
        db: AsyncMock,
    ) -> None:
        await executor.execute(db, USER, OrderRequest("AAPL", OrderSide.BUY, 1))
        admin = AccountApplicationService(accounts)
        await admin.adjust_balance(db, "creator-1", USER, "add", 50000)
        await admin.adjust_balance(db, "creator-1", USER, "remove", 20000)

        result = await service.recalculate(db, USER)

        assert result.cash_drift == 0
        assert result.available_balance == 10_000_000 - 15000 + 30000

    async def test_missing_balance(self, service: RecalculationService, db: AsyncMock) -> None:
        with pytest.raises(BalanceNotFoundError):
            await service.recalculate(db, "ghost")
        db.rollback.assert_awaited_once()


class TestRecalculateAll:
    async def test_failures_do_not_stop_the_batch(
        self,
        service: RecalculationService,
        users: AsyncMock,
        executor: OrderExecutor,
        db: AsyncMock,
    ) -> None:
        await _trade(executor, db)
        users.list_trader_ids.return_value = ["ghost", USER]

        results, failures = await service.recalculate_all(db)

        assert [r.user_id for r in results] == [USER]
        assert failures == [
            {"user_id": "ghost", "error": "Balance not found for user ghost"}
        ]
