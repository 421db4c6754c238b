"""AccountApplicationService: balance reads, portfolio view, creator adjustments, ledger."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.wt_account.application.positions_service import PositionsService
from src.wt_account.application.schemas import (
    AdjustBalanceResponse,
    BalanceResponse,
    LedgerEntryItem,
    LedgerResponse,
    PortfolioResponse,
    PortfolioSummary,
    cursor_decode,
    cursor_encode,
)
from src.wt_account.domain.models import Balance
from src.wt_account.domain.repository import AccountRepositoryProtocol
from src.wt_account.infrastructure.persistence import AccountRepository
from src.wt_common.cents import cents_to_display
from src.wt_common.datetime_utils import utc_now
from src.wt_common.enums import LedgerEntryType
from src.wt_common.errors import BalanceNotFoundError, InvalidAdjustmentError

logger = logging.getLogger(__name__)


class AccountApplicationService:
    def __init__(self, repo: AccountRepositoryProtocol | None = None) -> None:
        self._repo: AccountRepositoryProtocol = repo or AccountRepository()

    async def _require_balance(self, db: AsyncSession, user_id: str) -> Balance:
        balance = await self._repo.get_balance(db, user_id)
        if balance is None:
            raise BalanceNotFoundError(user_id)
        return balance

    async def get_balance(self, db: AsyncSession, user_id: str) -> BalanceResponse:
        """Balance row with P&L buckets rolled to the current period (read-only)."""
        balance = await self._require_balance(db, user_id)
        return BalanceResponse.from_domain(balance, balance.buckets.as_of(utc_now()))

    async def get_portfolio(
        self, db: AsyncSession, user_id: str, positions: PositionsService
    ) -> PortfolioResponse:
        balance = await self._require_balance(db, user_id)
        items = await positions.list_positions(db, user_id)

        market_value = sum(p.market_value_cents for p in items)
        unrealized = sum(p.unrealized_pnl_cents for p in items)
        total = balance.available_balance + market_value
        return PortfolioResponse(
            balance=BalanceResponse.from_domain(balance, balance.buckets.as_of(utc_now())),
            positions=items,
            summary=PortfolioSummary(
                total_portfolio_value_cents=market_value,
                total_unrealized_pnl_cents=unrealized,
                cash_balance_cents=balance.available_balance,
                total_account_value_cents=total,
                total_account_value_display=cents_to_display(total),
            ),
        )

    async def adjust_balance(
        self,
        db: AsyncSession,
        creator_id: str,
        user_id: str,
        action: str,
        amount_cents: int,
        description: str | None = None,
    ) -> AdjustBalanceResponse:
        """Creator cash adjustment. `remove` takes at most the available cash."""
        if action not in ("add", "remove"):
            raise InvalidAdjustmentError(action)
        try:
            current = await self._repo.lock_balance(db, user_id)
            if current is None:
                raise BalanceNotFoundError(user_id)

            if action == "add":
                applied = amount_cents
                updated = await self._repo.credit_cash(db, user_id, applied)
                entry_type, signed = LedgerEntryType.CREDIT, applied
            else:
                applied = min(amount_cents, current.available_balance)
                updated = await self._repo.debit_cash(db, user_id, applied)
                entry_type, signed = LedgerEntryType.DEBIT, -applied

            entry = await self._repo.insert_ledger_entry(
                db,
                user_id,
                entry_type.value,
                signed,
                updated.available_balance,
                reference_type="ADJUSTMENT",
                reference_id=creator_id,
                description=description or f"Balance {action} by creator",
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Balance %s for %s by %s: requested=%d applied=%d",
            action, user_id, creator_id, amount_cents, applied,
        )
        return AdjustBalanceResponse(
            user_id=user_id,
            action=action,
            requested_cents=amount_cents,
            applied_cents=applied,
            available_balance_cents=updated.available_balance,
            available_balance_display=cents_to_display(updated.available_balance),
            ledger_entry_id=entry.id,
        )

    async def list_ledger(
        self,
        db: AsyncSession,
        user_id: str,
        cursor: str | None,
        limit: int,
        entry_type: str | None,
    ) -> LedgerResponse:
        cursor_id = cursor_decode(cursor)
        # limit+1 detects has_more without a COUNT(*)
        entries = await self._repo.list_ledger_entries(
            db, user_id, cursor_id, limit + 1, entry_type
        )
        has_more = len(entries) > limit
        page = entries[:limit]
        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return LedgerResponse(
            items=[LedgerEntryItem.from_domain(e) for e in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )
