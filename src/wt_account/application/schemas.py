"""Pydantic schemas and cursor utilities for the account API."""

import base64
import binascii
import json
from typing import Literal

from pydantic import BaseModel, Field

from src.wt_account.domain.models import Balance, LedgerEntry
from src.wt_common.cents import cents_to_display
from src.wt_ledger.domain.accounting import PnlBuckets

# ---------------------------------------------------------------------------
# Cursor-based pagination utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_id: int) -> str:
    """Encode a BIGINT primary key into an opaque Base64 cursor string."""
    return base64.b64encode(json.dumps({"id": last_id}).encode()).decode()


def cursor_decode(cursor: str | None) -> int | None:
    """Decode a cursor back to the last seen id; a garbled cursor restarts from the top."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.b64decode(cursor.encode()).decode())
        return int(payload["id"])
    except (binascii.Error, UnicodeDecodeError, ValueError, KeyError, TypeError):
        return None


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class AdjustBalanceRequest(BaseModel):
    user_id: str
    action: Literal["add", "remove"]
    amount_cents: int = Field(..., gt=0, description="Amount in cents")
    description: str | None = Field(None, max_length=500)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class BalanceResponse(BaseModel):
    user_id: str
    starting_balance_cents: int
    available_balance_cents: int
    available_balance_display: str
    balance_cents: int
    balance_display: str
    unrealized_pnl_cents: int
    total_pnl_cents: int
    total_pnl_display: str
    daily_pnl_cents: int
    weekly_pnl_cents: int
    monthly_pnl_cents: int
    pnl_updated_at: str | None

    @classmethod
    def from_domain(cls, balance: Balance, buckets: PnlBuckets) -> "BalanceResponse":
        return cls(
            user_id=balance.user_id,
            starting_balance_cents=balance.starting_balance,
            available_balance_cents=balance.available_balance,
            available_balance_display=cents_to_display(balance.available_balance),
            balance_cents=balance.balance,
            balance_display=cents_to_display(balance.balance),
            unrealized_pnl_cents=balance.unrealized_pnl,
            total_pnl_cents=buckets.total,
            total_pnl_display=cents_to_display(buckets.total),
            daily_pnl_cents=buckets.daily,
            weekly_pnl_cents=buckets.weekly,
            monthly_pnl_cents=buckets.monthly,
            pnl_updated_at=buckets.updated_at.isoformat() if buckets.updated_at else None,
        )


class PositionResponse(BaseModel):
    symbol: str
    asset_type: str
    quantity: int
    average_cost_cents: float
    cost_basis_cents: int
    current_price_cents: int
    market_value_cents: int
    market_value_display: str
    unrealized_pnl_cents: int
    unrealized_pnl_display: str
    unrealized_pnl_percent: float


class PositionListResponse(BaseModel):
    items: list[PositionResponse]
    total: int


class PortfolioSummary(BaseModel):
    total_portfolio_value_cents: int
    total_unrealized_pnl_cents: int
    cash_balance_cents: int
    total_account_value_cents: int
    total_account_value_display: str


class PortfolioResponse(BaseModel):
    balance: BalanceResponse
    positions: list[PositionResponse]
    summary: PortfolioSummary


class AdjustBalanceResponse(BaseModel):
    user_id: str
    action: str
    requested_cents: int
    applied_cents: int
    available_balance_cents: int
    available_balance_display: str
    ledger_entry_id: int


class LedgerEntryItem(BaseModel):
    id: int
    entry_type: str
    amount_cents: int
    amount_display: str
    balance_after_cents: int
    balance_after_display: str
    reference_type: str | None
    reference_id: str | None
    description: str | None
    created_at: str

    @classmethod
    def from_domain(cls, e: LedgerEntry) -> "LedgerEntryItem":
        return cls(
            id=e.id,
            entry_type=e.entry_type,
            amount_cents=e.amount,
            amount_display=cents_to_display(e.amount),
            balance_after_cents=e.balance_after,
            balance_after_display=cents_to_display(e.balance_after),
            reference_type=e.reference_type,
            reference_id=e.reference_id,
            description=e.description,
            created_at=e.created_at.isoformat() if e.created_at else "",
        )


class LedgerResponse(BaseModel):
    items: list[LedgerEntryItem]
    next_cursor: str | None
    has_more: bool
