"""Order domain model: pure dataclass, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.wt_common.enums import AssetType, OrderSide, OrderStatus
from src.wt_ledger.domain.accounting import Fill


@dataclass
class Order:
    id: str
    user_id: str
    symbol: str
    asset_type: AssetType
    side: OrderSide
    order_type: str
    quantity: int
    price: int                       # cents, quoted at submission
    status: OrderStatus = OrderStatus.PENDING
    filled_quantity: int = 0
    filled_price: int | None = None  # cents
    realized_pnl: int | None = None  # cents, sell fills only
    filled_at: datetime | None = None
    cancelled_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_fill(self) -> Fill:
        if self.status is not OrderStatus.FILLED or self.filled_price is None:
            raise ValueError(f"Order {self.id} is not filled")
        return Fill(
            order_id=self.id,
            symbol=self.symbol,
            asset_type=self.asset_type,
            side=self.side,
            quantity=self.filled_quantity,
            price_cents=self.filled_price,
            filled_at=self.filled_at or self.created_at,  # type: ignore[arg-type]
        )
