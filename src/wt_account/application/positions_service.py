"""Positions enriched with quote-derived market value and unrealized P&L."""

from sqlalchemy.ext.asyncio import AsyncSession

from src.wt_account.application.schemas import PositionResponse
from src.wt_account.domain.models import Position
from src.wt_account.domain.repository import PositionRepositoryProtocol
from src.wt_account.infrastructure.positions_repository import PositionsRepository
from src.wt_common.cents import cents_to_display, percent
from src.wt_common.enums import AssetType
from src.wt_common.errors import PositionNotFoundError
from src.wt_quote.application.service import QuoteResolver


def enrich(position: Position, price_cents: int) -> PositionResponse:
    lot = position.lot
    market_value = lot.market_value(price_cents)
    unrealized = lot.unrealized_pnl(price_cents)
    return PositionResponse(
        symbol=position.symbol,
        asset_type=position.asset_type.value,
        quantity=position.quantity,
        average_cost_cents=lot.average_cost,
        cost_basis_cents=lot.cost_basis,
        current_price_cents=price_cents,
        market_value_cents=market_value,
        market_value_display=cents_to_display(market_value),
        unrealized_pnl_cents=unrealized,
        unrealized_pnl_display=cents_to_display(unrealized),
        unrealized_pnl_percent=percent(unrealized, lot.cost_basis),
    )


class PositionsService:
    def __init__(
        self,
        resolver: QuoteResolver,
        repo: PositionRepositoryProtocol | None = None,
    ) -> None:
        self._resolver = resolver
        self._repo: PositionRepositoryProtocol = repo or PositionsRepository()

    async def list_positions(self, db: AsyncSession, user_id: str) -> list[PositionResponse]:
        positions = await self._repo.list_by_user(db, user_id)
        prices = await self._resolver.get_prices((p.symbol, p.asset_type) for p in positions)
        return [enrich(p, prices[(p.symbol, p.asset_type)]) for p in positions]

    async def get_position(
        self, db: AsyncSession, user_id: str, symbol: str, asset_type: AssetType
    ) -> PositionResponse:
        position = await self._repo.get(db, user_id, symbol.upper(), asset_type)
        if position is None:
            raise PositionNotFoundError(symbol.upper())
        price = await self._resolver.get_price(position.symbol, position.asset_type)
        return enrich(position, price)
