"""Quote REST endpoint: GET /quotes/{symbol}."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from src.wt_common.enums import AssetType
from src.wt_common.response import ApiResponse, respond
from src.wt_gateway.auth.dependencies import get_current_user
from src.wt_gateway.user.db_models import UserModel
from src.wt_quote.application.schemas import QuoteResponse
from src.wt_quote.application.service import QuoteResolver, get_quote_resolver

router = APIRouter(prefix="/quotes", tags=["quotes"])


@router.get("/{symbol}", response_model=ApiResponse)
async def get_quote(
    request: Request,
    symbol: str,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    resolver: Annotated[QuoteResolver, Depends(get_quote_resolver)],
    asset_type: Annotated[AssetType, Query()] = AssetType.STOCK,
) -> ApiResponse:
    quote = await resolver.resolve(symbol, asset_type)
    return respond(request, QuoteResponse.from_domain(quote).model_dump())
