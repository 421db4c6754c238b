from pydantic import BaseModel

from src.wt_common.cents import cents_to_display
from src.wt_quote.domain.models import Quote


class QuoteResponse(BaseModel):
    symbol: str
    asset_type: str
    price_cents: int
    price_display: str
    source: str
    as_of: str

    @classmethod
    def from_domain(cls, quote: Quote) -> "QuoteResponse":
        return cls(
            symbol=quote.symbol,
            asset_type=quote.asset_type.value,
            price_cents=quote.price_cents,
            price_display=cents_to_display(quote.price_cents),
            source=quote.source.value,
            as_of=quote.as_of.isoformat(),
        )
