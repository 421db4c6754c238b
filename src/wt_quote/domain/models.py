"""Domain models for wt_quote."""

from dataclasses import dataclass
from datetime import datetime

from src.wt_common.enums import AssetType, QuoteSource


@dataclass(frozen=True)
class Quote:
    symbol: str
    asset_type: AssetType
    price_cents: int
    source: QuoteSource
    as_of: datetime
