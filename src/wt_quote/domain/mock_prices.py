"""Synthetic prices for symbols the live quote service cannot price.

Off-hours the base price is returned unchanged, so repeated calls agree.
During the session a uniform perturbation of at most MOCK_PRICE_JITTER
(default ±0.5%) is applied. The perturbation truncates toward the base,
so the bound holds exactly in cents.
"""

import random
from datetime import datetime

from config.settings import settings
from src.wt_quote.domain.market_hours import is_market_open

BASE_PRICES_CENTS: dict[str, int] = {
    "AAPL": 20100,
    "MSFT": 33515,
    "AMZN": 13025,
    "GOOGL": 14080,
    "META": 29035,
    "TSLA": 24575,
    "NVDA": 42565,
    "AMD": 15520,
    "INTC": 4580,
    "NFLX": 41030,
    "SPY": 44520,
    "QQQ": 37580,
    "IWM": 19545,
    "GLD": 18030,
    "TLT": 9575,
}


def base_price_cents(symbol: str) -> int:
    return BASE_PRICES_CENTS.get(symbol.upper(), settings.DEFAULT_MOCK_PRICE_CENTS)


def mock_price_cents(
    symbol: str,
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> int:
    base = base_price_cents(symbol)
    if not is_market_open(now):
        return base
    u = (rng or random).uniform(-1.0, 1.0)
    delta = int(base * settings.MOCK_PRICE_JITTER * u)
    return max(base + delta, 1)
