"""QuoteResolver: live quote service first, then the mock price table.

resolve() never returns a non-positive price: a fallback that still yields
nothing usable raises PriceUnavailableError so no fill happens at a bad price.
"""

import logging
import random
from collections.abc import Iterable

from config.settings import settings
from src.wt_common.datetime_utils import utc_now
from src.wt_common.enums import AssetType, QuoteSource
from src.wt_common.errors import PriceUnavailableError
from src.wt_quote.domain.mock_prices import mock_price_cents
from src.wt_quote.domain.models import Quote
from src.wt_quote.infrastructure.quote_client import LiveQuoteClient
from src.wt_quote.infrastructure.rate_limiter import TokenBucket

logger = logging.getLogger(__name__)


class QuoteResolver:
    def __init__(
        self,
        client: LiveQuoteClient | None = None,
        limiter: TokenBucket | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._client = client
        self._limiter = limiter or TokenBucket(settings.QUOTE_RATE_PER_SECOND, settings.QUOTE_BURST)
        self._rng = rng or random.Random()

    async def resolve(self, symbol: str, asset_type: AssetType = AssetType.STOCK) -> Quote:
        symbol = symbol.upper()
        now = utc_now()

        if self._client is not None:
            await self._limiter.acquire()
            price = await self._client.fetch_price_cents(symbol, asset_type)
            if price is not None and price > 0:
                return Quote(symbol, asset_type, price, QuoteSource.LIVE, now)
            logger.warning("Falling back to mock price for %s", symbol)

        price = mock_price_cents(symbol, now, self._rng)
        if price <= 0:
            raise PriceUnavailableError(symbol)
        return Quote(symbol, asset_type, price, QuoteSource.MOCK, now)

    async def get_price(self, symbol: str, asset_type: AssetType = AssetType.STOCK) -> int:
        return (await self.resolve(symbol, asset_type)).price_cents

    async def get_prices(
        self, keys: Iterable[tuple[str, AssetType]]
    ) -> dict[tuple[str, AssetType], int]:
        """Price each distinct (symbol, asset_type) once."""
        prices: dict[tuple[str, AssetType], int] = {}
        for symbol, asset_type in keys:
            if (symbol, asset_type) not in prices:
                prices[(symbol, asset_type)] = await self.get_price(symbol, asset_type)
        return prices

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()


_resolver: QuoteResolver | None = None


def get_quote_resolver() -> QuoteResolver:
    """FastAPI dependency: the process-wide resolver, built from settings on first use."""
    global _resolver  # noqa: PLW0603
    if _resolver is None:
        client = None
        if settings.QUOTE_SERVICE_URL:
            client = LiveQuoteClient(settings.QUOTE_SERVICE_URL, settings.QUOTE_TIMEOUT_SECONDS)
        _resolver = QuoteResolver(client=client)
    return _resolver


async def close_quote_resolver() -> None:
    global _resolver  # noqa: PLW0603
    if _resolver is not None:
        await _resolver.aclose()
        _resolver = None
