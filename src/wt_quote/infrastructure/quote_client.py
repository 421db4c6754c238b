"""HTTP client for the external quote service.

    GET {base}/quote?symbol=AAPL          -> {"price": 150.25, "bid": ..., "ask": ...}
    GET {base}/options/quote?symbol=...   -> {"lastPrice": ..., "bid": ..., "ask": ...}

Prices arrive as decimal dollars. Any transport failure, non-2xx status,
malformed body or non-positive price yields None so the resolver can fall
back to the mock table.
"""

import logging
from typing import Any

import httpx

from src.wt_common.cents import dollars_to_cents
from src.wt_common.enums import AssetType

logger = logging.getLogger(__name__)


def _positive_cents(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        cents = dollars_to_cents(value)
    except ValueError:
        return None
    return cents if cents > 0 else None


def _midpoint(body: dict[str, Any]) -> int | None:
    bid = _positive_cents(body.get("bid"))
    ask = _positive_cents(body.get("ask"))
    if bid is None or ask is None:
        return None
    return (bid + ask + 1) // 2


def extract_stock_price(body: dict[str, Any]) -> int | None:
    return _positive_cents(body.get("price")) or _midpoint(body)


def extract_option_price(body: dict[str, Any]) -> int | None:
    return (
        _positive_cents(body.get("lastPrice"))
        or _midpoint(body)
        or _positive_cents(body.get("bid"))
        or _positive_cents(body.get("ask"))
    )


class LiveQuoteClient:
    def __init__(self, base_url: str, timeout: float, client: httpx.AsyncClient | None = None) -> None:
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def fetch_price_cents(self, symbol: str, asset_type: AssetType) -> int | None:
        path = "/options/quote" if asset_type is AssetType.OPTION else "/quote"
        try:
            resp = await self._client.get(path, params={"symbol": symbol})
            resp.raise_for_status()
            body = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Live quote failed for %s: %s", symbol, exc)
            return None

        if not isinstance(body, dict):
            logger.warning("Live quote for %s returned a non-object body", symbol)
            return None
        if asset_type is AssetType.OPTION:
            price = extract_option_price(body)
        else:
            price = extract_stock_price(body)
        if price is None:
            logger.warning("Live quote for %s carried no usable price", symbol)
        return price

    async def aclose(self) -> None:
        await self._client.aclose()
