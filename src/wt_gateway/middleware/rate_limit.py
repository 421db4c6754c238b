"""Fixed-window rate limiting backed by Redis.

Two endpoint groups:
  - "order": POST /api/v1/orders and DELETE /api/v1/positions (ORDER_RATE_LIMIT_PER_MIN)
  - "query": every other /api/v1 request (QUERY_RATE_LIMIT_PER_MIN)

Key pattern: "ratelimit:{client}:{group}:{window}". The first INCR in a window
sets the key's EXPIRE; requests beyond the limit get a 429 envelope with a
Retry-After header holding the seconds left in the window.
"""

import logging
import time

from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from config.settings import settings
from src.wt_common.errors import RateLimitError
from src.wt_common.redis_client import count_hit
from src.wt_common.response import error_response

logger = logging.getLogger(__name__)

_WINDOW_SECONDS = 60
_API_PREFIX = "/api/v1"


def endpoint_group(method: str, path: str) -> str | None:
    """Map a request to its limit group; None means unlimited."""
    if not path.startswith(_API_PREFIX):
        return None
    route = path[len(_API_PREFIX):].rstrip("/")
    if (method == "POST" and route == "/orders") or (method == "DELETE" and route == "/positions"):
        return "order"
    return "query"


def client_key(request: Request) -> str:
    """Peer address, or the nearest X-Forwarded-For hop when the peer is a trusted proxy.

    Hops are read right to left, skipping trusted proxies; anything left of the
    first untrusted hop is client-supplied and ignored.
    """
    peer = request.client.host if request.client else "unknown"
    trusted = set(settings.TRUSTED_PROXIES)
    if peer not in trusted:
        return peer
    forwarded = request.headers.get("x-forwarded-for", "")
    for hop in reversed([h.strip() for h in forwarded.split(",") if h.strip()]):
        if hop not in trusted:
            return hop
    return peer


def _limit_for(group: str) -> int:
    if group == "order":
        return settings.ORDER_RATE_LIMIT_PER_MIN
    return settings.QUERY_RATE_LIMIT_PER_MIN


class RateLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not settings.RATE_LIMIT_ENABLED:
            return await call_next(request)

        group = endpoint_group(request.method, request.url.path)
        if group is None:
            return await call_next(request)

        now = int(time.time())
        key = f"ratelimit:{client_key(request)}:{group}:{now // _WINDOW_SECONDS}"

        count = await count_hit(key, _WINDOW_SECONDS)

        if count > _limit_for(group):
            logger.warning("Rate limit hit: %s (%d requests)", key, count)
            exc = RateLimitError()
            body = error_response(exc.code, exc.message)
            body.request_id = getattr(request.state, "request_id", body.request_id)
            return JSONResponse(
                status_code=exc.http_status,
                content=body.model_dump(),
                headers={"Retry-After": str(_WINDOW_SECONDS - now % _WINDOW_SECONDS)},
            )
        return await call_next(request)
