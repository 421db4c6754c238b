"""Request logging middleware.

Every request gets an id on request.state, echoed back as X-Request-ID. A
caller-supplied X-Request-ID is reused when it looks sane. One line per request:

    INFO [POST] /api/v1/orders -> 201 (41ms) req_1a2b3c4d5e6f

5xx responses log at WARNING.
"""

import logging
import re
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("wt.request")

_INBOUND_ID = re.compile(r"^[A-Za-z0-9_\-]{8,64}$")


def _request_id(request: Request) -> str:
    inbound = request.headers.get("x-request-id", "")
    if _INBOUND_ID.match(inbound):
        return inbound
    return f"req_{uuid.uuid4().hex[:12]}"


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request.state.request_id = rid = _request_id(request)

        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        response.headers["X-Request-ID"] = rid
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "[%s] %s -> %d (%.0fms) %s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            rid,
        )
        return response
