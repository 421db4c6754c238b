"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from config.settings import settings
from src.wt_account.api.positions_router import router as positions_router
from src.wt_account.api.router import router as account_router
from src.wt_common.database import check_database, engine
from src.wt_common.errors import AppError, InternalError, RequestValidationFailed
from src.wt_common.redis_client import close_redis, get_redis
from src.wt_common.response import error_response
from src.wt_gateway.api.router import router as auth_router
from src.wt_gateway.middleware.rate_limit import RateLimitMiddleware
from src.wt_gateway.middleware.request_log import RequestLogMiddleware
from src.wt_ledger.api.router import router as ledger_router
from src.wt_order.api.router import router as order_router
from src.wt_quote.api.router import router as quote_router
from src.wt_quote.application.service import close_quote_resolver

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB + Redis connections. Shutdown: dispose."""
    await check_database()
    if settings.RATE_LIMIT_ENABLED:
        await (await get_redis()).ping()
    yield
    await close_quote_resolver()
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)

# Starlette runs the last-added middleware first: request ids exist before rate limiting.
app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestLogMiddleware)


def _render(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return JSONResponse(status_code=exc.http_status, content=resp.model_dump())


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return _render(request, exc)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    detail = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', 'invalid')}"
        for err in exc.errors()
    )
    return _render(request, RequestValidationFailed(detail))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _render(request, InternalError())


app.include_router(auth_router, prefix="/api/v1")
app.include_router(account_router, prefix="/api/v1")
app.include_router(positions_router, prefix="/api/v1")
app.include_router(order_router, prefix="/api/v1")
app.include_router(quote_router, prefix="/api/v1")
app.include_router(ledger_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
