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
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import settings
from src.ds_audit.api.router import router as audit_router
from src.ds_common.database import engine
from src.ds_common.errors import AppError, RateLimitError
from src.ds_common.redis_client import close_redis, get_redis
from src.ds_common.response import error_response
from src.ds_escrow.api.router import router as escrow_router
from src.ds_gateway.middleware.rate_limit import RateLimitMiddleware
from src.ds_gateway.middleware.request_log import RequestLogMiddleware
from src.ds_savings.api.router import router as savings_router
from src.ds_token.api.router import router as token_router
from src.ds_vault.api.router import router as vault_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB + Redis connections. Shutdown: dispose."""
    # Startup
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    await get_redis()
    yield
    # Shutdown
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


# Starlette wraps in reverse order: RequestLog is outermost so 429s are logged too
app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    headers = None
    if isinstance(exc, RateLimitError):
        headers = {"Retry-After": str(exc.retry_after)}
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
        headers=headers,
    )


app.include_router(token_router, prefix="/api/v1")
app.include_router(escrow_router, prefix="/api/v1")
app.include_router(savings_router, prefix="/api/v1")
app.include_router(vault_router, prefix="/api/v1")
app.include_router(audit_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
