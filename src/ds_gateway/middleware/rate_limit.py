"""Fixed-window rate limiting for mutating requests.

Rule: RATE_LIMIT_PER_MINUTE requests per client per minute on POST/PUT/
PATCH/DELETE. Reads are never limited.

Redis logic:
    count = INCR ratelimit:{client}:{minute}
    if count == 1: EXPIRE key 60
    if count > limit: 429 with Retry-After

The client key is the bearer token's tail when present (one wallet session),
otherwise the forwarded or peer IP.
"""

import time
from collections.abc import Awaitable, Callable

import redis.asyncio as aioredis
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from config.settings import settings
from src.ds_common.errors import RateLimitError
from src.ds_common.redis_client import get_redis
from src.ds_common.response import error_response

_LIMITED_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})
_WINDOW_SECONDS = 60


def _client_key(request: Request) -> str:
    auth = request.headers.get("authorization", "")
    if auth.lower().startswith("bearer ") and len(auth) > 7:
        return f"tok:{auth[-16:]}"
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return f"ip:{forwarded.split(',')[0].strip()}"
    return f"ip:{request.client.host if request.client else 'unknown'}"


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app: ASGIApp,
        limit: int | None = None,
        redis_factory: Callable[[], Awaitable[aioredis.Redis]] = get_redis,
    ) -> None:
        super().__init__(app)
        self._limit = limit if limit is not None else settings.RATE_LIMIT_PER_MINUTE
        self._redis_factory = redis_factory

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.method not in _LIMITED_METHODS:
            return await call_next(request)

        window = int(time.time()) // _WINDOW_SECONDS
        key = f"ratelimit:{_client_key(request)}:{window}"
        redis = await self._redis_factory()
        count = await redis.incr(key)
        if count == 1:
            await redis.expire(key, _WINDOW_SECONDS)
        if count > self._limit:
            exc = RateLimitError(retry_after=_WINDOW_SECONDS)
            return JSONResponse(
                status_code=exc.http_status,
                content=error_response(exc.code, exc.message).model_dump(),
                headers={"Retry-After": str(exc.retry_after)},
            )
        return await call_next(request)
