"""Rate limiting middleware for bid submission, using Redis with a Lua script."""

import logging
import random
import re
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from auction_house.core.redis import get_redis

logger = logging.getLogger(__name__)

BID_PATH = re.compile(r"^/api/v1/auctions/[^/]+/bids/?$")


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Sliding-window limit on bid submissions per client IP.

    Only POSTs to the bid endpoint are counted. If Redis is unreachable the
    request is let through: losing the limiter must never block bidding.
    """

    # Atomic sliding-window check: trim, count, admit or report retry-after
    RATE_LIMIT_SCRIPT = """
    local key = KEYS[1]
    local now = tonumber(ARGV[1])
    local window = tonumber(ARGV[2])
    local limit = tonumber(ARGV[3])
    local request_id = ARGV[4]
    local window_start = now - window

    redis.call('ZREMRANGEBYSCORE', key, 0, window_start)

    local count = redis.call('ZCARD', key)

    if count < limit then
        redis.call('ZADD', key, now, request_id)
        redis.call('EXPIRE', key, window + 1)
        return {1, 0}
    else
        local oldest = redis.call('ZRANGE', key, 0, 0, 'WITHSCORES')
        local retry_after = 1
        if oldest and #oldest >= 2 then
            retry_after = math.ceil(oldest[2] + window - now) + 1
            if retry_after < 1 then retry_after = 1 end
        end
        return {0, retry_after}
    end
    """

    def __init__(self, app, ip_limit: int = 100, window: int = 1):
        super().__init__(app)
        self.ip_limit = ip_limit
        self.window = window
        self._rate_limit_script = None

    def _get_rate_limit_script(self, redis):
        if self._rate_limit_script is None:
            self._rate_limit_script = redis.register_script(self.RATE_LIMIT_SCRIPT)
        return self._rate_limit_script

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.method != "POST" or not BID_PATH.match(request.url.path):
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"

        try:
            redis = await get_redis()
            allowed, retry_after = await self.check(redis, f"ratelimit:bids:ip:{client_ip}")
        except Exception as e:
            logger.warning(f"Rate limiter unavailable, allowing request: {e}")
            return await call_next(request)

        if not allowed:
            return JSONResponse(
                status_code=429,
                content={"detail": {"code": "RATE_LIMITED", "message": "Too many bids from this IP"}},
                headers={"Retry-After": str(retry_after)},
            )

        return await call_next(request)

    async def check(self, redis, key: str) -> tuple[bool, int]:
        """Check and record one request against ``key``.

        Returns:
            Tuple of (allowed, retry_after_seconds)
        """
        now = time.time()
        # Unique member so simultaneous requests don't collapse into one entry
        request_id = f"{now}:{random.randint(0, 999999)}"

        script = self._get_rate_limit_script(redis)
        result = await script(
            keys=[key],
            args=[now, self.window, self.ip_limit, request_id],
        )

        return bool(result[0]), int(result[1])
