# servicehub/middleware/rate_limiter.py
"""
Rate limiting for the ServiceHub API.

Sliding-window limits kept in Redis sorted sets, keyed by client IP:
- general: every API request except health and metrics
- auth: login and register, much tighter, applied as a route dependency

If Redis is unreachable requests are allowed and a warning is logged;
the limiter then stays out of the way for a short backoff before trying
Redis again.
"""

import hashlib
import logging
import time
from typing import Callable, Optional, Tuple

from fastapi import HTTPException, Request, Response, status
from fastapi.responses import JSONResponse
from redis import Redis
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware

from ..core.config import settings
from ..core.redis import get_redis_client
from ..monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

SKIP_PATHS = ("/health", "/metrics/prometheus")
REDIS_BACKOFF_SECONDS = 30.0


class RateLimiter:
    """
    Core rate limiting logic using sliding window algorithm.
    """

    def __init__(self, redis_client: Optional[Redis] = None, enabled: Optional[bool] = None):
        self._redis = redis_client
        self.enabled = settings.rate_limit_enabled if enabled is None else enabled
        self._unavailable_until = 0.0

    @property
    def redis(self) -> Redis:
        if self._redis is None:
            self._redis = get_redis_client()
        return self._redis

    @staticmethod
    def _get_cache_key(identifier: str, window_name: str) -> str:
        # Hash long identifiers to keep keys reasonable
        if len(identifier) > 32:
            identifier = hashlib.md5(identifier.encode()).hexdigest()[:16]
        return f"rate_limit:{window_name}:{identifier}"

    def check_rate_limit(
        self, identifier: str, limit: int, window_seconds: int, window_name: str
    ) -> Tuple[bool, int, int]:
        """
        Check if request is within rate limit using sliding window.

        Returns:
            Tuple of (allowed, requests_made, retry_after_seconds)
        """
        if not self.enabled:
            return True, 0, 0

        now = time.time()
        if now < self._unavailable_until:
            return True, 0, 0

        cache_key = self._get_cache_key(identifier, window_name)
        try:
            pipe = self.redis.pipeline()
            pipe.zremrangebyscore(cache_key, 0, now - window_seconds)
            pipe.zcard(cache_key)
            pipe.zadd(cache_key, {str(now): now})
            pipe.expire(cache_key, window_seconds + 60)
            results = pipe.execute()

            # Count before the current request was added
            requests_in_window = int(results[1])
            if requests_in_window >= limit:
                oldest = self.redis.zrange(cache_key, 0, 0, withscores=True)
                if oldest:
                    retry_after = max(1, int(oldest[0][1] + window_seconds - now))
                else:
                    retry_after = window_seconds
                self.redis.zrem(cache_key, str(now))
                return False, requests_in_window, retry_after

            return True, requests_in_window + 1, 0
        except RedisError as e:
            self._unavailable_until = now + REDIS_BACKOFF_SECONDS
            logger.warning(f"Rate limiting bypassed - Redis unavailable: {e}")
            return True, 0, 0


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def _limit_headers(limit: int, retry_after: int) -> dict:
    return {
        "Retry-After": str(retry_after),
        "X-RateLimit-Limit": str(limit),
        "X-RateLimit-Remaining": "0",
        "X-RateLimit-Reset": str(int(time.time()) + retry_after),
    }


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    FastAPI middleware for rate limiting.

    Applies the general limit to all API endpoints.
    """

    def __init__(self, app, rate_limiter: Optional[RateLimiter] = None):
        super().__init__(app)
        self.rate_limiter = rate_limiter or RateLimiter()
        self.general_limit = settings.rate_limit_general_per_window
        self.window_seconds = settings.rate_limit_window_seconds

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not self.rate_limiter.enabled or request.url.path in SKIP_PATHS:
            return await call_next(request)

        allowed, _, retry_after = self.rate_limiter.check_rate_limit(
            identifier=_client_ip(request),
            limit=self.general_limit,
            window_seconds=self.window_seconds,
            window_name="general",
        )
        if not allowed:
            prometheus_metrics.inc_rate_limit_rejection("general")
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={
                    "detail": "Too many requests from this IP, please try again later.",
                    "code": "RATE_LIMIT_EXCEEDED",
                    "retry_after": retry_after,
                },
                headers=_limit_headers(self.general_limit, retry_after),
            )

        return await call_next(request)


_auth_limiter: Optional[RateLimiter] = None


def get_auth_rate_limiter() -> RateLimiter:
    global _auth_limiter
    if _auth_limiter is None:
        _auth_limiter = RateLimiter()
    return _auth_limiter


async def auth_rate_limit(request: Request) -> None:
    """
    Route dependency for login and register.

    Raises:
        HTTPException: 429 once the client exceeds the auth window
    """
    limiter = get_auth_rate_limiter()
    if not limiter.enabled:
        return

    limit = settings.rate_limit_auth_per_window
    allowed, _, retry_after = limiter.check_rate_limit(
        identifier=_client_ip(request),
        limit=limit,
        window_seconds=settings.rate_limit_window_seconds,
        window_name="auth",
    )
    if not allowed:
        prometheus_metrics.inc_rate_limit_rejection("auth")
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many authentication attempts, please try again later.",
            headers=_limit_headers(limit, retry_after),
        )
