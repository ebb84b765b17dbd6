# servicehub/middleware/timing.py
"""
Request timing middleware for performance monitoring.
"""

from collections.abc import Awaitable, Callable
import logging
import time

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from ..core.constants import SSE_PATH_PREFIX

logger = logging.getLogger(__name__)

SLOW_REQUEST_MS = 500


class TimingMiddleware(BaseHTTPMiddleware):
    """
    Middleware to measure and log request processing time.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        # Streams stay open for minutes; timing them is meaningless
        if request.url.path == "/health" or request.url.path.startswith(SSE_PATH_PREFIX):
            return await call_next(request)

        start_time = time.time()
        response = await call_next(request)
        process_time = (time.time() - start_time) * 1000

        response.headers["X-Process-Time"] = f"{process_time:.2f}ms"
        logger.info(
            f"{request.method} {request.url.path} {response.status_code} {process_time:.2f}ms"
        )
        if process_time > SLOW_REQUEST_MS:
            logger.warning(
                f"Slow request: {request.method} {request.url.path} took {process_time:.2f}ms"
            )

        return response
