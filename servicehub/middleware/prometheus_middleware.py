"""
Prometheus metrics middleware for HTTP request tracking.

This middleware integrates with the prometheus_metrics module to
track HTTP request metrics including duration, status codes, and
in-progress requests.
"""

import re
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from ..core.constants import SSE_PATH_PREFIX, UPLOADS_URL_PREFIX
from ..monitoring.prometheus_metrics import prometheus_metrics

_ULID_SEGMENT = re.compile(r"^[0-9A-HJKMNP-TV-Z]{26}$")


def normalize_path(raw_path: str) -> str:
    """Collapse ids and upload names so the endpoint label stays low-cardinality."""
    if raw_path.startswith(UPLOADS_URL_PREFIX):
        return f"{UPLOADS_URL_PREFIX}/:file"
    return "/".join(
        ":id" if segment.isdigit() or _ULID_SEGMENT.match(segment) else segment
        for segment in raw_path.split("/")
    )


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware to collect Prometheus metrics for HTTP requests."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # SSE endpoints need direct passthrough to avoid interference with streaming
        if request.url.path == "/metrics/prometheus" or request.url.path.startswith(SSE_PATH_PREFIX):
            return await call_next(request)

        method = request.method
        path = normalize_path(request.url.path)

        prometheus_metrics.track_http_request_start(method, path)
        start_time = time.time()
        try:
            response = await call_next(request)
            prometheus_metrics.record_http_request(
                method=method,
                endpoint=path,
                duration=time.time() - start_time,
                status_code=response.status_code,
            )
            return response
        finally:
            prometheus_metrics.track_http_request_end(method, path)
