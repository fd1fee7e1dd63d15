"""Metrics middleware for request instrumentation.

Records HTTP request counts and latency to Prometheus.
"""

import time
from collections.abc import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from src.bootstrap.metrics import get_metrics_collector


def _endpoint_label(request: Request) -> str:
    """Route template of the request, e.g. /v1/certifications/{asset_id}."""
    route = request.scope.get("route")
    path = getattr(route, "path", None)
    return path or request.url.path


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware to record HTTP request metrics.

    Labels use the route template rather than the raw path so that asset
    ids do not create one series per asset.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start_time

        get_metrics_collector().observe_http_request(
            method=request.method,
            endpoint=_endpoint_label(request),
            status=response.status_code,
            seconds=duration,
        )
        return response
