"""Request logging middleware.

Each request runs under the correlation id from ``X-Correlation-ID`` (a
new one is generated when absent) and echoes it back on the response. The
gateway-asserted caller id is bound into structlog's contextvars, so
controller and ledger log lines emitted while serving the request carry
it without explicit passing. Bearer tokens are never logged; only whether
one was presented.

Health and metrics endpoints (/health, /metrics) are not logged.

Usage:
    app.add_middleware(LoggingMiddleware)
"""

import time
from collections.abc import Awaitable, Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from src.infrastructure.observability.correlation import correlation_scope

CORRELATION_HEADER = "X-Correlation-ID"
CALLER_ID_HEADER = "X-Caller-Id"
QUIET_PATHS: frozenset[str] = frozenset({"/health", "/metrics"})

logger = structlog.get_logger()


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Correlation id propagation and request start/end logging."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        quiet = request.url.path in QUIET_PATHS
        with correlation_scope(request.headers.get(CORRELATION_HEADER)) as cid:
            with structlog.contextvars.bound_contextvars(
                caller_id=request.headers.get(CALLER_ID_HEADER),
                bearer_presented="authorization" in request.headers,
            ):
                log = logger.bind(method=request.method, path=request.url.path)
                if not quiet:
                    log.info("request_started")
                started = time.perf_counter()

                try:
                    response = await call_next(request)
                except Exception as exc:
                    log.exception(
                        "request_failed",
                        duration_ms=_elapsed_ms(started),
                        error_type=type(exc).__name__,
                    )
                    raise

                if not quiet:
                    log.info(
                        "request_completed",
                        status_code=response.status_code,
                        duration_ms=_elapsed_ms(started),
                    )

        response.headers[CORRELATION_HEADER] = cid
        return response
