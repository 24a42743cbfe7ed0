"""Request / response logging middleware using structlog.

The request id, method and path are bound to structlog's context
variables for the duration of the request, so engine log lines emitted
while handling it carry them too.
"""

from __future__ import annotations

import time
import uuid

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from filesmith.utils.logging import get_logger

logger = get_logger(__name__)


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs every HTTP request with timing and response status."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:12]
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        start = time.perf_counter()
        logger.info("request_started", query=request.url.query or "")

        try:
            response = await call_next(request)
        except Exception:
            logger.error("request_failed", elapsed_ms=_elapsed_ms(start))
            raise
        finally:
            structlog.contextvars.unbind_contextvars("request_id", "method", "path")

        log_fn = logger.info if response.status_code < 400 else logger.warning
        log_fn(
            "request_completed",
            method=request.method,
            path=request.url.path,
            request_id=request_id,
            status_code=response.status_code,
            elapsed_ms=_elapsed_ms(start),
        )
        response.headers["x-request-id"] = request_id
        return response
