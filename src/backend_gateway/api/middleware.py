"""Custom middleware for the backend gateway."""

import time

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from backend_gateway.observability.logging.correlation import (
    generate_correlation_id,
    reset_correlation_id,
    set_correlation_id,
)

logger = structlog.get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """Middleware to add correlation IDs to requests and responses."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        """Add correlation ID to request, log context and response."""
        correlation_id = request.headers.get(CORRELATION_HEADER) or (
            generate_correlation_id()
        )
        request.state.correlation_id = correlation_id

        token = set_correlation_id(correlation_id)
        try:
            response = await call_next(request)
        finally:
            reset_correlation_id(token)

        response.headers[CORRELATION_HEADER] = correlation_id
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log one line per request."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        process_time = time.perf_counter() - start_time

        response.headers["X-Process-Time"] = f"{process_time:.6f}"

        logger.info(
            "Request processed",
            method=request.method,
            path=request.url.path,
            client_ip=request.client.host if request.client else None,
            status_code=response.status_code,
            duration_ms=round(process_time * 1000, 2),
        )
        return response
