"""Error handling and response standardization for the API.

Every error leaves the gateway in the same envelope:
``{"success": false, "error": <message>}``, with a few extra keys where the
caller needs them (``path`` for unknown routes, the counter or queue for
capabilities without a fallback).
"""

from typing import Any

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend_gateway.domain.exceptions import (
    GatewayException,
    NotFoundException,
    ServiceUnavailableException,
    ValidationException,
)

logger = structlog.get_logger(__name__)


def create_error_response(
    message: str, status_code: int, extra: dict[str, Any] | None = None
) -> JSONResponse:
    """Create standardized error response."""
    content: dict[str, Any] = {"success": False, "error": message}
    if extra:
        content.update(extra)
    return JSONResponse(status_code=status_code, content=content)


async def request_validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed request bodies are client errors, not 422s."""
    fields = [".".join(str(loc) for loc in error["loc"]) for error in exc.errors()]
    logger.info("Request validation failed", path=request.url.path, fields=fields)
    return create_error_response("Invalid request body", status.HTTP_400_BAD_REQUEST)


async def validation_exception_handler(
    request: Request, exc: ValidationException
) -> JSONResponse:
    return create_error_response(exc.message, status.HTTP_400_BAD_REQUEST)


async def not_found_exception_handler(
    request: Request, exc: NotFoundException
) -> JSONResponse:
    return create_error_response(exc.message, status.HTTP_404_NOT_FOUND)


async def service_unavailable_exception_handler(
    request: Request, exc: ServiceUnavailableException
) -> JSONResponse:
    """Capability has no fallback and its backend is down."""
    return create_error_response(
        exc.message, status.HTTP_503_SERVICE_UNAVAILABLE, extra=exc.details
    )


async def gateway_exception_handler(
    request: Request, exc: GatewayException
) -> JSONResponse:
    logger.error(
        "Unhandled gateway error",
        path=request.url.path,
        code=exc.error_code.value,
        error=exc.message,
    )
    return create_error_response(
        "Internal server error", status.HTTP_500_INTERNAL_SERVER_ERROR
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Unknown routes and other framework-level HTTP errors."""
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return create_error_response(
            "Endpoint not found",
            status.HTTP_404_NOT_FOUND,
            extra={"path": request.url.path},
        )
    return create_error_response(str(exc.detail), exc.status_code)


async def unexpected_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception(
        "Unexpected error", path=request.url.path, error_type=type(exc).__name__
    )
    return create_error_response(
        "Internal server error", status.HTTP_500_INTERNAL_SERVER_ERROR
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach every handler above to ``app``."""
    app.add_exception_handler(
        RequestValidationError,
        request_validation_exception_handler,  # type: ignore[arg-type]
    )
    app.add_exception_handler(
        ValidationException, validation_exception_handler  # type: ignore[arg-type]
    )
    app.add_exception_handler(
        NotFoundException, not_found_exception_handler  # type: ignore[arg-type]
    )
    app.add_exception_handler(
        ServiceUnavailableException,
        service_unavailable_exception_handler,  # type: ignore[arg-type]
    )
    app.add_exception_handler(
        GatewayException, gateway_exception_handler  # type: ignore[arg-type]
    )
    app.add_exception_handler(
        StarletteHTTPException, http_exception_handler  # type: ignore[arg-type]
    )
    app.add_exception_handler(Exception, unexpected_exception_handler)
