"""Exception hierarchy for the backend gateway."""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes surfaced in logs and error responses."""

    VALIDATION_ERROR = "validation_error"
    NOT_FOUND = "not_found"
    SERVICE_UNAVAILABLE = "service_unavailable"
    CONNECTION_ERROR = "connection_error"
    INTERNAL_ERROR = "internal_error"


class GatewayException(Exception):
    """Base exception for the gateway."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}


class ValidationException(GatewayException):
    """Request rejected before any backend is touched."""

    def __init__(self, message: str, fields: list[str] | None = None):
        super().__init__(
            message, ErrorCode.VALIDATION_ERROR, {"fields": fields or []}
        )


class NotFoundException(GatewayException):
    """Requested entity does not exist on the storage path used."""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.NOT_FOUND)


class BackendConnectionError(GatewayException):
    """Establishing or using a backend session failed."""

    def __init__(self, message: str, backend: str):
        super().__init__(message, ErrorCode.CONNECTION_ERROR, {"backend": backend})
        self.backend = backend


class ServiceUnavailableException(GatewayException):
    """A capability with no fallback was requested while its backend is down."""

    def __init__(
        self, message: str, backend: str, details: dict[str, Any] | None = None
    ):
        super().__init__(message, ErrorCode.SERVICE_UNAVAILABLE, details)
        self.backend = backend
