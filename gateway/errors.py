"""
Error kinds and the exceptions raised at the request boundary.

Upstream clients never raise: they report an ErrorKind inside a FetchResult.
The cache manager turns a failed aggregation into one of the exceptions
below, and the FastAPI handlers render them as error envelopes.
"""
from enum import Enum
from typing import Any, Optional


class ErrorKind(Enum):
    """Why an upstream call or an aggregation failed."""
    NOT_FOUND = "not_found"
    UNAVAILABLE = "unavailable"
    BAD_RESPONSE = "bad_response"
    VALIDATION = "validation"
    INTERNAL = "internal"


class GatewayError(Exception):
    """Base class for errors that map onto an HTTP error response."""
    status_code = 500
    error_code = "INTERNAL_ERROR"
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, errors: Any = None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)


class NotFoundError(GatewayError):
    status_code = 404
    error_code = "NOT_FOUND"
    default_message = "Resource not found"


class UpstreamUnavailableError(GatewayError):
    status_code = 503
    error_code = "SERVICE_UNAVAILABLE"
    default_message = "Upstream service unavailable"


class BadGatewayError(GatewayError):
    status_code = 502
    error_code = "SERVICE_BAD_GATEWAY"
    default_message = "Upstream service returned an invalid response"


class RequestValidationFailed(GatewayError):
    status_code = 422
    error_code = "VALIDATION_ERROR"
    default_message = "Validation failed"


class InternalError(GatewayError):
    pass


class RateLimitedError(GatewayError):
    status_code = 429
    error_code = "RATE_LIMITED"
    default_message = "Too many requests"

    def __init__(self, retry_after: int, message: Optional[str] = None):
        super().__init__(message)
        self.retry_after = retry_after


_ERRORS_BY_KIND = {
    ErrorKind.NOT_FOUND: NotFoundError,
    ErrorKind.UNAVAILABLE: UpstreamUnavailableError,
    ErrorKind.BAD_RESPONSE: BadGatewayError,
    ErrorKind.VALIDATION: RequestValidationFailed,
    ErrorKind.INTERNAL: InternalError,
}


def error_for(kind: ErrorKind, message: Optional[str] = None) -> GatewayError:
    """Build the exception that represents `kind` at the HTTP boundary."""
    return _ERRORS_BY_KIND.get(kind, InternalError)(message)
