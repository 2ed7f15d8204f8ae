"""Error taxonomy shared by the pipeline, the adapters and the endpoint handlers.

Every failure a handler or pipeline step can produce is one of a small,
closed set of kinds. The pipeline boundary turns the kind into an HTTP status
through ``STATUS_BY_KIND``; the message text never influences the status.
"""
from __future__ import annotations

from enum import Enum
from typing import Dict, Optional


class ErrorKind(str, Enum):
    CONFIGURATION = "configuration"
    UNAUTHENTICATED = "unauthenticated"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    UPSTREAM = "upstream"


STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.CONFIGURATION: 500,
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.UPSTREAM: 500,
}

DEFAULT_ERROR_STATUS = 500
DEFAULT_ERROR_MESSAGE = "Internal server error"


class ApiError(Exception):
    """Base class for failures that are reported to the client.

    Attributes:
        message: Human readable text placed in the ``error`` field
        kind: Classification used to pick the response status
    """

    kind: ErrorKind = ErrorKind.UPSTREAM

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]


class ConfigurationError(ApiError):
    """A required setting is absent."""

    kind = ErrorKind.CONFIGURATION


class UnauthenticatedError(ApiError):
    """Missing, malformed, invalid or expired credentials."""

    kind = ErrorKind.UNAUTHENTICATED


class ValidationError(ApiError):
    """Missing or invalid request fields and query parameters."""

    kind = ErrorKind.VALIDATION


class NotFoundError(ApiError):
    kind = ErrorKind.NOT_FOUND


class ForbiddenError(ApiError):
    """The authenticated identity does not own the requested resource."""

    kind = ErrorKind.FORBIDDEN


class UpstreamError(ApiError):
    """An external call failed for a reason not covered by another kind.

    Attributes:
        upstream_status: HTTP status returned by the external service, if any
    """

    kind = ErrorKind.UPSTREAM

    def __init__(self, message: str, upstream_status: Optional[int] = None) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status


class IdentityProviderError(UpstreamError):
    """Raised when the identity provider rejects a request or is unreachable."""


class DataStoreError(UpstreamError):
    """Raised when the data store rejects a request or is unreachable."""


def status_for(exc: BaseException) -> int:
    """Map any exception to the status code reported to the client."""
    if isinstance(exc, ApiError):
        return exc.status_code
    return DEFAULT_ERROR_STATUS


def message_for(exc: BaseException) -> str:
    if isinstance(exc, ApiError):
        return exc.message or DEFAULT_ERROR_MESSAGE
    return str(exc) or DEFAULT_ERROR_MESSAGE
