"""Errors raised by the delivery client.

Lifecycle rule violations reuse the shared taxonomy so code that calls the
engine can catch the same ``ConflictError`` whether the local precheck or
the remote service rejected the operation.
"""

from __future__ import annotations

from typing import Optional

from shared.domain.exceptions import (  # noqa: F401
    AuthorizationError,
    ConflictError,
    DomainError,
    InvalidTransitionError,
    NotFoundError,
)


class DeliveryClientError(Exception):
    """Base class for failures that originate in the client itself."""


class NetworkError(DeliveryClientError):
    """The remote service could not be reached, timed out, or failed (5xx)."""


class ApiDisabledError(NetworkError):
    """The API breaker is tripped; the request was not sent."""


class AuthExpiredError(DeliveryClientError):
    """The credential could not be refreshed, or the replay was rejected."""


class ApiError(DeliveryClientError):
    """The remote service rejected the request for any other reason."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code


class CacheError(DeliveryClientError):
    """The local cache store could not be read or written."""
