"""Uniform error bodies for the API.

Every failure leaves the API as ``{"error": <message>, "code": <code>}``
with a non-2xx status, whether it came from DRF itself (authentication,
validation, throttling) or from a domain exception translated in a view.
"""

from __future__ import annotations

from typing import Any, Optional

from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

from shared.domain.exceptions import (
    AuthorizationError,
    ConflictError,
    DomainError,
    InvalidTransitionError,
    NotFoundError,
)

DOMAIN_STATUS_CODES: dict[type[DomainError], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    AuthorizationError: status.HTTP_403_FORBIDDEN,
    InvalidTransitionError: status.HTTP_400_BAD_REQUEST,
    ConflictError: status.HTTP_409_CONFLICT,
}


def error_response(message: str, code: str, http_status: int) -> Response:
    return Response({"error": message, "code": code}, status=http_status)


def domain_error_response(exc: DomainError) -> Response:
    """Translate a lifecycle exception into its HTTP response."""
    for error_class, http_status in DOMAIN_STATUS_CODES.items():
        if isinstance(exc, error_class):
            return error_response(str(exc), exc.code, http_status)
    return error_response(str(exc), exc.code, status.HTTP_400_BAD_REQUEST)


def _first_message(detail: Any) -> str:
    if isinstance(detail, dict):
        field, value = next(iter(detail.items()))
        message = _first_message(value)
        if field in {"detail", "non_field_errors"}:
            return message
        return f"{field}: {message}"
    if isinstance(detail, list) and detail:
        return _first_message(detail[0])
    return str(detail)


def api_exception_handler(exc: Exception, context: dict) -> Optional[Response]:
    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, ValidationError):
        code = "invalid"
    else:
        codes = exc.get_codes() if hasattr(exc, "get_codes") else "error"
        code = codes if isinstance(codes, str) else "error"

    response.data = {"error": _first_message(response.data), "code": code}
    return response
