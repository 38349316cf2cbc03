"""Authenticated requests with a single refresh-and-replay.

Each request runs as ``Attempt.FIRST``.  A 401 on the first attempt asks
the credential provider to refresh and, if it did, replays the request
once as ``Attempt.RETRIED`` with the same ``X-Request-ID``.  A 401 on the
replay is final.

A 5xx response, a timeout or a connection failure trips the shared
``ApiStatus``.  While it is tripped every request fails fast with
``ApiDisabledError`` and nothing is sent until ``reset()`` is called.
"""

from __future__ import annotations

import threading
import uuid
from enum import Enum
from typing import Any, Dict, Optional

import structlog

from delivery_client.credentials import CredentialProvider
from delivery_client.exceptions import (
    ApiDisabledError,
    ApiError,
    AuthExpiredError,
    AuthorizationError,
    ConflictError,
    DomainError,
    InvalidTransitionError,
    NetworkError,
    NotFoundError,
)
from delivery_client.transport import Transport, TransportResponse

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class Attempt(Enum):
    FIRST = "first"
    RETRIED = "retried"


class ApiStatus:
    """Process-wide breaker shared by every client of one service."""

    def __init__(self) -> None:
        self._disabled = threading.Event()
        self._reason: Optional[str] = None

    @property
    def disabled(self) -> bool:
        return self._disabled.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def trip(self, reason: str) -> None:
        if not self._disabled.is_set():
            logger.warning("api.disabled", reason=reason)
        self._reason = reason
        self._disabled.set()

    def reset(self) -> None:
        if self._disabled.is_set():
            logger.info("api.enabled")
        self._reason = None
        self._disabled.clear()


def _error_for(response: TransportResponse) -> Exception:
    payload = response.payload if isinstance(response.payload, dict) else {}
    message = payload.get("error") or payload.get("detail") or "Request failed."
    code = payload.get("code")
    status_code = response.status_code

    if status_code == 404:
        return NotFoundError(message)
    if status_code == 403:
        return AuthorizationError(message)
    if status_code == 409:
        return ConflictError(message)
    if status_code == 400 and code == InvalidTransitionError.code:
        return InvalidTransitionError(message)
    return ApiError(message, status_code=status_code, code=code)


class ApiClient:
    """JSON client for the order service.

    Successful bodies are unwrapped from their ``{"data": ...}`` envelope.
    Failures come back as the shared lifecycle errors where the status maps
    onto one, ``ApiError`` otherwise.
    """

    def __init__(
        self,
        transport: Transport,
        credentials: CredentialProvider,
        api_status: Optional[ApiStatus] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.transport = transport
        self.credentials = credentials
        self.api_status = api_status or ApiStatus()
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Verbs
    # ------------------------------------------------------------------

    def get(self, path: str, **kwargs: Any) -> Any:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, json: Optional[Any] = None, **kwargs: Any) -> Any:
        return self.request("POST", path, json=json, **kwargs)

    def put(self, path: str, json: Optional[Any] = None, **kwargs: Any) -> Any:
        return self.request("PUT", path, json=json, **kwargs)

    def delete(self, path: str, **kwargs: Any) -> Any:
        return self.request("DELETE", path, **kwargs)

    def request(
        self,
        method: str,
        path: str,
        json: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        if self.api_status.disabled:
            raise ApiDisabledError(
                f"API disabled ({self.api_status.reason}); {method} {path} not sent."
            )
        request_id = str(uuid.uuid4())
        return self._send(method, path, json, headers or {}, request_id, Attempt.FIRST)

    # ------------------------------------------------------------------
    # Protocol
    # ------------------------------------------------------------------

    def _send(
        self,
        method: str,
        path: str,
        json: Optional[Any],
        extra_headers: Dict[str, str],
        request_id: str,
        attempt: Attempt,
    ) -> Any:
        log = logger.bind(
            method=method, path=path, request_id=request_id, attempt=attempt.value
        )
        headers = {
            "Accept": "application/json",
            REQUEST_ID_HEADER: request_id,
            **self.credentials.get_auth_headers(),
            **extra_headers,
        }

        try:
            response = self.transport.send(
                method, path, headers=headers, json=json, timeout=self.timeout
            )
        except NetworkError as exc:
            self.api_status.trip(str(exc))
            log.warning("gateway.network_error", error=str(exc))
            raise

        if response.status_code == 401:
            if attempt is Attempt.FIRST:
                try:
                    refreshed = self.credentials.handle_expiry()
                except NetworkError as exc:
                    self.api_status.trip(str(exc))
                    raise
                if refreshed:
                    log.info("gateway.token_refreshed")
                    return self._send(
                        method, path, json, extra_headers, request_id, Attempt.RETRIED
                    )
            log.warning("gateway.auth_expired")
            raise AuthExpiredError("Session expired; please sign in again.")

        if response.status_code >= 500:
            reason = f"{method} {path} returned {response.status_code}"
            self.api_status.trip(reason)
            raise NetworkError(reason)

        if response.ok:
            payload = response.payload
            if isinstance(payload, dict) and "data" in payload:
                return payload["data"]
            return payload

        error = _error_for(response)
        if isinstance(error, DomainError):
            log.info("gateway.rejected", status_code=response.status_code, code=error.code)
        else:
            log.warning("gateway.failed", status_code=response.status_code)
        raise error
