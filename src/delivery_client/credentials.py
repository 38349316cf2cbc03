"""Credential gateway implementations.

Both expose ``get_auth_headers()`` for every attempt and ``handle_expiry()``
after a 401, which refreshes the credential once and reports whether a
replay is worth trying.
"""

from __future__ import annotations

import threading
from typing import Callable, Dict, Optional, Protocol

import structlog

from delivery_client.exceptions import AuthExpiredError
from delivery_client.transport import Transport

logger = structlog.get_logger(__name__)

TOKEN_PATH = "auth/token/"
TOKEN_REFRESH_PATH = "auth/token/refresh/"


class CredentialProvider(Protocol):
    def get_auth_headers(self) -> Dict[str, str]: ...

    def handle_expiry(self) -> bool: ...


def _bearer(token: Optional[str]) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"} if token else {}


class SimpleJWTCredentials:
    """Access/refresh pair issued by the service's own token endpoint."""

    def __init__(
        self,
        transport: Transport,
        access: Optional[str] = None,
        refresh: Optional[str] = None,
    ) -> None:
        self._transport = transport
        self._access = access
        self._refresh = refresh
        self._lock = threading.Lock()

    @classmethod
    def login(
        cls, transport: Transport, username: str, password: str
    ) -> SimpleJWTCredentials:
        """Obtain a token pair with username and password.

        Raises:
            AuthExpiredError: the credentials were rejected.
        """
        response = transport.send(
            "POST",
            TOKEN_PATH,
            headers={"Accept": "application/json"},
            json={"username": username, "password": password},
        )
        if not response.ok or not isinstance(response.payload, dict):
            raise AuthExpiredError("Sign-in rejected.")
        logger.info("gateway.signed_in", username=username)
        return cls(
            transport,
            access=response.payload.get("access"),
            refresh=response.payload.get("refresh"),
        )

    @property
    def access_token(self) -> Optional[str]:
        return self._access

    def get_auth_headers(self) -> Dict[str, str]:
        with self._lock:
            return _bearer(self._access)

    def handle_expiry(self) -> bool:
        """Exchange the refresh token for a new access token.

        Transport failures propagate as ``NetworkError``.
        """
        with self._lock:
            if not self._refresh:
                return False
            response = self._transport.send(
                "POST",
                TOKEN_REFRESH_PATH,
                headers={"Accept": "application/json"},
                json={"refresh": self._refresh},
            )
            payload = response.payload if isinstance(response.payload, dict) else {}
            if not response.ok or not payload.get("access"):
                logger.warning("gateway.refresh_rejected", status_code=response.status_code)
                self._access = None
                return False
            self._access = payload["access"]
            # Rotation hands out a new refresh token as well.
            self._refresh = payload.get("refresh", self._refresh)
            return True


class TokenProviderCredentials:
    """Bearer tokens from an external identity SDK.

    ``provider(force_refresh)`` returns the current ID token, or ``None``
    when nobody is signed in; ``force_refresh=True`` asks the SDK for a
    fresh one.
    """

    def __init__(self, provider: Callable[[bool], Optional[str]]) -> None:
        self._provider = provider

    def get_auth_headers(self) -> Dict[str, str]:
        return _bearer(self._provider(False))

    def handle_expiry(self) -> bool:
        return bool(self._provider(True))
