"""HTTP transport seam of the credential gateway.

``ApiClient`` only needs ``send``; swapping the transport lets tests drive
the real service in-process and lets embedders plug in their own session.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

import requests
import structlog

from delivery_client.exceptions import NetworkError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class TransportResponse:
    status_code: int
    payload: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400


class Transport(Protocol):
    def send(
        self,
        method: str,
        path: str,
        headers: Dict[str, str],
        json: Optional[Any] = None,
        timeout: Optional[float] = None,
    ) -> TransportResponse: ...


class RequestsTransport:
    """``requests.Session`` based transport with a hard per-request timeout."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def send(
        self,
        method: str,
        path: str,
        headers: Dict[str, str],
        json: Optional[Any] = None,
        timeout: Optional[float] = None,
    ) -> TransportResponse:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            response = self.session.request(
                method,
                url,
                headers=headers,
                json=json,
                timeout=timeout or self.timeout,
            )
        except requests.RequestException as exc:
            raise NetworkError(f"{method} {path} failed: {exc}") from exc

        payload: Any = None
        if response.content:
            try:
                payload = response.json()
            except ValueError:
                logger.warning(
                    "transport.non_json_body",
                    path=path,
                    status_code=response.status_code,
                )
                payload = {"error": response.text[:200]}
        return TransportResponse(status_code=response.status_code, payload=payload)
