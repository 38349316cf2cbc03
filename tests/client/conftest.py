"""Fixtures driving the delivery client against the in-process API.

``DjangoTestTransport`` routes the client's requests through DRF's test
client, so engine and reconciler tests exercise the real views, services
and database.  ``InlineExecutor`` runs background work synchronously, so a
read's refresh has completed by the time the read returns.
"""

from __future__ import annotations

import json
from concurrent.futures import Executor, Future

import pytest

from rest_framework.test import APIClient

from delivery_client.cache import InMemoryCacheStore
from delivery_client.credentials import SimpleJWTCredentials
from delivery_client.exceptions import NetworkError
from delivery_client.gateway import ApiClient, ApiStatus
from delivery_client.transport import TransportResponse
from shared.domain.lifecycle import Actor

API_PREFIX = "/api/v1/"


class DjangoTestTransport:
    def __init__(self, client=None):
        self.client = client or APIClient()
        self.offline = False
        self.requests = []

    def send(self, method, path, headers, json=None, timeout=None):
        self.requests.append((method, path, dict(headers)))
        if self.offline:
            raise NetworkError(f"{method} {path} failed: connection refused")

        extra = {
            "HTTP_" + name.upper().replace("-", "_"): value
            for name, value in headers.items()
        }
        body = _dumps(json) if json is not None else None
        response = self.client.generic(
            method,
            API_PREFIX + path.lstrip("/"),
            data=body or "",
            content_type="application/json",
            **extra,
        )
        payload = response.json() if response.content else None
        return TransportResponse(status_code=response.status_code, payload=payload)

    def paths(self, method=None):
        return [path for m, path, _ in self.requests if method is None or m == method]


def _dumps(payload):
    return json.dumps(payload, default=str)


class InlineExecutor(Executor):
    """Runs every submitted call before ``submit`` returns."""

    def submit(self, fn, /, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except BaseException as exc:
            future.set_exception(exc)
        return future


@pytest.fixture()
def transport():
    return DjangoTestTransport()


@pytest.fixture()
def inline_executor():
    return InlineExecutor()


@pytest.fixture()
def store():
    return InMemoryCacheStore()


@pytest.fixture()
def api_for():
    """Factory: an ``ApiClient`` signed in as *username* with SimpleJWT.

    Each client gets its own transport and breaker unless one is passed.
    """

    def _make(username, password, api_status=None, client_transport=None):
        client_transport = client_transport or DjangoTestTransport()
        credentials = SimpleJWTCredentials.login(client_transport, username, password)
        return ApiClient(client_transport, credentials, api_status=api_status or ApiStatus())

    return _make


@pytest.fixture()
def deliverer_api(api_for, deliverer_user, transport):
    return api_for("dana", "dana-pass-123", client_transport=transport)


@pytest.fixture()
def customer_api(api_for, customer_user):
    return api_for("casey", "casey-pass-123")


@pytest.fixture()
def deliverer_actor(deliverer_user):
    return Actor(uid=deliverer_user.username)


@pytest.fixture()
def customer_actor(customer_user):
    return Actor(uid=customer_user.username)
