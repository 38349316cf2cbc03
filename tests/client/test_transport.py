"""RequestsTransport over a mocked ``requests.Session``."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from delivery_client.credentials import TokenProviderCredentials
from delivery_client.exceptions import ApiDisabledError, NetworkError
from delivery_client.gateway import ApiClient
from delivery_client.transport import RequestsTransport

pytestmark = pytest.mark.client

BASE_URL = "https://delivery.example.edu/api/v1/"


def _response(status_code=200, content=b"", payload=None, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.content = content
    response.text = text
    if isinstance(payload, Exception):
        response.json.side_effect = payload
    else:
        response.json.return_value = payload
    return response


def _transport(session, timeout=10.0):
    return RequestsTransport(BASE_URL, timeout=timeout, session=session)


class TestSend:
    def test_default_timeout_and_joined_url(self):
        session = MagicMock()
        session.request.return_value = _response(content=b"{}", payload={"data": []})

        result = _transport(session, timeout=3.0).send(
            "GET", "/delivery/requests", headers={"Accept": "application/json"}
        )

        session.request.assert_called_once_with(
            "GET",
            "https://delivery.example.edu/api/v1/delivery/requests",
            headers={"Accept": "application/json"},
            json=None,
            timeout=3.0,
        )
        assert result.status_code == 200
        assert result.payload == {"data": []}

    def test_per_request_timeout_overrides_default(self):
        session = MagicMock()
        session.request.return_value = _response(status_code=204)

        _transport(session, timeout=3.0).send(
            "POST", "orders", headers={}, json={"restaurant_name": "Taco Mama"}, timeout=0.5
        )

        assert session.request.call_args.kwargs["timeout"] == 0.5
        assert session.request.call_args.kwargs["json"] == {"restaurant_name": "Taco Mama"}

    @pytest.mark.parametrize(
        "error",
        [
            requests.Timeout("read timed out"),
            requests.ConnectionError("connection refused"),
            requests.exceptions.ChunkedEncodingError("conn dropped mid-body"),
        ],
    )
    def test_requests_failures_become_network_errors(self, error):
        session = MagicMock()
        session.request.side_effect = error

        with pytest.raises(NetworkError) as excinfo:
            _transport(session).send("GET", "delivery/requests", headers={})

        assert excinfo.value.__cause__ is error
        assert "GET delivery/requests failed" in str(excinfo.value)

    def test_non_json_body_is_wrapped_as_error(self):
        session = MagicMock()
        session.request.return_value = _response(
            status_code=502,
            content=b"<html>Bad Gateway</html>",
            payload=ValueError("Expecting value"),
            text="<html>Bad Gateway</html>",
        )

        result = _transport(session).send("GET", "orders", headers={})

        assert result.status_code == 502
        assert result.payload == {"error": "<html>Bad Gateway</html>"}

    def test_empty_body_has_no_payload(self):
        session = MagicMock()
        session.request.return_value = _response(status_code=204)

        result = _transport(session).send("DELETE", "reviews/r1", headers={})

        assert result.payload is None
        assert result.ok
        session.request.return_value.json.assert_not_called()


def test_dropped_body_trips_the_breaker():
    session = MagicMock()
    session.request.side_effect = requests.exceptions.ChunkedEncodingError(
        "conn dropped mid-body"
    )
    api = ApiClient(
        _transport(session), TokenProviderCredentials(lambda force_refresh: "id-token")
    )

    with pytest.raises(NetworkError):
        api.get("delivery/requests")

    assert api.api_status.disabled
    with pytest.raises(ApiDisabledError):
        api.get("delivery/requests")
    assert session.request.call_count == 1
