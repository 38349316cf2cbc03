"""Credential gateways against the service's token endpoints."""

from __future__ import annotations

import pytest
from freezegun import freeze_time

from delivery_client.credentials import SimpleJWTCredentials, TokenProviderCredentials
from delivery_client.exceptions import AuthExpiredError
from delivery_client.gateway import REQUEST_ID_HEADER, ApiClient

pytestmark = pytest.mark.client


class TestSimpleJWTCredentials:
    def test_login_and_identify(self, customer_user, transport):
        credentials = SimpleJWTCredentials.login(transport, "casey", "casey-pass-123")

        me = ApiClient(transport, credentials).get("me")

        assert me == {"uid": "casey", "role": "user"}
        assert credentials.get_auth_headers()["Authorization"].startswith("Bearer ")

    def test_wrong_password_is_rejected(self, customer_user, transport):
        with pytest.raises(AuthExpiredError):
            SimpleJWTCredentials.login(transport, "casey", "wrong-password")

    def test_expired_access_token_is_refreshed_transparently(self, customer_user, transport):
        with freeze_time("2026-03-02 09:00:00"):
            credentials = SimpleJWTCredentials.login(transport, "casey", "casey-pass-123")
            first_token = credentials.access_token

        with freeze_time("2026-03-02 09:20:00"):
            me = ApiClient(transport, credentials).get("me")

        assert me["uid"] == "casey"
        assert credentials.access_token != first_token
        me_calls = [headers for method, path, headers in transport.requests if path == "me"]
        assert len(me_calls) == 2
        assert me_calls[0][REQUEST_ID_HEADER] == me_calls[1][REQUEST_ID_HEADER]
        assert transport.paths("POST")[-1] == "auth/token/refresh/"

    def test_expired_refresh_token_ends_the_session(self, customer_user, transport):
        with freeze_time("2026-03-02 09:00:00"):
            credentials = SimpleJWTCredentials.login(transport, "casey", "casey-pass-123")

        with freeze_time("2026-03-04 09:00:00"):
            api = ApiClient(transport, credentials)
            with pytest.raises(AuthExpiredError):
                api.get("me")

        assert credentials.get_auth_headers() == {}
        assert not api.api_status.disabled

    def test_without_refresh_token_no_replay(self, transport):
        assert SimpleJWTCredentials(transport, access="a").handle_expiry() is False


class TestTokenProviderCredentials:
    def test_uses_provider_token(self):
        calls = []

        def provider(force_refresh):
            calls.append(force_refresh)
            return "fresh-id-token" if force_refresh else "id-token"

        credentials = TokenProviderCredentials(provider)

        assert credentials.get_auth_headers() == {"Authorization": "Bearer id-token"}
        assert credentials.handle_expiry() is True
        assert calls == [False, True]

    def test_signed_out(self):
        credentials = TokenProviderCredentials(lambda force_refresh: None)

        assert credentials.get_auth_headers() == {}
        assert credentials.handle_expiry() is False
