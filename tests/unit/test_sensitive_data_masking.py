import pytest

from shared.infrastructure.logging import mask_sensitive_data

pytestmark = pytest.mark.unit


class TestSensitiveDataMasking:
    def test_bearer_token_masked(self):
        event_dict = {"event": "test", "header": "Bearer eyJhbGciOi.payload.sig"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "eyJhbGciOi" not in result["header"]
        assert result["header"] == "Bearer ***MASKED***"

    def test_password_masked(self):
        event_dict = {"event": "test", "data": "password='s3cret123'"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "s3cret123" not in result["data"]
        assert "***MASKED***" in result["data"]

    def test_token_masked(self):
        event_dict = {"event": "test", "header": "token=abc123xyz"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "abc123xyz" not in result["header"]
        assert "***MASKED***" in result["header"]

    def test_authorization_with_bearer_masked(self):
        event_dict = {"event": "test", "data": "authorization: Bearer abc.def.ghi"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "abc.def.ghi" not in result["data"]

    def test_sensitive_keys_masked_whole(self):
        event_dict = {"event": "test", "refresh": "rt-123", "password": "hunter2"}
        result = mask_sensitive_data(None, None, event_dict)
        assert result["refresh"] == "***MASKED***"
        assert result["password"] == "***MASKED***"

    def test_non_sensitive_data_unchanged(self):
        event_dict = {"event": "order.claimed", "order_id": "abc", "count": 3}
        result = mask_sensitive_data(None, None, event_dict)
        assert result == {"event": "order.claimed", "order_id": "abc", "count": 3}
