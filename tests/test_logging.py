import pytest

from config.settings import mask_sensitive_data


class TestSensitiveDataMasking:
    @pytest.mark.parametrize(
        "key,value,secret",
        [
            ("data", "password='s3cret123'", "s3cret123"),
            ("header", "token=abc123xyz", "abc123xyz"),
            ("auth", "Bearer eyJhbGciOiJIUzI1NiJ9.payload.sig", "eyJhbGciOiJIUzI1NiJ9"),
            ("config", "api_key: k-998877", "k-998877"),
        ],
    )
    def test_secret_masked(self, key, value, secret):
        result = mask_sensitive_data(None, None, {"event": "test", key: value})
        assert secret not in result[key]
        assert "***MASKED***" in result[key]

    def test_non_sensitive_data_unchanged(self):
        event_dict = {"event": "transaction.created", "reference": "SO-20260101-ABC123"}
        result = mask_sensitive_data(None, None, event_dict)
        assert result == {"event": "transaction.created", "reference": "SO-20260101-ABC123"}

    def test_non_string_values_untouched(self):
        result = mask_sensitive_data(None, None, {"event": "x", "quantity": 3})
        assert result["quantity"] == 3
