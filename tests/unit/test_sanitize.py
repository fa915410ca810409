"""Tests for sensitive-field redaction."""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from src.automation.core.sanitize import is_sensitive_key, sanitize_payload

pytestmark = pytest.mark.unit

PATTERNS = ("password", "secret", "key", "token")

json_scalars = st.none() | st.booleans() | st.integers() | st.text(max_size=20)
json_values = st.recursive(
    json_scalars,
    lambda children: st.lists(children, max_size=4)
    | st.dictionaries(st.text(max_size=12), children, max_size=4),
    max_leaves=20,
)


def _sensitive_values(value):
    """Yield every value stored under a sensitive key, at any depth."""
    if isinstance(value, dict):
        for k, v in value.items():
            if is_sensitive_key(k, PATTERNS):
                yield v
            else:
                yield from _sensitive_values(v)
    elif isinstance(value, list):
        for item in value:
            yield from _sensitive_values(item)


class TestIsSensitiveKey:
    @pytest.mark.parametrize(
        "key",
        ["password", "Password", "apiKey", "API_KEY", "refresh_token", "clientSecret", "keyring"],
    )
    def test_sensitive(self, key):
        assert is_sensitive_key(key, PATTERNS)

    @pytest.mark.parametrize("key", ["address", "price", "bedrooms", "email", "name"])
    def test_not_sensitive(self, key):
        assert not is_sensitive_key(key, PATTERNS)


class TestSanitizePayload:
    def test_redacts_nested_keys(self):
        """Sensitive keys are redacted inside nested dicts and lists."""
        data = {
            "address": "1 Main St",
            "credentials": {"apiKey": "abc", "username": "agent"},
            "integrations": [{"name": "crm", "accessToken": "t0k"}],
            "password": "hunter2",
        }

        result = sanitize_payload(data, PATTERNS, "[REDACTED]")

        assert result == {
            "address": "1 Main St",
            "credentials": {"apiKey": "[REDACTED]", "username": "agent"},
            "integrations": [{"name": "crm", "accessToken": "[REDACTED]"}],
            "password": "[REDACTED]",
        }

    def test_does_not_mutate_input(self):
        data = {"secret": "s", "nested": {"token": "t"}}

        sanitize_payload(data, PATTERNS, "[REDACTED]")

        assert data == {"secret": "s", "nested": {"token": "t"}}

    def test_none_passes_through(self):
        assert sanitize_payload(None) is None

    def test_unserializable_input_becomes_empty(self):
        """Values the store cannot hold are replaced with an empty dict."""
        assert sanitize_payload({"callback": object()}, PATTERNS, "[REDACTED]") == {}

    def test_uses_settings_defaults(self):
        assert sanitize_payload({"apiKey": "x"}) == {"apiKey": "[REDACTED]"}

    @given(json_values)
    def test_no_sensitive_value_survives(self, data):
        """Every value under a sensitive key is the placeholder after sanitization."""
        result = sanitize_payload(data, PATTERNS, "[REDACTED]")

        assert all(value == "[REDACTED]" for value in _sensitive_values(result))

    @given(json_values)
    def test_idempotent(self, data):
        once = sanitize_payload(data, PATTERNS, "[REDACTED]")
        assert sanitize_payload(once, PATTERNS, "[REDACTED]") == once
