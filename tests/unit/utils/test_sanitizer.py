"""
Tests for sensitive data masking.
"""

import pytest

from natural_api.utils import REDACTED, mask_headers, mask_sensitive_data


class TestMaskSensitiveData:
    """Tests for mask_sensitive_data."""

    @pytest.mark.parametrize("key", [
        "password", "Authorization", "X-Auth-Token", "access_token", "Set-Cookie", "client_secret",
    ])
    def test_sensitive_keys(self, key):
        assert mask_sensitive_data({key: "value"}) == {key: REDACTED}

    def test_plain_keys_untouched(self):
        data = {"page": 1, "name": "Bob", "active": True, "score": 1.5, "tags": None}
        assert mask_sensitive_data(data) == data

    def test_nested(self):
        data = {"user": {"name": "alice", "credentials": {"pwd": "x"}}, "items": [{"token": "t"}]}
        assert mask_sensitive_data(data) == {
            "user": {"name": "alice", "credentials": REDACTED},
            "items": [{"token": REDACTED}],
        }

    def test_original_not_modified(self):
        data = {"password": "pw"}
        mask_sensitive_data(data)
        assert data == {"password": "pw"}

    @pytest.mark.parametrize("text,expected", [
        ("Bearer abc.def-ghi", f"Bearer {REDACTED}"),
        ("Basic dXNlcjpwdw==", f"Basic {REDACTED}"),
        ("https://h/x?token=abc123&page=1", f"https://h/x?token={REDACTED}&page=1"),
        ("api_key=k1", f"api_key={REDACTED}"),
        ("password: hunter2", f"password: {REDACTED}"),
        ("nothing to hide", "nothing to hide"),
    ])
    def test_strings(self, text, expected):
        assert mask_sensitive_data(text) == expected

    def test_tuple_type_kept(self):
        assert mask_sensitive_data(("Bearer t", 1)) == (f"Bearer {REDACTED}", 1)

    def test_custom_mask(self):
        assert mask_sensitive_data({"token": "t"}, mask="***") == {"token": "***"}

    def test_other_objects_returned_as_is(self):
        marker = object()
        assert mask_sensitive_data(marker) is marker


class TestMaskHeaders:
    """Tests for mask_headers."""

    def test_headers(self):
        headers = {"Authorization": "Bearer t", "Cookie": "sid=1", "Accept": "application/json"}
        assert mask_headers(headers) == {
            "Authorization": REDACTED,
            "Cookie": REDACTED,
            "Accept": "application/json",
        }
