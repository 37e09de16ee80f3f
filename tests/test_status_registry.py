"""Tests for edge_mgmt.status_registry.

Tests cover:
- Exact lookups for standard and vendor codes
- Fallback to the class base for unknown codes
- Fallback to 500 when the class base is unknown too
"""

import pytest

from edge_mgmt.status_registry import reason_phrase, status_class


class TestReasonPhrase:
    @pytest.mark.parametrize(
        "code,phrase",
        [
            (200, "OK"),
            (201, "Created"),
            (204, "No Content"),
            (404, "Not Found"),
            (408, "Request Time-out"),
            (418, "I'm a teapot"),
            (499, "Client Closed Request"),
            (503, "Service Unavailable"),
            (599, "Network connect timeout error"),
        ],
    )
    def test_known_codes(self, code, phrase):
        assert reason_phrase(code) == phrase

    def test_unknown_code_uses_class_base(self):
        assert reason_phrase(432) == "Bad Request"
        assert reason_phrase(299) == "OK"
        assert reason_phrase(520) == "Internal Server Error"

    def test_unknown_class_falls_back_to_500(self):
        assert reason_phrase(600) == "Internal Server Error"
        assert reason_phrase(0) == "Internal Server Error"
        assert reason_phrase(999) == "Internal Server Error"


class TestStatusClass:
    @pytest.mark.parametrize("code,expected", [(100, 1), (200, 2), (299, 2), (301, 3), (404, 4), (503, 5)])
    def test_integer_division(self, code, expected):
        assert status_class(code) == expected
