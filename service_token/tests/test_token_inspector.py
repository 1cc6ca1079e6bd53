"""
Unit tests for the token status inspector.
"""

import base64
import json

import pytest

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from service_token.app.validation.token_inspector import (
    TokenInspector,
    decode_payload,
    decode_segment,
)
from shared.errors import InvalidTokenFormat
from shared.test_helpers import MockTokenGenerator, create_mock_jwt_token


NOW = 1_700_000_000


def make_token(payload, urlsafe=True, padded=False):
    """Build header.payload.signature around a raw payload."""
    raw = json.dumps(payload).encode()
    encoded = base64.urlsafe_b64encode(raw) if urlsafe else base64.b64encode(raw)
    if not padded:
        encoded = encoded.rstrip(b"=")
    return f"eyJhbGciOiJIUzI1NiJ9.{encoded.decode()}.signature"


def make_raw_token(raw_payload):
    """Build a token around payload text that json.dumps would not produce."""
    encoded = base64.urlsafe_b64encode(raw_payload.encode()).rstrip(b"=")
    return f"eyJhbGciOiJIUzI1NiJ9.{encoded.decode()}.signature"


class TestDecodePayload:
    """Test cases for payload decoding."""

    def test_decode_segment_accepts_both_alphabets(self):
        raw = b"\xfb\xff\xfe"
        assert decode_segment(base64.urlsafe_b64encode(raw).decode()) == raw
        assert decode_segment(base64.b64encode(raw).decode()) == raw

    def test_decode_segment_without_padding(self):
        assert decode_segment("YWI") == b"ab"

    def test_decode_pyjwt_token(self):
        token = create_mock_jwt_token(exp=NOW, iat=NOW - 1, sub="user-1")
        assert decode_payload(token) == {"exp": NOW, "iat": NOW - 1, "sub": "user-1"}

    def test_decode_padded_standard_base64(self):
        token = make_token({"exp": NOW, "name": "??>>"}, urlsafe=False, padded=True)
        assert decode_payload(token)["name"] == "??>>"

    def test_two_segments_are_enough(self):
        token = make_token({"exp": NOW}).rsplit(".", 1)[0]
        assert decode_payload(token) == {"exp": NOW}

    @pytest.mark.parametrize("token", [
        "",
        "no-dots-here",
        "header..signature",
        "header.@@@@.signature",
        "header.Zm9v.signature.extra",
        "header.W10.signature",
        "header.MTIz.signature",
        "header.gA.signature",
    ])
    def test_invalid_tokens(self, token):
        with pytest.raises(InvalidTokenFormat) as exc_info:
            decode_payload(token)
        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "Invalid token format."

    @pytest.mark.parametrize("raw_payload", [
        '{"exp": NaN}',
        '{"exp": 1, "iat": Infinity}',
        '{"exp": -Infinity}',
        '{"sub": "x", "extra": [NaN]}',
    ])
    def test_non_standard_constants_are_rejected(self, raw_payload):
        with pytest.raises(InvalidTokenFormat):
            decode_payload(make_raw_token(raw_payload))


class TestTokenInspector:
    """Test cases for TokenInspector."""

    @pytest.fixture
    def inspector(self):
        return TokenInspector(clock=lambda: NOW + 0.9)

    def test_now_is_floored(self, inspector):
        assert inspector.now() == NOW

    def test_valid_token(self, inspector):
        status = inspector.inspect(make_token({"exp": NOW + 100, "iat": NOW - 10}))
        assert status.model_dump() == {
            "valid": True,
            "expires_at": NOW + 100,
            "time_left_seconds": 100,
            "issued_at": NOW - 10,
        }

    def test_expired_token(self, inspector):
        status = inspector.inspect(make_token({"exp": NOW - 50, "iat": NOW - 500}))
        assert status.valid is False
        assert status.time_left_seconds == -50

    def test_expiring_this_second_is_still_valid(self, inspector):
        status = inspector.inspect(make_token({"exp": NOW}))
        assert status.valid is True
        assert status.time_left_seconds == 0

    def test_missing_exp(self, inspector):
        status = inspector.inspect(make_token({"iat": NOW}))
        assert status.model_dump() == {
            "valid": True,
            "expires_at": None,
            "time_left_seconds": None,
            "issued_at": NOW,
        }

    def test_non_numeric_exp_is_passed_through(self, inspector):
        status = inspector.inspect(make_token({"exp": "tomorrow"}))
        assert status.valid is True
        assert status.expires_at == "tomorrow"
        assert status.time_left_seconds is None

    def test_boolean_exp_is_not_a_timestamp(self, inspector):
        status = inspector.inspect(make_token({"exp": True}))
        assert status.time_left_seconds is None

    def test_overflowing_exp_is_not_a_timestamp(self, inspector):
        status = inspector.inspect(make_raw_token('{"exp": 1e400, "iat": 1e400}'))
        assert status.model_dump() == {
            "valid": True,
            "expires_at": None,
            "time_left_seconds": None,
            "issued_at": None,
        }

    def test_huge_integer_exp_is_not_a_timestamp(self, inspector):
        huge = "1" + "0" * 400
        status = inspector.inspect(make_raw_token(f'{{"exp": {huge}, "iat": {NOW}}}'))
        assert status.valid is True
        assert status.expires_at is None
        assert status.time_left_seconds is None
        assert status.issued_at == NOW

    def test_nested_overflow_in_iat(self, inspector):
        status = inspector.inspect(make_raw_token('{"exp": 1, "iat": [1e400, 2]}'))
        assert status.issued_at == [None, 2]

    def test_fractional_exp(self, inspector):
        status = inspector.inspect(make_token({"exp": NOW + 1.5}))
        assert status.valid is True
        assert status.time_left_seconds == 1.5

    def test_onemap_style_token(self):
        token = MockTokenGenerator().generate_access_token(issued_at=NOW)
        status = TokenInspector(clock=lambda: NOW + 3600).inspect(token)

        assert status.valid is True
        assert status.issued_at == NOW
        assert status.expires_at == NOW + 259200
        assert status.time_left_seconds == 259200 - 3600
