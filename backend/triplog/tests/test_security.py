"""
Tests for password hashing, tokens and header parsing.
"""
import re
from datetime import timedelta

import pytest

from triplog.core.errors import InvalidTokenError, NoTokenError, TokenExpiredError
from triplog.core.security import (
    create_access_token, decode_access_token, extract_bearer_token, generate_otp,
    generate_reset_token, get_password_hash, verify_password
)


def test_password_hash_round_trip():
    hashed = get_password_hash("Secret123")
    assert hashed != "Secret123"
    assert verify_password("Secret123", hashed)
    assert not verify_password("secret123", hashed)


def test_password_hash_is_salted():
    assert get_password_hash("Secret123") != get_password_hash("Secret123")


def test_long_passwords_are_not_truncated():
    base = "x" * 80
    hashed = get_password_hash(base + "a")
    assert not verify_password(base + "b", hashed)


def test_verify_password_against_garbage_hash():
    assert verify_password("Secret123", "not-a-bcrypt-hash") is False


@pytest.mark.parametrize("header", [None, ""])
def test_missing_header(header):
    with pytest.raises(NoTokenError) as exc:
        extract_bearer_token(header)
    assert exc.value.message == "No token provided"


@pytest.mark.parametrize("header", ["Token abc", "Bearer", "Bearer ", "Bearer a b", "abc"])
def test_malformed_header(header):
    with pytest.raises(InvalidTokenError):
        extract_bearer_token(header)


def test_bearer_scheme_is_case_insensitive():
    assert extract_bearer_token("bearer abc") == "abc"
    assert extract_bearer_token("Bearer abc") == "abc"


def test_decode_expired_token():
    token = create_access_token({"id": 1}, expires_delta=timedelta(seconds=-10))
    with pytest.raises(TokenExpiredError) as exc:
        decode_access_token(token)
    assert exc.value.status_code == 401
    assert exc.value.to_dict()["expired"] is True


def test_decode_tampered_token():
    token = create_access_token({"id": 1})
    with pytest.raises(InvalidTokenError):
        decode_access_token(token[:-2] + ("AA" if not token.endswith("AA") else "BB"))


def test_otp_is_six_digits():
    codes = {generate_otp() for _ in range(50)}
    assert all(re.fullmatch(r"[1-9]\d{5}", c) for c in codes)
    assert len(codes) > 1


def test_reset_token_is_forty_hex_chars():
    token = generate_reset_token()
    assert re.fullmatch(r"[0-9a-f]{40}", token)
    assert token != generate_reset_token()
