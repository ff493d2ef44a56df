"""Tests for password hashing, access tokens and reset tokens."""

from __future__ import annotations

import time

import pytest

from service_catalog_api.app.core.config import settings
from service_catalog_api.app.core.security import (
    create_access_token,
    decode_access_token,
    generate_reset_token,
    hash_password,
    hash_reset_token,
    verify_password,
)


def test_password_hash_round_trip() -> None:
    hashed = hash_password("secret123")
    assert verify_password("secret123", hashed)
    assert not verify_password("wrong", hashed)
    # A fresh salt every time.
    assert hash_password("secret123") != hashed


@pytest.mark.parametrize("stored", [None, "", "nodollar", "zz$zz"])
def test_malformed_hash_never_verifies(stored) -> None:
    assert not verify_password("secret123", stored)


def test_access_token_carries_claims() -> None:
    token = create_access_token({"sub": "jane@example.com", "role": "user"})
    claims = decode_access_token(token)
    assert claims["sub"] == "jane@example.com"
    assert claims["role"] == "user"
    assert claims["exp"] > time.time()


def test_tampered_token_is_rejected() -> None:
    token = create_access_token({"sub": "jane@example.com"})
    header, payload, signature = token.split(".")
    assert decode_access_token(f"{header}.{payload}x.{signature}") is None
    assert decode_access_token("not-a-token") is None


def test_token_signed_with_other_secret_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    token = create_access_token({"sub": "jane@example.com"})
    monkeypatch.setattr(settings, "secret_key", "another-secret")
    assert decode_access_token(token) is None


def test_expired_token_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    token = create_access_token({"sub": "jane@example.com"}, expires_delta=60)
    monkeypatch.setattr(time, "time", lambda: 10**12)
    assert decode_access_token(token) is None


def test_reset_token_is_stored_as_digest() -> None:
    token, digest = generate_reset_token()
    assert len(token) >= 32
    assert digest == hash_reset_token(token)
    assert token not in digest
