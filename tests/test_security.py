"""
Tests for hashing and token helpers.
"""

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from config import settings
from errors import AppError
from security import (
    changed_password_after,
    create_access_token,
    create_password_reset_token,
    decode_access_token,
    get_password_hash,
    hash_reset_token,
    verify_password,
)


class TestPasswordHashing:
    def test_hash_and_verify(self):
        hashed = get_password_hash("pass1234")

        assert hashed != "pass1234"
        assert verify_password("pass1234", hashed)
        assert not verify_password("wrong", hashed)

    def test_verify_without_hash(self):
        assert not verify_password("pass1234", "")


class TestAccessToken:
    def test_claims(self):
        token = create_access_token("5c8a1d5b0190b214360dc057")

        payload = decode_access_token(token)

        assert payload["id"] == "5c8a1d5b0190b214360dc057"
        assert isinstance(payload["iat"], int)
        assert payload["exp"] > payload["iat"]

    def test_expired(self):
        token = create_access_token("abc", expires_delta=timedelta(seconds=-1))

        with pytest.raises(AppError) as exc_info:
            decode_access_token(token)

        assert exc_info.value.status_code == 401
        assert "expired" in exc_info.value.message

    def test_wrong_signature(self):
        token = jwt.encode({"id": "abc"}, "another-secret", algorithm=settings.JWT_ALGORITHM)

        with pytest.raises(AppError) as exc_info:
            decode_access_token(token)

        assert exc_info.value.message == "Invalid token. Please log in again!"


class TestResetToken:
    def test_only_hash_is_derived_from_token(self):
        token, token_hash = create_password_reset_token()

        assert len(token) == 64
        assert token_hash == hash_reset_token(token)
        assert token_hash != token


class TestChangedPasswordAfter:
    def test_never_changed(self):
        assert not changed_password_after({}, 1_600_000_000)

    def test_changed_after_token(self):
        issued = int(datetime(2024, 1, 1, tzinfo=timezone.utc).timestamp())
        user = {"password_changed_at": datetime(2024, 1, 2)}

        assert changed_password_after(user, issued)

    def test_changed_before_token(self):
        issued = int(datetime(2024, 1, 3, tzinfo=timezone.utc).timestamp())
        user = {"password_changed_at": datetime(2024, 1, 2)}

        assert not changed_password_after(user, issued)
