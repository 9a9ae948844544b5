"""
Tests for the cryptographic helpers in bankcards.security.

These tests verify:
  - Passwords are hashed with Argon2 and verify correctly
  - JWTs carry subject, type, expiry and a unique jti
  - Expired, tampered, and foreign-key tokens are rejected distinctly
  - Bearer header parsing accepts only "Bearer <token>"
"""

from datetime import timedelta

import pytest
from jose import jwt

from bankcards.config import settings
from bankcards.exceptions import (
    TokenExpiredError,
    TokenMalformedError,
    UnauthorizedError,
)
from bankcards.security import (
    ACCESS,
    REFRESH,
    create_token,
    decode_token,
    extract_bearer_token,
    hash_password,
    verify_password,
)


class TestPasswordHashing:

    def test_hash_is_argon2_and_not_plaintext(self):
        hashed = hash_password("Secret123")
        assert hashed.startswith("$argon2")
        assert "Secret123" not in hashed

    def test_verify_round_trip(self):
        hashed = hash_password("Secret123")
        assert verify_password("Secret123", hashed) is True
        assert verify_password("Secret124", hashed) is False


class TestJwt:

    def test_claims(self):
        claims = decode_token(create_token("a@example.com", REFRESH))
        assert claims["sub"] == "a@example.com"
        assert claims["type"] == REFRESH
        assert claims["exp"] > claims["iat"]

    def test_refresh_outlives_access(self):
        access = decode_token(create_token("a@example.com", ACCESS))
        refresh = decode_token(create_token("a@example.com", REFRESH))
        assert access["exp"] - access["iat"] == 60 * settings.ACCESS_TOKEN_EXPIRE_MINUTES
        assert refresh["exp"] - refresh["iat"] == 60 * settings.REFRESH_TOKEN_EXPIRE_MINUTES

    def test_tokens_minted_together_differ(self):
        """The jti claim keeps same-second tokens for one user distinct."""
        assert create_token("a@example.com") != create_token("a@example.com")

    def test_expired_token(self):
        token = create_token("a@example.com", expires_delta=timedelta(seconds=-5))
        with pytest.raises(TokenExpiredError):
            decode_token(token)

    def test_tampered_token(self):
        token = create_token("a@example.com")
        header, payload, signature = token.split(".")
        flipped = ("A" if signature[0] != "A" else "B") + signature[1:]
        with pytest.raises(TokenMalformedError):
            decode_token(f"{header}.{payload}.{flipped}")

    def test_token_signed_with_other_key(self):
        token = jwt.encode({"sub": "a@example.com"}, "another-key", algorithm="HS256")
        with pytest.raises(TokenMalformedError):
            decode_token(token)

    def test_garbage(self):
        with pytest.raises(TokenMalformedError):
            decode_token("totally.fake.token")

    def test_missing_subject(self):
        token = jwt.encode({"type": ACCESS}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
        with pytest.raises(TokenMalformedError):
            decode_token(token)

    def test_token_errors_are_unauthorized(self):
        assert issubclass(TokenExpiredError, UnauthorizedError)
        assert issubclass(TokenMalformedError, UnauthorizedError)


class TestBearerHeader:

    def test_valid(self):
        assert extract_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"

    @pytest.mark.parametrize(
        "header",
        [None, "", "Bearer", "Bearer ", "Bearer    ", "bearer abc", "Basic abc", "Token abc"],
    )
    def test_missing_or_malformed(self, header):
        with pytest.raises(UnauthorizedError):
            extract_bearer_token(header)
