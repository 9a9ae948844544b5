"""
Security utilities: password hashing, JWT tokens, and bearer credentials.

This module centralizes all cryptographic operations so they're easy to
audit and update:

1. PASSWORD HASHING (Argon2)
   - Passwords are never stored in plaintext
   - passlib's CryptContext handles Argon2id hashing and verification

2. JWT TOKENS
   - Access and refresh tokens are both HS256-signed JWTs
   - Claims: sub (email), iat, exp, type ("access" | "refresh") and a
     random jti so two tokens minted in the same second never collide
   - The signature is verified on every decode

3. BEARER CREDENTIALS
   - Parsing of the "Authorization: Bearer <token>" header value

Signing a token does not make it usable on its own: token_service also
requires a matching, non-revoked row in the token ledger.
"""

import uuid
from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from bankcards.config import settings
from bankcards.exceptions import TokenExpiredError, TokenMalformedError, UnauthorizedError


ACCESS = "access"
REFRESH = "refresh"

BEARER_PREFIX = "Bearer "


# ---------------------------------------------------------------------------
# 1. Password Hashing (Argon2)
# ---------------------------------------------------------------------------

# deprecated="auto" lets passlib verify old hashes if the active scheme
# ever changes, while new passwords always use the first scheme.
pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(plain_password: str) -> str:
    """
    Hash a plaintext password using Argon2id.

    Returns:
        An Argon2 hash string (e.g., "$argon2id$v=19$m=65536,t=3,p=4$...").
    """
    return pwd_context.hash(plain_password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Constant-time check of a plaintext password against a stored hash."""
    return pwd_context.verify(plain_password, hashed_password)


# ---------------------------------------------------------------------------
# 2. JWT Tokens
# ---------------------------------------------------------------------------

def _default_ttl(token_type: str) -> timedelta:
    if token_type == REFRESH:
        return timedelta(minutes=settings.REFRESH_TOKEN_EXPIRE_MINUTES)
    return timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)


def create_token(
    subject: str,
    token_type: str = ACCESS,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a signed JWT.

    Args:
        subject: The user's email, stored in the "sub" claim.
        token_type: ACCESS or REFRESH; selects the default lifetime.
        expires_delta: Optional custom lifetime (tests use a negative one
                       to produce an already-expired token).

    Returns:
        An encoded JWT string.
    """
    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = _default_ttl(token_type)

    claims = {
        "sub": subject,
        "type": token_type,
        "iat": now,
        "exp": now + expires_delta,
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> dict:
    """
    Decode and verify a JWT.

    Raises:
        TokenExpiredError: The signature is valid but "exp" has passed.
        TokenMalformedError: Bad signature, bad structure, or no subject.

    Returns:
        The decoded claims (contains "sub", "exp", "type", ...).
    """
    try:
        claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except ExpiredSignatureError:
        raise TokenExpiredError()
    except JWTError:
        raise TokenMalformedError()

    if not claims.get("sub"):
        raise TokenMalformedError("Token has no subject")
    return claims


# ---------------------------------------------------------------------------
# 3. Bearer credentials
# ---------------------------------------------------------------------------

def extract_bearer_token(authorization: str | None) -> str:
    """
    Return the token from an Authorization header value.

    The header must be exactly "Bearer " followed by a non-empty token.

    Raises:
        UnauthorizedError: If the header is missing or malformed.
    """
    if authorization is None or not authorization.startswith(BEARER_PREFIX):
        raise UnauthorizedError("Missing or malformed authorization header")

    token = authorization[len(BEARER_PREFIX):].strip()
    if not token:
        raise UnauthorizedError("Missing or malformed authorization header")
    return token
