"""
Authentication service — registration, login, token rotation, and logout.

This module contains the auth logic, separated from HTTP concerns. The
transport layer hands in plain values (and, for refresh/logout, the raw
Authorization header value) and maps raised errors to status codes.

Session lifecycle per user:

    Anonymous --authenticate--> Authenticated --refresh--> Rotated
        ^                            |                        |
        +----------- logout ---------+------------------------+

Register flow:
  1. Reject an email that is already registered (409, nothing written)
  2. Enforce the password policy (5-16 latin letters/digits)
  3. Store the user with role USER and an Argon2id hash

Login flow:
  1. Look up the user by email (404 if unknown)
  2. Verify the password (401 on mismatch)
  3. Issue a fresh token pair, revoking every earlier pair

Refresh flow:
  1. Parse the bearer credential and its subject (401 on any failure)
  2. Check the refresh token against the ledger, then claim it atomically
  3. Issue a fresh pair; the presented refresh token can never be reused
"""

import logging
import re

from sqlalchemy.ext.asyncio import AsyncSession

from bankcards.exceptions import (
    DuplicateEmailError,
    InvalidCredentialsError,
    InvalidPasswordError,
    UnauthorizedError,
    UserNotFoundError,
)
from bankcards.models.user import Role, User
from bankcards.repositories import UserRepository
from bankcards.security import extract_bearer_token, hash_password, verify_password
from bankcards.services import token_service
from bankcards.services.token_service import TokenPair

logger = logging.getLogger(__name__)

PASSWORD_PATTERN = re.compile(r"[0-9a-zA-Z]{5,16}")


def is_valid_password(password: str) -> bool:
    return PASSWORD_PATTERN.fullmatch(password) is not None


async def register(
    db: AsyncSession,
    email: str,
    first_name: str,
    last_name: str,
    password: str,
) -> User:
    """
    Register a new user with role USER.

    Raises:
        DuplicateEmailError: If the email is already registered.
        InvalidPasswordError: If the password violates the policy.
    """
    users = UserRepository(db)

    if await users.exists_by_email(email):
        raise DuplicateEmailError(email)

    if not is_valid_password(password):
        raise InvalidPasswordError()

    user = User(
        email=email,
        first_name=first_name,
        last_name=last_name,
        hashed_password=hash_password(password),
        role=Role.USER,
    )
    await users.save(user)

    logger.info("Registered user %s", email)
    return user


async def authenticate(db: AsyncSession, email: str, password: str) -> TokenPair:
    """
    Check credentials and start a new session.

    Raises:
        UserNotFoundError: If no user has this email.
        InvalidCredentialsError: If the password does not match.
    """
    user = await UserRepository(db).find_by_email(email)
    if user is None:
        raise UserNotFoundError(email)

    if not verify_password(password, user.hashed_password):
        logger.warning("Failed login for %s", email)
        raise InvalidCredentialsError()

    pair = await token_service.issue_pair(db, user)
    logger.info("User %s authenticated", email)
    return pair


async def _resolve_subject(db: AsyncSession, token: str) -> User | None:
    claims = token_service.parse(token)
    return await UserRepository(db).find_by_email(claims["sub"])


async def refresh(db: AsyncSession, authorization: str | None) -> TokenPair:
    """
    Rotate a session using its refresh token.

    Args:
        authorization: Raw Authorization header value, "Bearer <refresh token>".

    Raises:
        UnauthorizedError: Missing/malformed header, unparseable or expired
            token, unknown subject, or a refresh token that is not (or is
            no longer) live.
    """
    token = extract_bearer_token(authorization)
    user = await _resolve_subject(db, token)
    if user is None:
        raise UnauthorizedError("The user is not logged in")

    if not await token_service.is_valid_refresh(db, token, user):
        logger.warning("Rejected refresh for %s: token not live", user.email)
        raise UnauthorizedError("The user is not logged in")

    # A concurrent refresh may have claimed the same token since the check
    if not await token_service.consume_refresh(db, token, user):
        logger.warning("Rejected refresh for %s: token already consumed", user.email)
        raise UnauthorizedError("The user is not logged in")

    pair = await token_service.issue_pair(db, user)
    logger.info("Rotated tokens for %s", user.email)
    return pair


async def logout(db: AsyncSession, authorization: str | None) -> User:
    """
    End every session of the token's user.

    Safe to repeat: a revoked (but unexpired) token still identifies its
    user, and revoking an already revoked set writes nothing. The caller is
    responsible for clearing client-side cookies.

    Raises:
        UnauthorizedError: Missing/malformed header or unparseable token.
        UserNotFoundError: If the token's subject no longer exists.
    """
    token = extract_bearer_token(authorization)
    claims = token_service.parse(token)

    user = await UserRepository(db).find_by_email(claims["sub"])
    if user is None:
        raise UserNotFoundError(claims["sub"])

    revoked = await token_service.revoke_all(db, user)
    logger.info("User %s logged out (revoked %d)", user.email, revoked)
    return user
