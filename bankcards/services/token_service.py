"""
Token service — minting, validating, and revoking session tokens.

Tokens are signed JWTs, but a valid signature is only half of the check.
Every issued pair is also recorded in the token ledger, and a token is
accepted only while its ledger row has revoked = False. Logging out or
rotating flips the flag; rows are never deleted, so the ledger doubles as
a session audit trail.

Rotation:
  issue_pair() mints a new access/refresh pair, revokes every live pair of
  the user, and appends the new one. After any login or refresh the user
  therefore has exactly one active pair.

  A refresh token is single-use. consume_refresh() claims it with a
  compare-and-set on its row, so of two concurrent refreshes presenting the
  same token only one can win.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from bankcards.exceptions import TokenExpiredError, TokenMalformedError
from bankcards.models.token import Token
from bankcards.models.user import User
from bankcards.repositories import TokenRepository
from bankcards.security import ACCESS, REFRESH, create_token, decode_token

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


def mint(user: User, kind: str = ACCESS) -> str:
    """Mint a signed token of the given kind for the user."""
    return create_token(subject=user.email, token_type=kind)


def parse(token: str) -> dict:
    """
    Verify the signature and expiry of a token and return its claims.

    Does not consult the ledger: a revoked but unexpired token still parses,
    which is what lets a repeated logout resolve its user.

    Raises:
        TokenMalformedError, TokenExpiredError
    """
    return decode_token(token)


async def _is_valid(
    db: AsyncSession, token: str, user: User, kind: str
) -> bool:
    try:
        claims = parse(token)
    except (TokenMalformedError, TokenExpiredError):
        return False

    if claims["sub"] != user.email or claims.get("type") != kind:
        return False

    repo = TokenRepository(db)
    if kind == REFRESH:
        row = await repo.find_by_refresh_token(token)
    else:
        row = await repo.find_by_access_token(token)

    return row is not None and row.owner_email == user.email and not row.revoked


async def is_valid_access(db: AsyncSession, token: str, user: User) -> bool:
    """True iff the access token verifies, belongs to the user, and is not revoked."""
    return await _is_valid(db, token, user, ACCESS)


async def is_valid_refresh(db: AsyncSession, token: str, user: User) -> bool:
    """True iff the refresh token verifies, belongs to the user, and is not revoked."""
    return await _is_valid(db, token, user, REFRESH)


async def revoke_all(db: AsyncSession, user: User) -> int:
    """
    Mark every live token pair of the user as revoked.

    Idempotent: with nothing live, nothing is written.

    Returns:
        The number of rows revoked.
    """
    repo = TokenRepository(db)
    live_tokens = await repo.find_active_by_owner(user.email)
    for token in live_tokens:
        token.revoked = True
    await repo.save_all(live_tokens)
    return len(live_tokens)


async def persist(
    db: AsyncSession, access_token: str, refresh_token: str, user: User
) -> Token:
    """Append a new, non-revoked ledger row for the pair."""
    token = Token(
        owner_email=user.email,
        access_token=access_token,
        refresh_token=refresh_token,
        revoked=False,
    )
    return await TokenRepository(db).save(token)


async def consume_refresh(db: AsyncSession, refresh_token: str, user: User) -> bool:
    """Claim a refresh token for rotation. False if it was already revoked."""
    return await TokenRepository(db).consume_refresh_token(refresh_token, user.email)


async def issue_pair(db: AsyncSession, user: User) -> TokenPair:
    """Mint a new pair, revoke the user's previous pairs, and record the new one."""
    pair = TokenPair(
        access_token=mint(user, ACCESS),
        refresh_token=mint(user, REFRESH),
    )
    revoked = await revoke_all(db, user)
    await persist(db, pair.access_token, pair.refresh_token, user)

    logger.info("Issued token pair for %s (revoked %d previous)", user.email, revoked)
    return pair
