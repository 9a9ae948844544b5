"""
Tests for the token service (JWT + ledger).

These tests verify:
  - A token is valid only with a matching, non-revoked ledger row
  - Access and refresh tokens are not interchangeable
  - Tokens of one user are never valid for another
  - revoke_all is idempotent
  - consume_refresh claims a refresh token exactly once
  - issue_pair leaves exactly one active pair per user
"""

from datetime import timedelta

import pytest
from sqlalchemy import func, select

from bankcards.exceptions import TokenExpiredError
from bankcards.models.token import Token
from bankcards.security import ACCESS, REFRESH, create_token
from bankcards.services import token_service


async def active_count(db, email: str) -> int:
    return await db.scalar(
        select(func.count())
        .select_from(Token)
        .where(Token.owner_email == email, Token.revoked == False)  # noqa: E712
    )


class TestValidation:

    async def test_signed_but_unrecorded_token_is_invalid(self, db_session, user):
        token = token_service.mint(user, ACCESS)
        assert await token_service.is_valid_access(db_session, token, user) is False

    async def test_persisted_pair_is_valid(self, db_session, user):
        access = token_service.mint(user, ACCESS)
        refresh = token_service.mint(user, REFRESH)
        await token_service.persist(db_session, access, refresh, user)

        assert await token_service.is_valid_access(db_session, access, user) is True
        assert await token_service.is_valid_refresh(db_session, refresh, user) is True

    async def test_kinds_are_not_interchangeable(self, db_session, user):
        pair = await token_service.issue_pair(db_session, user)

        assert await token_service.is_valid_access(db_session, pair.refresh_token, user) is False
        assert await token_service.is_valid_refresh(db_session, pair.access_token, user) is False

    async def test_token_of_other_user(self, db_session, user, other_user):
        pair = await token_service.issue_pair(db_session, user)
        assert await token_service.is_valid_access(db_session, pair.access_token, other_user) is False

    async def test_expired_token_with_live_row(self, db_session, user):
        access = create_token(user.email, ACCESS, expires_delta=timedelta(seconds=-1))
        refresh = token_service.mint(user, REFRESH)
        await token_service.persist(db_session, access, refresh, user)

        assert await token_service.is_valid_access(db_session, access, user) is False
        with pytest.raises(TokenExpiredError):
            token_service.parse(access)

    async def test_garbage_is_invalid_not_an_error(self, db_session, user):
        assert await token_service.is_valid_access(db_session, "not-a-jwt", user) is False

    async def test_revoked_token_still_parses(self, db_session, user):
        pair = await token_service.issue_pair(db_session, user)
        await token_service.revoke_all(db_session, user)

        assert await token_service.is_valid_access(db_session, pair.access_token, user) is False
        assert token_service.parse(pair.access_token)["sub"] == user.email


class TestRevocation:

    async def test_revoke_all_is_idempotent(self, db_session, user):
        await token_service.issue_pair(db_session, user)
        await token_service.issue_pair(db_session, user)

        assert await token_service.revoke_all(db_session, user) == 1
        assert await token_service.revoke_all(db_session, user) == 0
        assert await active_count(db_session, user.email) == 0

    async def test_revoke_all_only_touches_owner(self, db_session, user, other_user):
        await token_service.issue_pair(db_session, user)
        await token_service.issue_pair(db_session, other_user)

        await token_service.revoke_all(db_session, user)
        assert await active_count(db_session, other_user.email) == 1

    async def test_rows_are_kept_after_revocation(self, db_session, user):
        for _ in range(3):
            await token_service.issue_pair(db_session, user)
        total = await db_session.scalar(select(func.count()).select_from(Token))
        assert total == 3
        assert await active_count(db_session, user.email) == 1


class TestConsumeRefresh:

    async def test_consume_once(self, db_session, user):
        pair = await token_service.issue_pair(db_session, user)

        assert await token_service.consume_refresh(db_session, pair.refresh_token, user) is True
        assert await token_service.consume_refresh(db_session, pair.refresh_token, user) is False

        row = await db_session.scalar(
            select(Token).where(Token.refresh_token == pair.refresh_token)
        )
        assert row.revoked is True

    async def test_consume_requires_owner(self, db_session, user, other_user):
        pair = await token_service.issue_pair(db_session, user)
        assert await token_service.consume_refresh(db_session, pair.refresh_token, other_user) is False


class TestIssuePair:

    async def test_new_pair_revokes_previous(self, db_session, user):
        first = await token_service.issue_pair(db_session, user)
        second = await token_service.issue_pair(db_session, user)

        assert first.access_token != second.access_token
        assert await token_service.is_valid_access(db_session, first.access_token, user) is False
        assert await token_service.is_valid_access(db_session, second.access_token, user) is True
        assert await active_count(db_session, user.email) == 1
