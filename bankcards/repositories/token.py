from collections.abc import Iterable, Sequence

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from bankcards.models.token import Token


class TokenRepository:
    """Data access for the session-token ledger."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_active_by_owner(self, owner_email: str) -> Sequence[Token]:
        stmt = (
            select(Token)
            .where(Token.owner_email == owner_email)
            .where(Token.revoked == False)  # noqa: E712
            .order_by(Token.id)
        )
        return (await self.session.scalars(stmt)).all()

    async def find_by_access_token(self, access_token: str) -> Token | None:
        stmt = select(Token).where(Token.access_token == access_token)
        return (await self.session.scalars(stmt)).one_or_none()

    async def find_by_refresh_token(self, refresh_token: str) -> Token | None:
        stmt = select(Token).where(Token.refresh_token == refresh_token)
        return (await self.session.scalars(stmt)).one_or_none()

    async def save(self, token: Token) -> Token:
        self.session.add(token)
        await self.session.flush()
        return token

    async def save_all(self, tokens: Iterable[Token]) -> None:
        self.session.add_all(tokens)
        await self.session.flush()

    async def consume_refresh_token(self, refresh_token: str, owner_email: str) -> bool:
        """
        Atomically revokes the live row holding this refresh token.

        This is a compare-and-set on the revoked flag: the UPDATE only matches
        while revoked is still False, so when two requests race on the same
        token exactly one of them sees rowcount == 1.
        """
        stmt = (
            update(Token)
            .where(Token.refresh_token == refresh_token)
            .where(Token.owner_email == owner_email)
            .where(Token.revoked == False)  # noqa: E712
            .values(revoked=True)
            .execution_options(synchronize_session="evaluate")
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def delete_by_owner(self, owner_email: str) -> int:
        result = await self.session.execute(
            delete(Token).where(Token.owner_email == owner_email)
        )
        return result.rowcount
