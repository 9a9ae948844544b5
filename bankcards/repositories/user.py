from collections.abc import Sequence

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from bankcards.models.user import User


class UserRepository:
    """Data access for the users table (the credential store)."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_email(self, email: str) -> User | None:
        """Retrieves a User by their email (primary key and login ID)."""
        return await self.session.get(User, email)

    async def exists_by_email(self, email: str) -> bool:
        stmt = select(exists().where(User.email == email))
        return bool(await self.session.scalar(stmt))

    async def save(self, user: User) -> User:
        self.session.add(user)
        await self.session.flush()
        return user

    async def delete(self, user: User) -> None:
        await self.session.delete(user)
        await self.session.flush()

    async def list(self, limit: int = 50, offset: int = 0) -> Sequence[User]:
        stmt = select(User).order_by(User.email).limit(limit).offset(offset)
        return (await self.session.scalars(stmt)).all()
