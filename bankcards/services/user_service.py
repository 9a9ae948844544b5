"""
User service — admin-side user lookup, listing, role changes and deletion.

Deleting a user is an explicit multi-step operation rather than an ORM
cascade: tokens, transfers and cards owned by the user are deleted first,
then the user row, all inside the caller's single transaction.
"""

import logging
from collections.abc import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from bankcards.exceptions import UserNotFoundError
from bankcards.models.user import Role, User
from bankcards.repositories import (
    CardRepository,
    TokenRepository,
    TransferRepository,
    UserRepository,
)

logger = logging.getLogger(__name__)


async def get_user(db: AsyncSession, email: str) -> User:
    user = await UserRepository(db).find_by_email(email)
    if user is None:
        raise UserNotFoundError(email)
    return user


async def list_users(db: AsyncSession, limit: int = 50, offset: int = 0) -> Sequence[User]:
    return await UserRepository(db).list(limit=limit, offset=offset)


async def set_role(db: AsyncSession, email: str, role: Role) -> User:
    """Change a user's role. Used to provision admins."""
    user = await get_user(db, email)
    user.role = role
    await UserRepository(db).save(user)
    logger.info("Set role of %s to %s", email, role.value)
    return user


async def delete_user(db: AsyncSession, email: str) -> None:
    """
    Hard-delete a user together with everything they own.

    Raises:
        UserNotFoundError
    """
    user = await get_user(db, email)

    tokens = await TokenRepository(db).delete_by_owner(email)
    transfers = await TransferRepository(db).delete_by_user(email)
    cards = await CardRepository(db).delete_by_owner(email)
    await UserRepository(db).delete(user)

    logger.info(
        "Deleted user %s with %d cards, %d transfers, %d tokens",
        email, cards, transfers, tokens,
    )
