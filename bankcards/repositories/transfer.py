from collections.abc import Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from bankcards.models.transfer import Transfer


class TransferRepository:
    """
    Data access for the append-only card_transfers table.
    There is deliberately no update method.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def save(self, transfer: Transfer) -> Transfer:
        self.session.add(transfer)
        await self.session.flush()
        return transfer

    async def list(
        self, user_email: str | None = None, limit: int = 50, offset: int = 0
    ) -> Sequence[Transfer]:
        """Newest first; all users when user_email is None."""
        stmt = (
            select(Transfer)
            .order_by(Transfer.created_at.desc(), Transfer.id.desc())
            .limit(limit)
            .offset(offset)
        )
        if user_email is not None:
            stmt = stmt.where(Transfer.user_email == user_email)
        return (await self.session.scalars(stmt)).all()

    async def delete_by_user(self, user_email: str) -> int:
        result = await self.session.execute(
            delete(Transfer).where(Transfer.user_email == user_email)
        )
        return result.rowcount
