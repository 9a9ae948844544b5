from collections.abc import Sequence

from sqlalchemy import delete, exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from bankcards.models.card import Card


class CardRepository:
    """Data access for the cards table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_number(self, number: str) -> Card | None:
        return await self.session.get(Card, number)

    async def find_for_update(self, numbers: set[str]) -> dict[str, Card]:
        """
        Loads and row-locks the given cards, keyed by number.

        Rows are locked in ascending card-number order so two transfers
        crossing the same pair of cards in opposite directions always
        acquire the locks in the same order and cannot deadlock.
        populate_existing refreshes any copy already in the session, so the
        balance check sees the locked row and not a stale read.

        SELECT ... FOR UPDATE is a no-op on SQLite. There the session already
        holds the database write lock from its first statement (see
        database.use_immediate_transactions), which serializes transfers.
        """
        stmt = (
            select(Card)
            .where(Card.number.in_(sorted(numbers)))
            .order_by(Card.number)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        cards = (await self.session.scalars(stmt)).all()
        return {card.number: card for card in cards}

    async def exists_by_number(self, number: str) -> bool:
        stmt = select(exists().where(Card.number == number))
        return bool(await self.session.scalar(stmt))

    async def save(self, card: Card) -> Card:
        self.session.add(card)
        await self.session.flush()
        return card

    async def delete(self, card: Card) -> None:
        await self.session.delete(card)
        await self.session.flush()

    async def list_by_owner(
        self, owner_email: str, limit: int | None = None, offset: int = 0
    ) -> Sequence[Card]:
        stmt = (
            select(Card)
            .where(Card.owner_email == owner_email)
            .order_by(Card.created_at, Card.number)
            .limit(limit)
            .offset(offset)
        )
        return (await self.session.scalars(stmt)).all()

    async def list(self, limit: int = 50, offset: int = 0) -> Sequence[Card]:
        stmt = select(Card).order_by(Card.created_at, Card.number).limit(limit).offset(offset)
        return (await self.session.scalars(stmt)).all()

    async def delete_by_owner(self, owner_email: str) -> int:
        result = await self.session.execute(
            delete(Card).where(Card.owner_email == owner_email)
        )
        return result.rowcount
