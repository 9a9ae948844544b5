"""
Transfer model — an append-only record of money moved between two cards.

A row is written only as the side effect of a successful transfer, in the
same database transaction as the two balance updates. Rows are never
updated afterwards.

Card numbers are stored as plain strings rather than foreign keys so the
history survives an admin deleting one of the cards.
"""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from bankcards.database import Base


class Transfer(Base):
    __tablename__ = "card_transfers"

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_card_transfers_positive_amount"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # The user who initiated the transfer
    user_email: Mapped[str] = mapped_column(
        ForeignKey("users.email"),
        nullable=False,
        index=True,
    )

    from_card_number: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
    )

    to_card_number: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
    )

    amount: Mapped[Decimal] = mapped_column(
        Numeric(19, 2),
        nullable=False,
    )

    # Indexed for newest-first history queries
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
    )
