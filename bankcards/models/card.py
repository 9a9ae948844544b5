"""
Card model — a bank card owned by a User.

The 16-digit card number is the primary key. It is assigned by an admin at
creation time and never changes.

Balance management:
  `balance` is an exact decimal with two fractional digits (Numeric(19, 2),
  mapped to decimal.Decimal). Floats never touch money. A CHECK constraint
  keeps the balance non-negative at the database level as well; the transfer
  service checks first, the constraint is the final safety net.

Status:
  ACTIVE and BLOCKED are toggled by admins while the card is valid. Once the
  expiration date has passed the card is EXPIRED and stays that way. The
  stored status is corrected lazily, the first time an expired card is read
  (see card_service.refresh_expiration).

The owner's full name is cached on the card for display.
"""

import enum
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Numeric,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from bankcards.database import Base


class CardStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    BLOCKED = "BLOCKED"
    EXPIRED = "EXPIRED"


class Card(Base):
    __tablename__ = "cards"

    __table_args__ = (
        CheckConstraint("balance >= 0", name="ck_cards_non_negative_balance"),
    )

    number: Mapped[str] = mapped_column(
        String(16),
        primary_key=True,
    )

    owner_email: Mapped[str] = mapped_column(
        ForeignKey("users.email"),
        nullable=False,
        index=True,
    )

    # Cached "First Last" of the owner at issuance
    owner_full_name: Mapped[str] = mapped_column(
        String(201),
        nullable=False,
    )

    expiration_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    status: Mapped[CardStatus] = mapped_column(
        Enum(CardStatus),
        default=CardStatus.ACTIVE,
        nullable=False,
    )

    balance: Mapped[Decimal] = mapped_column(
        Numeric(19, 2),
        default=Decimal("0.00"),
        nullable=False,
    )

    # Set by the owner; admins act on it by blocking the card
    block_requested: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
