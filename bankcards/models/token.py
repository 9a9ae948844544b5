"""
Token model — the session-token ledger.

Every successful login or refresh appends one row holding the issued
access/refresh pair. Rows are never deleted while the user exists: logging
out or rotating flips `revoked` to True, which keeps an audit history of
every session.

A JWT alone is not enough to authenticate: the token must also match a row
here with revoked = False. This is how logout works without a separate
blocklist.
"""

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from bankcards.database import Base


class Token(Base):
    __tablename__ = "tokens"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    owner_email: Mapped[str] = mapped_column(
        ForeignKey("users.email"),
        nullable=False,
        index=True,
    )

    access_token: Mapped[str] = mapped_column(
        String(1024),
        unique=True,
        nullable=False,
    )

    refresh_token: Mapped[str] = mapped_column(
        String(1024),
        unique=True,
        nullable=False,
    )

    revoked: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
