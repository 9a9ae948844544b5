"""
User model — the authentication identity.

Each User is a login credential (email + hashed password) with a role.
The email is the primary key: it is the JWT subject, the owner reference on
cards, transfers and tokens, and it never changes after registration.

Roles:
  - ADMIN: Creates, blocks, activates and deletes cards; manages users
  - USER: Views own cards, requests blocks, transfers between own cards

Registration always creates USER accounts. Admins are provisioned by an
operator (see demo/promote_admin.py).

The password is stored as an Argon2id hash, never in plaintext.
"""

import enum
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, Enum
from sqlalchemy.orm import Mapped, mapped_column

from bankcards.database import Base


class Role(str, enum.Enum):
    """
    Role a user holds within the system.

    Inherits from str so the value serializes naturally to JSON.
    """
    USER = "USER"
    ADMIN = "ADMIN"


class User(Base):
    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(255),
        primary_key=True,
    )

    first_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    last_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    # Argon2id hash of the password
    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    role: Mapped[Role] = mapped_column(
        Enum(Role),
        default=Role.USER,
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
