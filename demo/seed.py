#!/usr/bin/env python3
"""
Demo seed script — populates the database with sample users, cards and
transfers for demos.

!! NOT FOR PRODUCTION !!
This script creates users with known passwords. It is intended ONLY for
local demos and frontend development. It talks to the database directly
through the service layer, so the API server does not need to be running.

Usage:
    python demo/seed.py

    # Delete the SQLite database first, then re-seed:
    python demo/seed.py --reset

Login credentials after seeding:
    ┌──────────────────────────────┬───────────────────┬────────┐
    │ Email                        │ Password          │ Role   │
    ├──────────────────────────────┼───────────────────┼────────┤
    │ admin@bankdemo.com           │ AdminDemo123      │ ADMIN  │
    │ alice.chen@example.com       │ AliceDemo123      │ USER   │
    │ bob.martinez@example.com     │ BobDemo123        │ USER   │
    └──────────────────────────────┴───────────────────┴────────┘
"""

import argparse
import asyncio
import os
import random
from decimal import Decimal

import bankcards.models  # noqa: F401
from bankcards.config import settings
from bankcards.database import AsyncSessionLocal, Base, engine
from bankcards.models.user import Role
from bankcards.services import auth_service, card_service, transfer_service, user_service

# ---------------------------------------------------------------------------
# Demo data
# ---------------------------------------------------------------------------

ADMIN = {
    "email": "admin@bankdemo.com",
    "password": "AdminDemo123",
    "first_name": "Admin",
    "last_name": "User",
}

MEMBERS = [
    {
        "email": "alice.chen@example.com",
        "password": "AliceDemo123",
        "first_name": "Alice",
        "last_name": "Chen",
        "cards": [
            {"months": 36, "balance": Decimal("850.00")},
            {"months": 48, "balance": Decimal("5000.00")},
        ],
        "transfers": [
            (1, 0, Decimal("300.00")),
            (0, 1, Decimal("42.50")),
        ],
    },
    {
        "email": "bob.martinez@example.com",
        "password": "BobDemo123",
        "first_name": "Bob",
        "last_name": "Martinez",
        "cards": [
            {"months": 24, "balance": Decimal("1200.00")},
            {"months": 24, "balance": Decimal("0.00")},
        ],
        "transfers": [
            (0, 1, Decimal("199.99")),
        ],
    },
]


def log(msg: str) -> None:
    print(f"  {msg}")


def random_card_number() -> str:
    return "4" + "".join(random.choices("0123456789", k=15))


async def seed() -> None:
    print("\n========================================")
    print("  DEMO SEED — NOT FOR PRODUCTION")
    print("========================================\n")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("Creating admin user...")
        await auth_service.register(
            db,
            email=ADMIN["email"],
            first_name=ADMIN["first_name"],
            last_name=ADMIN["last_name"],
            password=ADMIN["password"],
        )
        await user_service.set_role(db, ADMIN["email"], Role.ADMIN)

        for member in MEMBERS:
            print(f"\nCreating {member['first_name']} {member['last_name']}...")
            await auth_service.register(
                db,
                email=member["email"],
                first_name=member["first_name"],
                last_name=member["last_name"],
                password=member["password"],
            )

            numbers = []
            for spec in member["cards"]:
                card = await card_service.create_card(
                    db,
                    owner_email=member["email"],
                    number=random_card_number(),
                    validity_months=spec["months"],
                    initial_balance=spec["balance"],
                )
                numbers.append(card.number)
                log(f"card {card_service.mask_card_number(card.number)}  balance {card.balance}")

            for src, dst, amount in member["transfers"]:
                await transfer_service.transfer(
                    db, member["email"], numbers[src], numbers[dst], amount
                )
                log(f"transfer {amount}")

        await db.commit()

    await engine.dispose()

    print("\n========================================")
    print("  SEED COMPLETE — Login Credentials")
    print("========================================")
    print(f"\n  {'Email':<30s} {'Password':<20s} {'Role'}")
    print(f"  {'─' * 30} {'─' * 20} {'─' * 6}")
    print(f"  {ADMIN['email']:<30s} {ADMIN['password']:<20s} ADMIN")
    for m in MEMBERS:
        print(f"  {m['email']:<30s} {m['password']:<20s} USER")
    print()


def reset_database() -> None:
    """Delete the SQLite database file named by DATABASE_URL."""
    db_path = settings.DATABASE_URL.split("///", 1)[-1]
    if os.path.exists(db_path):
        os.remove(db_path)
        print(f"\n  Deleted {db_path}")
    else:
        print(f"\n  No database found at {db_path}")


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Seed the Bank Cards database with demo data.",
    )
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Delete the SQLite database before seeding",
    )
    args = parser.parse_args()

    if args.reset:
        reset_database()
    asyncio.run(seed())


if __name__ == "__main__":
    main()
