#!/usr/bin/env python3
"""Promote a registered user to ADMIN. Run on the server.

Usage:
    python demo/promote_admin.py admin@bankdemo.com
"""
import argparse
import asyncio

from bankcards.database import AsyncSessionLocal, engine
from bankcards.models.user import Role
from bankcards.services import user_service


async def promote(email: str):
    async with AsyncSessionLocal() as s:
        user = await user_service.set_role(s, email, Role.ADMIN)
        await s.commit()
        print(f"{user.email} is now {user.role.value}")
    await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("email")
    asyncio.run(promote(parser.parse_args().email))
