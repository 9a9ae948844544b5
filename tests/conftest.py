"""
Test fixtures for the Bank Cards test suite.

  - db_engine / db_session: Fresh in-memory SQLite database for each test
  - make_user / user / other_user: Registered users (via the real register flow)
  - make_card: Issues cards through card_service.create_card
  - client: Async HTTP client for the application shell
  - session_factory: Per-request sessions for HTTP-level tests
  - file_session_factory: Independent sessions on a file database, for races

Key design decisions:
  - In-memory SQLite (sqlite+aiosqlite://) keeps every test isolated. The
    aiosqlite dialect shares one connection for an in-memory database, so
    rows committed through db_session are visible to request sessions.
  - SECRET_KEY is set before any bankcards import, because Settings
    requires it at import time.
"""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import itertools
from decimal import Decimal

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

import bankcards.models  # noqa: F401
from bankcards.database import Base, get_db, use_immediate_transactions
from bankcards.exceptions import BankCardsError
from bankcards.main import app
from bankcards.services import auth_service, card_service


TEST_DATABASE_URL = "sqlite+aiosqlite://"

DEFAULT_PASSWORD = "Secret123"


@pytest_asyncio.fixture
async def db_engine():
    """Create a fresh async engine with all tables for each test."""
    engine = create_async_engine(TEST_DATABASE_URL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine):
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def file_session_factory(tmp_path):
    """
    Sessions on a file-backed SQLite database, configured like the app engine.

    Unlike the in-memory engine, every session gets its own connection, so
    two sessions can really run concurrently.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'bankcards.db'}")
    use_immediate_transactions(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Provide an async session bound to the test engine."""
    async with session_factory() as session:
        yield session


def make_get_db_override(session_factory):
    """A get_db replacement with the same commit/rollback rules, on the test engine."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except BankCardsError:
                await session.commit()
                raise
            except Exception:
                await session.rollback()
                raise

    return override_get_db


@pytest_asyncio.fixture
async def client(session_factory):
    """Async HTTP test client for the application shell."""
    app.dependency_overrides[get_db] = make_get_db_override(session_factory)

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def make_user(db_session):
    """Factory: register a user through auth_service.register."""

    async def _make_user(
        email: str,
        password: str = DEFAULT_PASSWORD,
        first_name: str = "Test",
        last_name: str = "User",
    ):
        return await auth_service.register(
            db_session,
            email=email,
            first_name=first_name,
            last_name=last_name,
            password=password,
        )

    return _make_user


@pytest_asyncio.fixture
async def user(make_user):
    return await make_user("owner@example.com", first_name="Olga", last_name="Owner")


@pytest_asyncio.fixture
async def other_user(make_user):
    return await make_user("other@example.com", first_name="Oscar", last_name="Other")


@pytest_asyncio.fixture
async def make_card(db_session):
    """Factory: issue a card with a fresh 16-digit number."""
    numbers = itertools.count(4000_0000_0000_0001)

    async def _make_card(
        owner_email: str,
        balance: str | Decimal = "0.00",
        validity_months: int = 36,
        number: str | None = None,
    ):
        return await card_service.create_card(
            db_session,
            owner_email=owner_email,
            number=number or str(next(numbers)),
            validity_months=validity_months,
            initial_balance=Decimal(balance),
        )

    return _make_card
