"""
Database engine, session management, and base model class.

This module sets up SQLAlchemy 2.0 with async support:

  - engine: The async database engine
  - AsyncSessionLocal: Factory for creating async database sessions
  - Base: Declarative base class that all ORM models inherit from
  - get_db(): FastAPI dependency that provides a session per request
  - use_immediate_transactions(): SQLite write locking for file databases

Session lifecycle:
  Each request gets its own session via get_db(). Services only flush;
  the session owner commits once at the end. That single commit is the
  transactional boundary of a card transfer: both balance updates and the
  transfer row become visible together or not at all.
"""

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from bankcards.config import settings
from bankcards.exceptions import BankCardsError


# echo=True in debug mode logs all SQL statements
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
)


def use_immediate_transactions(async_engine: AsyncEngine) -> None:
    """
    Make every SQLite transaction take the write lock when it begins.

    SELECT ... FOR UPDATE is a no-op on SQLite, and the driver normally
    delays BEGIN until the first write, so two sessions could both read a
    card balance before either one writes it. With BEGIN IMMEDIATE the
    whole session, reads included, runs inside the write lock: a second
    transfer waits for the first to commit and then reads the new balance.
    """
    if async_engine.dialect.name != "sqlite":
        return
    # In-memory databases share one connection, which cannot nest BEGINs
    if async_engine.url.database in (None, "", ":memory:"):
        return

    @event.listens_for(async_engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(async_engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


use_immediate_transactions(engine)

# expire_on_commit=False prevents lazy-load errors after commit, which
# would otherwise trigger a synchronous DB call inside async code.
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""
    pass


async def get_db():
    """
    FastAPI dependency that provides a database session.

    Usage in a route:
        @router.post("/transfers")
        async def transfer(db: AsyncSession = Depends(get_db)):
            ...

    Committed on success and rolled back on unexpected exceptions.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except BankCardsError:
            # Business-rule rejections happen before any balance or token
            # write, so the only pending change is an expiration status
            # correction, which must survive the failed request.
            await session.commit()
            raise
        except Exception:
            await session.rollback()
            raise
