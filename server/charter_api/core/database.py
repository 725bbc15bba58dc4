"""Database configuration and async session management."""

from typing import Any, AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from .config import settings


class Base(DeclarativeBase):
    """Declarative base for all models."""


def configure_sqlite_locking(engine: AsyncEngine) -> AsyncEngine:
    """
    Make every SQLite transaction take the database write lock up front.

    pysqlite defers BEGIN until the first write, which lets two check-then-write
    sequences read the same state. Emitting BEGIN IMMEDIATE ourselves
    serializes them; a waiter gives up after the driver's busy timeout.

    Args:
        engine: Async SQLite engine to configure

    Returns:
        AsyncEngine: The same engine, for chaining
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


def build_engine(database_url: str, **overrides: Any) -> AsyncEngine:
    """
    Create an async engine for the given URL.

    SQLite URLs get the immediate-transaction hooks and a busy timeout;
    in-memory SQLite shares one connection through StaticPool.
    """
    engine_kwargs: dict[str, Any] = {
        "echo": settings.debug,
        "future": True,
        "pool_pre_ping": True,
    }

    if database_url.startswith("sqlite"):
        engine_kwargs["connect_args"] = {
            "check_same_thread": False,
            "timeout": settings.sqlite_busy_timeout_seconds,
        }
        if ":memory:" in database_url:
            engine_kwargs["poolclass"] = StaticPool

    engine_kwargs.update(overrides)
    engine = create_async_engine(database_url, **engine_kwargs)

    if database_url.startswith("sqlite"):
        configure_sqlite_locking(engine)

    return engine


# Create async engine
engine = build_engine(settings.database_url)

# Create async session factory
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency function that yields database sessions.

    Yields:
        AsyncSession: Database session
    """
    async with async_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# Alias for FastAPI dependency injection
get_db = get_async_session


async def init_db() -> None:
    """Initialize the database by creating all tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Close database connections."""
    await engine.dispose()
