"""Unit of work: one atomic read-check-write sequence against the store."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .config import settings
from .exceptions import ConcurrencyConflictError, ConflictError
from .observability import metrics_collector

logger = logging.getLogger(__name__)

# serialization_failure, deadlock_detected, lock_not_available
RETRYABLE_SQLSTATES = frozenset({"40001", "40P01", "55P03"})


def _dialect_name(session: AsyncSession) -> str:
    bind = session.bind
    return bind.dialect.name if bind is not None else ""


def is_retryable_error(exc: DBAPIError) -> bool:
    """Return True when the driver error means another transaction won a race."""
    orig = getattr(exc, "orig", None)
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate in RETRYABLE_SQLSTATES:
        return True
    return "database is locked" in str(orig or exc).lower()


@asynccontextmanager
async def unit_of_work(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    Run the enclosed block as a single transaction.

    Commits when the block finishes, rolls back on any exception so no partial
    state is ever written. On PostgreSQL a transaction-local lock_timeout
    bounds how long row locks are waited for. Lock timeouts, deadlocks,
    serialization failures and SQLite busy errors surface as a retryable
    ConcurrencyConflictError; unique-constraint races as ConflictError.

    Usage::

        async with unit_of_work(db):
            scheduled_tour = await lock_scheduled_tour(...)
            ...

    Args:
        session: Session owning the transaction

    Yields:
        AsyncSession: The same session
    """
    try:
        if _dialect_name(session) == "postgresql":
            await session.execute(text(f"SET LOCAL lock_timeout = {int(settings.lock_timeout_ms)}"))

        yield session
        await session.commit()

    except IntegrityError as e:
        await session.rollback()
        logger.warning(
            "Unit of work aborted by integrity constraint",
            extra={"error": str(e.orig)}
        )
        raise ConflictError(detail="The change conflicts with an existing record") from e

    except DBAPIError as e:
        await session.rollback()
        if is_retryable_error(e):
            logger.warning(
                "Unit of work aborted by concurrent transaction",
                extra={"error": str(e.orig)}
            )
            metrics_collector.record_concurrency_conflict()
            raise ConcurrencyConflictError() from e
        raise

    except BaseException:
        await session.rollback()
        raise
