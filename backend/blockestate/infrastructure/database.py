"""History Store Sessions — async SQLAlchemy access to the tokenization history cache.

Invariants:
    - Every session rolls back on exception; no partial history rows are committed
    - Every SQLAlchemy failure surfaces as DatabaseError (503), classified by what
      it means for the history: a unique-constraint hit means the tx_hash or
      asset_id is already recorded
    - Using the store before init_db() raises DatabaseError, not a bare 500
    - health_check() never raises; readiness reports it as a flag

Design Decisions:
    - Module-level db_manager owned by the lifespan (init_db / close_db)
    - Pool sizing and pre-ping only for server databases; SQLite engines reject them
    - expire_on_commit=False: recorded rows stay readable after the commit
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import (
    DBAPIError, IntegrityError, OperationalError, SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import (
    AsyncSession, async_sessionmaker, create_async_engine,
)

from blockestate.core.errors import DatabaseError

logger = logging.getLogger(__name__)

# Checked in order: IntegrityError and OperationalError are DBAPIError subclasses
_FAILURE_KINDS: tuple[tuple[type[SQLAlchemyError], str, str], ...] = (
    (IntegrityError, "tokenization already recorded or row invalid", "commit"),
    (OperationalError, "history store unreachable", "execute"),
    (DBAPIError, "history store driver error", "query"),
    (SQLAlchemyError, "history store operation failed", "unknown"),
)


class DatabaseSessionManager:
    """Engine plus session factory for the history tables."""

    def __init__(
        self, database_url: str, pool_size: int = 20, max_overflow: int = 10,
    ):
        engine_kwargs: dict = {}
        if not database_url.startswith("sqlite"):
            engine_kwargs.update(
                pool_pre_ping=True,
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_recycle=3600,
            )
        self.engine = create_async_engine(database_url, **engine_kwargs)
        self._session_factory = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Session that rolls back and raises DatabaseError on any SQLAlchemy failure."""
        session = self._session_factory()
        try:
            yield session
        except SQLAlchemyError as e:
            await session.rollback()
            message, operation = classify_failure(e)
            logger.error(
                f"History store {operation} failed: {e}",
                extra={"error_code": "DATABASE_ERROR"},
            )
            raise DatabaseError(message, operation) from e
        finally:
            await session.close()

    async def health_check(self) -> bool:
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
            return True
        except (DatabaseError, OSError) as e:
            logger.warning(f"History store health check failed: {e}")
            return False

    async def dispose(self) -> None:
        await self.engine.dispose()


def classify_failure(exc: SQLAlchemyError) -> tuple[str, str]:
    """(message, operation) for a SQLAlchemy failure."""
    for kind, message, operation in _FAILURE_KINDS:
        if isinstance(exc, kind):
            return message, operation
    return "history store operation failed", "unknown"


db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **kwargs) -> None:
    global db_manager
    db_manager = DatabaseSessionManager(database_url, **kwargs)


async def close_db() -> None:
    global db_manager
    if db_manager is not None:
        await db_manager.dispose()
        db_manager = None


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for history-store sessions."""
    if db_manager is None:
        raise DatabaseError("history store not initialized", "connect")
    async with db_manager.session() as session:
        yield session
