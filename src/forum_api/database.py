"""Database configuration with async SQLAlchemy support."""

import logging
from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from sqlalchemy import Table
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from forum_api.config import get_settings
from forum_api.services.base import ServiceError, StoreUnavailableError

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def utc_now() -> datetime:
    """Current UTC time as a naive datetime, the form stored in every table."""
    return datetime.now(UTC).replace(tzinfo=None)


# Largest value of the 64-bit integer id columns
BIGINT_MAX = 2**63 - 1

settings = get_settings()

# Create async engine
engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
)

# Create async session factory
async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@asynccontextmanager
async def session_scope(
    factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """Open a session holding a checked-out connection for one command.

    The connection is acquired before the session is handed out, so an
    unreachable database surfaces as ``StoreUnavailableError`` before any
    request validation runs. Everything executed on the session shares one
    transaction: it is committed when the block exits cleanly and rolled back
    on any exception.
    """
    async with factory() as session:
        try:
            await session.connection()
        except (DBAPIError, OSError) as e:
            logger.error("Could not obtain a database connection: %s", e)
            raise StoreUnavailableError() from e

        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_db() -> AsyncGenerator[AsyncSession]:
    """Dependency that provides an async database session.

    Yields a session and ensures it's closed after the request.
    """
    async with session_scope(async_session) as session:
        yield session


def dialect_insert(session: AsyncSession, table: Table | type[Base]):
    """Return an INSERT construct supporting ``on_conflict_do_nothing``."""
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(table)
    if dialect == "sqlite":
        return sqlite.insert(table)
    raise ServiceError(f"Upserts are not supported on {dialect}")
