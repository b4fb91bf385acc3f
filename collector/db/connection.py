"""Async database engine and session management."""

import logging
from typing import AsyncGenerator, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from collector.config import settings

logger = logging.getLogger(__name__)

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def get_engine() -> AsyncEngine:
    """Get or create the shared async engine."""
    global _engine

    if _engine is None:
        kwargs = {"echo": settings.DATABASE_ECHO, "pool_pre_ping": True}
        if not settings.DATABASE_URL.startswith("sqlite"):
            kwargs["pool_size"] = settings.DATABASE_POOL_SIZE
            kwargs["max_overflow"] = settings.DATABASE_MAX_OVERFLOW
        _engine = create_async_engine(settings.DATABASE_URL, **kwargs)
        logger.debug("Created async engine")

    return _engine


def async_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get or create the session factory bound to the shared engine."""
    global _session_factory

    if _session_factory is None:
        _session_factory = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    return _session_factory


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield a session; roll back anything left uncommitted on error.

    Callers commit explicitly once their unit of work is complete.
    """
    async with async_session_factory()() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Verify the database is reachable."""
    async with get_engine().connect() as conn:
        await conn.execute(text("SELECT 1"))
    logger.info("Database reachable")


async def ping() -> bool:
    """Return True if a trivial query succeeds."""
    try:
        await init_db()
        return True
    except Exception as e:
        logger.warning(f"Database ping failed: {e}")
        return False


async def close_db() -> None:
    """Dispose the engine and drop the session factory."""
    global _engine, _session_factory

    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
