"""Async SQLAlchemy database setup."""

import logging
from collections.abc import AsyncGenerator
from functools import lru_cache

from sqlalchemy.exc import InterfaceError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from seoplanner.config import settings

logger = logging.getLogger(__name__)


@lru_cache
def get_engine() -> AsyncEngine:
    """Create the process-wide async engine on first use."""
    options: dict[str, object] = {"echo": settings.database_echo, "pool_pre_ping": True}
    if not settings.database_url.startswith("sqlite"):
        options.update(
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_recycle=300,  # Recycle connections every 5 min to avoid server-side timeouts
        )
    return create_async_engine(settings.database_url, **options)


@lru_cache
def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the process-wide engine."""
    return async_sessionmaker(
        get_engine(),
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def _rollback_quietly(session: AsyncSession, error: Exception) -> None:
    logger.warning(f"Database session error: {repr(error)}, rolling back")
    try:
        await session.rollback()
    except Exception:
        logger.warning("Rollback also failed (connection likely closed)")


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session for dependency injection."""
    async with get_session_maker()() as session:
        try:
            yield session
            await session.commit()
        except InterfaceError as e:
            if not session.in_transaction():
                # Connection closed after work already committed/rolled back.
                logger.debug("Session connection already closed during cleanup, ignoring")
                return
            await _rollback_quietly(session, e)
            raise
        except Exception as e:
            await _rollback_quietly(session, e)
            raise


async def init_db() -> None:
    """Initialize database (create tables if needed)."""
    logger.info("Initializing database tables")
    from seoplanner.models import Base

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Close database connections."""
    logger.info("Closing database connections")
    await get_engine().dispose()
