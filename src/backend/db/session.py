"""
Async database session management for PostgreSQL.

Every storage round trip is bounded by DB_COMMAND_TIMEOUT_SECONDS; this layer
never retries.
"""

from collections.abc import AsyncGenerator

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from core.config import settings

logger = structlog.get_logger(__name__)

engine = create_async_engine(
    settings.POSTGRES_URL,
    echo=settings.DEBUG,
    pool_pre_ping=True,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_MAX_OVERFLOW,
    connect_args={"command_timeout": settings.DB_COMMAND_TIMEOUT_SECONDS},
)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency yielding a request-scoped session.

    Commits when the request handler returns and rolls back when it raises,
    so a rejected write never leaves partial rows behind.
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create tables that do not exist yet."""
    from db.base import Base
    import models  # noqa: F401  (registers mappers)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("database_initialized", host=settings.POSTGRES_HOST)


async def close_db() -> None:
    """Dispose of the connection pool."""
    await engine.dispose()
    logger.info("database_closed")
