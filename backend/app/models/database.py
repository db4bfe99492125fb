"""Database connection and session management"""
import asyncio
from typing import AsyncGenerator

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from app.config import get_settings

logger = structlog.get_logger()
settings = get_settings()

engine_options = {"echo": settings.debug}
if not settings.database_url.startswith("sqlite"):
    engine_options["pool_size"] = settings.database_pool_size

engine = create_async_engine(settings.database_url, **engine_options)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all models"""
    pass


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency to get database session"""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def backoff_delay(attempt: int, max_delay: float) -> float:
    """Seconds to wait after a failed connection attempt (1-based)."""
    return min(float(2 ** (attempt - 1)), max_delay)


async def init_db(max_attempts: int | None = None) -> bool:
    """
    Create database tables, retrying the connection with exponential backoff.

    Returns False once every attempt has failed so the caller can fall back
    to in-memory storage.
    """
    attempts = max_attempts or settings.db_connect_attempts

    for attempt in range(1, attempts + 1):
        try:
            logger.info("Connecting to database", attempt=attempt, max_attempts=attempts)
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("Database connected")
            return True
        except Exception as e:
            logger.error("Database connection attempt failed", attempt=attempt, error=str(e))
            if attempt == attempts:
                logger.error("All database connection attempts failed")
                return False

            wait = backoff_delay(attempt, settings.db_connect_max_backoff)
            logger.info("Waiting before retry", seconds=wait)
            await asyncio.sleep(wait)

    return False


async def close_db():
    """Close database connections"""
    await engine.dispose()
