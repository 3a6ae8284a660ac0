"""
Database Module

Async SQLAlchemy engine, session factory and the ``get_db`` dependency.
One session is opened per request and committed or rolled back when the
request finishes.
"""

import logging
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from social_auth.core.config import settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


# Pool sizing only applies to server databases, not SQLite
_engine_kwargs = {}
if settings.DB_POOL_SIZE is not None:
    _engine_kwargs["pool_size"] = settings.DB_POOL_SIZE
if settings.DB_MAX_OVERFLOW is not None:
    _engine_kwargs["max_overflow"] = settings.DB_MAX_OVERFLOW

engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.SQLALCHEMY_ECHO,
    pool_pre_ping=True,
    **_engine_kwargs,
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency function: use in FastAPI `Depends(get_db)`."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def check_db_connection() -> bool:
    """Run a trivial query to confirm the database is reachable."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database connectivity check failed: {e}")
        return False
