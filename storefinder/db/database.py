"""
Database Module

Async SQLAlchemy engine, session factory and the FastAPI session dependency.

Each request gets its own AsyncSession. Repositories commit their own
writes; the dependency only guarantees the session is rolled back on
error and closed afterwards.
"""

import logging
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from storefinder.core.config import settings

logger = logging.getLogger(__name__)


# ============================================================
# Engine
# ============================================================
engine = create_async_engine(
    str(settings.DATABASE_URL),
    echo=settings.SQLALCHEMY_ECHO,
    pool_pre_ping=True,
)

# expire_on_commit=False: objects stay usable after commit
# (templates read them once the handler is done with the session)
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Declarative base shared by every model (and Alembic metadata)."""
    pass


# ============================================================
# Session Dependency
# ============================================================
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def check_db_connection() -> bool:
    """Run a trivial query to confirm the database is reachable."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return False


async def dispose_engine() -> None:
    """Close every pooled connection (application shutdown)."""
    await engine.dispose()
