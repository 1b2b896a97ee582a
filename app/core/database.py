"""
Database engine and session handling.

The engine and session factory are created in the application lifespan and
kept on ``app.state``; ``get_db`` hands one session per request.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.core.config import settings


def create_engine(url: str | None = None, **kwargs) -> AsyncEngine:
    """Create the async engine (asyncpg in production)."""
    return create_async_engine(
        url or str(settings.DATABASE_URL),
        echo=settings.DATABASE_ECHO,
        pool_pre_ping=True,
        **kwargs,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Responses are built from ORM objects after commit
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Yield a session wrapped in a transaction.

    Commits when the route returns normally, rolls back on any exception.
    """
    session_factory: async_sessionmaker[AsyncSession] = request.app.state.session_factory
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
