"""Async SQLAlchemy engine, session factory and declarative base."""

import logging
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from homebirth.config import settings

logger = logging.getLogger(__name__)

_AFTER_COMMIT_KEY = "after_commit"


def _engine_kwargs() -> dict:
    if settings.database_url.startswith("sqlite"):
        return {"echo": settings.debug}
    return {
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_pre_ping": True,  # Detect stale connections
        "pool_recycle": 3600,
        "echo": settings.debug,
    }


engine = create_async_engine(settings.database_url, **_engine_kwargs())

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    """All ORM models inherit from this."""

    pass


def after_commit(session: AsyncSession, callback: Callable[..., Awaitable[Any]], *args: Any) -> None:
    """Run ``await callback(*args)`` after ``session`` commits."""
    session.info.setdefault(_AFTER_COMMIT_KEY, []).append((callback, args))


async def _run_after_commit(session: AsyncSession) -> None:
    for callback, args in session.info.pop(_AFTER_COMMIT_KEY, []):
        try:
            await callback(*args)
        except Exception:
            logger.exception(f"After-commit callback {getattr(callback, '__qualname__', callback)} failed")


@asynccontextmanager
async def get_db_context(
    factory: async_sessionmaker[AsyncSession] | None = None,
) -> AsyncGenerator[AsyncSession, None]:
    """Session that commits on success and rolls back on error.

    Callbacks registered with ``after_commit`` run once the commit succeeded
    and are dropped on rollback.
    """
    async with (factory or AsyncSessionLocal)() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            dropped = session.info.pop(_AFTER_COMMIT_KEY, [])
            if dropped:
                logger.info(f"Dropped {len(dropped)} after-commit callbacks on rollback")
            raise
        await _run_after_commit(session)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency wrapping ``get_db_context``."""
    async with get_db_context() as session:
        yield session


async def init_db() -> None:
    """Create all tables (development only; production uses Alembic)."""
    import homebirth.models  # noqa: F401  register mappers

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Dispose engine."""
    await engine.dispose()
