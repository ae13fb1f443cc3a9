from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from urllib.parse import urlsplit

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from coursecart.cache import discard_invalidations, run_invalidations
from coursecart.instrumentation import setup_query_monitoring
from coursecart.settings import POSTGRES_ASYNC_PREFIX, AppSettings, get_settings

logger = logging.getLogger(__name__)


def validate_database_url(database_url: str) -> str:
    """Check that a resolved URL names a supported async driver.

    PostgreSQL URLs must carry a host and database name; SQLite URLs are
    accepted as-is for local development and tests.
    """

    normalized_url = database_url.strip()
    if not normalized_url:
        raise RuntimeError(
            "DATABASE_URL is set but empty. Provide a valid PostgreSQL connection string."
        )

    if normalized_url.startswith("sqlite+aiosqlite://"):
        return normalized_url

    if not normalized_url.startswith(POSTGRES_ASYNC_PREFIX):
        raise RuntimeError(
            "DATABASE_URL must use the PostgreSQL scheme. "
            "Expected a URL beginning with 'postgresql://', 'postgres://', or 'postgresql+psycopg://'."
        )

    parts = urlsplit(normalized_url)
    if not parts.hostname or not parts.path.strip("/"):
        raise RuntimeError(
            "DATABASE_URL appears malformed. Verify the host and database name are present."
        )

    return normalized_url


def create_engine(active_settings: AppSettings | None = None) -> AsyncEngine:
    """Create the async SQLAlchemy engine with slow query monitoring attached."""

    active_settings = active_settings or get_settings()
    url = validate_database_url(active_settings.resolved_database_url)

    if url.startswith("sqlite"):
        engine = create_async_engine(url, future=True, echo=False)
    else:
        engine = create_async_engine(
            url,
            future=True,
            echo=False,
            pool_size=active_settings.db_pool_size,
            max_overflow=active_settings.db_max_overflow,
            pool_pre_ping=True,  # Validate connections before use
            pool_recycle=1800,  # Recycle connections every 30 min
            pool_timeout=30,
        )

    setup_query_monitoring(engine, slow_query_threshold=active_settings.slow_query_threshold)
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


# Global engine/session instances for FastAPI dependency injection
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """Get or create the global engine instance."""
    global _engine
    if _engine is None:
        _engine = create_engine()
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Lazily create a session factory bound to the shared engine."""
    global _session_factory
    if _session_factory is None:
        _session_factory = create_session_factory(get_engine())
    return _session_factory


async def dispose_engine() -> None:
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None


async def commit(session: AsyncSession) -> None:
    """Commit, then drop the cache entries made stale by the committed writes."""
    await session.commit()
    await run_invalidations(session)


async def rollback(session: AsyncSession) -> None:
    discard_invalidations(session)
    await session.rollback()


async def get_db() -> AsyncIterator[AsyncSession]:
    """
    Dependency to provide database session.

    Commits when the request handler returns and rolls back when it raises, so
    a failed RPC never leaves a partial write behind.  Cache invalidations
    queued by the gateways run after the commit.
    """
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await rollback(session)
            raise
        await run_invalidations(session)


__all__ = [
    "commit",
    "create_engine",
    "create_session_factory",
    "dispose_engine",
    "get_db",
    "get_engine",
    "get_session_factory",
    "rollback",
    "validate_database_url",
]
