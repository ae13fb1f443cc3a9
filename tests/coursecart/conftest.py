"""Shared fixtures: an in-memory SQLite session and Redis test doubles."""

from __future__ import annotations

import fnmatch
from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from coursecart.cache import CacheClient
from coursecart.db.models import Base


class InMemoryRedis:
    """Lightweight async Redis double used by the cache-aware tests."""

    def __init__(self) -> None:
        self._store: dict[str, str] = {}
        self._ttl: dict[str, int | None] = {}

    async def ping(self) -> bool:  # pragma: no cover - mirror redis API
        return True

    async def get(self, key: str) -> str | None:
        return self._store.get(key)

    async def set(self, key: str, value: str, ex: int | None = None) -> None:
        self._store[key] = value
        self._ttl[key] = ex

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self._store.pop(key, None) is not None:
                removed += 1
            self._ttl.pop(key, None)
        return removed

    async def scan_iter(self, match: str) -> AsyncIterator[str]:
        for key in list(self._store.keys()):
            if fnmatch.fnmatch(key, match):
                yield key

    async def aclose(self) -> None:  # pragma: no cover - compatibility shim
        self._store.clear()
        self._ttl.clear()

    def keys(self) -> list[str]:
        return sorted(self._store)


class UnreachableRedis:
    """Redis double whose every call fails as if the server were down."""

    async def ping(self) -> bool:
        raise RedisConnectionError("connection refused")

    async def get(self, key: str) -> str | None:
        raise RedisConnectionError("connection refused")

    async def set(self, key: str, value: str, ex: int | None = None) -> None:
        raise RedisConnectionError("connection refused")

    async def delete(self, *keys: str) -> int:
        raise RedisConnectionError("connection refused")

    async def scan_iter(self, match: str) -> AsyncIterator[str]:
        raise RedisConnectionError("connection refused")
        yield match  # pragma: no cover - makes this an async generator

    async def aclose(self) -> None:  # pragma: no cover - compatibility shim
        return None


@pytest_asyncio.fixture
async def session() -> AsyncIterator[AsyncSession]:
    """Provide an in-memory SQLite session for integration-style tests."""
    pytest.importorskip("aiosqlite")
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", future=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async_session = async_sessionmaker(engine, expire_on_commit=False)
    async with async_session() as db_session:
        yield db_session
        if db_session.in_transaction():
            await db_session.rollback()
    await engine.dispose()


@pytest.fixture
def fake_redis() -> InMemoryRedis:
    return InMemoryRedis()


@pytest.fixture
def cache(fake_redis: InMemoryRedis) -> CacheClient:
    """Cache client over the in-memory double with distinct point/listing TTLs."""
    return CacheClient(fake_redis, point_ttl=3600, listing_ttl=300)
