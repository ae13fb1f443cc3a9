"""Redis-backed cache coordinator.

The :class:`CacheClient` wraps an optional ``redis.asyncio`` handle.  The cache
is never authoritative: reads that fail are reported as misses and writes that
fail are logged and dropped, so a Redis outage degrades latency but never
breaks a request.  The handle itself is created once by the application
lifespan and handed to every consumer explicitly.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

from redis.asyncio import Redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession

from coursecart.settings import (
    DEFAULT_CACHE_LISTING_TTL_SECONDS,
    DEFAULT_CACHE_TTL_SECONDS,
)

logger = logging.getLogger(__name__)

POINT_TTL_SECONDS = DEFAULT_CACHE_TTL_SECONDS
LISTING_TTL_SECONDS = DEFAULT_CACHE_LISTING_TTL_SECONDS

USER_ENTITY = "user"
CART_ENTITY = "cart"
WISHLIST_ENTITY = "wishlist"


def _is_redis_connection_error(exc: Exception) -> bool:
    """Return True when ``exc`` signals an unreachable or timed out Redis."""

    return isinstance(exc, (RedisConnectionError, RedisTimeoutError, OSError))


# -- Key builders ----------------------------------------------------------------


def point_key(entity: str, entity_id: str) -> str:
    return f"{entity}:{entity_id}"


def natural_key(entity: str, value: str) -> str:
    return f"{entity}:key:{value}"


def list_key(entity: str, *, limit: int, offset: int) -> str:
    return f"{entity}:list:limit{limit}:offset{offset}"


def instructors_key(*, limit: int, offset: int) -> str:
    return f"{USER_ENTITY}:instructors:limit{limit}:offset{offset}"


def ids_key(entity: str, ids: Iterable[str]) -> str:
    """Batch lookup key; the id list is sorted so argument order is irrelevant."""

    return f"{entity}:ids:{','.join(sorted(ids))}"


def owner_list_key(entity: str, owner_id: str, *, limit: int, offset: int) -> str:
    return f"{entity}:user:{owner_id}:list:limit{limit}:offset{offset}"


def owner_list_pattern(entity: str, owner_id: str) -> str:
    return f"{entity}:user:{owner_id}:list:*"


# -- Client ------------------------------------------------------------------------


class CacheClient:
    """JSON cache operations on top of an optional Redis connection."""

    def __init__(
        self,
        redis: Redis | None,
        *,
        point_ttl: int = POINT_TTL_SECONDS,
        listing_ttl: int = LISTING_TTL_SECONDS,
    ) -> None:
        self._redis = redis
        self.point_ttl = point_ttl
        self.listing_ttl = listing_ttl

    @property
    def enabled(self) -> bool:
        return self._redis is not None

    async def get_json(self, key: str) -> Any:
        if self._redis is None:
            return None
        try:
            payload = await self._redis.get(key)
        except Exception as exc:
            if _is_redis_connection_error(exc):
                logger.debug(f"Redis get failed for key {key}: {exc}")
                return None
            raise
        if payload is None:
            return None
        try:
            return json.loads(payload)
        except (json.JSONDecodeError, TypeError):
            logger.warning("Discarding undecodable cache entry %s", key)
            return None

    async def set_json(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store ``value`` under ``key``; failures never reach the caller."""

        if self._redis is None:
            return
        if ttl is None:
            ttl = self.point_ttl
        try:
            encoded = json.dumps(value, default=str)
            await self._redis.set(key, encoded, ex=ttl)
        except Exception as exc:
            if _is_redis_connection_error(exc):
                logger.debug(f"Redis set failed for key {key}: {exc}")
            else:
                logger.warning("Failed to persist cache entry for key %s: %s", key, exc)

    async def delete(self, *keys: str) -> None:
        if self._redis is None or not keys:
            return
        try:
            await self._redis.delete(*keys)
        except Exception as exc:
            if _is_redis_connection_error(exc):
                logger.debug(f"Redis delete failed: {exc}")
                return
            raise

    async def delete_pattern(self, pattern: str) -> None:
        if self._redis is None:
            return
        try:
            async for key in self._redis.scan_iter(match=pattern):
                await self._redis.delete(key)
        except Exception as exc:
            if _is_redis_connection_error(exc):
                logger.debug(f"Redis delete_pattern failed for {pattern}: {exc}")
                return
            raise


async def connect_redis(url: str) -> Redis | None:
    """Open a Redis connection, returning ``None`` when it is unreachable."""

    client = Redis.from_url(url, encoding="utf-8", decode_responses=True)
    try:
        await client.ping()
    except (RedisError, OSError) as exc:
        logger.warning(f"Redis unavailable at startup, caching disabled: {exc}")
        await client.aclose()
        return None
    logger.info("Connected to Redis cache")
    return client


# -- Invalidation ------------------------------------------------------------------


async def invalidate_user(
    cache: CacheClient, user_id: str, *emails: str | None
) -> None:
    """Invalidate all caches related to a user.

    Listings and batch lookups are not tracked per user, so the whole
    namespace for each is cleared.
    """

    keys = [point_key(USER_ENTITY, user_id)]
    keys.extend(natural_key(USER_ENTITY, email) for email in emails if email)
    await cache.delete(*keys)
    await cache.delete_pattern(f"{USER_ENTITY}:list:*")
    await cache.delete_pattern(f"{USER_ENTITY}:instructors:*")
    await cache.delete_pattern(f"{USER_ENTITY}:ids:*")


async def invalidate_collection(
    cache: CacheClient, entity: str, collection_id: str, owner_id: str | None
) -> None:
    """Invalidate a cart or wishlist and every cached page of its owner."""

    await cache.delete(point_key(entity, collection_id))
    if owner_id is not None:
        await cache.delete_pattern(owner_list_pattern(entity, owner_id))


# -- Commit-time invalidation ------------------------------------------------------

Invalidation = Callable[[], Awaitable[None]]

_PENDING_INVALIDATIONS = "coursecart.pending_invalidations"


def defer_invalidation(
    session: AsyncSession, invalidation: Invalidation | None = None
) -> None:
    """Record an uncommitted write on ``session``.

    ``invalidation`` runs only once the transaction has committed, so a
    concurrent reader cannot repopulate the cache with the state the write is
    replacing.  Until then the session counts as holding uncommitted writes
    and its reads bypass the cache.
    """

    pending = session.info.setdefault(_PENDING_INVALIDATIONS, [])
    if invalidation is not None:
        pending.append(invalidation)


def has_uncommitted_writes(session: AsyncSession) -> bool:
    return _PENDING_INVALIDATIONS in session.info


def discard_invalidations(session: AsyncSession) -> None:
    """Forget the pending invalidations of a transaction that rolled back."""
    session.info.pop(_PENDING_INVALIDATIONS, None)


async def run_invalidations(session: AsyncSession) -> None:
    """Run the invalidations queued by the transaction that just committed."""
    for invalidation in session.info.pop(_PENDING_INVALIDATIONS, []):
        await invalidation()


__all__ = [
    "CART_ENTITY",
    "CacheClient",
    "Invalidation",
    "LISTING_TTL_SECONDS",
    "POINT_TTL_SECONDS",
    "USER_ENTITY",
    "WISHLIST_ENTITY",
    "connect_redis",
    "defer_invalidation",
    "discard_invalidations",
    "has_uncommitted_writes",
    "ids_key",
    "instructors_key",
    "invalidate_collection",
    "invalidate_user",
    "list_key",
    "natural_key",
    "owner_list_key",
    "owner_list_pattern",
    "point_key",
    "run_invalidations",
]
