"""Read-through caching shared by the persistence gateways.

The :func:`cached` decorator adds a thin asynchronous wrapper around gateway
lookups: compute a key, try the cache, otherwise call through to storage and
store the serialised result.  ``None`` results are never stored, so lookups
of missing rows always reach the database.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from functools import partial, wraps
from typing import Any, Concatenate, ParamSpec, TypeVar, cast

from sqlalchemy.ext.asyncio import AsyncSession

from coursecart.cache import CacheClient, defer_invalidation, has_uncommitted_writes

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")

CacheKeyBuilder = Callable[Concatenate["CacheableRepository", P], str | None]
CacheSerializer = Callable[[T], Any]
CacheDeserializer = Callable[["CacheableRepository", Any], T]
TtlSelector = Callable[[CacheClient], int]
DecoratedCallable = Callable[Concatenate["CacheableRepository", P], Awaitable[T]]


def point_ttl(cache: CacheClient) -> int:
    return cache.point_ttl


def listing_ttl(cache: CacheClient) -> int:
    return cache.listing_ttl


class CacheableRepository:
    """Base class that exposes the cache capability to decorated methods.

    The cache is passed in explicitly; ``None`` disables caching entirely,
    which keeps gateways usable in scripts that have no Redis at hand.

    Writes never touch the cache directly.  They queue their invalidation on
    the session, and while a session holds uncommitted writes its reads go
    straight to storage so uncommitted state is never cached.
    """

    def __init__(self, session: AsyncSession, cache: CacheClient | None = None) -> None:
        self._session = session
        self._cache = cache

    @property
    def cache(self) -> CacheClient | None:
        return self._cache

    @property
    def caching_suspended(self) -> bool:
        return has_uncommitted_writes(self._session)

    def _invalidate_on_commit(
        self, invalidate: Callable[..., Awaitable[None]], *args: Any
    ) -> None:
        """Schedule ``invalidate(cache, *args)`` to run after the next commit."""
        invalidation = None
        if self._cache is not None:
            invalidation = partial(invalidate, self._cache, *args)
        defer_invalidation(self._session, invalidation)

    async def _cache_get(self, key: str) -> Any:
        if self._cache is None:
            return None
        return await self._cache.get_json(key)

    async def _cache_set(self, key: str, value: Any, ttl: int | None = None) -> None:
        if self._cache is None:
            return
        await self._cache.set_json(key, value, ttl=ttl)


def cached(
    key_builder: CacheKeyBuilder[P],
    *,
    ttl: TtlSelector = point_ttl,
    serializer: CacheSerializer[T] | None = None,
    deserializer: CacheDeserializer[T] | None = None,
    deserialize_error_message: str | None = None,
) -> Callable[[DecoratedCallable], DecoratedCallable]:
    """Decorate an async gateway method with read-through caching.

    Parameters
    ----------
    key_builder:
        Callable that returns the cache key for the invocation.  Returning
        ``None`` short-circuits caching for the call.
    ttl:
        Selects the lifetime from the cache client, either the point or the
        listing TTL.
    serializer / deserializer:
        Hooks that convert between domain objects and JSON-serialisable
        payloads.  The deserializer also receives the repository so it can
        pick the aggregate class to rebuild.
    deserialize_error_message:
        Optional ``str.format`` template logged when a cached payload cannot be
        deserialised; the call then falls through to storage.
    """

    def decorator(func: DecoratedCallable) -> DecoratedCallable:
        @wraps(func)
        async def wrapper(
            self: "CacheableRepository", *args: P.args, **kwargs: P.kwargs
        ) -> T:
            cache_key = None
            if self._cache is not None and not self.caching_suspended:
                cache_key = key_builder(self, *args, **kwargs)
            if cache_key:
                cached_value = await self._cache_get(cache_key)
                if cached_value is not None:
                    if deserializer is None:
                        return cast(T, cached_value)
                    try:
                        return deserializer(self, cached_value)
                    except (KeyError, TypeError, ValueError) as exc:
                        if deserialize_error_message:
                            logger.warning(
                                deserialize_error_message.format(
                                    key=cache_key, error=exc
                                )
                            )

            result = await func(self, *args, **kwargs)

            if cache_key and result is not None:
                payload: Any = result
                if serializer is not None:
                    payload = serializer(result)
                await self._cache_set(cache_key, payload, ttl=ttl(self._cache))

            return result

        return wrapper

    return decorator


__all__ = ["CacheableRepository", "cached", "listing_ttl", "point_ttl"]
