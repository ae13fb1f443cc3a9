"""Owner-scoped page cache over a collection gateway's ``find_by_owner``."""

from __future__ import annotations

import logging

from coursecart.cache import CacheClient, owner_list_key
from coursecart.db.repositories.collection_repository import CollectionRepository
from coursecart.domain.collection import CourseCollection
from coursecart.domain.serialization import page_from_payload, page_to_payload

logger = logging.getLogger(__name__)


class CollectionPageIndex:
    """Serve ``(collection, total)`` page windows read-through from the cache.

    Entries are keyed by owner, offset and limit and live for the listing TTL.
    The gateway clears an owner's whole namespace once each mutation commits,
    so the index never has to work out which pages a change touched.  While
    the gateway's session holds uncommitted writes the cache is bypassed.
    """

    def __init__(
        self, repository: CollectionRepository, cache: CacheClient | None = None
    ) -> None:
        self._repository = repository
        self._cache = cache

    @property
    def entity(self) -> str:
        return self._repository.entity

    async def get_page(
        self, user_id: str, *, offset: int, limit: int
    ) -> tuple[CourseCollection | None, int]:
        key = owner_list_key(self.entity, user_id, limit=limit, offset=offset)
        cache = None if self._repository.caching_suspended else self._cache
        if cache is not None:
            cached = await cache.get_json(key)
            if cached is not None:
                try:
                    return page_from_payload(self._repository.collection_class, cached)
                except (KeyError, TypeError, ValueError) as exc:
                    logger.warning(f"Ignoring malformed cached page {key}: {exc}")

        collection, total = await self._repository.find_by_owner(user_id, offset, limit)

        if cache is not None and collection is not None:
            await cache.set_json(
                key, page_to_payload((collection, total)), ttl=cache.listing_ttl
            )
        return collection, total


__all__ = ["CollectionPageIndex"]
