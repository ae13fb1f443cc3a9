"""Cart and wishlist use cases: add, toggle, remove and paginated listing.

Every use case starts from the gateway (the source of truth) and leaves cache
invalidation to it.  Collections are created lazily the first time a course
is added.

Concurrent toggles on the same ``(user, course)`` pair are resolved by the
``(owner, course)`` uniqueness constraint: the item insert ignores conflicts,
and the loser re-reads the row the winner stored and reports it as a member.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from coursecart.db.repositories.collection_repository import CollectionRepository
from coursecart.domain.collection import CollectionItem, CourseCollection
from coursecart.domain.errors import DomainValidationError
from coursecart.services.pagination import CollectionPageIndex

logger = logging.getLogger(__name__)

_MAX_INSERT_ATTEMPTS = 3


@dataclass(frozen=True, slots=True)
class ToggleResult:
    """Collection state after a toggle; ``item`` is set when it was toggled in."""

    collection: CourseCollection
    item: CollectionItem | None

    @property
    def member(self) -> bool:
        return self.item is not None


@dataclass(frozen=True, slots=True)
class CollectionPage:
    collection: CourseCollection | None
    total_items: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_items / self.page_size) if self.page_size else 0


class CollectionService:
    """Coordinates a collection gateway and its page index."""

    def __init__(
        self, *, repository: CollectionRepository, pages: CollectionPageIndex
    ) -> None:
        self._repository = repository
        self._pages = pages

    @property
    def entity(self) -> str:
        return self._repository.entity

    async def add_item(
        self, *, user_id: str, course_id: str, collection_id: str | None = None
    ) -> CollectionItem:
        """Add a course, returning the stored item.

        Adding a course that is already present returns the existing item.
        """

        collection = await self._load_or_create(user_id, collection_id)
        existing = collection.find_item(course_id)
        if existing is not None:
            return existing
        return await self._insert(collection, user_id, course_id)

    async def toggle_item(
        self, *, user_id: str, course_id: str, collection_id: str | None = None
    ) -> ToggleResult:
        collection = await self._load_or_create(user_id, collection_id)
        if collection.has_course(course_id):
            await self._repository.remove_item(collection.id, course_id)
            collection.remove_item(course_id)
            logger.debug("Toggled %s out of %s %s", course_id, self.entity, collection.id)
            return ToggleResult(collection=collection, item=None)

        item = await self._insert(collection, user_id, course_id)
        logger.debug("Toggled %s into %s %s", course_id, self.entity, collection.id)
        return ToggleResult(collection=collection, item=item)

    async def remove_item(self, *, collection_id: str, course_id: str) -> bool:
        """Remove a course; returns whether the collection actually held it."""

        return await self._repository.remove_item(collection_id, course_id)

    async def list_items(
        self, *, user_id: str, page: int, page_size: int
    ) -> CollectionPage:
        if page < 1 or page_size < 1:
            raise DomainValidationError(
                "page and pageSize must be positive",
                details={"page": page, "pageSize": page_size},
            )
        collection, total = await self._pages.get_page(
            user_id, offset=(page - 1) * page_size, limit=page_size
        )
        return CollectionPage(
            collection=collection, total_items=total, page=page, page_size=page_size
        )

    async def _load_or_create(
        self, user_id: str, collection_id: str | None
    ) -> CourseCollection:
        """Load the user's collection with all items, creating it when absent."""

        collection, _ = await self._repository.find_by_owner(user_id, 0, None)
        if collection is None:
            candidate = self._repository.collection_class.create(user_id, id=collection_id)
            if await self._repository.create(candidate):
                logger.info("Created %s %s for user %s", self.entity, candidate.id, user_id)
                collection = candidate
            else:
                collection, _ = await self._repository.find_by_owner(user_id, 0, None)
            if collection is None:
                raise DomainValidationError(
                    f"{self.entity.capitalize()} id is already in use",
                    details={"id": collection_id, "userId": user_id},
                )
        if collection_id and collection.id != collection_id:
            raise DomainValidationError(
                f"{self.entity.capitalize()} does not belong to this user",
                details={"id": collection_id, "userId": user_id},
            )
        return collection

    async def _insert(
        self, collection: CourseCollection, user_id: str, course_id: str
    ) -> CollectionItem:
        for _ in range(_MAX_INSERT_ATTEMPTS):
            item = collection.new_item(course_id)
            if await self._repository.add_item(item):
                collection.add_item(item)
                return item
            stored = await self._repository.find_item(user_id, course_id)
            if stored is not None:
                collection.add_item(stored)
                return stored
        raise RuntimeError(
            f"Could not add course {course_id} to {self.entity} {collection.id}"
        )


__all__ = ["CollectionPage", "CollectionService", "ToggleResult"]
