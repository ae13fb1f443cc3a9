"""Persistence gateway shared by carts and wishlists.

Carts and wishlists are stored in structurally identical table pairs, so one
generic gateway does the work and the concrete subclasses only bind the
aggregate class, the ORM models and the cache entity name.

Writes go through Core statements against the mapped tables; reads use ORM
selects with ``populate_existing`` so rows rewritten earlier in the same
session are never served stale from the identity map.  Each write queues
the invalidation of the collection's point key and its owner's pages; they
are cleared once the transaction commits.
"""

from __future__ import annotations

import logging
from typing import Any, ClassVar

from sqlalchemy import delete, func, insert, select, update

from coursecart.cache import invalidate_collection, point_key
from coursecart.db.models import Base
from coursecart.db.repositories.base import insert_ignoring_conflicts
from coursecart.domain.collection import CollectionItem, CourseCollection, utcnow
from coursecart.domain.errors import NotFoundError
from coursecart.domain.serialization import (
    as_utc,
    collection_from_payload,
    collection_to_payload,
)
from coursecart.services.caching import CacheableRepository, cached

logger = logging.getLogger(__name__)

DEFAULT_PAGE_LIMIT = 10


def _collection_deserializer(
    repository: CacheableRepository, payload: dict[str, Any]
) -> CourseCollection:
    return collection_from_payload(repository.collection_class, payload)  # type: ignore[attr-defined]


class CollectionRepository(CacheableRepository):
    """Gateway for one owner-scoped collection type."""

    collection_class: ClassVar[type[CourseCollection]]
    header_model: ClassVar[type[Base]]
    item_model: ClassVar[type[Base]]
    owner_column: ClassVar[str]

    @property
    def entity(self) -> str:
        return self.collection_class.kind

    # -- Column helpers ------------------------------------------------------

    @property
    def _header_table(self):
        return self.header_model.__table__

    @property
    def _item_table(self):
        return self.item_model.__table__

    @property
    def _item_owner(self):
        return getattr(self.item_model, self.owner_column)

    def _item_row(self, item: CollectionItem) -> dict[str, Any]:
        return {
            "id": item.id,
            self.owner_column: item.owner_id,
            "course_id": item.course_id,
            "added_at": item.added_at,
        }

    def _to_item(self, record: Any) -> CollectionItem:
        return self.collection_class.item_class(
            id=record.id,
            course_id=record.course_id,
            owner_id=getattr(record, self.owner_column),
            added_at=as_utc(record.added_at),
        )

    def _to_domain(
        self, header: Any, items: list[Any], total: int
    ) -> CourseCollection:
        return self.collection_class(
            id=header.id,
            user_id=header.user_id,
            items=[self._to_item(record) for record in items],
            total=total,
            created_at=as_utc(header.created_at),
            updated_at=as_utc(header.updated_at),
        )

    # -- Reads ---------------------------------------------------------------

    async def _load_header(self, *criteria: Any) -> Any | None:
        query = (
            select(self.header_model)
            .where(*criteria)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(query)
        return result.scalar_one_or_none()

    async def _count_items(self, collection_id: str) -> int:
        query = select(func.count()).select_from(self.item_model).where(
            self._item_owner == collection_id
        )
        result = await self._session.execute(query)
        return int(result.scalar_one())

    async def _load_items(
        self, collection_id: str, *, offset: int = 0, limit: int | None = None
    ) -> list[Any]:
        query = (
            select(self.item_model)
            .where(self._item_owner == collection_id)
            .order_by(self.item_model.added_at.desc(), self.item_model.id.desc())
            .offset(offset)
            .execution_options(populate_existing=True)
        )
        if limit is not None:
            query = query.limit(limit)
        result = await self._session.execute(query)
        return list(result.scalars().all())

    async def _owner_of(self, collection_id: str) -> str | None:
        query = select(self.header_model.user_id).where(
            self.header_model.id == collection_id
        )
        result = await self._session.execute(query)
        return result.scalar_one_or_none()

    @cached(
        lambda self, collection_id: point_key(self.entity, collection_id),
        serializer=collection_to_payload,
        deserializer=_collection_deserializer,
        deserialize_error_message="Failed to deserialize cached collection {key}: {error}",
    )
    async def find_by_id(self, collection_id: str) -> CourseCollection | None:
        """Return the collection with every item, most recently added first."""

        header = await self._load_header(self.header_model.id == collection_id)
        if header is None:
            return None
        items = await self._load_items(header.id)
        return self._to_domain(header, items, len(items))

    async def find_by_owner(
        self,
        user_id: str,
        offset: int = 0,
        limit: int | None = DEFAULT_PAGE_LIMIT,
    ) -> tuple[CourseCollection | None, int]:
        """Return the owner's collection holding one page of items.

        The second element is the owner's full item count, independent of the
        requested window.  ``limit=None`` loads every item.
        """

        header = await self._load_header(self.header_model.user_id == user_id)
        if header is None:
            return None, 0
        total = await self._count_items(header.id)
        items = await self._load_items(header.id, offset=offset, limit=limit)
        return self._to_domain(header, items, total), total

    async def find_item(self, user_id: str, course_id: str) -> CollectionItem | None:
        query = (
            select(self.item_model)
            .join(self.header_model, self._item_owner == self.header_model.id)
            .where(
                self.header_model.user_id == user_id,
                self.item_model.course_id == course_id,
            )
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(query)
        record = result.scalar_one_or_none()
        return self._to_item(record) if record is not None else None

    # -- Writes --------------------------------------------------------------

    async def create(self, collection: CourseCollection) -> bool:
        """Insert the header and then its items.

        Returns ``False`` without writing anything when the owner already has a
        collection, which happens when two requests create it concurrently.
        """

        header_row = {
            "id": collection.id,
            "user_id": collection.user_id,
            "total": len(collection.items),
            "created_at": collection.created_at,
            "updated_at": collection.updated_at,
        }
        written = await insert_ignoring_conflicts(
            self._session, self._header_table, [header_row]
        )
        if not written:
            logger.debug(
                "%s for user %s already exists; skipping create",
                self.entity,
                collection.user_id,
            )
            return False
        if collection.items:
            await self._session.execute(
                insert(self._item_table),
                [self._item_row(item) for item in collection.items],
            )
        self._invalidate_on_commit(
            invalidate_collection, self.entity, collection.id, collection.user_id
        )
        return True

    async def update(self, collection: CourseCollection) -> None:
        """Replace the header and rewrite every item row.

        ``collection`` must carry its complete item set; the rows are deleted
        and re-inserted from it.
        """

        result = await self._session.execute(
            update(self._header_table)
            .where(self._header_table.c.id == collection.id)
            .values(
                user_id=collection.user_id,
                total=len(collection.items),
                updated_at=collection.updated_at,
            )
        )
        if result.rowcount == 0:
            raise NotFoundError(
                f"{self.entity.capitalize()} not found",
                details={"id": collection.id},
            )
        await self._session.execute(
            delete(self._item_table).where(
                self._item_table.c[self.owner_column] == collection.id
            )
        )
        if collection.items:
            await self._session.execute(
                insert(self._item_table),
                [self._item_row(item) for item in collection.items],
            )
        self._invalidate_on_commit(
            invalidate_collection, self.entity, collection.id, collection.user_id
        )

    async def delete(self, collection: CourseCollection) -> None:
        await self._session.execute(
            delete(self._item_table).where(
                self._item_table.c[self.owner_column] == collection.id
            )
        )
        await self._session.execute(
            delete(self._header_table).where(self._header_table.c.id == collection.id)
        )
        self._invalidate_on_commit(
            invalidate_collection, self.entity, collection.id, collection.user_id
        )

    async def add_item(self, item: CollectionItem) -> bool:
        """Insert a single item; returns ``False`` if the course was already there."""

        written = await insert_ignoring_conflicts(
            self._session, self._item_table, [self._item_row(item)]
        )
        if written:
            await self._refresh_header(item.owner_id)
            owner_id = await self._owner_of(item.owner_id)
            self._invalidate_on_commit(
                invalidate_collection, self.entity, item.owner_id, owner_id
            )
        return bool(written)

    async def remove_item(self, collection_id: str, course_id: str) -> bool:
        """Delete a single item; returns whether a row was removed."""

        result = await self._session.execute(
            delete(self._item_table).where(
                self._item_table.c[self.owner_column] == collection_id,
                self._item_table.c.course_id == course_id,
            )
        )
        removed = (result.rowcount or 0) > 0
        if removed:
            await self._refresh_header(collection_id)
            owner_id = await self._owner_of(collection_id)
            self._invalidate_on_commit(
                invalidate_collection, self.entity, collection_id, owner_id
            )
        return removed

    async def _refresh_header(self, collection_id: str) -> None:
        """Recompute the cached ``total`` and advance ``updated_at``."""

        item_count = (
            select(func.count())
            .select_from(self._item_table)
            .where(self._item_table.c[self.owner_column] == collection_id)
            .scalar_subquery()
        )
        await self._session.execute(
            update(self._header_table)
            .where(self._header_table.c.id == collection_id)
            .values(total=item_count, updated_at=utcnow())
        )


__all__ = ["CollectionRepository", "DEFAULT_PAGE_LIMIT"]
