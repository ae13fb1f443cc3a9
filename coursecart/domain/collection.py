"""Cart and wishlist aggregates.

Both aggregates share the same shape: an owner (``user_id``), a set of course
items and a cached ``total``.  The shared behaviour lives in
:class:`CourseCollection`; the concrete classes only differ in the name of the
owning identifier carried by their items.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import ClassVar
from uuid import uuid4


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware ``datetime``."""

    return datetime.now(UTC)


def new_id() -> str:
    """Generate a new aggregate or item identifier."""

    return str(uuid4())


@dataclass(slots=True)
class CollectionItem:
    """A single course held by a cart or wishlist."""

    id: str
    course_id: str
    owner_id: str
    added_at: datetime = field(default_factory=utcnow)

    @classmethod
    def create(cls, owner_id: str, course_id: str) -> CollectionItem:
        """Build a fresh item with a generated id and the current timestamp."""

        return cls(id=new_id(), course_id=course_id, owner_id=owner_id)


@dataclass(slots=True)
class CartItem(CollectionItem):
    @property
    def cart_id(self) -> str:
        return self.owner_id


@dataclass(slots=True)
class WishlistItem(CollectionItem):
    @property
    def wishlist_id(self) -> str:
        return self.owner_id


class CourseCollection:
    """Owner-scoped set of course items.

    Items are kept most recent first, matching the order in which storage
    returns them.  ``course_id`` is unique within the collection.
    """

    kind: ClassVar[str] = "collection"
    item_class: ClassVar[type[CollectionItem]] = CollectionItem

    def __init__(
        self,
        *,
        id: str,
        user_id: str,
        items: Iterable[CollectionItem] = (),
        total: int | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ) -> None:
        now = utcnow()
        self._id = id
        self._user_id = user_id
        self._items: list[CollectionItem] = list(items)
        self._total = len(self._items) if total is None else total
        self._created_at = created_at or now
        self._updated_at = updated_at or self._created_at

    @classmethod
    def create(cls, user_id: str, id: str | None = None) -> CourseCollection:
        """Return a new empty collection for ``user_id``."""

        return cls(id=id or new_id(), user_id=user_id)

    @property
    def id(self) -> str:
        return self._id

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def items(self) -> tuple[CollectionItem, ...]:
        return tuple(self._items)

    @property
    def total(self) -> int:
        return self._total

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    def find_item(self, course_id: str) -> CollectionItem | None:
        for item in self._items:
            if item.course_id == course_id:
                return item
        return None

    def has_course(self, course_id: str) -> bool:
        return self.find_item(course_id) is not None

    def new_item(self, course_id: str) -> CollectionItem:
        """Build an item owned by this collection without adding it."""

        return self.item_class.create(self._id, course_id)

    def add_item(self, item: CollectionItem) -> bool:
        """Add ``item`` unless its course is already present.

        Returns ``False`` and leaves the collection untouched when the course
        is already a member.
        """

        if self.has_course(item.course_id):
            return False
        self._items.insert(0, item)
        self._total += 1
        self._touch()
        return True

    def remove_item(self, course_id: str) -> CollectionItem | None:
        """Remove and return the item for ``course_id`` if present."""

        item = self.find_item(course_id)
        if item is None:
            return None
        self._items.remove(item)
        self._total = max(self._total - 1, 0)
        self._touch()
        return item

    def _touch(self) -> None:
        self._updated_at = utcnow()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CourseCollection):
            return NotImplemented
        return (
            type(self) is type(other)
            and self._id == other._id
            and self._user_id == other._user_id
            and self._items == other._items
            and self._total == other._total
            and self._created_at == other._created_at
            and self._updated_at == other._updated_at
        )

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(id={self._id!r}, user_id={self._user_id!r}, "
            f"items={len(self._items)}, total={self._total})"
        )


class Cart(CourseCollection):
    kind = "cart"
    item_class = CartItem


class Wishlist(CourseCollection):
    kind = "wishlist"
    item_class = WishlistItem


__all__ = [
    "Cart",
    "CartItem",
    "CollectionItem",
    "CourseCollection",
    "Wishlist",
    "WishlistItem",
    "new_id",
    "utcnow",
]
