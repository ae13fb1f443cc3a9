"""Request and response schemas for the cart and wishlist RPC methods."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from coursecart.domain.collection import CollectionItem, CourseCollection
from coursecart.schemas.envelope import PaginationData, PaginationRequest, RpcModel


class CollectionItemData(RpcModel):
    id: str
    course_id: str
    created_at: datetime = Field(..., description="When the course was added")

    @classmethod
    def from_domain(cls, item: CollectionItem) -> CollectionItemData:
        return cls(id=item.id, course_id=item.course_id, created_at=item.added_at)


class CollectionData(RpcModel):
    id: str
    user_id: str
    items: list[CollectionItemData]
    total: int = Field(..., description="Number of courses in the whole collection")
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, collection: CourseCollection) -> CollectionData:
        return cls(
            id=collection.id,
            user_id=collection.user_id,
            items=[CollectionItemData.from_domain(item) for item in collection.items],
            total=collection.total,
            created_at=collection.created_at,
            updated_at=collection.updated_at,
        )


class ItemResult(RpcModel):
    item: CollectionItemData | None = None


class RemovedResult(RpcModel):
    removed: bool


# -- Cart ------------------------------------------------------------------------


class CartItemRequest(RpcModel):
    cart_id: str | None = Field(
        None, description="Optional; must match the user's cart when it exists"
    )
    user_id: str = Field(..., min_length=1)
    course_id: str = Field(..., min_length=1)


class RemoveFromCartRequest(RpcModel):
    cart_id: str = Field(..., min_length=1)
    course_id: str = Field(..., min_length=1)


class ListUserCartRequest(RpcModel):
    user_id: str = Field(..., min_length=1)
    pagination: PaginationRequest = Field(default_factory=PaginationRequest)


class ListUserCartResult(RpcModel):
    cart: CollectionData | None
    pagination: PaginationData


# -- Wishlist --------------------------------------------------------------------


class WishlistItemRequest(RpcModel):
    wishlist_id: str | None = Field(
        None, description="Optional; must match the user's wishlist when it exists"
    )
    user_id: str = Field(..., min_length=1)
    course_id: str = Field(..., min_length=1)


class RemoveFromWishlistRequest(RpcModel):
    wishlist_id: str = Field(..., min_length=1)
    course_id: str = Field(..., min_length=1)


class ListUserWishlistRequest(RpcModel):
    user_id: str = Field(..., min_length=1)
    pagination: PaginationRequest = Field(default_factory=PaginationRequest)


class ListUserWishlistResult(RpcModel):
    wishlist: CollectionData | None
    pagination: PaginationData


__all__ = [
    "CartItemRequest",
    "CollectionData",
    "CollectionItemData",
    "ItemResult",
    "ListUserCartRequest",
    "ListUserCartResult",
    "ListUserWishlistRequest",
    "ListUserWishlistResult",
    "RemoveFromCartRequest",
    "RemoveFromWishlistRequest",
    "RemovedResult",
    "WishlistItemRequest",
]
