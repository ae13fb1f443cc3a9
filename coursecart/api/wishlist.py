"""RPC methods for the wishlist."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from coursecart.schemas.collection import (
    CollectionData,
    CollectionItemData,
    ItemResult,
    ListUserWishlistRequest,
    ListUserWishlistResult,
    RemoveFromWishlistRequest,
    RemovedResult,
    WishlistItemRequest,
)
from coursecart.schemas.envelope import PaginationData, SuccessEnvelope
from coursecart.services.collection_service import CollectionService
from coursecart.services.dependencies import get_wishlist_service

router = APIRouter()


@router.post("/AddToWishlist", response_model=SuccessEnvelope[ItemResult])
async def add_to_wishlist(
    payload: WishlistItemRequest,
    service: CollectionService = Depends(get_wishlist_service),
) -> SuccessEnvelope[ItemResult]:
    """Add a course to the user's wishlist, creating the wishlist on first use."""

    item = await service.add_item(
        user_id=payload.user_id,
        course_id=payload.course_id,
        collection_id=payload.wishlist_id,
    )
    return SuccessEnvelope(success=ItemResult(item=CollectionItemData.from_domain(item)))


@router.post("/ToggleWishlistItem", response_model=SuccessEnvelope[ItemResult])
async def toggle_wishlist_item(
    payload: WishlistItemRequest,
    service: CollectionService = Depends(get_wishlist_service),
) -> SuccessEnvelope[ItemResult]:
    """Flip wishlist membership; ``item`` is null when the course was removed."""

    result = await service.toggle_item(
        user_id=payload.user_id,
        course_id=payload.course_id,
        collection_id=payload.wishlist_id,
    )
    item = CollectionItemData.from_domain(result.item) if result.item else None
    return SuccessEnvelope(success=ItemResult(item=item))


@router.post("/RemoveFromWishlist", response_model=SuccessEnvelope[RemovedResult])
async def remove_from_wishlist(
    payload: RemoveFromWishlistRequest,
    service: CollectionService = Depends(get_wishlist_service),
) -> SuccessEnvelope[RemovedResult]:
    removed = await service.remove_item(
        collection_id=payload.wishlist_id, course_id=payload.course_id
    )
    return SuccessEnvelope(success=RemovedResult(removed=removed))


@router.post("/ListUserWishlist", response_model=SuccessEnvelope[ListUserWishlistResult])
async def list_user_wishlist(
    payload: ListUserWishlistRequest,
    service: CollectionService = Depends(get_wishlist_service),
) -> SuccessEnvelope[ListUserWishlistResult]:
    """Return one page of the user's wishlist, most recently added first."""

    page = await service.list_items(
        user_id=payload.user_id,
        page=payload.pagination.page,
        page_size=payload.pagination.page_size,
    )
    wishlist = CollectionData.from_domain(page.collection) if page.collection else None
    return SuccessEnvelope(
        success=ListUserWishlistResult(
            wishlist=wishlist,
            pagination=PaginationData(
                total_items=page.total_items, total_pages=page.total_pages
            ),
        )
    )
