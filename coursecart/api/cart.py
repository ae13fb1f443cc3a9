"""RPC methods for the shopping cart."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from coursecart.schemas.collection import (
    CartItemRequest,
    CollectionData,
    CollectionItemData,
    ItemResult,
    ListUserCartRequest,
    ListUserCartResult,
    RemoveFromCartRequest,
    RemovedResult,
)
from coursecart.schemas.envelope import PaginationData, SuccessEnvelope
from coursecart.services.collection_service import CollectionService
from coursecart.services.dependencies import get_cart_service

router = APIRouter()


@router.post("/AddToCart", response_model=SuccessEnvelope[ItemResult])
async def add_to_cart(
    payload: CartItemRequest,
    service: CollectionService = Depends(get_cart_service),
) -> SuccessEnvelope[ItemResult]:
    """Add a course to the user's cart, creating the cart on first use."""

    item = await service.add_item(
        user_id=payload.user_id,
        course_id=payload.course_id,
        collection_id=payload.cart_id,
    )
    return SuccessEnvelope(success=ItemResult(item=CollectionItemData.from_domain(item)))


@router.post("/ToggleCartItem", response_model=SuccessEnvelope[ItemResult])
async def toggle_cart_item(
    payload: CartItemRequest,
    service: CollectionService = Depends(get_cart_service),
) -> SuccessEnvelope[ItemResult]:
    """Flip cart membership; ``item`` is null when the course was removed."""

    result = await service.toggle_item(
        user_id=payload.user_id,
        course_id=payload.course_id,
        collection_id=payload.cart_id,
    )
    item = CollectionItemData.from_domain(result.item) if result.item else None
    return SuccessEnvelope(success=ItemResult(item=item))


@router.post("/RemoveFromCart", response_model=SuccessEnvelope[RemovedResult])
async def remove_from_cart(
    payload: RemoveFromCartRequest,
    service: CollectionService = Depends(get_cart_service),
) -> SuccessEnvelope[RemovedResult]:
    removed = await service.remove_item(
        collection_id=payload.cart_id, course_id=payload.course_id
    )
    return SuccessEnvelope(success=RemovedResult(removed=removed))


@router.post("/ListUserCart", response_model=SuccessEnvelope[ListUserCartResult])
async def list_user_cart(
    payload: ListUserCartRequest,
    service: CollectionService = Depends(get_cart_service),
) -> SuccessEnvelope[ListUserCartResult]:
    """Return one page of the user's cart, most recently added first."""

    page = await service.list_items(
        user_id=payload.user_id,
        page=payload.pagination.page,
        page_size=payload.pagination.page_size,
    )
    cart = CollectionData.from_domain(page.collection) if page.collection else None
    return SuccessEnvelope(
        success=ListUserCartResult(
            cart=cart,
            pagination=PaginationData(
                total_items=page.total_items, total_pages=page.total_pages
            ),
        )
    )
