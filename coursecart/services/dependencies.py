"""FastAPI dependency wiring for the coursecart services.

The factories here are the composition root: they build gateways around the
request session and the application's Redis handle, wrap them with timing
instrumentation and hand them to the services.
"""

from __future__ import annotations

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from coursecart.cache import CacheClient
from coursecart.db.connection import get_db
from coursecart.db.repositories import CartRepository, UserRepository, WishlistRepository
from coursecart.db.repositories.collection_repository import CollectionRepository
from coursecart.instrumentation import instrument
from coursecart.services.collection_service import CollectionService
from coursecart.services.pagination import CollectionPageIndex
from coursecart.services.user_service import UserService
from coursecart.settings import get_settings


def get_cache_client(request: Request) -> CacheClient:
    """Build a cache client around the Redis handle owned by the application.

    ``app.state.redis`` is ``None`` when Redis was unreachable at startup, in
    which case every cache call becomes a miss.
    """

    active_settings = get_settings()
    return CacheClient(
        getattr(request.app.state, "redis", None),
        point_ttl=active_settings.cache_ttl_seconds,
        listing_ttl=active_settings.cache_listing_ttl_seconds,
    )


def build_collection_service(
    repository: CollectionRepository, cache: CacheClient | None
) -> CollectionService:
    gateway = instrument(repository, component=f"{repository.entity}_repository")
    return CollectionService(
        repository=gateway, pages=CollectionPageIndex(gateway, cache)
    )


def get_cart_service(
    session: AsyncSession = Depends(get_db),
    cache: CacheClient = Depends(get_cache_client),
) -> CollectionService:
    return build_collection_service(CartRepository(session, cache), cache)


def get_wishlist_service(
    session: AsyncSession = Depends(get_db),
    cache: CacheClient = Depends(get_cache_client),
) -> CollectionService:
    return build_collection_service(WishlistRepository(session, cache), cache)


def get_user_service(
    session: AsyncSession = Depends(get_db),
    cache: CacheClient = Depends(get_cache_client),
) -> UserService:
    repository = instrument(UserRepository(session, cache), component="user_repository")
    return UserService(repository=repository)


__all__ = [
    "build_collection_service",
    "get_cache_client",
    "get_cart_service",
    "get_user_service",
    "get_wishlist_service",
]
