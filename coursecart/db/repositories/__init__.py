"""Persistence gateways for the user, cart and wishlist aggregates."""

from coursecart.db.repositories.cart_repository import CartRepository
from coursecart.db.repositories.collection_repository import CollectionRepository
from coursecart.db.repositories.user_repository import UserRepository
from coursecart.db.repositories.wishlist_repository import WishlistRepository

__all__ = [
    "CartRepository",
    "CollectionRepository",
    "UserRepository",
    "WishlistRepository",
]
