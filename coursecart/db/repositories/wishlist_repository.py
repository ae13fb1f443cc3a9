"""Wishlist persistence gateway."""

from __future__ import annotations

from coursecart.db.models import WishlistItemRecord, WishlistRecord
from coursecart.db.repositories.collection_repository import CollectionRepository
from coursecart.domain.collection import Wishlist


class WishlistRepository(CollectionRepository):
    collection_class = Wishlist
    header_model = WishlistRecord
    item_model = WishlistItemRecord
    owner_column = "wishlist_id"
