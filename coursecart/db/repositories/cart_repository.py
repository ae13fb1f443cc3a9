"""Cart persistence gateway."""

from __future__ import annotations

from coursecart.db.models import CartItemRecord, CartRecord
from coursecart.db.repositories.collection_repository import CollectionRepository
from coursecart.domain.collection import Cart


class CartRepository(CollectionRepository):
    collection_class = Cart
    header_model = CartRecord
    item_model = CartItemRecord
    owner_column = "cart_id"
