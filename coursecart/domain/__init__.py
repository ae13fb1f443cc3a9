"""Aggregates and domain errors."""

from coursecart.domain.collection import (
    Cart,
    CartItem,
    CollectionItem,
    CourseCollection,
    Wishlist,
    WishlistItem,
)
from coursecart.domain.errors import (
    DomainError,
    DomainValidationError,
    DuplicateError,
    NotFoundError,
)
from coursecart.domain.user import (
    Gender,
    InstructorProfile,
    User,
    UserProfile,
    UserRole,
    UserSocial,
    UserStatus,
)

__all__ = [
    "Cart",
    "CartItem",
    "CollectionItem",
    "CourseCollection",
    "DomainError",
    "DomainValidationError",
    "DuplicateError",
    "Gender",
    "InstructorProfile",
    "NotFoundError",
    "User",
    "UserProfile",
    "UserRole",
    "UserSocial",
    "UserStatus",
    "Wishlist",
    "WishlistItem",
]
