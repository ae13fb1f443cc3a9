from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy.orm import DeclarativeBase


def utcnow() -> datetime:
    """Return current UTC datetime."""
    return datetime.now(UTC)


class Base(DeclarativeBase):
    pass


# Imported after ``Base`` so every table registers on the shared metadata.
from .collections import (  # noqa: E402
    CartItemRecord,
    CartRecord,
    WishlistItemRecord,
    WishlistRecord,
)
from .users import (  # noqa: E402
    InstructorProfileRecord,
    UserProfileRecord,
    UserRecord,
    UserSocialRecord,
)

__all__ = [
    "Base",
    "CartItemRecord",
    "CartRecord",
    "InstructorProfileRecord",
    "UserProfileRecord",
    "UserRecord",
    "UserSocialRecord",
    "WishlistItemRecord",
    "WishlistRecord",
    "utcnow",
]
