"""SQLAlchemy ORM models for carts, wishlists and their items.

Carts and wishlists share an identical layout: a header row owned by exactly
one user plus item rows keyed by ``(owner, course_id)``.  The uniqueness
constraints below are what keep concurrent adds from duplicating a course.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from . import Base, utcnow


class CartRecord(Base):
    __tablename__ = "carts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
        unique=True,
        doc="Exactly one cart exists per user.",
    )
    total: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    items: Mapped[list[CartItemRecord]] = relationship(
        back_populates="cart", cascade="all, delete-orphan", passive_deletes=True
    )


class CartItemRecord(Base):
    __tablename__ = "cart_items"
    __table_args__ = (
        UniqueConstraint("cart_id", "course_id", name="uq_cart_items_cart_course"),
        Index("ix_cart_items_cart_added", "cart_id", "added_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    cart_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("carts.id", ondelete="CASCADE"), nullable=False
    )
    course_id: Mapped[str] = mapped_column(String(128), nullable=False)
    added_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    cart: Mapped[CartRecord] = relationship(back_populates="items")


class WishlistRecord(Base):
    __tablename__ = "wishlists"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
        unique=True,
        doc="Exactly one wishlist exists per user.",
    )
    total: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    items: Mapped[list[WishlistItemRecord]] = relationship(
        back_populates="wishlist", cascade="all, delete-orphan", passive_deletes=True
    )


class WishlistItemRecord(Base):
    __tablename__ = "wishlist_items"
    __table_args__ = (
        UniqueConstraint(
            "wishlist_id", "course_id", name="uq_wishlist_items_wishlist_course"
        ),
        Index("ix_wishlist_items_wishlist_added", "wishlist_id", "added_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    wishlist_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("wishlists.id", ondelete="CASCADE"), nullable=False
    )
    course_id: Mapped[str] = mapped_column(String(128), nullable=False)
    added_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    wishlist: Mapped[WishlistRecord] = relationship(back_populates="items")


__all__ = [
    "CartItemRecord",
    "CartRecord",
    "WishlistItemRecord",
    "WishlistRecord",
]
