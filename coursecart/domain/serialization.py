"""Convert aggregates to and from JSON-compatible cache payloads.

The cache only ever stores these plain dictionaries, so a cache hit yields a
fresh aggregate that is indistinguishable from the one loaded from storage.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, date, datetime
from typing import Any

from coursecart.domain.collection import CollectionItem, CourseCollection
from coursecart.domain.user import (
    Gender,
    InstructorProfile,
    User,
    UserProfile,
    UserRole,
    UserSocial,
    UserStatus,
)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes returned by drivers without tz support."""

    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _dt_out(value: datetime | None) -> str | None:
    return as_utc(value).isoformat() if value is not None else None


def _dt_in(value: str | None) -> datetime | None:
    return as_utc(datetime.fromisoformat(value)) if value else None


def _date_in(value: str | None) -> date | None:
    return date.fromisoformat(value) if value else None


# -- Collections ---------------------------------------------------------------


def item_to_payload(item: CollectionItem) -> dict[str, Any]:
    return {
        "id": item.id,
        "course_id": item.course_id,
        "owner_id": item.owner_id,
        "added_at": _dt_out(item.added_at),
    }


def collection_to_payload(collection: CourseCollection) -> dict[str, Any]:
    return {
        "id": collection.id,
        "user_id": collection.user_id,
        "items": [item_to_payload(item) for item in collection.items],
        "total": collection.total,
        "created_at": _dt_out(collection.created_at),
        "updated_at": _dt_out(collection.updated_at),
    }


def collection_from_payload(
    collection_class: type[CourseCollection], payload: Mapping[str, Any]
) -> CourseCollection:
    item_class = collection_class.item_class
    items = [
        item_class(
            id=entry["id"],
            course_id=entry["course_id"],
            owner_id=entry["owner_id"],
            added_at=_dt_in(entry["added_at"]),
        )
        for entry in payload.get("items", [])
    ]
    return collection_class(
        id=payload["id"],
        user_id=payload["user_id"],
        items=items,
        total=payload.get("total"),
        created_at=_dt_in(payload["created_at"]),
        updated_at=_dt_in(payload["updated_at"]),
    )


def page_to_payload(page: tuple[CourseCollection | None, int]) -> dict[str, Any]:
    """Serialize the ``(collection, total)`` pair cached for listing pages."""

    collection, total = page
    return {
        "collection": collection_to_payload(collection) if collection else None,
        "total": total,
    }


def page_from_payload(
    collection_class: type[CourseCollection], payload: Mapping[str, Any]
) -> tuple[CourseCollection | None, int]:
    raw = payload.get("collection")
    collection = collection_from_payload(collection_class, raw) if raw else None
    return collection, int(payload.get("total", 0))


# -- Users ---------------------------------------------------------------------


def user_to_payload(user: User) -> dict[str, Any]:
    profile = user.profile
    instructor = user.instructor_profile
    return {
        "id": user.id,
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "avatar": user.avatar,
        "role": user.role.value,
        "status": user.status.value,
        "last_login_at": _dt_out(user.last_login_at),
        "profile": (
            {
                "id": profile.id,
                "user_id": profile.user_id,
                "phone": profile.phone,
                "address": profile.address,
                "city": profile.city,
                "country": profile.country,
                "gender": profile.gender.value if profile.gender else None,
                "birthday": profile.birthday.isoformat() if profile.birthday else None,
                "bio": profile.bio,
            }
            if profile
            else None
        ),
        "instructor_profile": (
            {
                "id": instructor.id,
                "user_id": instructor.user_id,
                "headline": instructor.headline,
                "bio": instructor.bio,
                "certificate": instructor.certificate,
                "experience": instructor.experience,
                "expertise": list(instructor.expertise),
                "tags": list(instructor.tags),
                "rating": instructor.rating,
                "total_students": instructor.total_students,
                "total_courses": instructor.total_courses,
            }
            if instructor
            else None
        ),
        "socials": [
            {
                "id": social.id,
                "user_id": social.user_id,
                "platform": social.platform,
                "url": social.url,
            }
            for social in user.socials
        ],
        "created_at": _dt_out(user.created_at),
        "updated_at": _dt_out(user.updated_at),
    }


def user_from_payload(payload: Mapping[str, Any]) -> User:
    raw_profile = payload.get("profile")
    raw_instructor = payload.get("instructor_profile")
    profile = None
    if raw_profile:
        profile = UserProfile(
            **{
                **raw_profile,
                "gender": Gender(raw_profile["gender"]) if raw_profile.get("gender") else None,
                "birthday": _date_in(raw_profile.get("birthday")),
            }
        )
    instructor = InstructorProfile(**raw_instructor) if raw_instructor else None
    return User(
        id=payload["id"],
        email=payload["email"],
        first_name=payload.get("first_name", ""),
        last_name=payload.get("last_name", ""),
        avatar=payload.get("avatar"),
        role=UserRole(payload["role"]),
        status=UserStatus(payload["status"]),
        last_login_at=_dt_in(payload.get("last_login_at")),
        profile=profile,
        instructor_profile=instructor,
        socials=[UserSocial(**entry) for entry in payload.get("socials", [])],
        created_at=_dt_in(payload["created_at"]),
        updated_at=_dt_in(payload["updated_at"]),
    )


def users_to_payload(users: list[User]) -> list[dict[str, Any]]:
    return [user_to_payload(user) for user in users]


def users_from_payload(payload: list[Mapping[str, Any]]) -> list[User]:
    return [user_from_payload(entry) for entry in payload]


__all__ = [
    "as_utc",
    "collection_from_payload",
    "collection_to_payload",
    "item_to_payload",
    "page_from_payload",
    "page_to_payload",
    "user_from_payload",
    "user_to_payload",
    "users_from_payload",
    "users_to_payload",
]
