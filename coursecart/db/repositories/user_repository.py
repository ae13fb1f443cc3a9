"""User persistence gateway with read-through caching."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from coursecart.cache import (
    USER_ENTITY,
    ids_key,
    instructors_key,
    invalidate_user,
    list_key,
    natural_key,
    point_key,
)
from coursecart.db.models import (
    InstructorProfileRecord,
    UserProfileRecord,
    UserRecord,
    UserSocialRecord,
)
from coursecart.domain.errors import DuplicateError, NotFoundError
from coursecart.domain.serialization import (
    as_utc,
    user_from_payload,
    user_to_payload,
    users_from_payload,
    users_to_payload,
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
from coursecart.services.caching import CacheableRepository, cached, listing_ttl

logger = logging.getLogger(__name__)

_DESERIALIZE_ERROR = "Failed to deserialize cached user payload {key}: {error}"


def _user_deserializer(_repository: CacheableRepository, payload: Any) -> User:
    return user_from_payload(payload)


def _users_deserializer(_repository: CacheableRepository, payload: Any) -> list[User]:
    return users_from_payload(payload)


def _to_domain(record: UserRecord) -> User:
    profile = None
    if record.profile is not None:
        raw = record.profile
        profile = UserProfile(
            id=raw.id,
            user_id=raw.user_id,
            phone=raw.phone,
            address=raw.address,
            city=raw.city,
            country=raw.country,
            gender=Gender(raw.gender) if raw.gender else None,
            birthday=raw.birthday,
            bio=raw.bio,
        )
    instructor = None
    if record.instructor_profile is not None:
        raw_instructor = record.instructor_profile
        instructor = InstructorProfile(
            id=raw_instructor.id,
            user_id=raw_instructor.user_id,
            headline=raw_instructor.headline,
            bio=raw_instructor.bio,
            certificate=raw_instructor.certificate,
            experience=raw_instructor.experience,
            expertise=list(raw_instructor.expertise or []),
            tags=list(raw_instructor.tags or []),
            rating=raw_instructor.rating,
            total_students=raw_instructor.total_students,
            total_courses=raw_instructor.total_courses,
        )
    return User(
        id=record.id,
        email=record.email,
        first_name=record.first_name,
        last_name=record.last_name,
        avatar=record.avatar,
        role=UserRole(record.role),
        status=UserStatus(record.status),
        last_login_at=as_utc(record.last_login_at) if record.last_login_at else None,
        profile=profile,
        instructor_profile=instructor,
        socials=[
            UserSocial(id=s.id, user_id=s.user_id, platform=s.platform, url=s.url)
            for s in record.socials
        ],
        created_at=as_utc(record.created_at),
        updated_at=as_utc(record.updated_at),
    )


def _header_values(user: User) -> dict[str, Any]:
    return {
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "avatar": user.avatar,
        "role": user.role.value,
        "status": user.status.value,
        "last_login_at": user.last_login_at,
        "updated_at": user.updated_at,
    }


def _profile_values(profile: UserProfile) -> dict[str, Any]:
    return {
        "phone": profile.phone,
        "address": profile.address,
        "city": profile.city,
        "country": profile.country,
        "gender": profile.gender.value if profile.gender else None,
        "birthday": profile.birthday,
        "bio": profile.bio,
    }


def _instructor_values(profile: InstructorProfile) -> dict[str, Any]:
    return {
        "headline": profile.headline,
        "bio": profile.bio,
        "certificate": profile.certificate,
        "experience": profile.experience,
        "expertise": list(profile.expertise),
        "tags": list(profile.tags),
        "rating": profile.rating,
        "total_students": profile.total_students,
        "total_courses": profile.total_courses,
    }


class UserRepository(CacheableRepository):
    """Durable store accessor for the user aggregate."""

    def _select_users(self):
        return (
            select(UserRecord)
            .options(
                selectinload(UserRecord.profile),
                selectinload(UserRecord.instructor_profile),
                selectinload(UserRecord.socials),
            )
            .execution_options(populate_existing=True)
        )

    async def _fetch_one(self, *criteria: Any) -> User | None:
        result = await self._session.execute(self._select_users().where(*criteria))
        record = result.scalar_one_or_none()
        return _to_domain(record) if record is not None else None

    async def _fetch_many(self, query) -> list[User]:
        result = await self._session.execute(query)
        return [_to_domain(record) for record in result.scalars().all()]

    async def _email_owner(self, email: str) -> str | None:
        result = await self._session.execute(
            select(UserRecord.id).where(UserRecord.email == email)
        )
        return result.scalar_one_or_none()

    async def _ensure_email_available(self, email: str, user_id: str) -> None:
        owner = await self._email_owner(email)
        if owner is not None and owner != user_id:
            raise DuplicateError(
                "A user with this email already exists", details={"email": email}
            )

    # -- Lookups -------------------------------------------------------------

    @cached(
        lambda self, user_id: point_key(USER_ENTITY, user_id),
        serializer=user_to_payload,
        deserializer=_user_deserializer,
        deserialize_error_message=_DESERIALIZE_ERROR,
    )
    async def find_by_id(self, user_id: str) -> User | None:
        return await self._fetch_one(UserRecord.id == user_id)

    @cached(
        lambda self, email: natural_key(USER_ENTITY, email),
        serializer=user_to_payload,
        deserializer=_user_deserializer,
        deserialize_error_message=_DESERIALIZE_ERROR,
    )
    async def find_by_email(self, email: str) -> User | None:
        return await self._fetch_one(UserRecord.email == email)

    @cached(
        lambda self, offset=0, limit=10: list_key(USER_ENTITY, limit=limit, offset=offset),
        ttl=listing_ttl,
        serializer=users_to_payload,
        deserializer=_users_deserializer,
        deserialize_error_message=_DESERIALIZE_ERROR,
    )
    async def find_users(self, offset: int = 0, limit: int = 10) -> list[User]:
        """Return a page of users, newest first."""

        query = (
            self._select_users()
            .order_by(UserRecord.created_at.desc(), UserRecord.id)
            .offset(offset)
            .limit(limit)
        )
        return await self._fetch_many(query)

    @cached(
        lambda self, offset=0, limit=10: instructors_key(limit=limit, offset=offset),
        ttl=listing_ttl,
        serializer=users_to_payload,
        deserializer=_users_deserializer,
        deserialize_error_message=_DESERIALIZE_ERROR,
    )
    async def find_instructors(self, offset: int = 0, limit: int = 10) -> list[User]:
        query = (
            self._select_users()
            .where(UserRecord.role == UserRole.INSTRUCTOR.value)
            .order_by(UserRecord.created_at.desc(), UserRecord.id)
            .offset(offset)
            .limit(limit)
        )
        return await self._fetch_many(query)

    @cached(
        lambda self, user_ids: ids_key(USER_ENTITY, user_ids) if user_ids else None,
        ttl=listing_ttl,
        serializer=users_to_payload,
        deserializer=_users_deserializer,
        deserialize_error_message=_DESERIALIZE_ERROR,
    )
    async def find_by_ids(self, user_ids: Sequence[str]) -> list[User]:
        """Batch lookup; unknown ids are skipped and results are sorted by id."""

        if not user_ids:
            return []
        query = (
            self._select_users()
            .where(UserRecord.id.in_(list(user_ids)))
            .order_by(UserRecord.id)
        )
        return await self._fetch_many(query)

    async def find_all_emails(self) -> list[str]:
        result = await self._session.execute(
            select(UserRecord.email).order_by(UserRecord.email)
        )
        return list(result.scalars().all())

    # -- Writes --------------------------------------------------------------

    async def create(self, user: User) -> None:
        """Insert the user followed by its profiles and social links.

        Raises :class:`DuplicateError` when the email is already taken.
        """

        await self._ensure_email_available(user.email, user.id)
        try:
            await self._session.execute(
                insert(UserRecord.__table__).values(
                    id=user.id, created_at=user.created_at, **_header_values(user)
                )
            )
        except IntegrityError as exc:
            raise DuplicateError(
                "A user with this email already exists",
                details={"email": user.email},
            ) from exc
        await self._write_profiles(user)
        await self._write_socials(user)
        self._invalidate_on_commit(invalidate_user, user.id, user.email)

    async def update(self, user: User) -> None:
        """Replace the header, upsert the profiles and rewrite the socials."""

        previous_email = await self._session.scalar(
            select(UserRecord.email).where(UserRecord.id == user.id)
        )
        if previous_email is None:
            raise NotFoundError("User not found", details={"id": user.id})
        if previous_email != user.email:
            await self._ensure_email_available(user.email, user.id)
        try:
            await self._session.execute(
                update(UserRecord.__table__)
                .where(UserRecord.__table__.c.id == user.id)
                .values(**_header_values(user))
            )
        except IntegrityError as exc:
            raise DuplicateError(
                "A user with this email already exists",
                details={"email": user.email},
            ) from exc
        await self._write_profiles(user)
        await self._session.execute(
            delete(UserSocialRecord.__table__).where(
                UserSocialRecord.__table__.c.user_id == user.id
            )
        )
        await self._write_socials(user)
        self._invalidate_on_commit(invalidate_user, user.id, user.email, previous_email)

    async def delete(self, user: User) -> None:
        for model in (UserSocialRecord, InstructorProfileRecord, UserProfileRecord):
            table = model.__table__
            await self._session.execute(delete(table).where(table.c.user_id == user.id))
        await self._session.execute(
            delete(UserRecord.__table__).where(UserRecord.__table__.c.id == user.id)
        )
        self._invalidate_on_commit(invalidate_user, user.id, user.email)

    async def _write_profiles(self, user: User) -> None:
        if user.profile is not None:
            await self._upsert_child(
                UserProfileRecord, user.profile.id, user.id, _profile_values(user.profile)
            )
        if user.instructor_profile is not None:
            await self._upsert_child(
                InstructorProfileRecord,
                user.instructor_profile.id,
                user.id,
                _instructor_values(user.instructor_profile),
            )

    async def _upsert_child(
        self, model: Any, child_id: str, user_id: str, values: dict[str, Any]
    ) -> None:
        """Update the 1:1 child row of ``user_id`` or insert it when missing."""

        table = model.__table__
        result = await self._session.execute(
            update(table).where(table.c.user_id == user_id).values(**values)
        )
        if result.rowcount == 0:
            await self._session.execute(
                insert(table).values(id=child_id, user_id=user_id, **values)
            )

    async def _write_socials(self, user: User) -> None:
        if not user.socials:
            return
        await self._session.execute(
            insert(UserSocialRecord.__table__),
            [
                {
                    "id": social.id,
                    "user_id": user.id,
                    "platform": social.platform,
                    "url": social.url,
                    "position": position,
                }
                for position, social in enumerate(user.socials)
            ],
        )


__all__ = ["UserRepository"]
