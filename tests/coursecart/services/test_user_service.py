"""Use case tests for the user service."""

from __future__ import annotations

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from coursecart.cache import CacheClient
from coursecart.db.repositories import UserRepository
from coursecart.domain import (
    DuplicateError,
    Gender,
    NotFoundError,
    UserRole,
    UserStatus,
)
from coursecart.services.user_service import UserService


@pytest.fixture
def service(session: AsyncSession, cache: CacheClient) -> UserService:
    return UserService(repository=UserRepository(session, cache))


@pytest.mark.asyncio
async def test_create_user_rejects_duplicate_email(service: UserService) -> None:
    await service.create_user(email="ada@example.com", first_name="Ada")

    with pytest.raises(DuplicateError):
        await service.create_user(email="ada@example.com")


@pytest.mark.asyncio
async def test_get_user_raises_when_missing(service: UserService) -> None:
    with pytest.raises(NotFoundError) as excinfo:
        await service.get_user("missing")
    assert excinfo.value.details == {"id": "missing"}

    with pytest.raises(NotFoundError):
        await service.get_user_by_email("nobody@example.com")


@pytest.mark.asyncio
async def test_status_transitions_are_persisted(service: UserService) -> None:
    user = await service.create_user(email="ada@example.com")

    await service.block_user(user.id)
    assert (await service.get_user(user.id)).status is UserStatus.BLOCKED

    await service.activate_user(user.id)
    assert (await service.get_user(user.id)).status is UserStatus.ACTIVE

    await service.update_status(user.id, UserStatus.VERIFIED)
    assert (await service.get_user_by_email("ada@example.com")).status is (
        UserStatus.VERIFIED
    )


@pytest.mark.asyncio
async def test_role_change_to_instructor_creates_profile(service: UserService) -> None:
    user = await service.create_user(email="ada@example.com")

    promoted = await service.update_role(user.id, UserRole.INSTRUCTOR)
    assert promoted.instructor_profile is not None

    updated = await service.update_instructor_profile(
        user.id, headline="Analyst", tags=["math"]
    )
    assert updated.instructor_profile is not None
    assert updated.instructor_profile.id == promoted.instructor_profile.id

    instructors = await service.list_instructors(offset=0, limit=10)
    assert [instructor.id for instructor in instructors] == [user.id]
    assert instructors[0].instructor_profile.headline == "Analyst"


@pytest.mark.asyncio
async def test_profile_and_socials_updates(service: UserService) -> None:
    user = await service.create_user(email="ada@example.com")

    await service.update_basic_data(user.id, last_name="Lovelace")
    await service.update_profile(user.id, country="UK", gender=Gender.FEMALE)
    await service.set_socials(user.id, [("github", "https://github.com/ada")])

    stored = await service.get_user(user.id)
    assert stored.last_name == "Lovelace"
    assert stored.profile is not None
    assert stored.profile.country == "UK"
    assert [(s.platform, s.url) for s in stored.socials] == [
        ("github", "https://github.com/ada")
    ]


@pytest.mark.asyncio
async def test_batch_lookup_deduplicates_ids(service: UserService) -> None:
    ada = await service.create_user(email="ada@example.com")
    grace = await service.create_user(email="grace@example.com")

    users = await service.get_users_by_ids([grace.id, ada.id, grace.id, "unknown"])

    assert sorted(user.id for user in users) == sorted([ada.id, grace.id])
    assert await service.list_emails() == ["ada@example.com", "grace@example.com"]


@pytest.mark.asyncio
async def test_record_login_and_delete(service: UserService) -> None:
    user = await service.create_user(email="ada@example.com")

    logged_in = await service.record_login(user.id)
    assert logged_in.last_login_at is not None

    await service.delete_user(user.id)
    with pytest.raises(NotFoundError):
        await service.get_user(user.id)
