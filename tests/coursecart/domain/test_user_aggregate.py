"""Tests for the user aggregate's transitions and field updates."""

from __future__ import annotations

from datetime import UTC, date, datetime

import pytest

from coursecart.domain import Gender, User, UserRole, UserStatus


@pytest.fixture
def user() -> User:
    past = datetime(2024, 1, 1, tzinfo=UTC)
    return User(
        id="user-1",
        email="ada@example.com",
        first_name="Ada",
        last_name="Lovelace",
        created_at=past,
        updated_at=past,
    )


def test_register_creates_unverified_student() -> None:
    user = User.register("grace@example.com", first_name="Grace", last_name="Hopper")

    assert user.role is UserRole.STUDENT
    assert user.status is UserStatus.NOT_VERIFIED
    assert user.full_name == "Grace Hopper"
    assert user.profile is None
    assert user.instructor_profile is None
    assert user.socials == ()


def test_block_and_activate(user: User) -> None:
    user.block()
    assert user.is_blocked
    first_change = user.updated_at
    assert first_change > user.created_at

    user.activate()
    assert user.status is UserStatus.ACTIVE
    assert not user.is_blocked


def test_promote_to_instructor_creates_profile_once(user: User) -> None:
    user.promote_to_instructor()
    profile = user.instructor_profile

    assert user.is_instructor
    assert profile is not None
    assert profile.user_id == user.id

    user.promote_to_instructor()
    assert user.instructor_profile is profile


def test_update_basic_data_ignores_missing_fields(user: User) -> None:
    user.update_basic_data(first_name="Augusta")

    assert user.first_name == "Augusta"
    assert user.last_name == "Lovelace"
    assert user.avatar is None


def test_update_profile_creates_then_merges(user: User) -> None:
    user.update_profile(city="London", gender=Gender.FEMALE)
    user.update_profile(birthday=date(1815, 12, 10))

    profile = user.profile
    assert profile is not None
    assert profile.city == "London"
    assert profile.gender is Gender.FEMALE
    assert profile.birthday == date(1815, 12, 10)


def test_update_instructor_profile_replaces_lists(user: User) -> None:
    user.update_instructor_profile(expertise=["math"], tags=["analytical-engine"])
    user.update_instructor_profile(headline="Mathematician", tags=["poetry"])

    profile = user.instructor_profile
    assert profile is not None
    assert profile.headline == "Mathematician"
    assert profile.expertise == ["math"]
    assert profile.tags == ["poetry"]
    assert profile.rating == 0.0


def test_set_socials_replaces_all_links(user: User) -> None:
    user.set_socials([("github", "https://github.com/ada")])
    user.set_socials(
        [("x", "https://x.com/ada"), ("site", "https://ada.example.com")]
    )

    assert [social.platform for social in user.socials] == ["x", "site"]
    assert all(social.user_id == user.id for social in user.socials)


def test_record_login_sets_timestamp(user: User) -> None:
    moment = datetime(2025, 5, 1, 8, 30, tzinfo=UTC)

    user.record_login(moment)

    assert user.last_login_at == moment
