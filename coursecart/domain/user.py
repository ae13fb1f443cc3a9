"""User aggregate with its profile, instructor profile and social links."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

from coursecart.domain.collection import new_id, utcnow


class UserRole(str, Enum):
    ADMIN = "admin"
    INSTRUCTOR = "instructor"
    STUDENT = "student"


class UserStatus(str, Enum):
    VERIFIED = "verified"
    NOT_VERIFIED = "not-verified"
    ACTIVE = "active"
    NOT_ACTIVE = "not-active"
    BLOCKED = "blocked"


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


@dataclass(slots=True)
class UserProfile:
    """Optional personal details attached to a user."""

    id: str
    user_id: str
    phone: str | None = None
    address: str | None = None
    city: str | None = None
    country: str | None = None
    gender: Gender | None = None
    birthday: date | None = None
    bio: str | None = None


@dataclass(slots=True)
class InstructorProfile:
    """Teaching details present once a user becomes an instructor."""

    id: str
    user_id: str
    headline: str | None = None
    bio: str | None = None
    certificate: str | None = None
    experience: str | None = None
    expertise: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    rating: float = 0.0
    total_students: int = 0
    total_courses: int = 0


@dataclass(slots=True)
class UserSocial:
    id: str
    user_id: str
    platform: str
    url: str


class User:
    """The user aggregate.

    Mutations go through explicit methods which enumerate the fields they may
    change and always advance ``updated_at``.  Sub-aggregates are exposed for
    reading only.
    """

    def __init__(
        self,
        *,
        id: str,
        email: str,
        first_name: str = "",
        last_name: str = "",
        avatar: str | None = None,
        role: UserRole = UserRole.STUDENT,
        status: UserStatus = UserStatus.NOT_VERIFIED,
        last_login_at: datetime | None = None,
        profile: UserProfile | None = None,
        instructor_profile: InstructorProfile | None = None,
        socials: Iterable[UserSocial] = (),
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ) -> None:
        self._id = id
        self._email = email
        self._first_name = first_name
        self._last_name = last_name
        self._avatar = avatar
        self._role = UserRole(role)
        self._status = UserStatus(status)
        self._last_login_at = last_login_at
        self._profile = profile
        self._instructor_profile = instructor_profile
        self._socials: list[UserSocial] = list(socials)
        self._created_at = created_at or utcnow()
        self._updated_at = updated_at or self._created_at

    @classmethod
    def register(
        cls,
        email: str,
        *,
        first_name: str = "",
        last_name: str = "",
        avatar: str | None = None,
        role: UserRole = UserRole.STUDENT,
    ) -> User:
        """Create a brand new, not yet verified user."""

        return cls(
            id=new_id(),
            email=email,
            first_name=first_name,
            last_name=last_name,
            avatar=avatar,
            role=role,
        )

    # -- Accessors ----------------------------------------------------------

    @property
    def id(self) -> str:
        return self._id

    @property
    def email(self) -> str:
        return self._email

    @property
    def first_name(self) -> str:
        return self._first_name

    @property
    def last_name(self) -> str:
        return self._last_name

    @property
    def full_name(self) -> str:
        return f"{self._first_name} {self._last_name}".strip()

    @property
    def avatar(self) -> str | None:
        return self._avatar

    @property
    def role(self) -> UserRole:
        return self._role

    @property
    def status(self) -> UserStatus:
        return self._status

    @property
    def last_login_at(self) -> datetime | None:
        return self._last_login_at

    @property
    def profile(self) -> UserProfile | None:
        return self._profile

    @property
    def instructor_profile(self) -> InstructorProfile | None:
        return self._instructor_profile

    @property
    def socials(self) -> tuple[UserSocial, ...]:
        return tuple(self._socials)

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    @property
    def is_blocked(self) -> bool:
        return self._status is UserStatus.BLOCKED

    @property
    def is_instructor(self) -> bool:
        return self._role is UserRole.INSTRUCTOR

    # -- Status and role transitions -----------------------------------------

    def update_status(self, status: UserStatus) -> None:
        self._status = UserStatus(status)
        self._touch()

    def update_role(self, role: UserRole) -> None:
        self._role = UserRole(role)
        self._touch()

    def block(self) -> None:
        self.update_status(UserStatus.BLOCKED)

    def activate(self) -> None:
        self.update_status(UserStatus.ACTIVE)

    def promote_to_instructor(self) -> None:
        """Switch the role to instructor and make sure a profile exists."""

        self._role = UserRole.INSTRUCTOR
        if self._instructor_profile is None:
            self._instructor_profile = InstructorProfile(id=new_id(), user_id=self._id)
        self._touch()

    def record_login(self, at: datetime | None = None) -> None:
        self._last_login_at = at or utcnow()
        self._touch()

    # -- Field level updates -------------------------------------------------

    def update_basic_data(
        self,
        *,
        first_name: str | None = None,
        last_name: str | None = None,
        avatar: str | None = None,
    ) -> None:
        """Update the name and avatar; ``None`` leaves a field unchanged."""

        if first_name is not None:
            self._first_name = first_name
        if last_name is not None:
            self._last_name = last_name
        if avatar is not None:
            self._avatar = avatar
        self._touch()

    def update_profile(
        self,
        *,
        phone: str | None = None,
        address: str | None = None,
        city: str | None = None,
        country: str | None = None,
        gender: Gender | None = None,
        birthday: date | None = None,
        bio: str | None = None,
    ) -> UserProfile:
        """Update personal details, creating the profile on first use."""

        profile = self._profile
        if profile is None:
            profile = UserProfile(id=new_id(), user_id=self._id)
            self._profile = profile
        if phone is not None:
            profile.phone = phone
        if address is not None:
            profile.address = address
        if city is not None:
            profile.city = city
        if country is not None:
            profile.country = country
        if gender is not None:
            profile.gender = Gender(gender)
        if birthday is not None:
            profile.birthday = birthday
        if bio is not None:
            profile.bio = bio
        self._touch()
        return profile

    def update_instructor_profile(
        self,
        *,
        headline: str | None = None,
        bio: str | None = None,
        certificate: str | None = None,
        experience: str | None = None,
        expertise: Iterable[str] | None = None,
        tags: Iterable[str] | None = None,
    ) -> InstructorProfile:
        """Update teaching details, creating the profile on first use.

        Rating and the student/course counters are not editable here.
        """

        profile = self._instructor_profile
        if profile is None:
            profile = InstructorProfile(id=new_id(), user_id=self._id)
            self._instructor_profile = profile
        if headline is not None:
            profile.headline = headline
        if bio is not None:
            profile.bio = bio
        if certificate is not None:
            profile.certificate = certificate
        if experience is not None:
            profile.experience = experience
        if expertise is not None:
            profile.expertise = list(expertise)
        if tags is not None:
            profile.tags = list(tags)
        self._touch()
        return profile

    def set_socials(self, links: Iterable[tuple[str, str]]) -> None:
        """Replace the social links with ``(platform, url)`` pairs."""

        self._socials = [
            UserSocial(id=new_id(), user_id=self._id, platform=platform, url=url)
            for platform, url in links
        ]
        self._touch()

    def change_email(self, email: str) -> None:
        self._email = email
        self._touch()

    def _touch(self) -> None:
        self._updated_at = utcnow()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, User):
            return NotImplemented
        return _comparable_state(self) == _comparable_state(other)

    def __repr__(self) -> str:
        return f"User(id={self._id!r}, email={self._email!r}, role={self._role.value!r})"


def _comparable_state(user: User) -> dict[str, object]:
    return {
        "id": user.id,
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "avatar": user.avatar,
        "role": user.role,
        "status": user.status,
        "last_login_at": user.last_login_at,
        "profile": user.profile,
        "instructor_profile": user.instructor_profile,
        "socials": user.socials,
        "created_at": user.created_at,
        "updated_at": user.updated_at,
    }


__all__ = [
    "Gender",
    "InstructorProfile",
    "User",
    "UserProfile",
    "UserRole",
    "UserSocial",
    "UserStatus",
]
