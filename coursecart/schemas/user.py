"""Request and response schemas for the user RPC methods."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import Field, field_validator

from coursecart.domain.user import (
    Gender,
    InstructorProfile,
    User,
    UserProfile,
    UserRole,
    UserSocial,
    UserStatus,
)
from coursecart.schemas.envelope import PageSize, RpcModel, default_page_size

_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
MAX_BATCH_IDS = 100


class UserProfileData(RpcModel):
    phone: str | None = None
    address: str | None = None
    city: str | None = None
    country: str | None = None
    gender: Gender | None = None
    birthday: date | None = None
    bio: str | None = None

    @classmethod
    def from_domain(cls, profile: UserProfile) -> UserProfileData:
        return cls(
            phone=profile.phone,
            address=profile.address,
            city=profile.city,
            country=profile.country,
            gender=profile.gender,
            birthday=profile.birthday,
            bio=profile.bio,
        )


class InstructorProfileData(RpcModel):
    headline: str | None = None
    bio: str | None = None
    certificate: str | None = None
    experience: str | None = None
    expertise: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    rating: float = 0.0
    total_students: int = 0
    total_courses: int = 0

    @classmethod
    def from_domain(cls, profile: InstructorProfile) -> InstructorProfileData:
        return cls(
            headline=profile.headline,
            bio=profile.bio,
            certificate=profile.certificate,
            experience=profile.experience,
            expertise=list(profile.expertise),
            tags=list(profile.tags),
            rating=profile.rating,
            total_students=profile.total_students,
            total_courses=profile.total_courses,
        )


class SocialLink(RpcModel):
    platform: str = Field(..., min_length=1, max_length=64)
    url: str = Field(..., min_length=1, max_length=1024)

    @classmethod
    def from_domain(cls, social: UserSocial) -> SocialLink:
        return cls(platform=social.platform, url=social.url)


class UserData(RpcModel):
    id: str
    email: str
    first_name: str
    last_name: str
    avatar: str | None
    role: UserRole
    status: UserStatus
    last_login_at: datetime | None
    profile: UserProfileData | None
    instructor_profile: InstructorProfileData | None
    socials: list[SocialLink]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, user: User) -> UserData:
        return cls(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            avatar=user.avatar,
            role=user.role,
            status=user.status,
            last_login_at=user.last_login_at,
            profile=UserProfileData.from_domain(user.profile) if user.profile else None,
            instructor_profile=(
                InstructorProfileData.from_domain(user.instructor_profile)
                if user.instructor_profile
                else None
            ),
            socials=[SocialLink.from_domain(social) for social in user.socials],
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class UserResult(RpcModel):
    user: UserData


class UserListResult(RpcModel):
    users: list[UserData]


# -- Requests --------------------------------------------------------------------


class CreateUserRequest(RpcModel):
    email: str = Field(..., max_length=320, pattern=_EMAIL_PATTERN)
    first_name: str = Field("", max_length=255)
    last_name: str = Field("", max_length=255)
    avatar: str | None = Field(None, max_length=1024)
    role: UserRole = UserRole.STUDENT

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class UserIdRequest(RpcModel):
    id: str = Field(..., min_length=1)


class UserEmailRequest(RpcModel):
    email: str = Field(..., max_length=320, pattern=_EMAIL_PATTERN)

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class UpdateUserStatusRequest(UserIdRequest):
    status: UserStatus


class UpdateUserRoleRequest(UserIdRequest):
    role: UserRole


class UpdateUserProfileRequest(UserIdRequest):
    """Partial update; omitted fields keep their stored values."""

    first_name: str | None = Field(None, max_length=255)
    last_name: str | None = Field(None, max_length=255)
    avatar: str | None = Field(None, max_length=1024)
    phone: str | None = Field(None, max_length=64)
    address: str | None = Field(None, max_length=512)
    city: str | None = Field(None, max_length=255)
    country: str | None = Field(None, max_length=255)
    gender: Gender | None = None
    birthday: date | None = None
    bio: str | None = None
    socials: list[SocialLink] | None = Field(
        None, description="Replaces every social link when supplied"
    )


class UpdateInstructorProfileRequest(UserIdRequest):
    headline: str | None = Field(None, max_length=255)
    bio: str | None = None
    certificate: str | None = Field(None, max_length=1024)
    experience: str | None = None
    expertise: list[str] | None = None
    tags: list[str] | None = None


class ListUsersRequest(RpcModel):
    page: int = Field(1, ge=1)
    page_size: PageSize = Field(default_factory=default_page_size)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class GetUsersByIdsRequest(RpcModel):
    ids: list[str] = Field(..., min_length=1, max_length=MAX_BATCH_IDS)


__all__ = [
    "CreateUserRequest",
    "GetUsersByIdsRequest",
    "InstructorProfileData",
    "ListUsersRequest",
    "SocialLink",
    "UpdateInstructorProfileRequest",
    "UpdateUserProfileRequest",
    "UpdateUserRoleRequest",
    "UpdateUserStatusRequest",
    "UserData",
    "UserEmailRequest",
    "UserIdRequest",
    "UserListResult",
    "UserProfileData",
    "UserResult",
]
