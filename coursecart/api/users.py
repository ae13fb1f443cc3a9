"""RPC methods for the user aggregate."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from coursecart.schemas.envelope import SuccessEnvelope
from coursecart.schemas.user import (
    CreateUserRequest,
    GetUsersByIdsRequest,
    ListUsersRequest,
    UpdateInstructorProfileRequest,
    UpdateUserProfileRequest,
    UpdateUserRoleRequest,
    UpdateUserStatusRequest,
    UserData,
    UserEmailRequest,
    UserIdRequest,
    UserListResult,
    UserResult,
)
from coursecart.services.dependencies import get_user_service
from coursecart.services.user_service import UserService

router = APIRouter()

_BASIC_FIELDS = {"first_name", "last_name", "avatar"}
_PROFILE_FIELDS = {"phone", "address", "city", "country", "gender", "birthday", "bio"}


def _user_envelope(user) -> SuccessEnvelope[UserResult]:
    return SuccessEnvelope(success=UserResult(user=UserData.from_domain(user)))


def _users_envelope(users) -> SuccessEnvelope[UserListResult]:
    return SuccessEnvelope(
        success=UserListResult(users=[UserData.from_domain(user) for user in users])
    )


@router.post("/CreateUser", response_model=SuccessEnvelope[UserResult])
async def create_user(
    payload: CreateUserRequest,
    service: UserService = Depends(get_user_service),
) -> SuccessEnvelope[UserResult]:
    """Register a user; a taken email yields a DUPLICATE error."""

    user = await service.create_user(
        email=payload.email,
        first_name=payload.first_name,
        last_name=payload.last_name,
        avatar=payload.avatar,
        role=payload.role,
    )
    return _user_envelope(user)


@router.post("/GetUser", response_model=SuccessEnvelope[UserResult])
async def get_user(
    payload: UserIdRequest,
    service: UserService = Depends(get_user_service),
) -> SuccessEnvelope[UserResult]:
    return _user_envelope(await service.get_user(payload.id))


@router.post("/GetUserByEmail", response_model=SuccessEnvelope[UserResult])
async def get_user_by_email(
    payload: UserEmailRequest,
    service: UserService = Depends(get_user_service),
) -> SuccessEnvelope[UserResult]:
    return _user_envelope(await service.get_user_by_email(payload.email))


@router.post("/UpdateUserStatus", response_model=SuccessEnvelope[UserResult])
async def update_user_status(
    payload: UpdateUserStatusRequest,
    service: UserService = Depends(get_user_service),
) -> SuccessEnvelope[UserResult]:
    return _user_envelope(await service.update_status(payload.id, payload.status))


@router.post("/UpdateUserRole", response_model=SuccessEnvelope[UserResult])
async def update_user_role(
    payload: UpdateUserRoleRequest,
    service: UserService = Depends(get_user_service),
) -> SuccessEnvelope[UserResult]:
    """Change the role; promoting to instructor also creates the instructor profile."""

    return _user_envelope(await service.update_role(payload.id, payload.role))


@router.post("/BlockUser", response_model=SuccessEnvelope[UserResult])
async def block_user(
    payload: UserIdRequest,
    service: UserService = Depends(get_user_service),
) -> SuccessEnvelope[UserResult]:
    return _user_envelope(await service.block_user(payload.id))


@router.post("/ActivateUser", response_model=SuccessEnvelope[UserResult])
async def activate_user(
    payload: UserIdRequest,
    service: UserService = Depends(get_user_service),
) -> SuccessEnvelope[UserResult]:
    return _user_envelope(await service.activate_user(payload.id))


@router.post("/UpdateUserProfile", response_model=SuccessEnvelope[UserResult])
async def update_user_profile(
    payload: UpdateUserProfileRequest,
    service: UserService = Depends(get_user_service),
) -> SuccessEnvelope[UserResult]:
    """Apply the supplied name, profile and social link changes in one call."""

    fields = payload.model_fields_set
    user = None
    if fields & _BASIC_FIELDS:
        user = await service.update_basic_data(
            payload.id,
            first_name=payload.first_name,
            last_name=payload.last_name,
            avatar=payload.avatar,
        )
    if payload.socials is not None:
        user = await service.set_socials(
            payload.id, [(link.platform, link.url) for link in payload.socials]
        )
    if fields & _PROFILE_FIELDS:
        user = await service.update_profile(
            payload.id,
            phone=payload.phone,
            address=payload.address,
            city=payload.city,
            country=payload.country,
            gender=payload.gender,
            birthday=payload.birthday,
            bio=payload.bio,
        )
    if user is None:
        user = await service.get_user(payload.id)
    return _user_envelope(user)


@router.post("/UpdateInstructorProfile", response_model=SuccessEnvelope[UserResult])
async def update_instructor_profile(
    payload: UpdateInstructorProfileRequest,
    service: UserService = Depends(get_user_service),
) -> SuccessEnvelope[UserResult]:
    user = await service.update_instructor_profile(
        payload.id,
        headline=payload.headline,
        bio=payload.bio,
        certificate=payload.certificate,
        experience=payload.experience,
        expertise=payload.expertise,
        tags=payload.tags,
    )
    return _user_envelope(user)


@router.post("/ListUsers", response_model=SuccessEnvelope[UserListResult])
async def list_users(
    payload: ListUsersRequest,
    service: UserService = Depends(get_user_service),
) -> SuccessEnvelope[UserListResult]:
    users = await service.list_users(offset=payload.offset, limit=payload.page_size)
    return _users_envelope(users)


@router.post("/ListInstructors", response_model=SuccessEnvelope[UserListResult])
async def list_instructors(
    payload: ListUsersRequest,
    service: UserService = Depends(get_user_service),
) -> SuccessEnvelope[UserListResult]:
    users = await service.list_instructors(offset=payload.offset, limit=payload.page_size)
    return _users_envelope(users)


@router.post("/GetUsersByIds", response_model=SuccessEnvelope[UserListResult])
async def get_users_by_ids(
    payload: GetUsersByIdsRequest,
    service: UserService = Depends(get_user_service),
) -> SuccessEnvelope[UserListResult]:
    """Batch lookup; unknown ids are omitted from the result."""

    return _users_envelope(await service.get_users_by_ids(payload.ids))
