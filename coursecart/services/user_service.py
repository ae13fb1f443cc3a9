"""User use cases built on :class:`UserRepository`."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date

from coursecart.db.repositories.user_repository import UserRepository
from coursecart.domain.errors import DuplicateError, NotFoundError
from coursecart.domain.user import Gender, User, UserRole, UserStatus


class UserService:
    """Loads a user, applies one aggregate mutation and persists it."""

    def __init__(self, *, repository: UserRepository) -> None:
        self._repository = repository

    async def create_user(
        self,
        *,
        email: str,
        first_name: str = "",
        last_name: str = "",
        avatar: str | None = None,
        role: UserRole = UserRole.STUDENT,
    ) -> User:
        if await self._repository.find_by_email(email) is not None:
            raise DuplicateError(
                "A user with this email already exists", details={"email": email}
            )
        user = User.register(
            email, first_name=first_name, last_name=last_name, avatar=avatar, role=role
        )
        await self._repository.create(user)
        return user

    async def get_user(self, user_id: str) -> User:
        user = await self._repository.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found", details={"id": user_id})
        return user

    async def get_user_by_email(self, email: str) -> User:
        user = await self._repository.find_by_email(email)
        if user is None:
            raise NotFoundError("User not found", details={"email": email})
        return user

    async def update_status(self, user_id: str, status: UserStatus) -> User:
        user = await self.get_user(user_id)
        user.update_status(status)
        await self._repository.update(user)
        return user

    async def update_role(self, user_id: str, role: UserRole) -> User:
        user = await self.get_user(user_id)
        if role is UserRole.INSTRUCTOR:
            user.promote_to_instructor()
        else:
            user.update_role(role)
        await self._repository.update(user)
        return user

    async def block_user(self, user_id: str) -> User:
        user = await self.get_user(user_id)
        user.block()
        await self._repository.update(user)
        return user

    async def activate_user(self, user_id: str) -> User:
        user = await self.get_user(user_id)
        user.activate()
        await self._repository.update(user)
        return user

    async def promote_to_instructor(self, user_id: str) -> User:
        return await self.update_role(user_id, UserRole.INSTRUCTOR)

    async def update_basic_data(
        self,
        user_id: str,
        *,
        first_name: str | None = None,
        last_name: str | None = None,
        avatar: str | None = None,
    ) -> User:
        user = await self.get_user(user_id)
        user.update_basic_data(first_name=first_name, last_name=last_name, avatar=avatar)
        await self._repository.update(user)
        return user

    async def update_profile(
        self,
        user_id: str,
        *,
        phone: str | None = None,
        address: str | None = None,
        city: str | None = None,
        country: str | None = None,
        gender: Gender | None = None,
        birthday: date | None = None,
        bio: str | None = None,
    ) -> User:
        user = await self.get_user(user_id)
        user.update_profile(
            phone=phone,
            address=address,
            city=city,
            country=country,
            gender=gender,
            birthday=birthday,
            bio=bio,
        )
        await self._repository.update(user)
        return user

    async def update_instructor_profile(
        self,
        user_id: str,
        *,
        headline: str | None = None,
        bio: str | None = None,
        certificate: str | None = None,
        experience: str | None = None,
        expertise: Iterable[str] | None = None,
        tags: Iterable[str] | None = None,
    ) -> User:
        user = await self.get_user(user_id)
        user.update_instructor_profile(
            headline=headline,
            bio=bio,
            certificate=certificate,
            experience=experience,
            expertise=expertise,
            tags=tags,
        )
        await self._repository.update(user)
        return user

    async def set_socials(self, user_id: str, links: Iterable[tuple[str, str]]) -> User:
        user = await self.get_user(user_id)
        user.set_socials(links)
        await self._repository.update(user)
        return user

    async def record_login(self, user_id: str) -> User:
        user = await self.get_user(user_id)
        user.record_login()
        await self._repository.update(user)
        return user

    async def delete_user(self, user_id: str) -> None:
        user = await self.get_user(user_id)
        await self._repository.delete(user)

    async def list_users(self, *, offset: int = 0, limit: int = 10) -> list[User]:
        return await self._repository.find_users(offset, limit)

    async def list_instructors(self, *, offset: int = 0, limit: int = 10) -> list[User]:
        return await self._repository.find_instructors(offset, limit)

    async def get_users_by_ids(self, user_ids: Sequence[str]) -> list[User]:
        return await self._repository.find_by_ids(list(dict.fromkeys(user_ids)))

    async def list_emails(self) -> list[str]:
        return await self._repository.find_all_emails()


__all__ = ["UserService"]
