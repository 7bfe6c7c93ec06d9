"""User service: own profile, admin user management and role changes."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from roofreport.core.exceptions import ConflictError, NotFoundError
from roofreport.core.pagination import PaginationParams
from roofreport.domain.user import User
from roofreport.repositories.user import UserRepository
from roofreport.schemas.user import UserCreate, UserProfileUpdate

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, session: AsyncSession):
        self._repo = UserRepository(session)

    async def get_user(self, user_id: str) -> User:
        user = await self._repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User", user_id)
        return user

    async def update_profile(self, user: User, data: UserProfileUpdate) -> User:
        updated = await self._repo.update(
            user.id, **data.model_dump(exclude_none=True, exclude_unset=True)
        )
        return updated  # type: ignore[return-value]

    async def list_users(self, pagination: PaginationParams, role: str | None = None):
        return await self._repo.list(
            offset=pagination.offset,
            limit=pagination.limit,
            order_by=pagination.sort,
            order=pagination.order,
            filters={"role": role} if role else None,
        )

    async def create_user(self, data: UserCreate) -> User:
        if await self._repo.get_by_email(data.email):
            raise ConflictError(f"A user with email {data.email} already exists")
        user = await self._repo.create(**data.model_dump(exclude_none=True))
        logger.info("User %s created with role %s", user.id, user.role)
        return user

    async def set_role(self, user_id: str, role: str, actor: User) -> User:
        await self.get_user(user_id)
        updated = await self._repo.update(user_id, role=role)
        logger.info("Role of user %s set to %s by %s", user_id, role, actor.id)
        return updated  # type: ignore[return-value]
