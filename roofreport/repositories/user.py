"""User repository."""

from __future__ import annotations

from sqlalchemy import func, select

from roofreport.domain.user import User
from roofreport.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    model = User

    async def get_by_email(self, email: str) -> User | None:
        result = await self._session.execute(
            select(User).where(func.lower(User.email) == email.lower())
        )
        return result.scalars().first()

    async def names_for(self, user_ids: set[str]) -> dict[str, str]:
        if not user_ids:
            return {}
        rows = await self._session.execute(
            select(User.id, User.name).where(User.id.in_(user_ids))
        )
        return {user_id: name for user_id, name in rows.all()}
