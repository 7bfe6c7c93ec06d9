"""Caller identity and role guards.

Identity is asserted by an upstream gateway in the `X-User-Id` header and
resolved to a User row here. No tokens or sessions are handled in-process.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from roofreport.core.exceptions import ForbiddenError, NotFoundError, UnauthorizedError
from roofreport.db.base import get_db
from roofreport.domain.enums import ADMIN_ROLES, REVIEWER_ROLES, UserRole
from roofreport.domain.user import User
from roofreport.repositories.user import UserRepository

logger = logging.getLogger(__name__)


async def get_current_user(
    x_user_id: str | None = Header(default=None),
    session: AsyncSession = Depends(get_db),
) -> User:
    if not x_user_id:
        raise UnauthorizedError()
    user = await UserRepository(session).get_by_id(x_user_id)
    if user is None:
        raise NotFoundError("User")
    return user


def require_roles(roles: Iterable[UserRole], message: str | None = None) -> Callable:
    """Dependency factory that lets only the given roles through."""
    allowed = {UserRole(r).value for r in roles}

    async def _guard(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed:
            logger.info("Role %s denied (needs one of %s)", user.role, sorted(allowed))
            raise ForbiddenError(message or "Insufficient permissions")
        return user

    return _guard


require_reviewer = require_roles(REVIEWER_ROLES, "Reviewer access required")
require_admin = require_roles(ADMIN_ROLES, "Administrator access required")
require_super_admin = require_roles([UserRole.SUPER_ADMIN], "Super administrator access required")

