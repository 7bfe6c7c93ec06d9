"""User profile and administration."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from roofreport.core.pagination import PaginationParams
from roofreport.core.response import DataResponse, ListResponse, paginated, wrap
from roofreport.core.security import get_current_user, require_admin, require_super_admin
from roofreport.db.base import get_db
from roofreport.domain.enums import UserRole
from roofreport.domain.user import User
from roofreport.schemas.user import UserCreate, UserOut, UserProfileUpdate, UserRoleUpdate
from roofreport.services.user import UserService

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me", response_model=DataResponse[UserOut])
async def get_me(user: User = Depends(get_current_user)):
    return wrap(UserOut.model_validate(user))


@router.put("/me", response_model=DataResponse[UserOut])
async def update_me(
    body: UserProfileUpdate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    updated = await UserService(session).update_profile(user, body)
    return wrap(UserOut.model_validate(updated))


@router.get("", response_model=ListResponse[UserOut])
async def list_users(
    role: Optional[UserRole] = Query(default=None),
    pagination: PaginationParams = Depends(),
    _: User = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
):
    items, total = await UserService(session).list_users(
        pagination, role=role.value if role else None
    )
    return paginated([UserOut.model_validate(u) for u in items], total, pagination)


@router.post("", response_model=DataResponse[UserOut], status_code=status.HTTP_201_CREATED)
async def create_user(
    body: UserCreate,
    _: User = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
):
    user = await UserService(session).create_user(body)
    return wrap(UserOut.model_validate(user))


@router.put("/{user_id}/role", response_model=DataResponse[UserOut])
async def set_role(
    user_id: str,
    body: UserRoleUpdate,
    actor: User = Depends(require_super_admin),
    session: AsyncSession = Depends(get_db),
):
    user = await UserService(session).set_role(user_id, body.role, actor)
    return wrap(UserOut.model_validate(user))
