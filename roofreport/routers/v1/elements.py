"""Roof elements of a report."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from roofreport.core.response import DataResponse, wrap
from roofreport.core.security import get_current_user
from roofreport.db.base import get_db
from roofreport.domain.user import User
from roofreport.schemas.element import (
    RoofElementBulkCreate,
    RoofElementCreate,
    RoofElementOut,
    RoofElementUpdate,
)
from roofreport.services.element import RoofElementService

router = APIRouter(prefix="/reports/{report_id}/elements", tags=["Roof elements"])


@router.get("", response_model=DataResponse[list[RoofElementOut]])
async def list_elements(
    report_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    items = await RoofElementService(session).list_elements(report_id, user)
    return wrap([RoofElementOut.model_validate(e) for e in items])


@router.post("", response_model=DataResponse[RoofElementOut], status_code=status.HTTP_201_CREATED)
async def create_element(
    report_id: str,
    body: RoofElementCreate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    element = await RoofElementService(session).create_element(report_id, body, user)
    return wrap(RoofElementOut.model_validate(element))


@router.post(
    "/bulk",
    response_model=DataResponse[list[RoofElementOut]],
    status_code=status.HTTP_201_CREATED,
)
async def bulk_create_elements(
    report_id: str,
    body: RoofElementBulkCreate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    items = await RoofElementService(session).bulk_create(report_id, body.elements, user)
    return wrap([RoofElementOut.model_validate(e) for e in items])


@router.put("/{element_id}", response_model=DataResponse[RoofElementOut])
async def update_element(
    report_id: str,
    element_id: str,
    body: RoofElementUpdate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    element = await RoofElementService(session).update_element(report_id, element_id, body, user)
    return wrap(RoofElementOut.model_validate(element))


@router.delete("/{element_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_element(
    report_id: str,
    element_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    await RoofElementService(session).delete_element(report_id, element_id, user)
