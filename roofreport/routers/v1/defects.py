"""Defects of a report."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from roofreport.core.response import DataResponse, wrap
from roofreport.core.security import get_current_user
from roofreport.db.base import get_db
from roofreport.domain.user import User
from roofreport.schemas.defect import DefectCreate, DefectOut, DefectPhotoLink, DefectUpdate
from roofreport.services.defect import DefectService

router = APIRouter(prefix="/reports/{report_id}/defects", tags=["Defects"])


@router.get("", response_model=DataResponse[list[DefectOut]])
async def list_defects(
    report_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    items = await DefectService(session).list_defects(report_id, user)
    return wrap([DefectOut.model_validate(d) for d in items])


@router.post("", response_model=DataResponse[DefectOut], status_code=status.HTTP_201_CREATED)
async def create_defect(
    report_id: str,
    body: DefectCreate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    """Numbered one past the report's highest defect number."""
    defect = await DefectService(session).create_defect(report_id, body, user)
    return wrap(DefectOut.model_validate(defect))


@router.get("/{defect_id}", response_model=DataResponse[DefectOut])
async def get_defect(
    report_id: str,
    defect_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    defect = await DefectService(session).get_defect(report_id, defect_id, user)
    return wrap(DefectOut.model_validate(defect))


@router.put("/{defect_id}", response_model=DataResponse[DefectOut])
async def update_defect(
    report_id: str,
    defect_id: str,
    body: DefectUpdate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    defect = await DefectService(session).update_defect(report_id, defect_id, body, user)
    return wrap(DefectOut.model_validate(defect))


@router.delete("/{defect_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_defect(
    report_id: str,
    defect_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    await DefectService(session).delete_defect(report_id, defect_id, user)


@router.post("/{defect_id}/photos", response_model=DataResponse[DefectOut])
async def link_photos(
    report_id: str,
    defect_id: str,
    body: DefectPhotoLink,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    defect = await DefectService(session).link_photos(report_id, defect_id, body.photo_ids, user)
    return wrap(DefectOut.model_validate(defect))
