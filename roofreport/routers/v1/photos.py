"""Photo evidence: multipart upload, metadata edits, ordering and integrity checks."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from roofreport.core.response import DataResponse, wrap
from roofreport.core.security import get_current_user
from roofreport.db.base import get_db
from roofreport.domain.enums import PhotoType
from roofreport.domain.user import User
from roofreport.schemas.photo import PhotoIntegrityOut, PhotoOut, PhotoReorder, PhotoUpdate
from roofreport.services.photo import PhotoService
from roofreport.services.storage import ObjectStorage, get_storage

router = APIRouter(prefix="/reports/{report_id}/photos", tags=["Photos"])
content_router = APIRouter(prefix="/photos", tags=["Photos"])


@router.get("", response_model=DataResponse[list[PhotoOut]])
async def list_photos(
    report_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    items = await PhotoService(session, storage).list_photos(report_id, user)
    return wrap([PhotoOut.model_validate(p) for p in items])


@router.post("", response_model=DataResponse[PhotoOut], status_code=status.HTTP_201_CREATED)
async def upload_photo(
    report_id: str,
    file: UploadFile = File(...),
    photo_type: PhotoType = Form(default=PhotoType.GENERAL, alias="photoType"),
    caption: Optional[str] = Form(default=None),
    scale_reference: Optional[str] = Form(default=None, alias="scaleReference"),
    defect_id: Optional[str] = Form(default=None, alias="defectId"),
    roof_element_id: Optional[str] = Form(default=None, alias="roofElementId"),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    """Store the binary, hash it (SHA-256) and pull EXIF capture details."""
    data = await file.read()
    photo = await PhotoService(session, storage).upload_photo(
        report_id,
        user,
        data=data,
        filename=file.filename or "photo",
        content_type=file.content_type,
        photo_type=photo_type,
        caption=caption,
        scale_reference=scale_reference,
        defect_id=defect_id or None,
        roof_element_id=roof_element_id or None,
    )
    return wrap(PhotoOut.model_validate(photo))


@router.put("/reorder", response_model=DataResponse[list[PhotoOut]])
async def reorder_photos(
    report_id: str,
    body: PhotoReorder,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    items = await PhotoService(session, storage).reorder_photos(report_id, body.photo_ids, user)
    return wrap([PhotoOut.model_validate(p) for p in items])


@router.put("/{photo_id}", response_model=DataResponse[PhotoOut])
async def update_photo(
    report_id: str,
    photo_id: str,
    body: PhotoUpdate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    photo = await PhotoService(session, storage).update_photo(report_id, photo_id, body, user)
    return wrap(PhotoOut.model_validate(photo))


@router.delete("/{photo_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_photo(
    report_id: str,
    photo_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    await PhotoService(session, storage).delete_photo(report_id, photo_id, user)


@router.get("/{photo_id}/verify", response_model=DataResponse[PhotoIntegrityOut])
async def verify_photo(
    report_id: str,
    photo_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    """Re-hash the stored binary and compare it with the hash taken on upload."""
    return wrap(await PhotoService(session, storage).verify_integrity(report_id, photo_id, user))


@content_router.put("/{photo_id}/content", response_model=DataResponse[PhotoOut])
async def upload_photo_content(
    photo_id: str,
    request: Request,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    """Raw-body upload for photos announced by mobile sync (used when presigning is unavailable)."""
    data = await request.body()
    photo = await PhotoService(session, storage).upload_pending_content(photo_id, data, user)
    return wrap(PhotoOut.model_validate(photo))
