"""LBP complaints to the Building Practitioners Board."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from roofreport.core.pagination import PaginationParams
from roofreport.core.response import DataResponse, ListResponse, paginated, wrap
from roofreport.core.security import require_admin, require_super_admin
from roofreport.db.base import get_db
from roofreport.domain.complaint import GROUNDS_FOR_DISCIPLINE
from roofreport.domain.enums import ComplaintStatus
from roofreport.domain.user import User
from roofreport.schemas.complaint import (
    BPBResponseUpdate,
    ComplaintCreate,
    ComplaintOut,
    ComplaintReview,
    ComplaintSign,
    ComplaintStats,
    ComplaintUpdate,
    ComplaintWithdraw,
    GroundOut,
)
from roofreport.services.complaint import ComplaintService
from roofreport.services.storage import ObjectStorage, get_storage

router = APIRouter(prefix="/complaints", tags=["LBP complaints"])


@router.get("", response_model=ListResponse[ComplaintOut])
async def list_complaints(
    filter_status: Optional[ComplaintStatus] = Query(default=None, alias="status"),
    pagination: PaginationParams = Depends(),
    _: User = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
):
    items, total = await ComplaintService(session).list(
        pagination, status=filter_status.value if filter_status else None
    )
    return paginated([ComplaintOut.model_validate(c) for c in items], total, pagination)


@router.get("/stats", response_model=DataResponse[ComplaintStats])
async def complaint_stats(
    _: User = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
):
    return wrap(await ComplaintService(session).stats())


@router.get("/grounds", response_model=DataResponse[list[GroundOut]])
async def grounds_for_discipline(_: User = Depends(require_admin)):
    """Building Act 2004 s317 grounds a complaint may cite."""
    return wrap([GroundOut(code=code, **ground) for code, ground in GROUNDS_FOR_DISCIPLINE.items()])


@router.post("", response_model=DataResponse[ComplaintOut], status_code=status.HTTP_201_CREATED)
async def create_complaint(
    body: ComplaintCreate,
    user: User = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
):
    complaint = await ComplaintService(session).create_from_report(body.report_id, user)
    return wrap(ComplaintOut.model_validate(complaint))


@router.get("/{complaint_id}", response_model=DataResponse[ComplaintOut])
async def get_complaint(
    complaint_id: str,
    _: User = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
):
    return wrap(ComplaintOut.model_validate(await ComplaintService(session).get(complaint_id)))


@router.put("/{complaint_id}", response_model=DataResponse[ComplaintOut])
async def update_complaint(
    complaint_id: str,
    body: ComplaintUpdate,
    user: User = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
):
    complaint = await ComplaintService(session).update(complaint_id, body, user)
    return wrap(ComplaintOut.model_validate(complaint))


@router.post("/{complaint_id}/submit-for-review", response_model=DataResponse[ComplaintOut])
async def submit_for_review(
    complaint_id: str,
    user: User = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
):
    complaint = await ComplaintService(session).submit_for_review(complaint_id, user)
    return wrap(ComplaintOut.model_validate(complaint))


@router.post("/{complaint_id}/review", response_model=DataResponse[ComplaintOut])
async def review_complaint(
    complaint_id: str,
    body: ComplaintReview,
    user: User = Depends(require_super_admin),
    session: AsyncSession = Depends(get_db),
):
    complaint = await ComplaintService(session).review(complaint_id, body, user)
    return wrap(ComplaintOut.model_validate(complaint))


@router.post("/{complaint_id}/sign", response_model=DataResponse[ComplaintOut])
async def sign_complaint(
    complaint_id: str,
    body: ComplaintSign,
    user: User = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
):
    complaint = await ComplaintService(session).sign(complaint_id, body, user)
    return wrap(ComplaintOut.model_validate(complaint))


@router.post("/{complaint_id}/submit", response_model=DataResponse[ComplaintOut])
async def submit_to_bpb(
    complaint_id: str,
    user: User = Depends(require_super_admin),
    session: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    """Generate and store the complaint PDF and record the Board submission."""
    complaint = await ComplaintService(session, storage).submit_to_bpb(complaint_id, user)
    return wrap(ComplaintOut.model_validate(complaint))


@router.post("/{complaint_id}/withdraw", response_model=DataResponse[ComplaintOut])
async def withdraw_complaint(
    complaint_id: str,
    body: ComplaintWithdraw,
    user: User = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
):
    complaint = await ComplaintService(session).withdraw(complaint_id, body.reason, user)
    return wrap(ComplaintOut.model_validate(complaint))


@router.put("/{complaint_id}/bpb-response", response_model=DataResponse[ComplaintOut])
async def record_bpb_response(
    complaint_id: str,
    body: BPBResponseUpdate,
    user: User = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
):
    complaint = await ComplaintService(session).record_bpb_response(complaint_id, body, user)
    return wrap(ComplaintOut.model_validate(complaint))


@router.get("/{complaint_id}/pdf", response_class=Response)
async def complaint_pdf(
    complaint_id: str,
    user: User = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
):
    filename, pdf = await ComplaintService(session).download_pdf(complaint_id, user)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
