"""Report CRUD, executive summary, audit and revision history, evidence integrity, duplication and PDF export."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from roofreport.core.pagination import PaginationParams
from roofreport.core.response import DataResponse, ListResponse, paginated, wrap
from roofreport.core.security import get_current_user
from roofreport.db.base import get_db
from roofreport.domain.enums import ReportStatus
from roofreport.domain.user import User
from roofreport.schemas.report import (
    AuditLogOut,
    DashboardStats,
    ExecutiveSummary,
    ReportCreate,
    ReportDetailOut,
    ReportOut,
    ReportUpdate,
    RevisionHistoryOut,
)
from roofreport.schemas.photo import EvidenceIntegrityOut
from roofreport.services.pdf import ReportPdfService
from roofreport.services.photo import EvidenceIntegrityService
from roofreport.services.report import ReportService

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("", response_model=ListResponse[ReportOut])
async def list_reports(
    filter_status: Optional[ReportStatus] = Query(default=None, alias="status"),
    search: Optional[str] = Query(default=None, max_length=100),
    pagination: PaginationParams = Depends(),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    """Inspectors see their own reports; reviewers and admins see all."""
    items, total = await ReportService(session).list_reports(
        user, pagination, status=filter_status.value if filter_status else None, search=search
    )
    return paginated([ReportOut.model_validate(r) for r in items], total, pagination)


@router.get("/stats", response_model=DataResponse[DashboardStats])
async def dashboard_stats(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    return wrap(await ReportService(session).dashboard_stats(user))


@router.post("", response_model=DataResponse[ReportOut], status_code=status.HTTP_201_CREATED)
async def create_report(
    body: ReportCreate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    report = await ReportService(session).create_report(body, user)
    return wrap(ReportOut.model_validate(report))


@router.get("/{report_id}", response_model=DataResponse[ReportDetailOut])
async def get_report(
    report_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    report = await ReportService(session).get_full_report(report_id, user)
    return wrap(ReportDetailOut.model_validate(report))


@router.put("/{report_id}", response_model=DataResponse[ReportOut])
async def update_report(
    report_id: str,
    body: ReportUpdate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    report = await ReportService(session).update_report(report_id, body, user)
    return wrap(ReportOut.model_validate(report))


@router.delete("/{report_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_report(
    report_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    await ReportService(session).delete_report(report_id, user)


@router.post(
    "/{report_id}/duplicate",
    response_model=DataResponse[ReportOut],
    status_code=status.HTTP_201_CREATED,
)
async def duplicate_report(
    report_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    """Copy property, client and roof elements into a fresh DRAFT."""
    report = await ReportService(session).duplicate_report(report_id, user)
    return wrap(ReportOut.model_validate(report))


@router.get("/{report_id}/executive-summary", response_model=DataResponse[Optional[ExecutiveSummary]])
async def get_executive_summary(
    report_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    return wrap(await ReportService(session).get_executive_summary(report_id, user))


@router.put("/{report_id}/executive-summary", response_model=DataResponse[ExecutiveSummary])
async def set_executive_summary(
    report_id: str,
    body: ExecutiveSummary,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    return wrap(await ReportService(session).set_executive_summary(report_id, body, user))


@router.get("/{report_id}/audit-log", response_model=DataResponse[list[AuditLogOut]])
async def audit_log(
    report_id: str,
    limit: int = Query(default=100, ge=1, le=500),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    entries = await ReportService(session).audit_log(report_id, user, limit=limit)
    return wrap([AuditLogOut.model_validate(e) for e in entries])


@router.get("/{report_id}/revisions", response_model=DataResponse[RevisionHistoryOut])
async def revision_history(
    report_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    """Audit entries grouped by submission round, most recent round first."""
    return wrap(await ReportService(session).revision_history(report_id, user))


@router.get("/{report_id}/evidence-integrity", response_model=DataResponse[EvidenceIntegrityOut])
async def evidence_integrity(
    report_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    return wrap(await EvidenceIntegrityService(session).summarise(report_id, user))

@router.get("/{report_id}/pdf", response_class=Response)
async def report_pdf(
    report_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    filename, pdf = await ReportPdfService(session).generate(report_id, user)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
