"""Compliance assessment of a report, plus checklist and template reference data."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from roofreport.core.response import DataResponse, wrap
from roofreport.core.security import get_current_user
from roofreport.db.base import get_db
from roofreport.domain.user import User
from roofreport.schemas.compliance import (
    ChecklistOut,
    ComplianceOut,
    ComplianceUpsert,
    ComplianceUpsertResult,
    ReportTemplateOut,
)
from roofreport.services.compliance import ComplianceService, ReferenceDataService

router = APIRouter(tags=["Compliance"])


@router.get("/reports/{report_id}/compliance", response_model=DataResponse[Optional[ComplianceOut]])
async def get_compliance(
    report_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    assessment = await ComplianceService(session).get_assessment(report_id, user)
    return wrap(ComplianceOut.model_validate(assessment) if assessment else None)


@router.put("/reports/{report_id}/compliance", response_model=DataResponse[ComplianceUpsertResult])
async def upsert_compliance(
    report_id: str,
    body: ComplianceUpsert,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    """Replace the assessment and recompute the report's compliance status."""
    assessment, compliance_status = await ComplianceService(session).upsert_assessment(
        report_id, body, user
    )
    return wrap(
        ComplianceUpsertResult(
            assessment=ComplianceOut.model_validate(assessment),
            compliance_status=compliance_status.value,
        )
    )


@router.get("/checklists", response_model=DataResponse[list[ChecklistOut]])
async def list_checklists(
    _: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    items = await ReferenceDataService(session).list_checklists()
    return wrap([ChecklistOut.model_validate(c) for c in items])


@router.get("/templates", response_model=DataResponse[list[ReportTemplateOut]])
async def list_templates(
    _: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    items = await ReferenceDataService(session).list_templates()
    return wrap([ReportTemplateOut.model_validate(t) for t in items])
