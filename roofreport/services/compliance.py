"""Compliance assessment service and the compliance-status derivation."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from roofreport.domain.compliance import ComplianceAssessment
from roofreport.domain.enums import AuditAction, ComplianceStatus
from roofreport.domain.user import User
from roofreport.repositories.reference import ChecklistRepository, ReportTemplateRepository
from roofreport.repositories.report import AuditLogRepository, ComplianceRepository, ReportRepository
from roofreport.schemas.compliance import ComplianceUpsert
from roofreport.services.report import ReportService

logger = logging.getLogger(__name__)


def compute_compliance_status(checklist_results: Mapping[str, Any] | None) -> ComplianceStatus:
    """Roll every item status up into one report-level result.

    Order matters: nothing answered (or everything N/A) is NOT_ASSESSED,
    then any fail wins, then any partial, otherwise PASS.
    """
    statuses: list[str] = []
    for items in (checklist_results or {}).values():
        if not isinstance(items, Mapping):
            continue
        statuses.extend(str(v).lower() for v in items.values() if v)

    if not statuses or all(s == "na" for s in statuses):
        return ComplianceStatus.NOT_ASSESSED
    if "fail" in statuses:
        return ComplianceStatus.FAIL
    if "partial" in statuses:
        return ComplianceStatus.PARTIAL
    return ComplianceStatus.PASS


async def apply_assessment(
    session: AsyncSession,
    report_id: str,
    checklist_results: dict[str, Any],
    non_compliance_summary: str | None,
) -> tuple[ComplianceAssessment, ComplianceStatus]:
    """Create or replace the report's assessment and refresh its compliance_status."""
    repo = ComplianceRepository(session)
    existing = await repo.get_for_report(report_id)
    if existing is None:
        assessment = await repo.create(
            report_id=report_id,
            checklist_results=checklist_results,
            non_compliance_summary=non_compliance_summary,
        )
    else:
        assessment = await repo.update(
            existing.id,
            checklist_results=checklist_results,
            non_compliance_summary=non_compliance_summary,
        )
    status = compute_compliance_status(checklist_results)
    await ReportRepository(session).update(report_id, compliance_status=status.value)
    return assessment, status


class ComplianceService:
    def __init__(self, session: AsyncSession):
        self._session = session
        self._reports = ReportService(session)
        self._repo = ComplianceRepository(session)
        self._audit = AuditLogRepository(session)

    async def get_assessment(self, report_id: str, user: User) -> ComplianceAssessment | None:
        await self._reports.get_report(report_id, user)
        return await self._repo.get_for_report(report_id)

    async def upsert_assessment(
        self, report_id: str, data: ComplianceUpsert, user: User
    ) -> tuple[ComplianceAssessment, ComplianceStatus]:
        await self._reports.get_editable(report_id, user)
        assessment, status = await apply_assessment(
            self._session, report_id, data.checklist_results, data.non_compliance_summary
        )
        await self._audit.record(
            report_id,
            user.id,
            AuditAction.UPDATED.value,
            {"section": "compliance", "compliance_status": status.value},
        )
        logger.info("Compliance for report %s is now %s", report_id, status.value)
        return assessment, status


class ReferenceDataService:
    def __init__(self, session: AsyncSession):
        self._checklists = ChecklistRepository(session)
        self._templates = ReportTemplateRepository(session)

    async def list_checklists(self):
        return await self._checklists.all()

    async def list_templates(self):
        return await self._templates.active()
