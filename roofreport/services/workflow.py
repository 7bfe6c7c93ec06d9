"""Report workflow: submission, signing and the review cycle.

  DRAFT / IN_PROGRESS / REVISION_REQUIRED --submit--> PENDING_REVIEW
  PENDING_REVIEW --start review--> UNDER_REVIEW
  PENDING_REVIEW / UNDER_REVIEW --approve--> APPROVED (or FINALISED)
  PENDING_REVIEW / UNDER_REVIEW --reject--> REVISION_REQUIRED
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from roofreport.core.exceptions import BusinessRuleError, ForbiddenError, ValidationError
from roofreport.domain.enums import (
    REVIEWABLE_STATUSES,
    WORKING_STATUSES,
    AuditAction,
    ReportStatus,
)
from roofreport.domain.report import Report
from roofreport.domain.user import User
from roofreport.repositories.report import AuditLogRepository, ReportRepository
from roofreport.schemas.workflow import (
    ApproveRequest,
    RejectRequest,
    SignatureCreate,
    ValidationResult,
)
from roofreport.services.report import ReportService, can_write
from roofreport.services.storage import ObjectStorage, signature_key
from roofreport.services.validation import validate_report

logger = logging.getLogger(__name__)

_PNG_DATA_URL = re.compile(r"^data:image/png;base64,(?P<payload>[A-Za-z0-9+/=\s]+)$")
_PNG_MAGIC = b"\x89PNG\r\n\x1a\n"

_WORKING = {s.value for s in WORKING_STATUSES}
_REVIEWABLE = {s.value for s in REVIEWABLE_STATUSES}


def decode_signature(data_url: str) -> bytes:
    """Decode a `data:image/png;base64,...` URL into PNG bytes."""
    match = _PNG_DATA_URL.match(data_url.strip())
    if not match:
        raise ValidationError("Signature must be a base64 PNG data URL")
    try:
        png = base64.b64decode(match.group("payload"), validate=False)
    except (binascii.Error, ValueError) as exc:
        raise ValidationError("Signature data is not valid base64") from exc
    if not png.startswith(_PNG_MAGIC):
        raise ValidationError("Signature data is not a PNG image")
    return png


class SubmissionService:
    def __init__(self, session: AsyncSession):
        self._reports = ReportService(session)
        self._repo = ReportRepository(session)
        self._audit = AuditLogRepository(session)

    async def check(self, report_id: str, user: User) -> tuple[Report, ValidationResult]:
        report = await self._reports.get_full_report(report_id, user)
        return report, validate_report(report)

    async def submit(self, report_id: str, user: User) -> dict:
        report = await self._reports.get_full_report(report_id, user)
        if not can_write(report, user):
            raise ForbiddenError("Only the report's inspector can submit it")
        if report.status == ReportStatus.FINALISED.value:
            raise BusinessRuleError("Report is already finalised and cannot be resubmitted")
        if report.status not in _WORKING:
            raise BusinessRuleError(f"Cannot submit a report with status {report.status}")

        validation = validate_report(report)
        if not validation.is_valid:
            logger.info(
                "Submission of %s blocked by %d error(s)", report.report_number, len(validation.errors)
            )
            return {
                "success": False,
                "message": "Report validation failed. Please address the errors before submitting.",
                "validation": validation,
                "new_status": None,
            }

        previous = report.status
        await self._repo.update(
            report_id,
            status=ReportStatus.PENDING_REVIEW.value,
            submitted_at=datetime.now(timezone.utc),
        )
        details = validation.validation_details
        await self._audit.record(
            report_id,
            user.id,
            AuditAction.SUBMITTED.value,
            {
                "from": previous,
                "completion_percentage": validation.completion_percentage,
                "photos_count": details.photos.count,
                "defects_count": details.defects.count,
                "elements_count": details.roof_elements.count,
            },
        )
        logger.info("Report %s submitted for review", report.report_number)
        return {
            "success": True,
            "message": "Report submitted for review",
            "validation": validation,
            "new_status": ReportStatus.PENDING_REVIEW.value,
        }


class SignatureService:
    def __init__(self, session: AsyncSession, storage: ObjectStorage):
        self._storage = storage
        self._reports = ReportService(session)
        self._repo = ReportRepository(session)
        self._audit = AuditLogRepository(session)

    async def get_status(self, report_id: str, user: User) -> Report:
        return await self._reports.get_report(report_id, user)

    async def sign(self, report_id: str, data: SignatureCreate, user: User) -> Report:
        report = await self._reports.get_editable(report_id, user)
        if report.inspector_id != user.id:
            raise ForbiddenError("Only the report's inspector can sign the declaration")
        png = decode_signature(data.signature_data_url)
        url = await self._storage.put(signature_key(report_id), png, "image/png")

        signed_at = datetime.now(timezone.utc)
        updated = await self._repo.update(
            report_id,
            declaration_signed=True,
            signed_at=signed_at,
            signature_url=url,
            expert_declaration=data.expert_declaration,
            has_conflict=data.has_conflict,
            conflict_disclosure=data.conflict_disclosure if data.has_conflict else None,
        )
        await self._audit.record(
            report_id,
            user.id,
            AuditAction.UPDATED.value,
            {
                "section": "declaration",
                "signed_at": signed_at.isoformat(),
                "has_conflict": data.has_conflict,
                "expert_declaration": data.expert_declaration is not None,
            },
        )
        logger.info("Declaration signed for report %s", report.report_number)
        return updated  # type: ignore[return-value]


class ReviewService:
    """Reviewer actions. Callers are already role-checked by the router."""

    def __init__(self, session: AsyncSession):
        self._reports = ReportService(session)
        self._repo = ReportRepository(session)
        self._audit = AuditLogRepository(session)

    async def _reviewable(self, report_id: str, user: User) -> Report:
        report = await self._reports.get_report(report_id, user)
        if report.status not in _REVIEWABLE:
            raise BusinessRuleError(f"Report is not awaiting review (status: {report.status})")
        return report

    async def start_review(self, report_id: str, user: User) -> Report:
        report = await self._reports.get_report(report_id, user)
        if report.status != ReportStatus.PENDING_REVIEW.value:
            raise BusinessRuleError(f"Only reports pending review can be picked up (status: {report.status})")
        updated = await self._repo.update(
            report_id, status=ReportStatus.UNDER_REVIEW.value, reviewer_id=user.id
        )
        await self._audit.record(
            report_id,
            user.id,
            AuditAction.STATUS_CHANGED.value,
            {"from": ReportStatus.PENDING_REVIEW.value, "to": ReportStatus.UNDER_REVIEW.value},
        )
        return updated  # type: ignore[return-value]

    async def approve(self, report_id: str, data: ApproveRequest, user: User) -> Report:
        report = await self._reviewable(report_id, user)
        target = ReportStatus.FINALISED if data.finalise else ReportStatus.APPROVED
        previous = report.status
        updated = await self._repo.update(
            report_id,
            status=target.value,
            reviewer_id=user.id,
            approved_at=datetime.now(timezone.utc),
        )
        await self._audit.record(
            report_id,
            user.id,
            AuditAction.APPROVED.value,
            {"comments": data.comments, "finalised": data.finalise},
        )
        await self._audit.record(
            report_id,
            user.id,
            AuditAction.STATUS_CHANGED.value,
            {"from": previous, "to": target.value},
        )
        logger.info("Report %s %s by %s", report.report_number, target.value, user.id)
        return updated  # type: ignore[return-value]

    async def reject(self, report_id: str, data: RejectRequest, user: User) -> Report:
        report = await self._reviewable(report_id, user)
        previous = report.status
        updated = await self._repo.update(
            report_id, status=ReportStatus.REVISION_REQUIRED.value, reviewer_id=user.id
        )
        await self._audit.record(
            report_id,
            user.id,
            AuditAction.REVIEWED.value,
            {
                "decision": "REVISION_REQUIRED",
                "reason": data.reason,
                "revision_items": data.revision_items,
                "priority": data.priority,
            },
        )
        await self._audit.record(
            report_id,
            user.id,
            AuditAction.STATUS_CHANGED.value,
            {"from": previous, "to": ReportStatus.REVISION_REQUIRED.value},
        )
        return updated  # type: ignore[return-value]

    async def review_status(self, report_id: str, user: User) -> dict:
        report = await self._reports.get_report(report_id, user)
        history = await self._audit.for_report(
            report_id,
            actions=[
                AuditAction.SUBMITTED.value,
                AuditAction.REVIEWED.value,
                AuditAction.APPROVED.value,
                AuditAction.STATUS_CHANGED.value,
            ],
            limit=20,
        )
        latest_feedback = None
        if report.status == ReportStatus.REVISION_REQUIRED.value:
            rejection = next((h for h in history if h.action == AuditAction.REVIEWED.value), None)
            if rejection is not None:
                latest_feedback = {**(rejection.details or {}), "created_at": rejection.created_at}

        owner = can_write(report, user)
        return {
            "report": report,
            "review_history": history,
            "latest_feedback": latest_feedback,
            "permissions": {
                "can_edit": owner and report.status in _WORKING,
                "can_submit": owner and report.status in _WORKING,
                "can_review": user.is_reviewer and report.status in _REVIEWABLE,
                "can_approve": user.is_reviewer and report.status in _REVIEWABLE,
            },
        }
