"""LBP complaint workflow.

  DRAFT --submit for review--> PENDING_REVIEW --approve--> READY_TO_SUBMIT
  PENDING_REVIEW --reject--> DRAFT
  READY_TO_SUBMIT (signed) --submit to BPB--> SUBMITTED --ack--> ACKNOWLEDGED
  any BPB decision --> DECIDED
  anything before DECIDED --withdraw--> WITHDRAWN

Role checks (ADMIN / SUPER_ADMIN) are enforced by the router guards.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from roofreport.core.config import settings
from roofreport.core.exceptions import (
    BusinessRuleError,
    ConflictError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from roofreport.core.pagination import PaginationParams
from roofreport.domain.complaint import REQUIRED_FIELDS, LBPComplaint
from roofreport.domain.enums import AuditAction, ComplaintStatus, InspectionType, LBPAction
from roofreport.domain.user import User
from roofreport.repositories.complaint import ComplaintRepository
from roofreport.repositories.report import (
    AuditLogRepository,
    DefectRepository,
    PhotoRepository,
    ReportRepository,
)
from roofreport.schemas.complaint import (
    BPBResponseUpdate,
    ComplaintReview,
    ComplaintSign,
    ComplaintUpdate,
)
from roofreport.services.pdf import build_complaint_pdf
from roofreport.services.storage import ObjectStorage, complaint_pdf_key, sha256_hex

logger = logging.getLogger(__name__)

_EDITABLE = {ComplaintStatus.DRAFT.value, ComplaintStatus.PENDING_REVIEW.value}
_NOT_WITHDRAWABLE = {
    ComplaintStatus.DECIDED.value,
    ComplaintStatus.CLOSED.value,
    ComplaintStatus.WITHDRAWN.value,
}


async def next_complaint_number(session: AsyncSession, now: datetime | None = None) -> str:
    year = (now or datetime.now(timezone.utc)).year
    prefix = f"{settings.complaint_number_prefix}-{year}-"
    highest = await ComplaintRepository(session).latest_number_with_prefix(prefix)
    return f"{prefix}{highest + 1:05d}"


def missing_fields(complaint: LBPComplaint) -> list[str]:
    return [name for name in REQUIRED_FIELDS if not getattr(complaint, name)]


class ComplaintService:
    def __init__(self, session: AsyncSession, storage: ObjectStorage | None = None):
        self._session = session
        self._storage = storage
        self._repo = ComplaintRepository(session)
        self._reports = ReportRepository(session)
        self._photos = PhotoRepository(session)
        self._defects = DefectRepository(session)
        self._audit = AuditLogRepository(session)

    async def _log(self, complaint: LBPComplaint, user: User, action: LBPAction, **details) -> None:
        await self._audit.record(
            complaint.report_id,
            user.id,
            AuditAction.UPDATED.value,
            {"lbp_action": action.value, "complaint_id": complaint.id, **details},
        )

    async def _set_status(self, complaint: LBPComplaint, status: ComplaintStatus, **fields) -> LBPComplaint:
        previous = complaint.status
        updated = await self._repo.update(complaint.id, status=status.value, **fields)
        logger.info("Complaint %s: %s -> %s", complaint.complaint_number, previous, status.value)
        return updated  # type: ignore[return-value]

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    async def get(self, complaint_id: str) -> LBPComplaint:
        complaint = await self._repo.get_by_id(complaint_id)
        if complaint is None:
            raise NotFoundError("Complaint", complaint_id)
        return complaint

    async def list(self, pagination: PaginationParams, status: str | None = None):
        return await self._repo.list(
            offset=pagination.offset,
            limit=pagination.limit,
            order_by=pagination.sort,
            order=pagination.order,
            filters={"status": status} if status else None,
        )

    async def create_from_report(self, report_id: str, user: User) -> LBPComplaint:
        report = await self._reports.get_full(report_id)
        if report is None:
            raise NotFoundError("Report", report_id)
        if report.inspection_type != InspectionType.DISPUTE_RESOLUTION.value:
            raise BusinessRuleError("Can only create complaints from dispute resolution reports")
        active = await self._repo.active_for_report(report_id)
        if active is not None:
            raise ConflictError(
                f"An active complaint ({active.complaint_number}) already exists for this report"
            )

        complaint = await self._repo.create(
            complaint_number=await next_complaint_number(self._session),
            report_id=report.id,
            status=ComplaintStatus.DRAFT.value,
            work_address=report.property_address,
            work_city=report.property_city,
            work_start_date=report.inspection_date,
            complainant_name=settings.org_name,
            complainant_address=settings.org_address or None,
            complainant_phone=settings.org_phone or None,
            complainant_email=settings.org_email or None,
            complainant_relation=settings.org_relation,
            prepared_by=user.id,
            prepared_by_name=user.name,
            attached_photo_ids=[p.id for p in report.photos],
            attached_defect_ids=[d.id for d in report.defects],
        )
        await self._log(
            complaint,
            user,
            LBPAction.COMPLAINT_CREATED,
            complaint_number=complaint.complaint_number,
            status=complaint.status,
        )
        logger.info("Complaint %s raised from report %s", complaint.complaint_number, report.report_number)
        return complaint

    async def update(self, complaint_id: str, data: ComplaintUpdate, user: User) -> LBPComplaint:
        complaint = await self.get(complaint_id)
        if complaint.status not in _EDITABLE:
            raise BusinessRuleError("Cannot edit complaint after approval")
        changes = data.model_dump(exclude_none=True, exclude_unset=True)

        if "attached_photo_ids" in changes:
            known = {p.id for p in await self._photos.list_for_report(complaint.report_id)}
            if not set(changes["attached_photo_ids"]) <= known:
                raise ValidationError("Attached photos must belong to the complaint's report")
        if "attached_defect_ids" in changes:
            known = {d.id for d in await self._defects.list_for_report(complaint.report_id)}
            if not set(changes["attached_defect_ids"]) <= known:
                raise ValidationError("Attached defects must belong to the complaint's report")

        updated = await self._repo.update(complaint_id, **changes)
        await self._log(complaint, user, LBPAction.COMPLAINT_UPDATED, changes=sorted(changes))
        return updated  # type: ignore[return-value]

    # ------------------------------------------------------------------
    # Workflow
    # ------------------------------------------------------------------

    async def submit_for_review(self, complaint_id: str, user: User) -> LBPComplaint:
        complaint = await self.get(complaint_id)
        if complaint.status != ComplaintStatus.DRAFT.value:
            raise BusinessRuleError("Complaint must be in draft status to submit for review")
        missing = missing_fields(complaint)
        if missing:
            raise ValidationError(
                "Missing required fields for submission: " + ", ".join(missing),
                details={"missing_fields": missing},
            )
        updated = await self._set_status(complaint, ComplaintStatus.PENDING_REVIEW)
        await self._log(complaint, user, LBPAction.COMPLAINT_SUBMITTED_FOR_REVIEW)
        return updated

    async def review(self, complaint_id: str, data: ComplaintReview, user: User) -> LBPComplaint:
        complaint = await self.get(complaint_id)
        if complaint.status != ComplaintStatus.PENDING_REVIEW.value:
            raise BusinessRuleError("Complaint must be pending review")
        target = ComplaintStatus.READY_TO_SUBMIT if data.approved else ComplaintStatus.DRAFT
        updated = await self._set_status(
            complaint,
            target,
            reviewed_by=user.id,
            reviewed_by_name=user.name,
            reviewed_at=datetime.now(timezone.utc),
            review_notes=data.review_notes,
        )
        await self._log(
            complaint,
            user,
            LBPAction.COMPLAINT_APPROVED if data.approved else LBPAction.COMPLAINT_REJECTED,
            review_notes=data.review_notes,
        )
        return updated

    async def sign(self, complaint_id: str, data: ComplaintSign, user: User) -> LBPComplaint:
        complaint = await self.get(complaint_id)
        if complaint.status != ComplaintStatus.READY_TO_SUBMIT.value:
            raise BusinessRuleError("Complaint must be approved before signing")
        if not data.declaration_accepted:
            raise ValidationError("Declaration must be accepted to sign the complaint")
        updated = await self._repo.update(
            complaint_id,
            signed_by=user.id,
            signed_by_name=user.name,
            signature_data=data.signature_data,
            signed_at=datetime.now(timezone.utc),
            declaration_accepted=True,
        )
        await self._log(complaint, user, LBPAction.COMPLAINT_SIGNED)
        return updated  # type: ignore[return-value]

    async def render_pdf(self, complaint: LBPComplaint) -> bytes:
        report = await self._reports.get_full(complaint.report_id)
        if report is None:
            raise NotFoundError("Report", complaint.report_id)
        return await asyncio.to_thread(build_complaint_pdf, complaint, report, list(report.defects))

    async def submit_to_bpb(self, complaint_id: str, user: User) -> LBPComplaint:
        """Generate, hash and store the complaint PDF, then mark it lodged with the Board.

        Delivery itself happens outside this service; the submission address and
        a confirmation id are recorded for the paper trail.
        """
        complaint = await self.get(complaint_id)
        if complaint.status != ComplaintStatus.READY_TO_SUBMIT.value:
            raise BusinessRuleError("Complaint must be approved before submission")
        if complaint.signed_at is None:
            raise BusinessRuleError("Complaint must be signed before submission")
        if self._storage is None:
            raise StorageError("No object storage available for the complaint PDF")

        pdf = await self.render_pdf(complaint)
        pdf_hash = sha256_hex(pdf)
        url = await self._storage.put(
            complaint_pdf_key(complaint.id, complaint.complaint_number), pdf, "application/pdf"
        )
        confirmation = f"BPB-{uuid.uuid4().hex[:12].upper()}"
        updated = await self._set_status(
            complaint,
            ComplaintStatus.SUBMITTED,
            submitted_by=user.id,
            submitted_by_name=user.name,
            submitted_at=datetime.now(timezone.utc),
            submission_method="EMAIL",
            submission_email=settings.bpb_complaints_email,
            submission_confirmation=confirmation,
            complaint_pdf_url=url,
            complaint_pdf_hash=pdf_hash,
        )
        await self._log(
            complaint,
            user,
            LBPAction.COMPLAINT_SUBMITTED_TO_BPB,
            submission_email=settings.bpb_complaints_email,
            confirmation_id=confirmation,
            pdf_hash=pdf_hash,
        )
        return updated

    async def withdraw(self, complaint_id: str, reason: str, user: User) -> LBPComplaint:
        complaint = await self.get(complaint_id)
        if complaint.status in _NOT_WITHDRAWABLE:
            raise BusinessRuleError(f"Cannot withdraw complaint in {complaint.status} status")
        updated = await self._set_status(complaint, ComplaintStatus.WITHDRAWN, bpb_notes=reason)
        await self._log(complaint, user, LBPAction.COMPLAINT_WITHDRAWN, reason=reason)
        return updated

    async def record_bpb_response(
        self, complaint_id: str, data: BPBResponseUpdate, user: User
    ) -> LBPComplaint:
        complaint = await self.get(complaint_id)
        changes = data.model_dump(exclude_none=True, exclude_unset=True)
        status = complaint.status
        if data.bpb_acknowledged_at and status == ComplaintStatus.SUBMITTED.value:
            status = ComplaintStatus.ACKNOWLEDGED.value
        if data.bpb_decision:
            status = ComplaintStatus.DECIDED.value
        updated = await self._repo.update(complaint_id, status=status, **changes)
        await self._log(
            complaint,
            user,
            LBPAction.BPB_RESPONSE_RECEIVED,
            **data.model_dump(mode="json", exclude_none=True),
        )
        return updated  # type: ignore[return-value]

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    async def stats(self) -> dict[str, int]:
        counts = await self._repo.status_counts()

        def count(*statuses: ComplaintStatus) -> int:
            return sum(counts.get(s.value, 0) for s in statuses)

        return {
            "total": sum(counts.values()),
            "draft": count(ComplaintStatus.DRAFT),
            "pending_review": count(ComplaintStatus.PENDING_REVIEW),
            "ready_to_submit": count(ComplaintStatus.READY_TO_SUBMIT),
            "submitted": count(ComplaintStatus.SUBMITTED),
            "active": count(ComplaintStatus.UNDER_INVESTIGATION, ComplaintStatus.HEARING_SCHEDULED),
            "closed": count(ComplaintStatus.CLOSED, ComplaintStatus.WITHDRAWN),
        }

    async def download_pdf(self, complaint_id: str, user: User) -> tuple[str, bytes]:
        complaint = await self.get(complaint_id)
        pdf = await self.render_pdf(complaint)
        await self._log(complaint, user, LBPAction.PDF_GENERATED, size_bytes=len(pdf))
        return f"{complaint.complaint_number}.pdf", pdf
