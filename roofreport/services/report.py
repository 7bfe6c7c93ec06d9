"""Report service: CRUD, access rules, numbering, duplication, history and dashboard stats.

Access rules (used by every report-scoped service):
  read:  the owning inspector, ADMIN/SUPER_ADMIN, the assigned reviewer, or
         any reviewer while the report waits in PENDING_REVIEW
  write: the owning inspector or ADMIN/SUPER_ADMIN, never once FINALISED
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from roofreport.core.config import settings
from roofreport.core.exceptions import (
    BusinessRuleError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
)
from roofreport.core.pagination import PaginationParams
from roofreport.domain.audit import AuditLog
from roofreport.domain.enums import WORKING_STATUSES, AuditAction, ReportStatus, UserRole
from roofreport.domain.report import Report
from roofreport.domain.user import User
from roofreport.repositories.complaint import ComplaintRepository
from roofreport.repositories.report import (
    AuditLogRepository,
    ReportRepository,
    RoofElementRepository,
)
from roofreport.repositories.user import UserRepository
from roofreport.schemas.report import ExecutiveSummary, ReportCreate, ReportUpdate

logger = logging.getLogger(__name__)

# Statuses an inspector may set directly through PUT /reports/{id}
_EDITABLE_TARGET_STATUSES = {ReportStatus.DRAFT.value, ReportStatus.IN_PROGRESS.value}
_WORKING = {s.value for s in WORKING_STATUSES}

# Copied by duplicate_report
_DUPLICATED_FIELDS = (
    "property_address",
    "property_city",
    "property_region",
    "property_postcode",
    "property_type",
    "building_age",
    "gps_lat",
    "gps_lng",
    "inspection_type",
    "weather_conditions",
    "access_method",
    "limitations",
    "client_name",
    "client_email",
    "client_phone",
    "client_company",
    "engaging_party",
    "scope_of_works",
    "methodology",
)
_DUPLICATED_ELEMENT_FIELDS = (
    "element_type",
    "location",
    "cladding_type",
    "cladding_profile",
    "material",
    "manufacturer",
    "colour",
    "pitch",
    "area",
    "age_years",
    "condition_rating",
    "condition_notes",
    "meets_cop",
    "meets_e2",
)


def can_read(report: Report, user: User) -> bool:
    if report.inspector_id == user.id or user.is_admin:
        return True
    if user.role == UserRole.REVIEWER.value:
        return report.reviewer_id == user.id or report.status == ReportStatus.PENDING_REVIEW.value
    return False


def can_write(report: Report, user: User) -> bool:
    return report.inspector_id == user.id or user.is_admin


def ensure_not_finalised(report: Report) -> None:
    if report.status == ReportStatus.FINALISED.value:
        raise BusinessRuleError("Cannot modify a finalised report")


async def next_report_number(session: AsyncSession, now: datetime | None = None) -> str:
    """`<PREFIX>-YYYY-NNNNN`, one past the highest number issued this year."""
    year = (now or datetime.now(timezone.utc)).year
    prefix = f"{settings.report_number_prefix}-{year}-"
    highest = await ReportRepository(session).latest_number_with_prefix(prefix)
    return f"{prefix}{highest + 1:05d}"


class ReportService:
    def __init__(self, session: AsyncSession):
        self._session = session
        self._repo = ReportRepository(session)
        self._elements = RoofElementRepository(session)
        self._audit = AuditLogRepository(session)

    # ------------------------------------------------------------------
    # Access helpers shared with the child services
    # ------------------------------------------------------------------

    async def get_report(self, report_id: str, user: User) -> Report:
        report = await self._repo.get_by_id(report_id)
        if report is None:
            raise NotFoundError("Report", report_id)
        if not can_read(report, user):
            raise ForbiddenError("You do not have access to this report")
        return report

    async def get_full_report(self, report_id: str, user: User) -> Report:
        await self.get_report(report_id, user)
        return await self._repo.get_full(report_id)  # type: ignore[return-value]

    async def get_editable(self, report_id: str, user: User) -> Report:
        report = await self._repo.get_by_id(report_id)
        if report is None:
            raise NotFoundError("Report", report_id)
        if not can_write(report, user):
            raise ForbiddenError("You do not have permission to modify this report")
        ensure_not_finalised(report)
        return report

    async def touch(self, report_id: str) -> None:
        """Bump updated_at after a child row changes (sync conflict detection keys on it)."""
        await self._repo.update(report_id)

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    async def list_reports(
        self,
        user: User,
        pagination: PaginationParams,
        status: str | None = None,
        search: str | None = None,
    ):
        scope = None if user.is_reviewer else user.id
        return await self._repo.list(
            offset=pagination.offset,
            limit=pagination.limit,
            order_by=pagination.sort,
            order=pagination.order,
            filters={"status": status} if status else None,
            query=self._repo.visible_to(scope, search),
        )

    async def create_report(self, data: ReportCreate, user: User) -> Report:
        report = await self._repo.create(
            **data.model_dump(exclude_none=True),
            report_number=await next_report_number(self._session),
            inspector_id=user.id,
            status=ReportStatus.DRAFT.value,
        )
        await self._audit.record(
            report.id, user.id, AuditAction.CREATED.value, {"report_number": report.report_number}
        )
        logger.info("Report %s created by %s", report.report_number, user.id)
        return report

    async def update_report(self, report_id: str, data: ReportUpdate, user: User) -> Report:
        report = await self.get_editable(report_id, user)
        changes = data.model_dump(exclude_none=True, exclude_unset=True)
        new_status = changes.get("status")
        if new_status is not None and new_status not in _EDITABLE_TARGET_STATUSES:
            raise BusinessRuleError(
                f"Status can only be set to DRAFT or IN_PROGRESS here, not {new_status}"
            )
        old_status = report.status
        if new_status is not None and new_status != old_status and old_status not in _WORKING:
            raise BusinessRuleError(
                f"Report status {old_status} can only change through the review workflow"
            )

        updated = await self._repo.update(report_id, **changes)
        await self._audit.record(
            report_id, user.id, AuditAction.UPDATED.value, {"fields": sorted(changes)}
        )
        if new_status and new_status != old_status:
            await self._audit.record(
                report_id,
                user.id,
                AuditAction.STATUS_CHANGED.value,
                {"from": old_status, "to": new_status},
            )
        return updated  # type: ignore[return-value]

    async def delete_report(self, report_id: str, user: User) -> None:
        report = await self.get_editable(report_id, user)
        complaints = await ComplaintRepository(self._session).count(report_id=report_id)
        if complaints:
            raise ConflictError(
                f"Report {report.report_number} has {complaints} LBP complaint(s) and cannot be deleted"
            )
        await self._repo.delete_with_children(report_id)
        await self._audit.record(
            report_id, user.id, AuditAction.DELETED.value, {"report_number": report.report_number}
        )
        logger.info("Report %s deleted by %s", report.report_number, user.id)

    async def duplicate_report(self, report_id: str, user: User) -> Report:
        source = await self.get_full_report(report_id, user)
        copy = await self._repo.create(
            **{field: getattr(source, field) for field in _DUPLICATED_FIELDS},
            inspection_date=datetime.now(timezone.utc),
            report_number=await next_report_number(self._session),
            inspector_id=user.id,
            status=ReportStatus.DRAFT.value,
        )
        for element in source.roof_elements:
            await self._elements.create(
                report_id=copy.id,
                **{field: getattr(element, field) for field in _DUPLICATED_ELEMENT_FIELDS},
            )
        await self._audit.record(
            copy.id,
            user.id,
            AuditAction.CREATED.value,
            {"report_number": copy.report_number, "duplicated_from": source.report_number},
        )
        return copy

    # ------------------------------------------------------------------
    # Executive summary
    # ------------------------------------------------------------------

    async def get_executive_summary(self, report_id: str, user: User) -> dict | None:
        report = await self.get_report(report_id, user)
        return report.executive_summary

    async def set_executive_summary(
        self, report_id: str, data: ExecutiveSummary, user: User
    ) -> dict:
        await self.get_editable(report_id, user)
        summary = data.model_dump()
        await self._repo.update(report_id, executive_summary=summary)
        await self._audit.record(
            report_id, user.id, AuditAction.UPDATED.value, {"section": "executive_summary"}
        )
        return summary

    # ------------------------------------------------------------------
    # History & stats
    # ------------------------------------------------------------------

    async def audit_log(self, report_id: str, user: User, limit: int = 100):
        await self.get_report(report_id, user)
        return await self._audit.for_report(report_id, limit=limit)

    async def revision_history(self, report_id: str, user: User) -> dict:
        """Audit entries grouped into rounds, each submission opening a new round."""
        report = await self.get_report(report_id, user)
        entries = await self._audit.history(report_id)
        names = await UserRepository(self._session).names_for(
            {e.user_id for e in entries if e.user_id}
        )

        rounds: list[dict] = [{"round": 0, "started_at": report.created_at, "entries": []}]
        for entry in entries:
            if entry.action == AuditAction.SUBMITTED.value:
                rounds.append({"round": len(rounds), "started_at": entry.created_at, "entries": []})
            rounds[-1]["entries"].append(entry)

        revisions = []
        for index, bucket in enumerate(rounds):
            ended_at = rounds[index + 1]["started_at"] if index + 1 < len(rounds) else None
            revisions.append(_revision_round(bucket, ended_at, names))

        return {
            "report_number": report.report_number,
            "status": report.status,
            "current_round": len(rounds) - 1,
            "total_revisions": len(rounds),
            "revisions": list(reversed(revisions)),
        }

    async def dashboard_stats(self, user: User) -> dict[str, int]:
        scope = None if user.is_reviewer else user.id
        counts = await self._repo.status_counts(scope)
        return {
            "total": sum(counts.values()),
            "draft": counts.get(ReportStatus.DRAFT.value, 0),
            "in_progress": counts.get(ReportStatus.IN_PROGRESS.value, 0),
            "pending_review": counts.get(ReportStatus.PENDING_REVIEW.value, 0)
            + counts.get(ReportStatus.UNDER_REVIEW.value, 0),
            "completed": counts.get(ReportStatus.APPROVED.value, 0)
            + counts.get(ReportStatus.FINALISED.value, 0),
        }


def _details(entry: AuditLog) -> dict:
    return entry.details if isinstance(entry.details, dict) else {}


def _revision_round(bucket: dict, ended_at: datetime | None, names: dict[str, str]) -> dict:
    entries: list[AuditLog] = bucket["entries"]
    updates = [e for e in entries if e.action == AuditAction.UPDATED.value]

    def section(name: str, key: str) -> int:
        return sum(1 for e in updates if _details(e).get("section") == name and key in _details(e))

    field_changes = [
        {
            "field": field,
            "changed_at": e.created_at,
            "changed_by": names.get(e.user_id, "Unknown"),
        }
        for e in updates
        for field in _details(e).get("fields", [])
    ]
    feedback = [
        {
            "reviewer": names.get(e.user_id, "Unknown"),
            "decision": _details(e).get("decision", "REVIEWED"),
            "reason": _details(e).get("reason"),
            "revision_items": _details(e).get("revision_items") or [],
            "priority": _details(e).get("priority"),
            "created_at": e.created_at,
        }
        for e in entries
        if e.action == AuditAction.REVIEWED.value
    ]
    number = bucket["round"]
    return {
        "round": number,
        "label": "Initial Draft" if number == 0 else f"Revision {number}",
        "started_at": bucket["started_at"],
        "ended_at": ended_at,
        "is_active": ended_at is None,
        "summary": {
            "total_changes": len(entries),
            "field_changes": len(field_changes),
            "photos_added": section("photos", "uploaded"),
            "photos_deleted": section("photos", "deleted"),
            "defects_added": section("defects", "created"),
            "defects_deleted": section("defects", "deleted"),
            "status_changes": sum(1 for e in entries if e.action == AuditAction.STATUS_CHANGED.value),
            "feedback_received": len(feedback),
        },
        "field_changes": field_changes,
        "feedback": feedback,
        "logs": entries,
    }
