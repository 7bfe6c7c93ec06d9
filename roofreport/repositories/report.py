"""Report repository plus per-report child repositories (elements, defects, photos)."""

from __future__ import annotations

import re
from datetime import datetime

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.orm import selectinload

from roofreport.domain.audit import AuditLog
from roofreport.domain.compliance import ComplianceAssessment
from roofreport.domain.defect import Defect, Photo
from roofreport.domain.report import Report, RoofElement
from roofreport.repositories.base import BaseRepository


class ReportRepository(BaseRepository[Report]):
    model = Report

    async def get_full(self, report_id: str) -> Report | None:
        """Load a report with inspector, elements, defects (+photos), photos and compliance."""
        result = await self._session.execute(
            select(Report)
            .where(Report.id == report_id)
            .options(
                selectinload(Report.inspector),
                selectinload(Report.roof_elements),
                selectinload(Report.defects).selectinload(Defect.photos),
                selectinload(Report.photos),
                selectinload(Report.compliance_assessment),
            )
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def get_by_number(self, report_number: str) -> Report | None:
        result = await self._session.execute(
            select(Report).where(Report.report_number == report_number)
        )
        return result.scalars().first()

    def visible_to(self, inspector_id: str | None, search: str | None = None):
        """SELECT scoped to one inspector (None = all reports) with optional text search."""
        q = select(Report)
        if inspector_id is not None:
            q = q.where(Report.inspector_id == inspector_id)
        if search:
            like = f"%{search.strip()}%"
            q = q.where(
                or_(
                    Report.property_address.ilike(like),
                    Report.client_name.ilike(like),
                    Report.report_number.ilike(like),
                    Report.property_city.ilike(like),
                )
            )
        return q

    async def latest_number_with_prefix(self, prefix: str) -> int:
        """Highest sequence number already issued for `prefix` (e.g. "RANZ-2026-")."""
        rows = await self._session.execute(
            select(Report.report_number).where(Report.report_number.like(f"{prefix}%"))
        )
        return max_sequence(rows.scalars().all(), prefix)

    async def status_counts(self, inspector_id: str | None) -> dict[str, int]:
        q = select(Report.status, func.count()).group_by(Report.status)
        if inspector_id is not None:
            q = q.where(Report.inspector_id == inspector_id)
        rows = await self._session.execute(q)
        return {status: count for status, count in rows.all()}

    async def recent_for_sync(
        self, inspector_id: str | None, updated_after: datetime | None, limit: int = 20
    ) -> list[tuple[Report, int, int]]:
        """Recent reports with (photo_count, defect_count) for the mobile bootstrap."""
        photo_count = (
            select(func.count(Photo.id)).where(Photo.report_id == Report.id).scalar_subquery()
        )
        defect_count = (
            select(func.count(Defect.id)).where(Defect.report_id == Report.id).scalar_subquery()
        )
        q = select(Report, photo_count, defect_count)
        if inspector_id is not None:
            q = q.where(Report.inspector_id == inspector_id)
        if updated_after is not None:
            q = q.where(Report.updated_at > updated_after)
        q = q.order_by(Report.updated_at.desc()).limit(limit)
        rows = await self._session.execute(q)
        return [(r, pc, dc) for r, pc, dc in rows.all()]

    async def delete_with_children(self, report_id: str) -> bool:
        """Remove a report and everything hanging off it (audit rows are kept)."""
        await self._session.execute(update(Photo).where(Photo.report_id == report_id).values(defect_id=None))
        for child in (Photo, Defect, RoofElement, ComplianceAssessment):
            await self._session.execute(delete(child).where(child.report_id == report_id))
        return await self.delete(report_id)


def max_sequence(numbers: list[str], prefix: str) -> int:
    pattern = re.compile(rf"^{re.escape(prefix)}(\d+)$")
    highest = 0
    for number in numbers:
        match = pattern.match(number or "")
        if match:
            highest = max(highest, int(match.group(1)))
    return highest


class ReportChildRepository(BaseRepository):
    """Base for rows that belong to exactly one report."""

    async def list_for_report(self, report_id: str) -> list:
        q = select(self.model).where(self.model.report_id == report_id).order_by(*self._ordering())
        return list((await self._session.execute(q)).scalars().all())

    async def get_in_report(self, report_id: str, entity_id: str):
        q = select(self.model).where(
            self.model.id == entity_id, self.model.report_id == report_id
        )
        return (await self._session.execute(q)).scalars().first()

    async def delete_in_report(self, report_id: str, entity_id: str) -> bool:
        result = await self._session.execute(
            delete(self.model).where(
                self.model.id == entity_id, self.model.report_id == report_id
            )
        )
        await self._session.flush()
        return result.rowcount > 0

    def _ordering(self):
        return (self.model.created_at.asc(),)


class RoofElementRepository(ReportChildRepository):
    model = RoofElement

    async def detach(self, report_id: str, element_id: str) -> None:
        """Null out references from the report's defects and photos before an element is removed."""
        await self._session.execute(
            update(Defect)
            .where(Defect.report_id == report_id, Defect.roof_element_id == element_id)
            .values(roof_element_id=None)
        )
        await self._session.execute(
            update(Photo)
            .where(Photo.report_id == report_id, Photo.roof_element_id == element_id)
            .values(roof_element_id=None)
        )


class DefectRepository(ReportChildRepository):
    model = Defect

    def _ordering(self):
        return (Defect.defect_number.asc(),)

    async def next_number(self, report_id: str) -> int:
        current = await self._session.execute(
            select(func.max(Defect.defect_number)).where(Defect.report_id == report_id)
        )
        return (current.scalar() or 0) + 1

    async def get_with_photos(self, defect_id: str) -> Defect | None:
        result = await self._session.execute(
            select(Defect)
            .where(Defect.id == defect_id)
            .options(selectinload(Defect.photos))
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def detach_photos(self, report_id: str, defect_id: str) -> None:
        await self._session.execute(
            update(Photo)
            .where(Photo.report_id == report_id, Photo.defect_id == defect_id)
            .values(defect_id=None)
        )


class PhotoRepository(ReportChildRepository):
    model = Photo

    def _ordering(self):
        return (Photo.sort_order.asc(), Photo.created_at.asc())

    async def next_sort_order(self, report_id: str) -> int:
        current = await self._session.execute(
            select(func.max(Photo.sort_order)).where(Photo.report_id == report_id)
        )
        return (current.scalar() or 0) + 1

    async def link_to_defect(self, report_id: str, defect_id: str, photo_ids: list[str]) -> int:
        result = await self._session.execute(
            update(Photo)
            .where(Photo.report_id == report_id, Photo.id.in_(photo_ids))
            .values(defect_id=defect_id)
        )
        await self._session.flush()
        return result.rowcount


class ComplianceRepository(BaseRepository[ComplianceAssessment]):
    model = ComplianceAssessment

    async def get_for_report(self, report_id: str) -> ComplianceAssessment | None:
        result = await self._session.execute(
            select(ComplianceAssessment).where(ComplianceAssessment.report_id == report_id)
        )
        return result.scalars().first()


class AuditLogRepository(BaseRepository[AuditLog]):
    model = AuditLog

    async def record(
        self,
        report_id: str,
        user_id: str | None,
        action: str,
        details: dict | None = None,
        created_at: datetime | None = None,
    ) -> AuditLog:
        """Append one entry. `created_at` keeps a device-side timestamp when given."""
        entry = AuditLog(report_id=report_id, user_id=user_id, action=action, details=details)
        if created_at is not None:
            entry.created_at = created_at
        self._session.add(entry)
        await self._session.flush()
        return entry

    async def for_report(
        self, report_id: str, actions: list[str] | None = None, limit: int = 100
    ) -> list[AuditLog]:
        q = select(AuditLog).where(AuditLog.report_id == report_id)
        if actions:
            q = q.where(AuditLog.action.in_(actions))
        q = q.order_by(AuditLog.created_at.desc()).limit(limit)
        return list((await self._session.execute(q)).scalars().all())

    async def history(self, report_id: str) -> list[AuditLog]:
        """Every entry for a report, oldest first."""
        q = (
            select(AuditLog)
            .where(AuditLog.report_id == report_id)
            .order_by(AuditLog.created_at.asc(), AuditLog.id.asc())
        )
        return list((await self._session.execute(q)).scalars().all())
