"""LBP complaint repository."""

from __future__ import annotations

from sqlalchemy import func, select

from roofreport.domain.complaint import LBPComplaint
from roofreport.domain.enums import ComplaintStatus
from roofreport.repositories.base import BaseRepository
from roofreport.repositories.report import max_sequence

# Complaints in these states no longer block a new complaint for the same report
_INACTIVE = (ComplaintStatus.WITHDRAWN.value, ComplaintStatus.CLOSED.value)


class ComplaintRepository(BaseRepository[LBPComplaint]):
    model = LBPComplaint

    async def active_for_report(self, report_id: str) -> LBPComplaint | None:
        result = await self._session.execute(
            select(LBPComplaint).where(
                LBPComplaint.report_id == report_id,
                LBPComplaint.status.not_in(_INACTIVE),
            )
        )
        return result.scalars().first()

    async def latest_number_with_prefix(self, prefix: str) -> int:
        rows = await self._session.execute(
            select(LBPComplaint.complaint_number).where(
                LBPComplaint.complaint_number.like(f"{prefix}%")
            )
        )
        return max_sequence(rows.scalars().all(), prefix)

    async def status_counts(self) -> dict[str, int]:
        rows = await self._session.execute(
            select(LBPComplaint.status, func.count()).group_by(LBPComplaint.status)
        )
        return {status: count for status, count in rows.all()}
