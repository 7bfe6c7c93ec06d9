"""Read-mostly reference data: compliance checklists and report templates."""

from __future__ import annotations

from sqlalchemy import select

from roofreport.domain.compliance import Checklist, ReportTemplate
from roofreport.repositories.base import BaseRepository


class ChecklistRepository(BaseRepository[Checklist]):
    model = Checklist

    async def all(self) -> list[Checklist]:
        result = await self._session.execute(select(Checklist).order_by(Checklist.key))
        return list(result.scalars().all())

    async def get_by_key(self, key: str) -> Checklist | None:
        result = await self._session.execute(select(Checklist).where(Checklist.key == key))
        return result.scalars().first()


class ReportTemplateRepository(BaseRepository[ReportTemplate]):
    model = ReportTemplate

    async def active(self) -> list[ReportTemplate]:
        result = await self._session.execute(
            select(ReportTemplate)
            .where(ReportTemplate.is_active.is_(True))
            .order_by(ReportTemplate.inspection_type, ReportTemplate.name)
        )
        return list(result.scalars().all())

    async def get_by_name(self, name: str) -> ReportTemplate | None:
        result = await self._session.execute(
            select(ReportTemplate).where(ReportTemplate.name == name)
        )
        return result.scalars().first()
