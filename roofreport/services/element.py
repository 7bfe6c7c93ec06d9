"""Roof element service."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from roofreport.core.exceptions import NotFoundError
from roofreport.domain.enums import AuditAction
from roofreport.domain.report import RoofElement
from roofreport.domain.user import User
from roofreport.repositories.report import AuditLogRepository, RoofElementRepository
from roofreport.schemas.element import RoofElementCreate, RoofElementUpdate
from roofreport.services.report import ReportService


class RoofElementService:
    def __init__(self, session: AsyncSession):
        self._reports = ReportService(session)
        self._repo = RoofElementRepository(session)
        self._audit = AuditLogRepository(session)

    async def list_elements(self, report_id: str, user: User) -> list[RoofElement]:
        await self._reports.get_report(report_id, user)
        return await self._repo.list_for_report(report_id)

    async def create_element(
        self, report_id: str, data: RoofElementCreate, user: User
    ) -> RoofElement:
        await self._reports.get_editable(report_id, user)
        element = await self._repo.create(report_id=report_id, **data.model_dump(exclude_none=True))
        await self._reports.touch(report_id)
        await self._audit.record(
            report_id,
            user.id,
            AuditAction.UPDATED.value,
            {"section": "roof_elements", "created": [element.id]},
        )
        return element

    async def bulk_create(
        self, report_id: str, items: list[RoofElementCreate], user: User
    ) -> list[RoofElement]:
        await self._reports.get_editable(report_id, user)
        created = [
            await self._repo.create(report_id=report_id, **item.model_dump(exclude_none=True))
            for item in items
        ]
        await self._reports.touch(report_id)
        await self._audit.record(
            report_id,
            user.id,
            AuditAction.UPDATED.value,
            {"section": "roof_elements", "created": [e.id for e in created]},
        )
        return created

    async def update_element(
        self, report_id: str, element_id: str, data: RoofElementUpdate, user: User
    ) -> RoofElement:
        await self._reports.get_editable(report_id, user)
        if await self._repo.get_in_report(report_id, element_id) is None:
            raise NotFoundError("Roof element", element_id)
        element = await self._repo.update(
            element_id, **data.model_dump(exclude_none=True, exclude_unset=True)
        )
        await self._reports.touch(report_id)
        return element  # type: ignore[return-value]

    async def delete_element(self, report_id: str, element_id: str, user: User) -> None:
        await self._reports.get_editable(report_id, user)
        if await self._repo.get_in_report(report_id, element_id) is None:
            raise NotFoundError("Roof element", element_id)
        await self._repo.detach(report_id, element_id)
        await self._repo.delete_in_report(report_id, element_id)
        await self._reports.touch(report_id)
        await self._audit.record(
            report_id,
            user.id,
            AuditAction.UPDATED.value,
            {"section": "roof_elements", "deleted": [element_id]},
        )
