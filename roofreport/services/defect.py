"""Defect service. Defect numbers are sequential per report (max + 1)."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from roofreport.core.exceptions import NotFoundError, ValidationError
from roofreport.domain.defect import Defect
from roofreport.domain.enums import AuditAction
from roofreport.domain.user import User
from roofreport.repositories.report import (
    AuditLogRepository,
    DefectRepository,
    PhotoRepository,
    RoofElementRepository,
)
from roofreport.schemas.defect import DefectCreate, DefectUpdate
from roofreport.services.report import ReportService

logger = logging.getLogger(__name__)


class DefectService:
    def __init__(self, session: AsyncSession):
        self._reports = ReportService(session)
        self._repo = DefectRepository(session)
        self._photos = PhotoRepository(session)
        self._elements = RoofElementRepository(session)
        self._audit = AuditLogRepository(session)

    async def _check_element(self, report_id: str, element_id: str | None) -> None:
        if element_id and await self._elements.get_in_report(report_id, element_id) is None:
            raise ValidationError(f"Roof element '{element_id}' does not belong to this report")

    async def list_defects(self, report_id: str, user: User) -> list[Defect]:
        full = await self._reports.get_full_report(report_id, user)
        return list(full.defects)

    async def get_defect(self, report_id: str, defect_id: str, user: User) -> Defect:
        await self._reports.get_report(report_id, user)
        if await self._repo.get_in_report(report_id, defect_id) is None:
            raise NotFoundError("Defect", defect_id)
        return await self._repo.get_with_photos(defect_id)  # type: ignore[return-value]

    async def create_defect(self, report_id: str, data: DefectCreate, user: User) -> Defect:
        await self._reports.get_editable(report_id, user)
        await self._check_element(report_id, data.roof_element_id)

        fields = data.model_dump(exclude_none=True, exclude={"photo_ids"})
        defect = await self._repo.create(
            report_id=report_id,
            defect_number=await self._repo.next_number(report_id),
            **fields,
        )
        if data.photo_ids:
            await self._photos.link_to_defect(report_id, defect.id, data.photo_ids)
        await self._reports.touch(report_id)
        await self._audit.record(
            report_id,
            user.id,
            AuditAction.UPDATED.value,
            {"section": "defects", "created": defect.id, "defect_number": defect.defect_number},
        )
        logger.info("Defect #%s added to report %s", defect.defect_number, report_id)
        return await self._repo.get_with_photos(defect.id)  # type: ignore[return-value]

    async def update_defect(
        self, report_id: str, defect_id: str, data: DefectUpdate, user: User
    ) -> Defect:
        await self._reports.get_editable(report_id, user)
        if await self._repo.get_in_report(report_id, defect_id) is None:
            raise NotFoundError("Defect", defect_id)
        await self._check_element(report_id, data.roof_element_id)
        await self._repo.update(defect_id, **data.model_dump(exclude_none=True, exclude_unset=True))
        await self._reports.touch(report_id)
        return await self._repo.get_with_photos(defect_id)  # type: ignore[return-value]

    async def delete_defect(self, report_id: str, defect_id: str, user: User) -> None:
        await self._reports.get_editable(report_id, user)
        defect = await self._repo.get_in_report(report_id, defect_id)
        if defect is None:
            raise NotFoundError("Defect", defect_id)
        number = defect.defect_number
        await self._repo.detach_photos(report_id, defect_id)
        await self._repo.delete_in_report(report_id, defect_id)
        await self._reports.touch(report_id)
        await self._audit.record(
            report_id,
            user.id,
            AuditAction.UPDATED.value,
            {"section": "defects", "deleted": defect_id, "defect_number": number},
        )

    async def link_photos(
        self, report_id: str, defect_id: str, photo_ids: list[str], user: User
    ) -> Defect:
        await self._reports.get_editable(report_id, user)
        if await self._repo.get_in_report(report_id, defect_id) is None:
            raise NotFoundError("Defect", defect_id)
        linked = await self._photos.link_to_defect(report_id, defect_id, photo_ids)
        if linked != len(set(photo_ids)):
            raise ValidationError("One or more photos do not belong to this report")
        await self._reports.touch(report_id)
        return await self._repo.get_with_photos(defect_id)  # type: ignore[return-value]
