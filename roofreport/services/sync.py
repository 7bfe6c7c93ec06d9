"""Mobile sync: batch upload from devices, chain-of-custody events and the bootstrap bundle.

Each uploaded report is applied in its own transaction so one bad report
never aborts the rest of the batch. Conflicts are last-write-wins: the
client copy is applied and the conflict is reported back.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timedelta, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from roofreport.core.exceptions import (
    AppException,
    ConflictError,
    ForbiddenError,
    ValidationError,
)
from roofreport.domain.defect import Photo
from roofreport.domain.enums import WORKING_STATUSES, AuditAction, ReportStatus
from roofreport.domain.mixins import as_utc
from roofreport.domain.report import Report
from roofreport.domain.user import User
from roofreport.repositories.reference import ChecklistRepository, ReportTemplateRepository
from roofreport.repositories.report import (
    AuditLogRepository,
    DefectRepository,
    PhotoRepository,
    ReportRepository,
    RoofElementRepository,
)
from roofreport.schemas.sync import (
    CustodyEvent,
    SyncPhotoMetadata,
    SyncReport,
    SyncUploadRequest,
)
from roofreport.services.compliance import apply_assessment
from roofreport.services.storage import ObjectStorage, photo_key

logger = logging.getLogger(__name__)

CONFLICT_TOLERANCE = timedelta(seconds=1)
BOOTSTRAP_REPORT_LIMIT = 20

# Device custody actions that map onto a specific audit action; the rest are UPDATED
CUSTODY_ACTIONS = {
    "captured": AuditAction.CREATED,
    "added": AuditAction.CREATED,
    "deleted": AuditAction.DELETED,
}

_WORKING = {s.value for s in WORKING_STATUSES}
_LOCKED = {ReportStatus.APPROVED.value, ReportStatus.FINALISED.value}

_REPORT_EXCLUDE = {
    "id",
    "status",
    "client_updated_at",
    "elements",
    "defects",
    "compliance",
    "photo_metadata",
}
_CHILD_EXCLUDE = {"id", "client_updated_at", "deleted"}
_PHOTO_METADATA_FIELDS = (
    "photo_type",
    "caption",
    "defect_id",
    "roof_element_id",
    "captured_at",
    "gps_lat",
    "gps_lng",
    "camera_make",
    "camera_model",
)


def content_upload_path(photo_id: str) -> str:
    return f"/api/v1/photos/{photo_id}/content"


def resolve_status(client_status: str, existing: Report | None) -> str:
    """Devices may only move a report between the working statuses."""
    if existing is not None and existing.status not in _WORKING:
        return existing.status
    if client_status in _WORKING:
        return client_status
    return existing.status if existing is not None else ReportStatus.DRAFT.value


def is_conflict(server_updated_at: datetime | None, client_updated_at: datetime) -> bool:
    server = as_utc(server_updated_at)
    client = as_utc(client_updated_at)
    return server is not None and server > client + CONFLICT_TOLERANCE


class _ReportSync:
    """Applies one SyncReport inside the caller's transaction."""

    def __init__(self, session: AsyncSession, user: User, device_id: str):
        self._session = session
        self._user = user
        self._device_id = device_id
        self._reports = ReportRepository(session)
        self._elements = RoofElementRepository(session)
        self._defects = DefectRepository(session)
        self._photos = PhotoRepository(session)
        self._audit = AuditLogRepository(session)
        # Binaries of tombstoned photos, removed once the transaction commits
        self.deleted_keys: list[str] = []

    async def apply(self, payload: SyncReport) -> tuple[dict | None, list[Photo]]:
        existing = await self._reports.get_by_id(payload.id)
        conflict = None
        if existing is not None:
            if existing.inspector_id != self._user.id:
                raise ForbiddenError("Access denied: You do not own this report")
            if existing.status in _LOCKED:
                raise ForbiddenError(f"Cannot modify report with status: {existing.status}")
            if is_conflict(existing.updated_at, payload.client_updated_at):
                conflict = {
                    "report_id": payload.id,
                    "resolution": "last-write-wins",
                    "server_updated_at": as_utc(existing.updated_at),
                    "client_updated_at": as_utc(payload.client_updated_at),
                }
                logger.info("Sync conflict on report %s (client copy wins)", payload.id)

        await self._upsert_report(payload, existing)
        await self._sync_elements(payload)
        await self._sync_defects(payload)
        if payload.compliance is not None:
            await apply_assessment(
                self._session,
                payload.id,
                payload.compliance.checklist_results,
                payload.compliance.non_compliance_summary,
            )
        pending = await self._sync_photos(payload)

        await self._audit.record(
            payload.id,
            self._user.id,
            (AuditAction.CREATED if existing is None else AuditAction.UPDATED).value,
            {
                "source": "mobile_sync",
                "device_id": self._device_id,
                "conflict": conflict is not None,
                "elements": len(payload.elements),
                "defects": len(payload.defects),
                "photos": len(payload.photo_metadata),
            },
        )
        return conflict, pending

    async def _upsert_report(self, payload: SyncReport, existing: Report | None) -> None:
        fields = payload.model_dump(exclude=_REPORT_EXCLUDE)
        fields["status"] = resolve_status(payload.status, existing)
        if existing is None:
            taken = await self._reports.get_by_number(payload.report_number)
            if taken is not None:
                raise ConflictError(f"Report number {payload.report_number} is already in use")
            await self._reports.create(id=payload.id, inspector_id=self._user.id, **fields)
        else:
            if existing.status != fields["status"]:
                await self._audit.record(
                    payload.id,
                    self._user.id,
                    AuditAction.STATUS_CHANGED.value,
                    {"from": existing.status, "to": fields["status"], "source": "mobile_sync"},
                )
            await self._reports.update(payload.id, **fields)

    async def _upsert_child(self, repo, report_id: str, entity_id: str, fields: dict) -> None:
        current = await repo.get_by_id(entity_id)
        if current is None:
            await repo.create(id=entity_id, report_id=report_id, **fields)
        elif current.report_id != report_id:
            raise ValidationError(f"Record '{entity_id}' belongs to another report")
        else:
            await repo.update(entity_id, **fields)

    async def _sync_elements(self, payload: SyncReport) -> None:
        for element in payload.elements:
            if element.deleted:
                # Tombstones for rows outside this report are ignored
                if await self._elements.get_in_report(payload.id, element.id) is not None:
                    await self._elements.detach(payload.id, element.id)
                    await self._elements.delete_in_report(payload.id, element.id)
                continue
            await self._upsert_child(
                self._elements, payload.id, element.id, element.model_dump(exclude=_CHILD_EXCLUDE)
            )

    async def _sync_defects(self, payload: SyncReport) -> None:
        for defect in payload.defects:
            if defect.deleted:
                if await self._defects.get_in_report(payload.id, defect.id) is not None:
                    await self._defects.detach_photos(payload.id, defect.id)
                    await self._defects.delete_in_report(payload.id, defect.id)
                continue
            fields = defect.model_dump(exclude=_CHILD_EXCLUDE)
            await self._check_element(payload.id, fields.get("roof_element_id"))
            await self._upsert_child(self._defects, payload.id, defect.id, fields)

    async def _check_element(self, report_id: str, element_id: str | None) -> None:
        if element_id and await self._elements.get_in_report(report_id, element_id) is None:
            raise ValidationError(f"Roof element '{element_id}' does not belong to this report")

    async def _sync_photos(self, payload: SyncReport) -> list[Photo]:
        pending: list[Photo] = []
        for meta in payload.photo_metadata:
            current = await self._photos.get_by_id(meta.id)
            if current is not None and current.report_id != payload.id:
                raise ValidationError(f"Photo '{meta.id}' belongs to another report")
            if meta.deleted:
                if current is not None:
                    if not current.is_pending_upload:
                        self.deleted_keys.append(current.storage_key)
                    await self._photos.delete_in_report(payload.id, meta.id)
                continue

            await self._check_element(payload.id, meta.roof_element_id)
            if meta.defect_id and await self._defects.get_in_report(payload.id, meta.defect_id) is None:
                raise ValidationError(f"Defect '{meta.defect_id}' does not belong to this report")

            if current is None:
                # Unknown photo with no binary on its way: nothing to record yet
                if meta.needs_upload:
                    pending.append(await self._create_pending(payload.id, meta))
                continue
            updates = {f: getattr(meta, f) for f in _PHOTO_METADATA_FIELDS}
            if meta.sort_order is not None:
                updates["sort_order"] = meta.sort_order
            photo = await self._photos.update(meta.id, **updates)
            if meta.needs_upload and photo is not None and photo.is_pending_upload:
                pending.append(photo)
        return pending

    async def _create_pending(self, report_id: str, meta: SyncPhotoMetadata) -> Photo:
        return await self._photos.create(
            id=meta.id,
            report_id=report_id,
            storage_key=photo_key(report_id, meta.filename, int(time.time() * 1000)),
            url="",
            filename=meta.filename,
            original_filename=meta.original_filename,
            mime_type=meta.mime_type,
            file_size=meta.file_size,
            sort_order=(
                meta.sort_order
                if meta.sort_order is not None
                else await self._photos.next_sort_order(report_id)
            ),
            original_hash=meta.original_hash,
            hash_verified=False,
            **{f: getattr(meta, f) for f in _PHOTO_METADATA_FIELDS},
        )


class SyncService:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        storage: ObjectStorage,
    ):
        self._factory = session_factory
        self._storage = storage

    def _upload_url(self, photo: Photo) -> str:
        return self._storage.presigned_put_url(photo.storage_key, photo.mime_type) or content_upload_path(
            photo.id
        )

    async def upload(self, request: SyncUploadRequest, user: User) -> dict:
        started = time.perf_counter()
        synced: list[str] = []
        failed: list[dict] = []
        conflicts: list[dict] = []
        uploads: list[dict] = []

        for payload in request.reports:
            async with self._factory() as session:
                worker = _ReportSync(session, user, request.device_id)
                try:
                    conflict, pending = await worker.apply(payload)
                    await session.commit()
                except AppException as exc:
                    await session.rollback()
                    logger.info("Sync of report %s rejected: %s", payload.id, exc.message)
                    failed.append({"report_id": payload.id, "error": exc.message})
                    continue
                except SQLAlchemyError:
                    await session.rollback()
                    logger.exception("Sync of report %s failed", payload.id)
                    failed.append({"report_id": payload.id, "error": "Database error while saving report"})
                    continue

            synced.append(payload.id)
            for key in worker.deleted_keys:
                try:
                    await self._storage.delete(key)
                except AppException as exc:
                    logger.warning("Could not remove stored photo %s: %s", key, exc.message)
            if conflict is not None:
                conflicts.append(conflict)
            uploads.extend(
                {"report_id": payload.id, "photo_id": p.id, "upload_url": self._upload_url(p)}
                for p in pending
            )

        elapsed_ms = int((time.perf_counter() - started) * 1000)
        logger.info(
            "Sync from device %s: %d ok, %d failed, %d conflicts in %dms",
            request.device_id,
            len(synced),
            len(failed),
            len(conflicts),
            elapsed_ms,
        )
        return {
            "success": not failed,
            "timestamp": datetime.now(timezone.utc),
            "processing_time_ms": elapsed_ms,
            "stats": {
                "total": len(request.reports),
                "succeeded": len(synced),
                "failed": len(failed),
                "conflicts": len(conflicts),
            },
            "results": {
                "synced_reports": synced,
                "failed_reports": failed,
                "conflicts": conflicts,
                "pending_photo_uploads": uploads,
            },
        }


class CustodyService:
    """Appends chain-of-custody events from devices to the owning report's audit log.

    Events for evidence the server does not hold (videos, voice notes, unknown
    photos) or for reports the caller does not own are skipped, not rejected.
    """

    def __init__(self, session: AsyncSession):
        self._reports = ReportRepository(session)
        self._photos = PhotoRepository(session)
        self._audit = AuditLogRepository(session)

    async def record_events(self, events: list[CustodyEvent], user: User) -> dict:
        synced = skipped = 0
        owned: dict[str, bool] = {}
        for event in events:
            photo = (
                await self._photos.get_by_id(event.entity_id)
                if event.entity_type == "photo"
                else None
            )
            if photo is None:
                skipped += 1
                continue
            if photo.report_id not in owned:
                report = await self._reports.get_by_id(photo.report_id)
                owned[photo.report_id] = report is not None and report.inspector_id == user.id
            if not owned[photo.report_id]:
                skipped += 1
                continue

            action = CUSTODY_ACTIONS.get(event.action.lower(), AuditAction.UPDATED)
            await self._audit.record(
                photo.report_id,
                user.id,
                action.value,
                {
                    **(event.metadata or {}),
                    "source": "mobile_custody_sync",
                    "entity_type": event.entity_type,
                    "entity_id": event.entity_id,
                    "original_action": event.action,
                    "device_id": event.device_id,
                    "hash_at_time": event.hash_at_time,
                    "hash_matches": (
                        event.hash_at_time == photo.original_hash if event.hash_at_time else None
                    ),
                    "mobile_timestamp": as_utc(event.timestamp).isoformat(),
                },
                created_at=as_utc(event.timestamp),
            )
            synced += 1

        if skipped:
            logger.info("Custody sync for %s: %d recorded, %d skipped", user.id, synced, skipped)
            message = f"Synced {synced} events, skipped {skipped} (missing or inaccessible entities)"
        else:
            message = f"Synced {synced} events successfully"
        return {
            "success": True,
            "synced": synced,
            "skipped": skipped,
            "total": len(events),
            "message": message,
        }


class BootstrapService:
    def __init__(self, session: AsyncSession):
        self._reports = ReportRepository(session)
        self._checklists = ChecklistRepository(session)
        self._templates = ReportTemplateRepository(session)

    async def bootstrap(self, user: User, last_sync_at: datetime | None = None) -> dict:
        scope = None if user.is_reviewer else user.id
        rows = await self._reports.recent_for_sync(
            scope, as_utc(last_sync_at), limit=BOOTSTRAP_REPORT_LIMIT
        )
        recent = [
            {
                "id": report.id,
                "report_number": report.report_number,
                "property_address": report.property_address,
                "property_city": report.property_city,
                "inspection_type": report.inspection_type,
                "inspection_date": report.inspection_date,
                "status": report.status,
                "updated_at": report.updated_at,
                "photo_count": photo_count,
                "defect_count": defect_count,
            }
            for report, photo_count, defect_count in rows
        ]
        return {
            "user": user,
            "checklists": await self._checklists.all(),
            "templates": await self._templates.active(),
            "recent_reports": recent,
            "last_sync_at": datetime.now(timezone.utc),
        }
