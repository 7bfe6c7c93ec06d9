"""Photo evidence: uploads, EXIF extraction, and per-photo and report-wide integrity checks.

Every binary is hashed (SHA-256) on arrival and the hash is kept as
`original_hash`, so a stored photo can later be proven unaltered.
"""

from __future__ import annotations

import io
import logging
import time
from datetime import datetime, timezone
from typing import Any

from PIL import ExifTags, Image, UnidentifiedImageError
from sqlalchemy.ext.asyncio import AsyncSession

from roofreport.core.config import settings
from roofreport.core.exceptions import ConflictError, NotFoundError, ValidationError
from roofreport.domain.audit import AuditLog
from roofreport.domain.defect import Photo
from roofreport.domain.enums import AuditAction, PhotoType
from roofreport.domain.mixins import as_utc
from roofreport.domain.user import User
from roofreport.repositories.report import (
    AuditLogRepository,
    DefectRepository,
    PhotoRepository,
    RoofElementRepository,
)
from roofreport.repositories.user import UserRepository
from roofreport.schemas.photo import PhotoUpdate
from roofreport.services.report import ReportService
from roofreport.services.storage import ObjectStorage, photo_key, sha256_hex

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/heic", "image/webp"}

# Share of the evidence integrity score carried by each photo property
INTEGRITY_WEIGHTS = {
    "with_hash": 30,
    "hash_verified": 20,
    "with_exif": 20,
    "with_gps": 15,
    "with_timestamp": 15,
}


# ---------------------------------------------------------------------------
# EXIF
# ---------------------------------------------------------------------------


def _dms_to_degrees(value: Any, ref: str | None) -> float | None:
    try:
        degrees, minutes, seconds = (float(part) for part in value)
    except (TypeError, ValueError, ZeroDivisionError):
        return None
    result = degrees + minutes / 60 + seconds / 3600
    return -result if ref in ("S", "W") else result


def _parse_exif_datetime(value: Any) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.strptime(str(value).strip("\x00 "), "%Y:%m:%d %H:%M:%S").replace(
            tzinfo=timezone.utc
        )
    except ValueError:
        return None


def _clean(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip("\x00 ").strip()
    return text[:100] or None


def extract_exif(data: bytes) -> dict[str, Any]:
    """Capture time, camera and GPS position from the image, where present."""
    try:
        with Image.open(io.BytesIO(data)) as image:
            exif = image.getexif()
    except (UnidentifiedImageError, OSError):
        logger.debug("No readable image data for EXIF extraction")
        return {}
    if not exif:
        return {}

    details = exif.get_ifd(ExifTags.IFD.Exif)
    gps = exif.get_ifd(ExifTags.IFD.GPSInfo)
    return {
        "captured_at": _parse_exif_datetime(
            details.get(ExifTags.Base.DateTimeOriginal) or exif.get(ExifTags.Base.DateTime)
        ),
        "camera_make": _clean(exif.get(ExifTags.Base.Make)),
        "camera_model": _clean(exif.get(ExifTags.Base.Model)),
        "gps_lat": _dms_to_degrees(
            gps.get(ExifTags.GPS.GPSLatitude), gps.get(ExifTags.GPS.GPSLatitudeRef)
        )
        if gps
        else None,
        "gps_lng": _dms_to_degrees(
            gps.get(ExifTags.GPS.GPSLongitude), gps.get(ExifTags.GPS.GPSLongitudeRef)
        )
        if gps
        else None,
    }


def check_upload(data: bytes, content_type: str | None) -> None:
    if (content_type or "").lower() not in ALLOWED_MIME_TYPES:
        raise ValidationError(
            f"Unsupported file type '{content_type}'. Allowed: JPEG, PNG, HEIC, WebP"
        )
    if not data:
        raise ValidationError("Uploaded file is empty")
    if len(data) > settings.max_upload_size_bytes:
        raise ValidationError(f"File exceeds the {settings.max_upload_size_mb}MB upload limit")


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class PhotoService:
    def __init__(self, session: AsyncSession, storage: ObjectStorage):
        self._storage = storage
        self._reports = ReportService(session)
        self._repo = PhotoRepository(session)
        self._defects = DefectRepository(session)
        self._elements = RoofElementRepository(session)
        self._audit = AuditLogRepository(session)

    async def _check_links(
        self, report_id: str, defect_id: str | None, roof_element_id: str | None
    ) -> None:
        if defect_id and await self._defects.get_in_report(report_id, defect_id) is None:
            raise ValidationError(f"Defect '{defect_id}' does not belong to this report")
        if roof_element_id and await self._elements.get_in_report(report_id, roof_element_id) is None:
            raise ValidationError(f"Roof element '{roof_element_id}' does not belong to this report")

    async def _get_in_report(self, report_id: str, photo_id: str) -> Photo:
        photo = await self._repo.get_in_report(report_id, photo_id)
        if photo is None:
            raise NotFoundError("Photo", photo_id)
        return photo

    async def list_photos(self, report_id: str, user: User) -> list[Photo]:
        await self._reports.get_report(report_id, user)
        return await self._repo.list_for_report(report_id)

    async def upload_photo(
        self,
        report_id: str,
        user: User,
        *,
        data: bytes,
        filename: str,
        content_type: str | None,
        photo_type: PhotoType = PhotoType.GENERAL,
        caption: str | None = None,
        scale_reference: str | None = None,
        defect_id: str | None = None,
        roof_element_id: str | None = None,
    ) -> Photo:
        await self._reports.get_editable(report_id, user)
        check_upload(data, content_type)
        await self._check_links(report_id, defect_id, roof_element_id)

        original_hash = sha256_hex(data)
        key = photo_key(report_id, filename, int(time.time() * 1000))
        url = await self._storage.put(key, data, content_type)  # type: ignore[arg-type]
        exif = extract_exif(data)

        photo = await self._repo.create(
            report_id=report_id,
            defect_id=defect_id,
            roof_element_id=roof_element_id,
            storage_key=key,
            url=url,
            filename=key.rsplit("/", 1)[-1],
            original_filename=filename,
            mime_type=content_type,
            file_size=len(data),
            photo_type=PhotoType(photo_type).value,
            caption=caption,
            scale_reference=scale_reference,
            sort_order=await self._repo.next_sort_order(report_id),
            original_hash=original_hash,
            hash_verified=True,
            **{k: v for k, v in exif.items() if v is not None},
        )
        await self._reports.touch(report_id)
        await self._audit.record(
            report_id,
            user.id,
            AuditAction.UPDATED.value,
            {"section": "photos", "uploaded": photo.id, "original_hash": original_hash},
        )
        logger.info("Photo %s stored for report %s (%d bytes)", photo.id, report_id, len(data))
        return photo

    async def update_photo(
        self, report_id: str, photo_id: str, data: PhotoUpdate, user: User
    ) -> Photo:
        await self._reports.get_editable(report_id, user)
        await self._get_in_report(report_id, photo_id)
        await self._check_links(report_id, data.defect_id, data.roof_element_id)
        photo = await self._repo.update(
            photo_id, **data.model_dump(exclude_none=True, exclude_unset=True)
        )
        await self._reports.touch(report_id)
        return photo  # type: ignore[return-value]

    async def reorder_photos(self, report_id: str, photo_ids: list[str], user: User) -> list[Photo]:
        await self._reports.get_editable(report_id, user)
        existing = {p.id for p in await self._repo.list_for_report(report_id)}
        unknown = [pid for pid in photo_ids if pid not in existing]
        if unknown:
            raise ValidationError("Photos not in this report: " + ", ".join(unknown))
        for position, photo_id in enumerate(photo_ids, start=1):
            await self._repo.update(photo_id, sort_order=position)
        await self._reports.touch(report_id)
        return await self._repo.list_for_report(report_id)

    async def delete_photo(self, report_id: str, photo_id: str, user: User) -> None:
        await self._reports.get_editable(report_id, user)
        photo = await self._get_in_report(report_id, photo_id)
        if not photo.is_pending_upload:
            await self._storage.delete(photo.storage_key)
        await self._repo.delete_in_report(report_id, photo_id)
        await self._reports.touch(report_id)
        await self._audit.record(
            report_id,
            user.id,
            AuditAction.UPDATED.value,
            {"section": "photos", "deleted": photo_id, "original_hash": photo.original_hash},
        )

    async def verify_integrity(self, report_id: str, photo_id: str, user: User) -> dict:
        await self._reports.get_report(report_id, user)
        photo = await self._get_in_report(report_id, photo_id)
        if photo.is_pending_upload:
            return {
                "photo_id": photo.id,
                "original_hash": photo.original_hash,
                "current_hash": None,
                "verified": False,
                "message": "Photo binary has not been uploaded yet",
            }
        current = sha256_hex(await self._storage.get(photo.storage_key))
        verified = current == photo.original_hash
        if verified != photo.hash_verified:
            await self._repo.update(photo.id, hash_verified=verified)
        if not verified:
            logger.warning("Integrity check failed for photo %s", photo.id)
        return {
            "photo_id": photo.id,
            "original_hash": photo.original_hash,
            "current_hash": current,
            "verified": verified,
            "message": "Photo is unaltered" if verified else "Stored photo does not match its original hash",
        }

    async def upload_pending_content(
        self, photo_id: str, data: bytes, user: User
    ) -> Photo:
        """Receive the binary for a photo first announced through mobile sync."""
        photo = await self._repo.get_by_id(photo_id)
        if photo is None:
            raise NotFoundError("Photo", photo_id)
        await self._reports.get_editable(photo.report_id, user)
        if not photo.is_pending_upload:
            raise ConflictError("Photo binary has already been uploaded")
        check_upload(data, photo.mime_type)
        if sha256_hex(data) != photo.original_hash:
            raise ValidationError("Uploaded content does not match the photo's original hash")

        url = await self._storage.put(photo.storage_key, data, photo.mime_type)
        exif = {
            k: v for k, v in extract_exif(data).items() if v is not None and getattr(photo, k) is None
        }
        updated = await self._repo.update(
            photo.id, url=url, file_size=len(data), hash_verified=True, **exif
        )
        await self._reports.touch(photo.report_id)
        logger.info("Pending photo %s received (%d bytes)", photo.id, len(data))
        return updated  # type: ignore[return-value]


# ---------------------------------------------------------------------------
# Report-wide evidence integrity
# ---------------------------------------------------------------------------


def integrity_score(counts: dict[str, int], total: int) -> int:
    """Weighted 0-100 score over the share of photos having each property."""
    if total == 0:
        return 0
    return round(sum(counts[key] / total * weight for key, weight in INTEGRITY_WEIGHTS.items()))


def _is_custody_entry(entry: AuditLog) -> bool:
    details = entry.details if isinstance(entry.details, dict) else {}
    return details.get("section") == "photos" or details.get("source") == "mobile_custody_sync"


def _custody_detail(details: dict) -> str | None:
    if details.get("source") == "mobile_custody_sync":
        return f"{details.get('original_action')} {details.get('entity_type')} {details.get('entity_id')}"
    photo_id = details.get("uploaded") or details.get("deleted")
    if photo_id:
        return f"{'uploaded' if details.get('uploaded') else 'deleted'} photo {photo_id}"
    return None


class EvidenceIntegrityService:
    """Summarises hash, EXIF and custody coverage across all of a report's photos."""

    def __init__(self, session: AsyncSession):
        self._reports = ReportService(session)
        self._photos = PhotoRepository(session)
        self._audit = AuditLogRepository(session)
        self._users = UserRepository(session)

    async def summarise(self, report_id: str, user: User) -> dict:
        report = await self._reports.get_report(report_id, user)
        photos = sorted(
            await self._photos.list_for_report(report_id), key=lambda p: as_utc(p.created_at)
        )

        rows = []
        for photo in photos:
            rows.append(
                {
                    "id": photo.id,
                    "filename": photo.original_filename,
                    "has_hash": bool(photo.original_hash),
                    "hash_verified": photo.hash_verified,
                    "has_exif": photo.has_exif,
                    "has_gps": photo.gps_lat is not None and photo.gps_lng is not None,
                    "has_camera": bool(photo.camera_make or photo.camera_model),
                    "has_timestamp": photo.captured_at is not None,
                    "pending_upload": photo.is_pending_upload,
                    "captured_at": photo.captured_at,
                    "uploaded_at": photo.created_at,
                    "camera_make": photo.camera_make,
                    "camera_model": photo.camera_model,
                    "gps_lat": photo.gps_lat,
                    "gps_lng": photo.gps_lng,
                }
            )

        counts = {
            "with_hash": sum(r["has_hash"] for r in rows),
            "hash_verified": sum(r["hash_verified"] for r in rows),
            "with_exif": sum(r["has_exif"] for r in rows),
            "with_gps": sum(r["has_gps"] for r in rows),
            "with_camera": sum(r["has_camera"] for r in rows),
            "with_timestamp": sum(r["has_timestamp"] for r in rows),
            "pending_upload": sum(r["pending_upload"] for r in rows),
        }
        devices = sorted(
            {
                " ".join(part for part in (p.camera_make, p.camera_model) if part)
                for p in photos
                if p.camera_make or p.camera_model
            }
        )

        entries = [e for e in await self._audit.history(report_id) if _is_custody_entry(e)]
        names = await self._users.names_for({e.user_id for e in entries if e.user_id})

        return {
            "report_id": report.id,
            "report_number": report.report_number,
            "summary": {
                "total_photos": len(rows),
                **counts,
                "integrity_score": integrity_score(counts, len(rows)),
            },
            "photos": rows,
            "chain_of_custody": {
                "first_upload": photos[0].created_at if photos else None,
                "last_upload": photos[-1].created_at if photos else None,
                "unique_devices": devices,
                "events": [
                    {
                        "action": e.action,
                        "timestamp": e.created_at,
                        "user": names.get(e.user_id, "Unknown"),
                        "source": e.details.get("source", "web"),
                        "details": _custody_detail(e.details),
                    }
                    for e in entries
                ],
            },
        }
