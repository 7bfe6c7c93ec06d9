"""Photo schemas. Uploads arrive as multipart form data, not JSON."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field

from roofreport.domain.enums import PhotoType
from roofreport.schemas.common import CamelModel


class PhotoUpdate(CamelModel):
    photo_type: PhotoType | None = None
    caption: str | None = Field(default=None, max_length=500)
    scale_reference: str | None = Field(default=None, max_length=100)
    defect_id: str | None = None
    roof_element_id: str | None = None
    annotations: Any | None = None


class PhotoReorder(CamelModel):
    photo_ids: list[str] = Field(min_length=1)


class PhotoOut(CamelModel):
    id: str
    report_id: str
    defect_id: str | None = None
    roof_element_id: str | None = None
    url: str
    filename: str
    original_filename: str
    mime_type: str
    file_size: int
    photo_type: str
    caption: str | None = None
    scale_reference: str | None = None
    sort_order: int
    annotations: Any | None = None
    captured_at: datetime | None = None
    gps_lat: float | None = None
    gps_lng: float | None = None
    camera_make: str | None = None
    camera_model: str | None = None
    original_hash: str
    hash_verified: bool
    created_at: datetime


class PhotoIntegrityOut(CamelModel):
    photo_id: str
    original_hash: str
    current_hash: str | None = None
    verified: bool
    message: str


class EvidenceSummary(CamelModel):
    total_photos: int
    with_hash: int
    hash_verified: int
    with_exif: int
    with_gps: int
    with_camera: int
    with_timestamp: int
    pending_upload: int
    integrity_score: int = Field(ge=0, le=100)


class EvidencePhoto(CamelModel):
    id: str
    filename: str
    has_hash: bool
    hash_verified: bool
    has_exif: bool
    has_gps: bool
    has_camera: bool
    has_timestamp: bool
    pending_upload: bool
    captured_at: datetime | None = None
    uploaded_at: datetime
    camera_make: str | None = None
    camera_model: str | None = None
    gps_lat: float | None = None
    gps_lng: float | None = None


class CustodyEntry(CamelModel):
    action: str
    timestamp: datetime
    user: str
    source: str
    details: str | None = None


class ChainOfCustody(CamelModel):
    first_upload: datetime | None = None
    last_upload: datetime | None = None
    unique_devices: list[str]
    events: list[CustodyEntry]


class EvidenceIntegrityOut(CamelModel):
    report_id: str
    report_number: str
    summary: EvidenceSummary
    photos: list[EvidencePhoto]
    chain_of_custody: ChainOfCustody
