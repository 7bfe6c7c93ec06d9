"""Mobile sync payloads (upload) and the bootstrap bundle (download)."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Literal

from pydantic import Field, field_validator

from roofreport.core.config import settings
from roofreport.domain.enums import (
    ConditionRating,
    DefectClass,
    DefectSeverity,
    ElementType,
    InspectionType,
    PhotoType,
    PriorityLevel,
    PropertyType,
    ReportStatus,
)
from roofreport.schemas.common import CamelModel
from roofreport.schemas.compliance import ChecklistOut, ReportTemplateOut
from roofreport.schemas.user import UserOut

# ---------------------------------------------------------------------------
# Upload
# ---------------------------------------------------------------------------


class SyncPhotoMetadata(CamelModel):
    id: str
    photo_type: PhotoType = PhotoType.GENERAL
    filename: str
    original_filename: str
    mime_type: str
    file_size: int = Field(ge=0)
    captured_at: datetime | None = None
    gps_lat: float | None = None
    gps_lng: float | None = None
    camera_make: str | None = None
    camera_model: str | None = None
    original_hash: str = Field(min_length=64, max_length=64)
    caption: str | None = None
    sort_order: int | None = None
    defect_id: str | None = None
    roof_element_id: str | None = None
    needs_upload: bool = False
    client_updated_at: datetime | None = None
    deleted: bool = Field(default=False, alias="_deleted")


class SyncRoofElement(CamelModel):
    id: str
    element_type: ElementType
    location: str
    cladding_type: str | None = None
    cladding_profile: str | None = None
    material: str | None = None
    manufacturer: str | None = None
    colour: str | None = None
    pitch: float | None = None
    area: float | None = None
    age_years: int | None = None
    condition_rating: ConditionRating | None = None
    condition_notes: str | None = None
    meets_cop: bool | None = None
    meets_e2: bool | None = None
    client_updated_at: datetime | None = None
    deleted: bool = Field(default=False, alias="_deleted")


class SyncDefect(CamelModel):
    id: str
    defect_number: int = Field(ge=1)
    title: str
    description: str
    location: str
    classification: DefectClass
    severity: DefectSeverity
    observation: str
    analysis: str | None = None
    opinion: str | None = None
    code_reference: str | None = None
    cop_reference: str | None = None
    probable_cause: str | None = None
    recommendation: str | None = None
    priority_level: PriorityLevel | None = None
    roof_element_id: str | None = None
    client_updated_at: datetime | None = None
    deleted: bool = Field(default=False, alias="_deleted")


class SyncCompliance(CamelModel):
    id: str | None = None
    checklist_results: dict[str, dict[str, Any]] = Field(default_factory=dict)
    non_compliance_summary: str | None = None
    client_updated_at: datetime | None = None


class SyncReport(CamelModel):
    id: str
    report_number: str
    status: ReportStatus
    property_address: str = Field(max_length=200)
    property_city: str = Field(max_length=100)
    property_region: str = Field(max_length=100)
    property_postcode: str = Field(max_length=10)
    property_type: PropertyType
    building_age: int | None = Field(default=None, ge=0, le=200)
    gps_lat: float | None = Field(default=None, ge=-90, le=90)
    gps_lng: float | None = Field(default=None, ge=-180, le=180)
    inspection_date: datetime
    inspection_type: InspectionType
    weather_conditions: str | None = None
    temperature: float | None = None
    access_method: str | None = None
    limitations: str | None = None
    client_name: str = Field(max_length=100)
    client_email: str | None = None
    client_phone: str | None = None
    scope_of_works: Any | None = None
    methodology: Any | None = None
    findings: Any | None = None
    conclusions: Any | None = None
    recommendations: Any | None = None
    client_updated_at: datetime

    elements: list[SyncRoofElement] = Field(default_factory=list)
    defects: list[SyncDefect] = Field(default_factory=list)
    compliance: SyncCompliance | None = None
    photo_metadata: list[SyncPhotoMetadata] = Field(default_factory=list)

    @field_validator("report_number")
    @classmethod
    def _check_report_number(cls, value: str) -> str:
        pattern = rf"^{re.escape(settings.report_number_prefix)}-\d{{4}}-\d{{5}}$"
        if not re.match(pattern, value):
            raise ValueError(f"Report number must look like {settings.report_number_prefix}-YYYY-NNNNN")
        return value


class SyncUploadRequest(CamelModel):
    reports: list[SyncReport]
    device_id: str
    sync_timestamp: datetime


class SyncStats(CamelModel):
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    conflicts: int = 0


class SyncConflict(CamelModel):
    report_id: str
    resolution: str = "last-write-wins"
    server_updated_at: datetime
    client_updated_at: datetime


class SyncFailure(CamelModel):
    report_id: str
    error: str


class PendingPhotoUpload(CamelModel):
    report_id: str
    photo_id: str
    upload_url: str


class SyncResults(CamelModel):
    synced_reports: list[str] = Field(default_factory=list)
    failed_reports: list[SyncFailure] = Field(default_factory=list)
    conflicts: list[SyncConflict] = Field(default_factory=list)
    pending_photo_uploads: list[PendingPhotoUpload] = Field(default_factory=list)


class SyncUploadResponse(CamelModel):
    success: bool
    timestamp: datetime
    processing_time_ms: int
    stats: SyncStats
    results: SyncResults


# ---------------------------------------------------------------------------
# Chain of custody
# ---------------------------------------------------------------------------


class CustodyEvent(CamelModel):
    entity_type: Literal["photo", "video", "voiceNote"]
    entity_id: str
    # Device vocabulary: "captured", "viewed", "annotated", "synced", "deleted", ...
    action: str = Field(min_length=1, max_length=50)
    timestamp: datetime
    device_id: str
    hash_at_time: str | None = None
    metadata: dict[str, Any] | None = None


class CustodyEventsRequest(CamelModel):
    events: list[CustodyEvent] = Field(max_length=500)


class CustodyEventsResult(CamelModel):
    success: bool
    synced: int
    skipped: int
    total: int
    message: str


# ---------------------------------------------------------------------------
# Bootstrap
# ---------------------------------------------------------------------------


class SyncReportSummary(CamelModel):
    id: str
    report_number: str
    property_address: str
    property_city: str
    inspection_type: str
    inspection_date: datetime
    status: str
    updated_at: datetime
    photo_count: int
    defect_count: int


class BootstrapResponse(CamelModel):
    user: UserOut
    checklists: list[ChecklistOut]
    templates: list[ReportTemplateOut]
    recent_reports: list[SyncReportSummary]
    last_sync_at: datetime
