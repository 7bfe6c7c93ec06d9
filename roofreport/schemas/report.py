"""Report Pydantic schemas (request DTOs and response models)."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field

from roofreport.domain.enums import InspectionType, PropertyType, ReportStatus
from roofreport.schemas.common import CamelModel, OptionalEmail
from roofreport.schemas.compliance import ComplianceOut
from roofreport.schemas.defect import DefectOut
from roofreport.schemas.element import RoofElementOut
from roofreport.schemas.photo import PhotoOut
from roofreport.schemas.user import UserSummary


class ReportCreate(CamelModel):
    property_address: str = Field(min_length=1, max_length=200)
    property_city: str = Field(min_length=1, max_length=100)
    property_region: str = Field(min_length=1, max_length=100)
    property_postcode: str = Field(min_length=1, max_length=10)
    property_type: PropertyType
    building_age: int | None = Field(default=None, ge=0, le=200)
    gps_lat: float | None = Field(default=None, ge=-90, le=90)
    gps_lng: float | None = Field(default=None, ge=-180, le=180)

    inspection_date: datetime
    inspection_type: InspectionType
    weather_conditions: str | None = Field(default=None, max_length=500)
    temperature: float | None = Field(default=None, ge=-50, le=60)
    access_method: str | None = Field(default=None, max_length=200)
    limitations: str | None = None

    client_name: str = Field(min_length=1, max_length=100)
    client_email: OptionalEmail = None
    client_phone: str | None = Field(default=None, max_length=20)
    client_company: str | None = Field(default=None, max_length=100)

    consent_number: str | None = Field(default=None, max_length=50)
    consent_date: datetime | None = None
    code_of_compliance_date: datetime | None = None
    engaging_party: str | None = Field(default=None, max_length=200)

    scope_of_works: Any | None = None
    methodology: Any | None = None


class ReportUpdate(CamelModel):
    property_address: str | None = Field(default=None, min_length=1, max_length=200)
    property_city: str | None = Field(default=None, min_length=1, max_length=100)
    property_region: str | None = Field(default=None, min_length=1, max_length=100)
    property_postcode: str | None = Field(default=None, min_length=1, max_length=10)
    property_type: PropertyType | None = None
    building_age: int | None = Field(default=None, ge=0, le=200)
    gps_lat: float | None = Field(default=None, ge=-90, le=90)
    gps_lng: float | None = Field(default=None, ge=-180, le=180)

    inspection_date: datetime | None = None
    inspection_type: InspectionType | None = None
    weather_conditions: str | None = Field(default=None, max_length=500)
    temperature: float | None = Field(default=None, ge=-50, le=60)
    access_method: str | None = Field(default=None, max_length=200)
    limitations: str | None = None

    client_name: str | None = Field(default=None, min_length=1, max_length=100)
    client_email: OptionalEmail = None
    client_phone: str | None = Field(default=None, max_length=20)
    client_company: str | None = Field(default=None, max_length=100)

    consent_number: str | None = Field(default=None, max_length=50)
    consent_date: datetime | None = None
    code_of_compliance_date: datetime | None = None
    engaging_party: str | None = Field(default=None, max_length=200)

    scope_of_works: Any | None = None
    methodology: Any | None = None
    findings: Any | None = None
    conclusions: Any | None = None
    recommendations: Any | None = None

    status: ReportStatus | None = None


class ExecutiveSummary(CamelModel):
    key_findings: list[str] = Field(default_factory=list)
    major_defects: str | None = None
    overall_condition: str | None = None
    critical_recommendations: list[str] = Field(default_factory=list)


class ReportOut(CamelModel):
    id: str
    report_number: str
    property_address: str
    property_city: str
    property_region: str
    property_postcode: str
    property_type: str
    inspection_date: datetime
    inspection_type: str
    client_name: str
    status: str
    compliance_status: str
    inspector_id: str
    reviewer_id: str | None = None
    submitted_at: datetime | None = None
    approved_at: datetime | None = None
    declaration_signed: bool
    created_at: datetime
    updated_at: datetime


class ReportDetailOut(ReportOut):
    building_age: int | None = None
    gps_lat: float | None = None
    gps_lng: float | None = None
    weather_conditions: str | None = None
    temperature: float | None = None
    access_method: str | None = None
    limitations: str | None = None
    client_email: str | None = None
    client_phone: str | None = None
    client_company: str | None = None
    consent_number: str | None = None
    consent_date: datetime | None = None
    code_of_compliance_date: datetime | None = None
    engaging_party: str | None = None
    scope_of_works: Any | None = None
    methodology: Any | None = None
    findings: Any | None = None
    conclusions: Any | None = None
    recommendations: Any | None = None
    executive_summary: Any | None = None
    signed_at: datetime | None = None
    signature_url: str | None = None
    expert_declaration: Any | None = None
    has_conflict: bool = False
    conflict_disclosure: str | None = None

    inspector: UserSummary | None = None
    roof_elements: list[RoofElementOut] = []
    defects: list[DefectOut] = []
    photos: list[PhotoOut] = []
    compliance_assessment: ComplianceOut | None = None


class DashboardStats(CamelModel):
    total: int
    draft: int
    in_progress: int
    pending_review: int
    completed: int


class AuditLogOut(CamelModel):
    id: str
    report_id: str
    user_id: str | None = None
    action: str
    details: Any | None = None
    created_at: datetime


class RevisionFieldChange(CamelModel):
    field: str
    changed_at: datetime
    changed_by: str


class RevisionFeedback(CamelModel):
    reviewer: str
    decision: str
    reason: str | None = None
    revision_items: list[Any] = []
    priority: str | None = None
    created_at: datetime


class RevisionSummary(CamelModel):
    total_changes: int
    field_changes: int
    photos_added: int
    photos_deleted: int
    defects_added: int
    defects_deleted: int
    status_changes: int
    feedback_received: int


class RevisionRound(CamelModel):
    round: int
    label: str
    started_at: datetime
    ended_at: datetime | None = None
    is_active: bool
    summary: RevisionSummary
    field_changes: list[RevisionFieldChange]
    feedback: list[RevisionFeedback]
    logs: list[AuditLogOut]


class RevisionHistoryOut(CamelModel):
    report_number: str
    status: str
    current_round: int
    total_revisions: int
    revisions: list[RevisionRound]
