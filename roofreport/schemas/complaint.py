"""LBP complaint schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field, field_validator

from roofreport.domain.complaint import GROUNDS_FOR_DISCIPLINE
from roofreport.domain.enums import ComplaintStatus
from roofreport.schemas.common import CamelModel, OptionalEmail
from roofreport.schemas.user import LBP_NUMBER_PATTERN

LicenseType = Literal[
    "Design",
    "Site",
    "Carpentry",
    "Roofing",
    "External Plastering",
    "Brick and Blocklaying",
    "Foundations",
]
WorkType = Literal["CARRIED_OUT", "SUPERVISED", "BOTH"]


class Witness(CamelModel):
    name: str = Field(min_length=1)
    phone: str | None = None
    email: OptionalEmail = None
    role: str | None = None
    details: str = Field(min_length=1)


class ComplaintCreate(CamelModel):
    report_id: str


class ComplaintUpdate(CamelModel):
    subject_lbp_number: str | None = Field(default=None, pattern=LBP_NUMBER_PATTERN)
    subject_lbp_name: str | None = Field(default=None, max_length=255)
    subject_lbp_email: OptionalEmail = None
    subject_lbp_phone: str | None = None
    subject_lbp_company: str | None = None
    subject_lbp_address: str | None = None
    subject_lbp_license_types: list[LicenseType] | None = None
    subject_sighted_license: bool | None = None
    subject_work_type: WorkType | None = None

    work_address: str | None = Field(default=None, max_length=200)
    work_suburb: str | None = None
    work_city: str | None = None
    work_start_date: datetime | None = None
    work_end_date: datetime | None = None
    work_description: str | None = Field(default=None, max_length=10000)
    building_consent_number: str | None = None
    building_consent_date: datetime | None = None

    grounds_for_discipline: list[str] | None = Field(default=None, max_length=5)
    conduct_description: str | None = Field(default=None, max_length=10000)
    evidence_summary: str | None = Field(default=None, max_length=5000)
    steps_to_resolve: str | None = None

    attached_photo_ids: list[str] | None = None
    attached_defect_ids: list[str] | None = None
    witnesses: list[Witness] | None = Field(default=None, max_length=10)

    complainant_name: str | None = None
    complainant_address: str | None = None
    complainant_phone: str | None = None
    complainant_email: OptionalEmail = None

    @field_validator("grounds_for_discipline")
    @classmethod
    def _known_grounds(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return value
        unknown = [code for code in value if code not in GROUNDS_FOR_DISCIPLINE]
        if unknown:
            raise ValueError("Unknown grounds for discipline: " + ", ".join(unknown))
        return value


class ComplaintReview(CamelModel):
    approved: bool
    review_notes: str | None = None


class ComplaintSign(CamelModel):
    signature_data: str = Field(min_length=1)
    declaration_accepted: bool


class ComplaintWithdraw(CamelModel):
    reason: str = Field(min_length=1)


class BPBResponseUpdate(CamelModel):
    bpb_reference_number: str | None = None
    bpb_acknowledged_at: datetime | None = None
    bpb_decision: str | None = None
    bpb_decision_date: datetime | None = None
    bpb_outcome: str | None = None
    bpb_notes: str | None = None


class ComplaintOut(CamelModel):
    id: str
    complaint_number: str
    report_id: str
    status: ComplaintStatus

    subject_lbp_number: str
    subject_lbp_name: str
    subject_lbp_email: str | None = None
    subject_lbp_phone: str | None = None
    subject_lbp_company: str | None = None
    subject_lbp_address: str | None = None
    subject_lbp_license_types: list[str]
    subject_sighted_license: bool | None = None
    subject_work_type: str | None = None

    work_address: str
    work_suburb: str | None = None
    work_city: str | None = None
    work_start_date: datetime | None = None
    work_end_date: datetime | None = None
    work_description: str
    building_consent_number: str | None = None
    building_consent_date: datetime | None = None

    grounds_for_discipline: list[str]
    conduct_description: str
    evidence_summary: str
    steps_to_resolve: str | None = None

    attached_photo_ids: list[str]
    attached_defect_ids: list[str]
    witnesses: list[dict]

    complainant_name: str
    complainant_address: str | None = None
    complainant_phone: str | None = None
    complainant_email: str | None = None
    complainant_relation: str | None = None

    prepared_by: str
    prepared_by_name: str
    reviewed_by: str | None = None
    reviewed_by_name: str | None = None
    reviewed_at: datetime | None = None
    review_notes: str | None = None
    signed_by: str | None = None
    signed_by_name: str | None = None
    signed_at: datetime | None = None
    declaration_accepted: bool

    submitted_by: str | None = None
    submitted_by_name: str | None = None
    submitted_at: datetime | None = None
    submission_method: str | None = None
    submission_email: str | None = None
    submission_confirmation: str | None = None
    complaint_pdf_url: str | None = None
    complaint_pdf_hash: str | None = None

    bpb_reference_number: str | None = None
    bpb_acknowledged_at: datetime | None = None
    bpb_decision: str | None = None
    bpb_decision_date: datetime | None = None
    bpb_outcome: str | None = None
    bpb_notes: str | None = None

    created_at: datetime
    updated_at: datetime


class ComplaintStats(CamelModel):
    total: int
    draft: int
    pending_review: int
    ready_to_submit: int
    submitted: int
    active: int
    closed: int


class GroundOut(CamelModel):
    code: str
    label: str
    section: str
    description: str
