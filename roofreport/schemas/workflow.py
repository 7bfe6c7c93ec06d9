"""Schemas for submission validation, signatures and the review workflow."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import Field, model_validator

from roofreport.schemas.common import CamelModel
from roofreport.schemas.report import ReportOut

# ---------------------------------------------------------------------------
# Submission validation
# ---------------------------------------------------------------------------


class SectionCheck(CamelModel):
    complete: bool
    missing: list[str] = []


class CountCheck(CamelModel):
    complete: bool
    count: int
    minimum: int


class DefectCheck(CamelModel):
    documented: bool = True
    count: int


class PhotoCheck(CamelModel):
    sufficient: bool
    count: int
    minimum: int
    with_exif: int


class ComplianceCheck(CamelModel):
    complete: bool
    coverage: int
    required: int


class DeclarationCheck(CamelModel):
    signed: bool
    signed_at: datetime | None = None


class ValidationDetails(CamelModel):
    property_details: SectionCheck
    inspection_details: SectionCheck
    roof_elements: CountCheck
    defects: DefectCheck
    photos: PhotoCheck
    compliance: ComplianceCheck
    declaration: DeclarationCheck


class ValidationResult(CamelModel):
    is_valid: bool
    errors: list[str]
    warnings: list[str]
    completion_percentage: int
    missing_required_items: list[str]
    validation_details: ValidationDetails


class ValidationStatus(CamelModel):
    validation: ValidationResult
    current_status: str


class SubmitResult(CamelModel):
    success: bool
    message: str
    validation: ValidationResult
    new_status: str | None = None


# ---------------------------------------------------------------------------
# Signature
# ---------------------------------------------------------------------------

EXPERT_DECLARATION_KEYS = (
    "expertiseConfirmed",
    "codeOfConductAccepted",
    "courtComplianceAccepted",
    "falseEvidenceUnderstood",
    "impartialityConfirmed",
    "inspectionConducted",
    "evidenceIntegrity",
)


class SignatureCreate(CamelModel):
    signature_data_url: str = Field(min_length=1)
    declaration_accepted: bool
    expert_declaration: dict[str, bool] | None = None
    has_conflict: bool = False
    conflict_disclosure: str | None = None

    @model_validator(mode="after")
    def _check_declarations(self) -> "SignatureCreate":
        if not self.declaration_accepted:
            raise ValueError("The inspector declaration must be accepted")
        if self.expert_declaration is not None:
            unconfirmed = [
                key for key in EXPERT_DECLARATION_KEYS if not self.expert_declaration.get(key)
            ]
            if unconfirmed:
                raise ValueError(
                    "All expert witness declarations must be confirmed: " + ", ".join(unconfirmed)
                )
        if self.has_conflict and not (self.conflict_disclosure or "").strip():
            raise ValueError("A conflict disclosure is required when a conflict of interest is declared")
        return self


class SignatureStatus(CamelModel):
    report_id: str
    declaration_signed: bool
    signed_at: datetime | None = None
    signature_url: str | None = None
    expert_declaration: dict[str, Any] | None = None
    has_conflict: bool = False
    conflict_disclosure: str | None = None


# ---------------------------------------------------------------------------
# Review
# ---------------------------------------------------------------------------


class ApproveRequest(CamelModel):
    comments: str | None = None
    finalise: bool = False


class RejectRequest(CamelModel):
    reason: str = Field(min_length=10)
    revision_items: list[str] = Field(default_factory=list)
    priority: Literal["LOW", "MEDIUM", "HIGH"] = "MEDIUM"


class ReviewAction(CamelModel):
    report: ReportOut
    message: str


class ReviewHistoryEntry(CamelModel):
    id: str
    action: str
    user_id: str | None = None
    details: Any | None = None
    created_at: datetime


class ReviewPermissions(CamelModel):
    can_edit: bool
    can_submit: bool
    can_review: bool
    can_approve: bool


class ReviewStatusOut(CamelModel):
    report: ReportOut
    review_history: list[ReviewHistoryEntry]
    latest_feedback: dict[str, Any] | None = None
    permissions: ReviewPermissions
