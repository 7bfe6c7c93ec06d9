"""SQLAlchemy ORM model for complaints against Licensed Building Practitioners.

A complaint is raised from a dispute-resolution report and lodged with the
Building Practitioners Board once reviewed and signed.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from roofreport.db.base import Base
from roofreport.domain.enums import ComplaintStatus
from roofreport.domain.mixins import TimestampMixin, new_id


class LBPComplaint(Base, TimestampMixin):
    __tablename__ = "lbp_complaints"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    complaint_number: Mapped[str] = mapped_column(
        String(32), nullable=False, unique=True, index=True
    )
    report_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("reports.id"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(
        String(30), default=ComplaintStatus.DRAFT.value, nullable=False, index=True
    )

    # Subject LBP
    subject_lbp_number: Mapped[str] = mapped_column(String(20), default="", nullable=False)
    subject_lbp_name: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    subject_lbp_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    subject_lbp_phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    subject_lbp_company: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    subject_lbp_address: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    subject_lbp_license_types: Mapped[Any] = mapped_column(JSON, default=list, nullable=False)
    subject_sighted_license: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    subject_work_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    # Work
    work_address: Mapped[str] = mapped_column(String(200), default="", nullable=False)
    work_suburb: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    work_city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    work_start_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    work_end_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    work_description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    building_consent_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    building_consent_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Complaint
    grounds_for_discipline: Mapped[Any] = mapped_column(JSON, default=list, nullable=False)
    conduct_description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    evidence_summary: Mapped[str] = mapped_column(Text, default="", nullable=False)
    steps_to_resolve: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Evidence
    attached_photo_ids: Mapped[Any] = mapped_column(JSON, default=list, nullable=False)
    attached_defect_ids: Mapped[Any] = mapped_column(JSON, default=list, nullable=False)
    witnesses: Mapped[Any] = mapped_column(JSON, default=list, nullable=False)

    # Complainant (the association, pre-filled from settings)
    complainant_name: Mapped[str] = mapped_column(String(255), nullable=False)
    complainant_address: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    complainant_phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    complainant_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    complainant_relation: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Preparation / review / signature
    prepared_by: Mapped[str] = mapped_column(String(36), nullable=False)
    prepared_by_name: Mapped[str] = mapped_column(String(255), nullable=False)
    reviewed_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    reviewed_by_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    review_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    signed_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    signed_by_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    signature_data: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    signed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    declaration_accepted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Submission to the Board
    submitted_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    submitted_by_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    submitted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    submission_method: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    submission_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    submission_confirmation: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    complaint_pdf_url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    complaint_pdf_hash: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    # Board response
    bpb_reference_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    bpb_acknowledged_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    bpb_decision: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    bpb_decision_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    bpb_outcome: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    bpb_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    report: Mapped["Report"] = relationship(lazy="noload")


# Building Act 2004 s317 grounds: code -> (label, section, description)
GROUNDS_FOR_DISCIPLINE: dict[str, dict[str, str]] = {
    "NEGLIGENT_OR_INCOMPETENT_WORK": {
        "label": "Carried out or supervised building work negligently or incompetently",
        "section": "317(1)(b)",
        "description": "Building work was below the standard of care expected of a "
        "reasonably competent practitioner.",
    },
    "NON_COMPLIANT_WITH_CONSENT": {
        "label": "Carried out or supervised building work that does not comply with a building consent",
        "section": "317(1)(c)",
        "description": "The work does not conform to the plans and specifications approved "
        "in the building consent.",
    },
    "MISREPRESENTED_LICENSE": {
        "label": "Held themselves out to be licensed when not licensed for that type of work",
        "section": "317(1)(d)",
        "description": "Claimed or implied a licence class they did not hold.",
    },
    "CONVICTION_AFFECTING_FITNESS": {
        "label": "Convicted of an offence that affects fitness to do building work",
        "section": "317(1)(da)",
        "description": "A conviction calls into question their fitness to perform building work.",
    },
    "FALSE_INFO_FOR_LICENSE": {
        "label": "Provided false information in order to become licensed",
        "section": "317(1)(e)",
        "description": "The licence was obtained with false or misleading information.",
    },
    "FAILED_PROVIDE_DESIGN_CERTIFICATE": {
        "label": "Failed to provide certificate of design work for building consent",
        "section": "317(1)(f)",
        "description": "No design certificate was provided with the building consent application.",
    },
    "FAILED_PROVIDE_RECORD_OF_WORK": {
        "label": "Failed to provide record of work on completion of restricted building work",
        "section": "317(1)(g)",
        "description": "No record of work was provided on completion of restricted building work.",
    },
    "MISREPRESENTED_COMPETENCE": {
        "label": "Misrepresented their competence",
        "section": "317(1)(h)",
        "description": "Made false claims about skills, qualifications or experience.",
    },
    "WORKED_OUTSIDE_COMPETENCE": {
        "label": "Carried out or supervised building work outside their competence",
        "section": "317(1)(h)",
        "description": "Performed work beyond their area of competence or licence class.",
    },
    "FAILED_PRODUCE_LICENSE": {
        "label": "Failed to produce licence or notify change in licence status",
        "section": "317(1)(i)",
        "description": "Did not produce a licence on request or notify a change in licence status.",
    },
    "DISREPUTABLE_CONDUCT": {
        "label": "Conducted themselves in a manner that brings the LBP scheme into disrepute",
        "section": "317(1)(j)",
        "description": "Conduct damaged the reputation or integrity of the LBP scheme.",
    },
}

# Must be non-empty before a complaint can go to review
REQUIRED_FIELDS = (
    "subject_lbp_number",
    "subject_lbp_name",
    "work_address",
    "work_description",
    "conduct_description",
    "evidence_summary",
    "grounds_for_discipline",
    "attached_photo_ids",
)
