"""SQLAlchemy ORM models for inspection reports and their roof elements."""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from roofreport.db.base import Base
from roofreport.domain.enums import ComplianceStatus, ReportStatus
from roofreport.domain.mixins import TimestampMixin, new_id


class Report(Base, TimestampMixin):
    """One building-inspection report, owned by the inspector who created it."""

    __tablename__ = "reports"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    report_number: Mapped[str] = mapped_column(String(32), nullable=False, unique=True, index=True)

    # Property
    property_address: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    property_city: Mapped[str] = mapped_column(String(100), nullable=False)
    property_region: Mapped[str] = mapped_column(String(100), nullable=False)
    property_postcode: Mapped[str] = mapped_column(String(10), nullable=False)
    property_type: Mapped[str] = mapped_column(String(50), nullable=False)
    building_age: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    gps_lat: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    gps_lng: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # Inspection
    inspection_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    inspection_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    weather_conditions: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    temperature: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    access_method: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    limitations: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Client
    client_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    client_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    client_phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    client_company: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Consent / engagement
    consent_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    consent_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    code_of_compliance_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    engaging_party: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    # Free-form report sections (structured JSON from the editor / mobile app)
    scope_of_works: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    methodology: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    findings: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    conclusions: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    recommendations: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    executive_summary: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)

    # Workflow
    status: Mapped[str] = mapped_column(
        String(50), default=ReportStatus.DRAFT.value, nullable=False, index=True
    )
    compliance_status: Mapped[str] = mapped_column(
        String(20), default=ComplianceStatus.NOT_ASSESSED.value, nullable=False, index=True
    )
    inspector_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=False, index=True
    )
    reviewer_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=True, index=True
    )
    submitted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Declaration & signature
    declaration_signed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    signed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    signature_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    expert_declaration: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    has_conflict: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    conflict_disclosure: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    inspector: Mapped["User"] = relationship(foreign_keys=[inspector_id], lazy="noload")
    roof_elements: Mapped[List["RoofElement"]] = relationship(
        back_populates="report", lazy="noload", order_by="RoofElement.created_at"
    )
    defects: Mapped[List["Defect"]] = relationship(
        back_populates="report", lazy="noload", order_by="Defect.defect_number"
    )
    photos: Mapped[List["Photo"]] = relationship(
        back_populates="report", lazy="noload", order_by="Photo.sort_order"
    )
    compliance_assessment: Mapped[Optional["ComplianceAssessment"]] = relationship(
        back_populates="report", lazy="noload", uselist=False
    )

    @property
    def is_finalised(self) -> bool:
        return self.status == ReportStatus.FINALISED


class RoofElement(Base, TimestampMixin):
    """One inspected roof component (cladding, flashing, gutter, ...)."""

    __tablename__ = "roof_elements"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    report_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("reports.id", ondelete="CASCADE"), nullable=False, index=True
    )
    element_type: Mapped[str] = mapped_column(String(50), nullable=False)
    location: Mapped[str] = mapped_column(String(200), nullable=False)
    cladding_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    cladding_profile: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    material: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    manufacturer: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    colour: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    pitch: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    area: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    age_years: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    # "GOOD" | "FAIR" | "POOR" | "CRITICAL" | "NOT_INSPECTED"
    condition_rating: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    condition_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    meets_cop: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    meets_e2: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)

    report: Mapped["Report"] = relationship(back_populates="roof_elements", lazy="noload")
