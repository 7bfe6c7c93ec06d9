"""SQLAlchemy ORM models for compliance assessments and reference data."""

from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import Boolean, ForeignKey, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from roofreport.db.base import Base
from roofreport.domain.mixins import TimestampMixin, new_id


class ComplianceAssessment(Base, TimestampMixin):
    """One per report. `checklist_results` = {checklist_key: {item_id: status}}."""

    __tablename__ = "compliance_assessments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    report_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("reports.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    checklist_results: Mapped[Any] = mapped_column(JSON, nullable=False, default=dict)
    non_compliance_summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    report: Mapped["Report"] = relationship(back_populates="compliance_assessment", lazy="noload")


class Checklist(Base, TimestampMixin):
    """Compliance checklist definition (E2/AS1, Metal Roof COP, B2 Durability)."""

    __tablename__ = "checklists"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    key: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    standard: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    # [{"id", "section", "item", "description", "required"}]
    items: Mapped[Any] = mapped_column(JSON, nullable=False, default=list)


class ReportTemplate(Base, TimestampMixin):
    """Per-inspection-type report template shipped to the mobile app."""

    __tablename__ = "report_templates"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    inspection_type: Mapped[str] = mapped_column(String(50), nullable=False)
    sections: Mapped[Any] = mapped_column(JSON, nullable=False, default=list)
    checklists: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
