"""SQLAlchemy ORM models for defects and photos."""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from roofreport.db.base import Base
from roofreport.domain.enums import PhotoType
from roofreport.domain.mixins import TimestampMixin, new_id


class Defect(Base, TimestampMixin):
    """One documented defect. `defect_number` is sequential within its report."""

    __tablename__ = "defects"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    report_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("reports.id", ondelete="CASCADE"), nullable=False, index=True
    )
    roof_element_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("roof_elements.id", ondelete="SET NULL"), nullable=True
    )
    defect_number: Mapped[int] = mapped_column(Integer, nullable=False)

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    location: Mapped[str] = mapped_column(String(200), nullable=False)
    classification: Mapped[str] = mapped_column(String(50), nullable=False)
    severity: Mapped[str] = mapped_column(String(20), nullable=False, index=True)

    # Observation → analysis → opinion, as required for expert evidence
    observation: Mapped[str] = mapped_column(Text, nullable=False)
    analysis: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    opinion: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    code_reference: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    cop_reference: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    probable_cause: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    contributing_factors: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    recommendation: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    priority_level: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    estimated_cost: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    measurements: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)

    report: Mapped["Report"] = relationship(back_populates="defects", lazy="noload")
    photos: Mapped[List["Photo"]] = relationship(
        back_populates="defect", lazy="noload", order_by="Photo.sort_order"
    )


class Photo(Base, TimestampMixin):
    """Photo metadata. The binary lives in object storage under `storage_key`."""

    __tablename__ = "photos"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    report_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("reports.id", ondelete="CASCADE"), nullable=False, index=True
    )
    defect_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("defects.id", ondelete="SET NULL"), nullable=True, index=True
    )
    roof_element_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("roof_elements.id", ondelete="SET NULL"), nullable=True
    )

    # Storage
    storage_key: Mapped[str] = mapped_column(String(500), nullable=False)
    url: Mapped[str] = mapped_column(String(1000), default="", nullable=False)
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    original_filename: Mapped[str] = mapped_column(String(255), nullable=False)
    mime_type: Mapped[str] = mapped_column(String(100), nullable=False)
    file_size: Mapped[int] = mapped_column(Integer, nullable=False)

    photo_type: Mapped[str] = mapped_column(
        String(30), default=PhotoType.GENERAL.value, nullable=False
    )
    caption: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    scale_reference: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    annotations: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)

    # EXIF evidence
    captured_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    gps_lat: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    gps_lng: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    camera_make: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    camera_model: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Integrity: SHA-256 of the original bytes, verified once the binary is stored
    original_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    hash_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    report: Mapped["Report"] = relationship(back_populates="photos", lazy="noload")
    defect: Mapped[Optional["Defect"]] = relationship(back_populates="photos", lazy="noload")

    @property
    def has_exif(self) -> bool:
        return bool(self.captured_at or self.camera_make or self.camera_model)

    @property
    def is_pending_upload(self) -> bool:
        return not self.url
