"""Defect schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field

from roofreport.domain.enums import DefectClass, DefectSeverity, PriorityLevel
from roofreport.schemas.common import CamelModel
from roofreport.schemas.photo import PhotoOut


class DefectCreate(CamelModel):
    title: str = Field(min_length=3, max_length=200)
    description: str = Field(min_length=10, max_length=5000)
    location: str = Field(min_length=2, max_length=200)
    classification: DefectClass
    severity: DefectSeverity
    observation: str = Field(min_length=10, max_length=5000)
    analysis: str | None = Field(default=None, max_length=5000)
    opinion: str | None = Field(default=None, max_length=5000)
    code_reference: str | None = Field(default=None, max_length=200)
    cop_reference: str | None = Field(default=None, max_length=200)
    probable_cause: str | None = None
    contributing_factors: str | None = None
    recommendation: str | None = None
    priority_level: PriorityLevel | None = None
    estimated_cost: str | None = Field(default=None, max_length=100)
    measurements: Any | None = None
    roof_element_id: str | None = None
    photo_ids: list[str] = Field(default_factory=list)


class DefectUpdate(CamelModel):
    title: str | None = Field(default=None, min_length=3, max_length=200)
    description: str | None = Field(default=None, min_length=10, max_length=5000)
    location: str | None = Field(default=None, min_length=2, max_length=200)
    classification: DefectClass | None = None
    severity: DefectSeverity | None = None
    observation: str | None = Field(default=None, min_length=10, max_length=5000)
    analysis: str | None = Field(default=None, max_length=5000)
    opinion: str | None = Field(default=None, max_length=5000)
    code_reference: str | None = Field(default=None, max_length=200)
    cop_reference: str | None = Field(default=None, max_length=200)
    probable_cause: str | None = None
    contributing_factors: str | None = None
    recommendation: str | None = None
    priority_level: PriorityLevel | None = None
    estimated_cost: str | None = Field(default=None, max_length=100)
    measurements: Any | None = None
    roof_element_id: str | None = None


class DefectPhotoLink(CamelModel):
    photo_ids: list[str] = Field(min_length=1)


class DefectOut(CamelModel):
    id: str
    report_id: str
    roof_element_id: str | None = None
    defect_number: int
    title: str
    description: str
    location: str
    classification: str
    severity: str
    observation: str
    analysis: str | None = None
    opinion: str | None = None
    code_reference: str | None = None
    cop_reference: str | None = None
    probable_cause: str | None = None
    contributing_factors: str | None = None
    recommendation: str | None = None
    priority_level: str | None = None
    estimated_cost: str | None = None
    measurements: Any | None = None
    photos: list[PhotoOut] = []
    created_at: datetime
    updated_at: datetime
