"""Roof element schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from roofreport.domain.enums import ConditionRating, ElementType
from roofreport.schemas.common import CamelModel


class RoofElementCreate(CamelModel):
    element_type: ElementType
    location: str = Field(min_length=2, max_length=200)
    cladding_type: str | None = Field(default=None, max_length=100)
    cladding_profile: str | None = Field(default=None, max_length=100)
    material: str | None = Field(default=None, max_length=100)
    manufacturer: str | None = Field(default=None, max_length=100)
    colour: str | None = Field(default=None, max_length=50)
    pitch: float | None = Field(default=None, ge=0, le=90)
    area: float | None = Field(default=None, ge=0, le=100000)
    age_years: int | None = Field(default=None, ge=0, le=200)
    condition_rating: ConditionRating | None = None
    condition_notes: str | None = None
    meets_cop: bool | None = None
    meets_e2: bool | None = None


class RoofElementBulkCreate(CamelModel):
    elements: list[RoofElementCreate] = Field(min_length=1, max_length=50)


class RoofElementUpdate(CamelModel):
    element_type: ElementType | None = None
    location: str | None = Field(default=None, min_length=2, max_length=200)
    cladding_type: str | None = Field(default=None, max_length=100)
    cladding_profile: str | None = Field(default=None, max_length=100)
    material: str | None = Field(default=None, max_length=100)
    manufacturer: str | None = Field(default=None, max_length=100)
    colour: str | None = Field(default=None, max_length=50)
    pitch: float | None = Field(default=None, ge=0, le=90)
    area: float | None = Field(default=None, ge=0, le=100000)
    age_years: int | None = Field(default=None, ge=0, le=200)
    condition_rating: ConditionRating | None = None
    condition_notes: str | None = None
    meets_cop: bool | None = None
    meets_e2: bool | None = None


class RoofElementOut(CamelModel):
    id: str
    report_id: str
    element_type: str
    location: str
    cladding_type: str | None = None
    cladding_profile: str | None = None
    material: str | None = None
    manufacturer: str | None = None
    colour: str | None = None
    pitch: float | None = None
    area: float | None = None
    age_years: int | None = None
    condition_rating: str | None = None
    condition_notes: str | None = None
    meets_cop: bool | None = None
    meets_e2: bool | None = None
    created_at: datetime
    updated_at: datetime
