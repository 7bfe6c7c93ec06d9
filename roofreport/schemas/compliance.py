"""Compliance assessment and reference-data schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import Field

from roofreport.schemas.common import CamelModel

ItemStatus = Literal["pass", "fail", "partial", "na", ""]


class ComplianceUpsert(CamelModel):
    # {checklist_key: {item_id: "pass" | "fail" | "partial" | "na" | ""}}
    checklist_results: dict[str, dict[str, ItemStatus]] = Field(default_factory=dict)
    non_compliance_summary: str | None = None


class ComplianceOut(CamelModel):
    id: str
    report_id: str
    checklist_results: dict[str, Any]
    non_compliance_summary: str | None = None
    created_at: datetime
    updated_at: datetime


class ComplianceUpsertResult(CamelModel):
    assessment: ComplianceOut
    compliance_status: str


class ChecklistOut(CamelModel):
    id: str
    key: str
    name: str
    category: str
    standard: str | None = None
    items: list[dict[str, Any]]


class ReportTemplateOut(CamelModel):
    id: str
    name: str
    description: str | None = None
    inspection_type: str
    sections: Any
    checklists: Any | None = None
    is_default: bool
    is_active: bool
