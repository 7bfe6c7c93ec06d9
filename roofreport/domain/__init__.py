"""Domain package: all ORM models are imported here so Alembic autogenerate detects them.

Folder intent:
  report.py      Report and its RoofElements
  defect.py      Defects and Photos (photo binaries live in object storage)
  compliance.py  ComplianceAssessment plus Checklist / ReportTemplate reference data
  complaint.py   LBP complaints lodged with the Building Practitioners Board
  user.py        Inspectors, reviewers and administrators
  audit.py       Append-only per-report audit log
  mixins.py      Shared TimestampMixin and id helpers
  enums.py       String enumerations stored in the columns above
"""

from roofreport.domain.audit import AuditLog
from roofreport.domain.complaint import LBPComplaint
from roofreport.domain.compliance import Checklist, ComplianceAssessment, ReportTemplate
from roofreport.domain.defect import Defect, Photo
from roofreport.domain.report import Report, RoofElement
from roofreport.domain.user import User

__all__ = [
    "AuditLog",
    "Checklist",
    "ComplianceAssessment",
    "Defect",
    "LBPComplaint",
    "Photo",
    "Report",
    "ReportTemplate",
    "RoofElement",
    "User",
]
