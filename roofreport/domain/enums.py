"""Enumerations shared by ORM models, schemas and services.

Columns store the plain string value; schemas validate against these enums.
"""

from __future__ import annotations

from enum import Enum


class UserRole(str, Enum):
    INSPECTOR = "INSPECTOR"
    REVIEWER = "REVIEWER"
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"


REVIEWER_ROLES = frozenset({UserRole.REVIEWER, UserRole.ADMIN, UserRole.SUPER_ADMIN})
ADMIN_ROLES = frozenset({UserRole.ADMIN, UserRole.SUPER_ADMIN})


class PropertyType(str, Enum):
    RESIDENTIAL_1 = "RESIDENTIAL_1"
    RESIDENTIAL_2 = "RESIDENTIAL_2"
    RESIDENTIAL_3 = "RESIDENTIAL_3"
    COMMERCIAL_LOW = "COMMERCIAL_LOW"
    COMMERCIAL_HIGH = "COMMERCIAL_HIGH"
    INDUSTRIAL = "INDUSTRIAL"


class InspectionType(str, Enum):
    FULL_INSPECTION = "FULL_INSPECTION"
    VISUAL_ONLY = "VISUAL_ONLY"
    NON_INVASIVE = "NON_INVASIVE"
    INVASIVE = "INVASIVE"
    DISPUTE_RESOLUTION = "DISPUTE_RESOLUTION"
    PRE_PURCHASE = "PRE_PURCHASE"
    MAINTENANCE_REVIEW = "MAINTENANCE_REVIEW"
    WARRANTY_CLAIM = "WARRANTY_CLAIM"


class ReportStatus(str, Enum):
    DRAFT = "DRAFT"
    IN_PROGRESS = "IN_PROGRESS"
    PENDING_REVIEW = "PENDING_REVIEW"
    UNDER_REVIEW = "UNDER_REVIEW"
    REVISION_REQUIRED = "REVISION_REQUIRED"
    APPROVED = "APPROVED"
    FINALISED = "FINALISED"
    ARCHIVED = "ARCHIVED"


# Statuses an inspector may still work on (edit, submit, sync status from device)
WORKING_STATUSES = frozenset({
    ReportStatus.DRAFT,
    ReportStatus.IN_PROGRESS,
    ReportStatus.REVISION_REQUIRED,
})
REVIEWABLE_STATUSES = frozenset({ReportStatus.PENDING_REVIEW, ReportStatus.UNDER_REVIEW})


class ComplianceStatus(str, Enum):
    PASS = "PASS"
    FAIL = "FAIL"
    PARTIAL = "PARTIAL"
    NOT_ASSESSED = "NOT_ASSESSED"


class ElementType(str, Enum):
    ROOF_CLADDING = "ROOF_CLADDING"
    RIDGE = "RIDGE"
    VALLEY = "VALLEY"
    HIP = "HIP"
    BARGE = "BARGE"
    FASCIA = "FASCIA"
    GUTTER = "GUTTER"
    DOWNPIPE = "DOWNPIPE"
    FLASHING_WALL = "FLASHING_WALL"
    FLASHING_PENETRATION = "FLASHING_PENETRATION"
    FLASHING_PARAPET = "FLASHING_PARAPET"
    SKYLIGHT = "SKYLIGHT"
    VENT = "VENT"
    ANTENNA_MOUNT = "ANTENNA_MOUNT"
    SOLAR_PANEL = "SOLAR_PANEL"
    UNDERLAY = "UNDERLAY"
    INSULATION = "INSULATION"
    ROOF_STRUCTURE = "ROOF_STRUCTURE"
    OTHER = "OTHER"


class ConditionRating(str, Enum):
    GOOD = "GOOD"
    FAIR = "FAIR"
    POOR = "POOR"
    CRITICAL = "CRITICAL"
    NOT_INSPECTED = "NOT_INSPECTED"


class DefectClass(str, Enum):
    MAJOR_DEFECT = "MAJOR_DEFECT"
    MINOR_DEFECT = "MINOR_DEFECT"
    SAFETY_HAZARD = "SAFETY_HAZARD"
    MAINTENANCE_ITEM = "MAINTENANCE_ITEM"
    WORKMANSHIP_ISSUE = "WORKMANSHIP_ISSUE"


class DefectSeverity(str, Enum):
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class PriorityLevel(str, Enum):
    IMMEDIATE = "IMMEDIATE"
    SHORT_TERM = "SHORT_TERM"
    MEDIUM_TERM = "MEDIUM_TERM"
    LONG_TERM = "LONG_TERM"


class PhotoType(str, Enum):
    OVERVIEW = "OVERVIEW"
    CONTEXT = "CONTEXT"
    DETAIL = "DETAIL"
    SCALE_REFERENCE = "SCALE_REFERENCE"
    INACCESSIBLE = "INACCESSIBLE"
    EQUIPMENT = "EQUIPMENT"
    GENERAL = "GENERAL"


class AuditAction(str, Enum):
    CREATED = "CREATED"
    UPDATED = "UPDATED"
    STATUS_CHANGED = "STATUS_CHANGED"
    SUBMITTED = "SUBMITTED"
    REVIEWED = "REVIEWED"
    APPROVED = "APPROVED"
    PDF_GENERATED = "PDF_GENERATED"
    DELETED = "DELETED"


class ComplaintStatus(str, Enum):
    DRAFT = "DRAFT"
    PENDING_REVIEW = "PENDING_REVIEW"
    READY_TO_SUBMIT = "READY_TO_SUBMIT"
    SUBMITTED = "SUBMITTED"
    ACKNOWLEDGED = "ACKNOWLEDGED"
    UNDER_INVESTIGATION = "UNDER_INVESTIGATION"
    HEARING_SCHEDULED = "HEARING_SCHEDULED"
    DECIDED = "DECIDED"
    CLOSED = "CLOSED"
    WITHDRAWN = "WITHDRAWN"


class LBPAction(str, Enum):
    """Complaint events, stored as `lbp_action` on an UPDATED audit row of the report."""

    COMPLAINT_CREATED = "COMPLAINT_CREATED"
    COMPLAINT_UPDATED = "COMPLAINT_UPDATED"
    COMPLAINT_SUBMITTED_FOR_REVIEW = "COMPLAINT_SUBMITTED_FOR_REVIEW"
    COMPLAINT_APPROVED = "COMPLAINT_APPROVED"
    COMPLAINT_REJECTED = "COMPLAINT_REJECTED"
    COMPLAINT_SIGNED = "COMPLAINT_SIGNED"
    COMPLAINT_SUBMITTED_TO_BPB = "COMPLAINT_SUBMITTED_TO_BPB"
    COMPLAINT_WITHDRAWN = "COMPLAINT_WITHDRAWN"
    BPB_RESPONSE_RECEIVED = "BPB_RESPONSE_RECEIVED"
    PDF_GENERATED = "PDF_GENERATED"
