"""Pre-submission validation of a fully loaded report.

`validate_report` is pure: it reads the report (with inspector, elements,
defects + photos, photos and compliance assessment loaded) and returns a
ValidationResult without touching the database.
"""

from __future__ import annotations

from roofreport.domain.enums import InspectionType
from roofreport.domain.report import Report
from roofreport.schemas.workflow import (
    ComplianceCheck,
    CountCheck,
    DeclarationCheck,
    DefectCheck,
    PhotoCheck,
    SectionCheck,
    ValidationDetails,
    ValidationResult,
)

MINIMUM_ELEMENTS = {
    InspectionType.FULL_INSPECTION: 5,
    InspectionType.VISUAL_ONLY: 3,
    InspectionType.NON_INVASIVE: 4,
    InspectionType.INVASIVE: 5,
    InspectionType.DISPUTE_RESOLUTION: 5,
    InspectionType.PRE_PURCHASE: 4,
    InspectionType.MAINTENANCE_REVIEW: 3,
    InspectionType.WARRANTY_CLAIM: 5,
}

MINIMUM_PHOTOS = {
    InspectionType.FULL_INSPECTION: 20,
    InspectionType.VISUAL_ONLY: 10,
    InspectionType.NON_INVASIVE: 15,
    InspectionType.INVASIVE: 25,
    InspectionType.DISPUTE_RESOLUTION: 30,
    InspectionType.PRE_PURCHASE: 15,
    InspectionType.MAINTENANCE_REVIEW: 10,
    InspectionType.WARRANTY_CLAIM: 25,
}

_ALL_CHECKLISTS = ["e2_as1", "metal_roof_cop", "b2_durability"]
REQUIRED_CHECKLISTS = {
    InspectionType.FULL_INSPECTION: _ALL_CHECKLISTS,
    InspectionType.VISUAL_ONLY: ["e2_as1"],
    InspectionType.NON_INVASIVE: ["e2_as1", "b2_durability"],
    InspectionType.INVASIVE: _ALL_CHECKLISTS,
    InspectionType.DISPUTE_RESOLUTION: _ALL_CHECKLISTS,
    InspectionType.PRE_PURCHASE: ["e2_as1", "b2_durability"],
    InspectionType.MAINTENANCE_REVIEW: ["e2_as1"],
    InspectionType.WARRANTY_CLAIM: _ALL_CHECKLISTS,
}

CHECKLIST_NAMES = {
    "e2_as1": "E2/AS1 External Moisture",
    "metal_roof_cop": "Metal Roof COP",
    "b2_durability": "B2 Durability",
}

SUMMARY_RECOMMENDED = {InspectionType.FULL_INSPECTION, InspectionType.PRE_PURCHASE}

# property, inspection, inspector, elements, defects, photos, compliance, declaration
TOTAL_CHECKS = 8


def _inspection_type(report: Report) -> InspectionType | None:
    try:
        return InspectionType(report.inspection_type)
    except ValueError:
        return None


def validate_report(report: Report) -> ValidationResult:
    errors: list[str] = []
    warnings: list[str] = []
    missing: list[str] = []
    inspection_type = _inspection_type(report)

    # Property
    property_missing = [
        label
        for label, value in (
            ("Property address", report.property_address),
            ("Property city", report.property_city),
            ("Property region", report.property_region),
            ("Property postcode", report.property_postcode),
            ("Property type", report.property_type),
        )
        if not value
    ]
    if property_missing:
        errors.append("Missing property details: " + ", ".join(property_missing))
        missing.extend(property_missing)

    # Inspection
    inspection_missing = [
        label
        for label, value in (
            ("Inspection date", report.inspection_date),
            ("Inspection type", report.inspection_type),
            ("Client name", report.client_name),
        )
        if not value
    ]
    if inspection_missing:
        errors.append("Missing inspection details: " + ", ".join(inspection_missing))
        missing.extend(inspection_missing)

    if not report.weather_conditions:
        warnings.append("Weather conditions not documented")
    if not report.access_method:
        warnings.append("Access method not documented")

    # Inspector
    inspector = report.inspector
    inspector_ok = bool(inspector and inspector.name)
    if not inspector_ok:
        errors.append("Inspector name is required")
        missing.append("Inspector name")
    if not (inspector and inspector.lbp_number):
        warnings.append("Inspector LBP number not provided")
    if not (inspector and inspector.qualifications):
        warnings.append("Inspector qualifications not documented")

    # Roof elements
    min_elements = max(1, MINIMUM_ELEMENTS.get(inspection_type, 3))
    element_count = len(report.roof_elements or [])
    if element_count < min_elements:
        errors.append(
            f"Insufficient roof elements documented. Required: {min_elements}, Found: {element_count}"
        )
        missing.append(f"Roof elements (need {min_elements - element_count} more)")

    # Defects
    defects = report.defects or []
    without_photos = sum(1 for d in defects if not d.photos)
    if without_photos:
        warnings.append(f"{without_photos} defect(s) have no supporting photos")
    without_description = sum(1 for d in defects if not d.description)
    if without_description:
        warnings.append(f"{without_description} defect(s) have no description")

    # Photos
    photos = report.photos or []
    min_photos = MINIMUM_PHOTOS.get(inspection_type, 10)
    photo_count = len(photos)
    with_exif = sum(1 for p in photos if p.has_exif)
    if photo_count < min_photos:
        errors.append(f"Insufficient photos. Required: {min_photos}, Found: {photo_count}")
        missing.append(f"Photos (need {min_photos - photo_count} more)")
    if photo_count - with_exif > 0:
        warnings.append(
            f"{photo_count - with_exif} photo(s) missing EXIF metadata. "
            "This may affect evidentiary value."
        )

    # Compliance
    required = REQUIRED_CHECKLISTS.get(inspection_type, ["e2_as1"])
    coverage = 0
    assessment = report.compliance_assessment
    if assessment is None:
        errors.append("Compliance assessment is required")
        missing.append("Compliance assessment")
    else:
        results = assessment.checklist_results or {}
        absent = [key for key in required if key not in results]
        if absent:
            names = [CHECKLIST_NAMES.get(key, key) for key in absent]
            errors.append("Missing required compliance checklists: " + ", ".join(names))
            missing.extend(f"{name} checklist" for name in names)
        coverage = round((len(required) - len(absent)) / len(required) * 100)
        for key, items in results.items():
            unanswered = sum(1 for v in (items or {}).values() if not v)
            if unanswered:
                warnings.append(f"{key} checklist has {unanswered} unanswered item(s)")
    compliance_complete = assessment is not None and coverage == 100

    if inspection_type in SUMMARY_RECOMMENDED and not report.executive_summary:
        warnings.append("Executive summary is recommended for this inspection type")

    # Declaration
    if not report.declaration_signed:
        errors.append("Inspector declaration must be signed before submission")
        missing.append("Signed declaration")

    passed = sum(
        (
            not property_missing,
            not inspection_missing,
            inspector_ok,
            element_count >= min_elements,
            True,  # zero defects is a valid outcome
            photo_count >= min_photos,
            compliance_complete,
            bool(report.declaration_signed),
        )
    )

    return ValidationResult(
        is_valid=not errors,
        errors=errors,
        warnings=warnings,
        completion_percentage=round(passed / TOTAL_CHECKS * 100),
        missing_required_items=missing,
        validation_details=ValidationDetails(
            property_details=SectionCheck(complete=not property_missing, missing=property_missing),
            inspection_details=SectionCheck(
                complete=not inspection_missing, missing=inspection_missing
            ),
            roof_elements=CountCheck(
                complete=element_count >= min_elements, count=element_count, minimum=min_elements
            ),
            defects=DefectCheck(documented=True, count=len(defects)),
            photos=PhotoCheck(
                sufficient=photo_count >= min_photos,
                count=photo_count,
                minimum=min_photos,
                with_exif=with_exif,
            ),
            compliance=ComplianceCheck(
                complete=compliance_complete, coverage=coverage, required=len(required)
            ),
            declaration=DeclarationCheck(
                signed=bool(report.declaration_signed), signed_at=report.signed_at
            ),
        ),
    )
