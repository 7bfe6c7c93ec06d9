from __future__ import annotations

from datetime import datetime, timezone

from roofreport.domain.compliance import ComplianceAssessment
from roofreport.domain.defect import Defect, Photo
from roofreport.domain.enums import ComplianceStatus
from roofreport.domain.report import Report, RoofElement
from roofreport.domain.user import User
from roofreport.services.compliance import compute_compliance_status
from roofreport.services.validation import validate_report


def _photo(n: int, exif: bool = True) -> Photo:
    return Photo(
        id=f"p{n}",
        storage_key=f"k{n}",
        url=f"/media/k{n}",
        filename=f"{n}.jpg",
        original_filename=f"{n}.jpg",
        mime_type="image/jpeg",
        file_size=10,
        original_hash="0" * 64,
        camera_make="Canon" if exif else None,
    )


def _report(**overrides) -> Report:
    values = dict(
        report_number="RANZ-2026-00001",
        property_address="3 Totara Lane",
        property_city="Wellington",
        property_region="Wellington",
        property_postcode="6011",
        property_type="RESIDENTIAL_1",
        inspection_date=datetime(2026, 2, 1, tzinfo=timezone.utc),
        inspection_type="VISUAL_ONLY",
        client_name="A. Client",
        weather_conditions="Fine",
        access_method="Ladder",
        declaration_signed=True,
        inspector=User(name="Ruth Inspector", email="ruth@example.nz", lbp_number="BP123456",
                       qualifications="Licensed roofer"),
        roof_elements=[RoofElement(element_type="RIDGE", location=f"L{n}") for n in range(3)],
        photos=[_photo(n) for n in range(10)],
        compliance_assessment=ComplianceAssessment(checklist_results={"e2_as1": {"e2_3_1": "pass"}}),
    )
    values.update(overrides)
    return Report(**values)


def test_complete_visual_report_is_valid():
    result = validate_report(_report())
    assert result.is_valid
    assert result.errors == []
    assert result.completion_percentage == 100
    assert result.validation_details.compliance.coverage == 100


def test_missing_items_are_listed():
    result = validate_report(
        _report(
            property_postcode="",
            declaration_signed=False,
            roof_elements=[],
            photos=[_photo(1)],
            compliance_assessment=None,
        )
    )
    assert not result.is_valid
    assert "Missing property details: Property postcode" in result.errors
    assert "Insufficient roof elements documented. Required: 3, Found: 0" in result.errors
    assert "Insufficient photos. Required: 10, Found: 1" in result.errors
    assert "Compliance assessment is required" in result.errors
    assert "Inspector declaration must be signed before submission" in result.errors
    assert "Signed declaration" in result.missing_required_items
    assert "Photos (need 9 more)" in result.missing_required_items
    assert result.completion_percentage < 100


def test_required_checklists_depend_on_inspection_type():
    result = validate_report(
        _report(
            inspection_type="FULL_INSPECTION",
            roof_elements=[RoofElement(element_type="RIDGE", location=f"L{n}") for n in range(5)],
            photos=[_photo(n) for n in range(20)],
        )
    )
    assert not result.is_valid
    assert any(e.startswith("Missing required compliance checklists") for e in result.errors)
    assert result.validation_details.compliance.coverage == 33
    assert "Executive summary is recommended for this inspection type" in result.warnings


def test_warnings_do_not_block_submission():
    defect = Defect(
        defect_number=1,
        title="Lifted flashing",
        description="",
        location="North valley",
        classification="MINOR_DEFECT",
        severity="LOW",
        observation="Flashing lifted by 5mm",
        photos=[],
    )
    result = validate_report(
        _report(
            weather_conditions=None,
            defects=[defect],
            photos=[_photo(n, exif=False) for n in range(10)],
            inspector=User(name="Sam", email="sam@example.nz"),
        )
    )
    assert result.is_valid
    assert "Weather conditions not documented" in result.warnings
    assert "1 defect(s) have no supporting photos" in result.warnings
    assert "1 defect(s) have no description" in result.warnings
    assert "Inspector LBP number not provided" in result.warnings
    assert result.validation_details.photos.with_exif == 0


def test_compliance_status_derivation():
    assert compute_compliance_status(None) == ComplianceStatus.NOT_ASSESSED
    assert compute_compliance_status({"e2_as1": {}}) == ComplianceStatus.NOT_ASSESSED
    assert compute_compliance_status({"e2_as1": {"a": "na", "b": ""}}) == ComplianceStatus.NOT_ASSESSED
    assert compute_compliance_status({"e2_as1": {"a": "pass", "b": "na"}}) == ComplianceStatus.PASS
    assert (
        compute_compliance_status({"e2_as1": {"a": "pass"}, "b2_durability": {"x": "partial"}})
        == ComplianceStatus.PARTIAL
    )
    assert (
        compute_compliance_status({"e2_as1": {"a": "partial", "b": "fail"}})
        == ComplianceStatus.FAIL
    )
