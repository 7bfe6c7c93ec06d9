"""PDF rendering for inspection reports and LBP complaints (ReportLab platypus).

Both builders are pure: they take loaded ORM objects and return PDF bytes.
The async services call them through `asyncio.to_thread`.
"""

from __future__ import annotations

import asyncio
import io
import logging
from datetime import datetime
from typing import Any
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import (
    HRFlowable,
    KeepTogether,
    PageBreak,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)
from sqlalchemy.ext.asyncio import AsyncSession

from roofreport.core.config import settings
from roofreport.domain.complaint import GROUNDS_FOR_DISCIPLINE, LBPComplaint
from roofreport.domain.defect import Defect
from roofreport.domain.enums import AuditAction
from roofreport.domain.report import Report
from roofreport.domain.user import User
from roofreport.repositories.report import AuditLogRepository
from roofreport.services.report import ReportService

logger = logging.getLogger(__name__)

PRIMARY = colors.HexColor("#1F3A5F")
MUTED = colors.HexColor("#6B7280")
SHADE = colors.HexColor("#F3F4F6")


def _styles() -> dict[str, ParagraphStyle]:
    base = getSampleStyleSheet()
    return {
        "title": ParagraphStyle(
            "Title", parent=base["Title"], fontSize=22, textColor=PRIMARY, spaceAfter=12
        ),
        "subtitle": ParagraphStyle(
            "Subtitle", parent=base["Normal"], fontSize=13, textColor=MUTED, spaceAfter=6
        ),
        "h1": ParagraphStyle(
            "H1", parent=base["Heading1"], fontSize=15, textColor=PRIMARY, spaceBefore=10, spaceAfter=6
        ),
        "h2": ParagraphStyle(
            "H2", parent=base["Heading2"], fontSize=12, textColor=PRIMARY, spaceBefore=8, spaceAfter=4
        ),
        "body": ParagraphStyle("Body", parent=base["Normal"], fontSize=10, leading=13, spaceAfter=4),
        "small": ParagraphStyle("Small", parent=base["Normal"], fontSize=8, textColor=MUTED),
        "cell": ParagraphStyle("Cell", parent=base["Normal"], fontSize=8.5, leading=10.5),
    }


def _p(text: Any, style: ParagraphStyle) -> Paragraph:
    return Paragraph(escape(str(text)).replace("\n", "<br/>"), style)


def _fmt_date(value: datetime | None, with_time: bool = False) -> str:
    if value is None:
        return "-"
    return value.strftime("%d %B %Y %H:%M" if with_time else "%d %B %Y")


def _as_text(value: Any) -> str:
    """Flatten a JSON section (string, list or mapping) into readable text."""
    if value is None or value == "" or value == [] or value == {}:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        return "\n".join(f"- {_as_text(item)}" for item in value if item not in (None, ""))
    if isinstance(value, dict):
        lines = []
        for key, item in value.items():
            text = _as_text(item)
            if text:
                label = str(key).replace("_", " ")
                label = label[:1].upper() + label[1:]
                lines.append(f"{label}: {text}" if "\n" not in text else f"{label}:\n{text}")
        return "\n".join(lines)
    return str(value)


def _kv_table(rows: list[tuple[str, Any]], styles: dict[str, ParagraphStyle]) -> Table:
    table = Table(
        [[_p(label, styles["cell"]), _p(value if value not in (None, "") else "-", styles["cell"])]
         for label, value in rows],
        colWidths=[50 * mm, 120 * mm],
    )
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (0, -1), SHADE),
                ("GRID", (0, 0), (-1, -1), 0.4, MUTED),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("TOPPADDING", (0, 0), (-1, -1), 4),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
            ]
        )
    )
    return table


def _grid(header: list[str], rows: list[list[Any]], widths: list[float], styles) -> Table:
    data = [[_p(h, styles["cell"]) for h in header]]
    data += [[_p(c if c not in (None, "") else "-", styles["cell"]) for c in row] for row in rows]
    table = Table(data, colWidths=widths, repeatRows=1)
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), SHADE),
                ("GRID", (0, 0), (-1, -1), 0.4, MUTED),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ]
        )
    )
    return table


def _render(story: list, title: str) -> bytes:
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=18 * mm,
        rightMargin=18 * mm,
        topMargin=18 * mm,
        bottomMargin=18 * mm,
        title=title,
        author=settings.org_name,
    )
    doc.build(story)
    return buffer.getvalue()


# ---------------------------------------------------------------------------
# Inspection report
# ---------------------------------------------------------------------------


def _defect_block(defect: Defect, styles) -> list:
    rows = [
        ("Location", defect.location),
        ("Classification", defect.classification.replace("_", " ").title()),
        ("Severity", defect.severity.title()),
        ("Observation", defect.observation),
        ("Analysis", defect.analysis),
        ("Opinion", defect.opinion),
        ("Code reference", defect.code_reference),
        ("COP reference", defect.cop_reference),
        ("Probable cause", defect.probable_cause),
        ("Recommendation", defect.recommendation),
        ("Priority", (defect.priority_level or "").replace("_", " ").title()),
        ("Estimated cost", defect.estimated_cost),
        ("Photos", ", ".join(f"#{p.sort_order}" for p in defect.photos) or None),
    ]
    return [
        KeepTogether(
            [
                _p(f"Defect {defect.defect_number}: {defect.title}", styles["h2"]),
                _kv_table(rows, styles),
            ]
        ),
        Spacer(1, 6),
    ]


def build_report_pdf(report: Report) -> bytes:
    """Render a report loaded with inspector, elements, defects, photos and compliance."""
    styles = _styles()
    inspector = report.inspector
    story: list = [
        Spacer(1, 40 * mm),
        _p("Roof Inspection Report", styles["title"]),
        _p(report.report_number, styles["subtitle"]),
        HRFlowable(width="100%", thickness=1.5, color=PRIMARY, spaceAfter=12),
        _kv_table(
            [
                ("Property", f"{report.property_address}, {report.property_city} "
                             f"{report.property_postcode}"),
                ("Region", report.property_region),
                ("Client", report.client_name),
                ("Inspector", inspector.name if inspector else "-"),
                ("Inspection date", _fmt_date(report.inspection_date)),
                ("Inspection type", report.inspection_type.replace("_", " ").title()),
                ("Status", report.status.replace("_", " ").title()),
            ],
            styles,
        ),
        Spacer(1, 20 * mm),
        _p(f"Prepared for {settings.org_name}", styles["small"]),
        PageBreak(),
    ]

    story.append(_p("Inspection Details", styles["h1"]))
    story.append(
        _kv_table(
            [
                ("Property type", report.property_type.replace("_", " ").title()),
                ("Building age", f"{report.building_age} years" if report.building_age is not None else None),
                ("Weather", report.weather_conditions),
                ("Temperature", f"{report.temperature} °C" if report.temperature is not None else None),
                ("Access method", report.access_method),
                ("Limitations", report.limitations),
                ("Consent number", report.consent_number),
                ("Engaging party", report.engaging_party),
            ],
            styles,
        )
    )
    for heading, value in (
        ("Scope of Works", report.scope_of_works),
        ("Methodology", report.methodology),
    ):
        text = _as_text(value)
        if text:
            story += [_p(heading, styles["h2"]), _p(text, styles["body"])]

    story.append(_p("Executive Summary", styles["h1"]))
    story.append(_p(_as_text(report.executive_summary) or "No executive summary provided.", styles["body"]))

    story.append(_p("Roof Elements", styles["h1"]))
    if report.roof_elements:
        story.append(
            _grid(
                ["Element", "Location", "Material", "Pitch", "Condition", "COP", "E2"],
                [
                    [
                        e.element_type.replace("_", " ").title(),
                        e.location,
                        e.material or e.cladding_type,
                        f"{e.pitch:g}°" if e.pitch is not None else None,
                        (e.condition_rating or "").replace("_", " ").title(),
                        {True: "Yes", False: "No"}.get(e.meets_cop),
                        {True: "Yes", False: "No"}.get(e.meets_e2),
                    ]
                    for e in report.roof_elements
                ],
                [30 * mm, 38 * mm, 30 * mm, 15 * mm, 25 * mm, 16 * mm, 16 * mm],
                styles,
            )
        )
    else:
        story.append(_p("No roof elements recorded.", styles["body"]))

    story.append(_p("Defects", styles["h1"]))
    if report.defects:
        for defect in report.defects:
            story += _defect_block(defect, styles)
    else:
        story.append(_p("No defects were identified.", styles["body"]))

    for heading, value in (
        ("Findings", report.findings),
        ("Conclusions", report.conclusions),
        ("Recommendations", report.recommendations),
    ):
        text = _as_text(value)
        if text:
            story += [_p(heading, styles["h1"]), _p(text, styles["body"])]

    story.append(_p("Compliance Summary", styles["h1"]))
    story.append(_p(f"Overall result: {report.compliance_status.replace('_', ' ')}", styles["body"]))
    assessment = report.compliance_assessment
    if assessment is not None:
        rows = []
        for key, items in (assessment.checklist_results or {}).items():
            values = [str(v).lower() for v in (items or {}).values()]
            rows.append(
                [key, len(values)] + [values.count(s) for s in ("pass", "fail", "partial", "na")]
            )
        if rows:
            story.append(
                _grid(
                    ["Checklist", "Items", "Pass", "Fail", "Partial", "N/A"],
                    rows,
                    [50 * mm, 24 * mm, 24 * mm, 24 * mm, 24 * mm, 24 * mm],
                    styles,
                )
            )
        if assessment.non_compliance_summary:
            story += [_p("Non-compliance summary", styles["h2"]),
                      _p(assessment.non_compliance_summary, styles["body"])]
    else:
        story.append(_p("No compliance assessment recorded.", styles["body"]))

    story.append(PageBreak())
    story.append(_p("Photo Appendix", styles["h1"]))
    if report.photos:
        story.append(
            _grid(
                ["#", "Type", "Caption", "Captured", "SHA-256"],
                [
                    [
                        p.sort_order,
                        p.photo_type.replace("_", " ").title(),
                        p.caption,
                        _fmt_date(p.captured_at, with_time=True),
                        p.original_hash[:16],
                    ]
                    for p in report.photos
                ],
                [10 * mm, 28 * mm, 62 * mm, 36 * mm, 34 * mm],
                styles,
            )
        )
    else:
        story.append(_p("No photos attached.", styles["body"]))

    story.append(_p("Inspector Declaration", styles["h1"]))
    story.append(
        _p(
            "I confirm that I carried out this inspection, that the observations are my own, and "
            "that the opinions expressed are within my area of expertise. I have read and agree "
            "to comply with the Code of Conduct for Expert Witnesses.",
            styles["body"],
        )
    )
    story.append(
        _kv_table(
            [
                ("Inspector", inspector.name if inspector else "-"),
                ("LBP number", inspector.lbp_number if inspector else None),
                ("Qualifications", inspector.qualifications if inspector else None),
                ("Declaration", "Signed" if report.declaration_signed else "Not signed"),
                ("Signed at", _fmt_date(report.signed_at, with_time=True) if report.signed_at else None),
                ("Conflict of interest", report.conflict_disclosure if report.has_conflict else "None declared"),
            ],
            styles,
        )
    )
    return _render(story, report.report_number)


class ReportPdfService:
    def __init__(self, session: AsyncSession):
        self._reports = ReportService(session)
        self._audit = AuditLogRepository(session)

    async def generate(self, report_id: str, user: User) -> tuple[str, bytes]:
        report = await self._reports.get_full_report(report_id, user)
        pdf = await asyncio.to_thread(build_report_pdf, report)
        await self._audit.record(
            report_id, user.id, AuditAction.PDF_GENERATED.value, {"size_bytes": len(pdf)}
        )
        logger.info("PDF generated for %s (%d bytes)", report.report_number, len(pdf))
        return f"{report.report_number}.pdf", pdf


# ---------------------------------------------------------------------------
# LBP complaint
# ---------------------------------------------------------------------------


def build_complaint_pdf(complaint: LBPComplaint, report: Report, defects: list[Defect]) -> bytes:
    styles = _styles()
    story: list = [
        _p("Complaint about a Licensed Building Practitioner", styles["title"]),
        _p(f"{complaint.complaint_number} | To: {settings.bpb_name}", styles["subtitle"]),
        HRFlowable(width="100%", thickness=1.5, color=PRIMARY, spaceAfter=8),
        _p("1. Complainant", styles["h1"]),
        _kv_table(
            [
                ("Name", complaint.complainant_name),
                ("Address", complaint.complainant_address),
                ("Phone", complaint.complainant_phone),
                ("Email", complaint.complainant_email),
                ("Relationship to the work", complaint.complainant_relation),
            ],
            styles,
        ),
        _p("2. Licensed Building Practitioner", styles["h1"]),
        _kv_table(
            [
                ("Name", complaint.subject_lbp_name),
                ("LBP number", complaint.subject_lbp_number),
                ("Company", complaint.subject_lbp_company),
                ("Address", complaint.subject_lbp_address),
                ("Phone", complaint.subject_lbp_phone),
                ("Email", complaint.subject_lbp_email),
                ("Licence classes", ", ".join(complaint.subject_lbp_license_types or [])),
                ("Licence sighted", {True: "Yes", False: "No"}.get(complaint.subject_sighted_license)),
                ("Work type", (complaint.subject_work_type or "").replace("_", " ").title()),
            ],
            styles,
        ),
        _p("3. Building Work", styles["h1"]),
        _kv_table(
            [
                ("Address", ", ".join(
                    part for part in (complaint.work_address, complaint.work_suburb, complaint.work_city) if part
                )),
                ("Work period", f"{_fmt_date(complaint.work_start_date)} to {_fmt_date(complaint.work_end_date)}"),
                ("Building consent", complaint.building_consent_number),
                ("Consent date", _fmt_date(complaint.building_consent_date)
                 if complaint.building_consent_date else None),
                ("Inspection report", report.report_number),
                ("Description", complaint.work_description),
            ],
            styles,
        ),
        _p("4. Grounds for Discipline (Building Act 2004, s317)", styles["h1"]),
    ]
    for code in complaint.grounds_for_discipline or []:
        ground = GROUNDS_FOR_DISCIPLINE.get(code)
        if ground:
            story.append(_p(f"s{ground['section']}: {ground['label']}", styles["body"]))

    story += [
        _p("5. Conduct Complained Of", styles["h1"]),
        _p(complaint.conduct_description or "-", styles["body"]),
        _p("6. Evidence Summary", styles["h1"]),
        _p(complaint.evidence_summary or "-", styles["body"]),
    ]
    if complaint.steps_to_resolve:
        story += [_p("Steps taken to resolve", styles["h2"]), _p(complaint.steps_to_resolve, styles["body"])]

    attached = set(complaint.attached_defect_ids or [])
    chosen = [d for d in defects if d.id in attached]
    story.append(_p("7. Documented Defects", styles["h1"]))
    if chosen:
        story.append(
            _grid(
                ["#", "Defect", "Location", "Severity", "Observation"],
                [[d.defect_number, d.title, d.location, d.severity.title(), d.observation] for d in chosen],
                [10 * mm, 40 * mm, 35 * mm, 20 * mm, 65 * mm],
                styles,
            )
        )
    else:
        story.append(_p("No defects attached.", styles["body"]))
    story.append(
        _p(f"{len(complaint.attached_photo_ids or [])} photograph(s) are supplied as supporting evidence.",
           styles["small"])
    )

    story.append(_p("8. Witnesses", styles["h1"]))
    if complaint.witnesses:
        story.append(
            _grid(
                ["Name", "Role", "Contact", "Details"],
                [
                    [w.get("name"), w.get("role"),
                     " / ".join(x for x in (w.get("phone"), w.get("email")) if x), w.get("details")]
                    for w in complaint.witnesses
                ],
                [35 * mm, 30 * mm, 40 * mm, 65 * mm],
                styles,
            )
        )
    else:
        story.append(_p("No witnesses listed.", styles["body"]))

    story += [
        _p("9. Declaration", styles["h1"]),
        _p(
            "I declare that the information in this complaint is true and correct to the best of "
            "my knowledge, and I understand it may be shared with the practitioner concerned.",
            styles["body"],
        ),
        _kv_table(
            [
                ("Prepared by", complaint.prepared_by_name),
                ("Reviewed by", complaint.reviewed_by_name),
                ("Signed by", complaint.signed_by_name),
                ("Signed at", _fmt_date(complaint.signed_at, with_time=True) if complaint.signed_at else None),
                ("Declaration", "Accepted" if complaint.declaration_accepted else "Not accepted"),
            ],
            styles,
        ),
    ]
    return _render(story, complaint.complaint_number)
