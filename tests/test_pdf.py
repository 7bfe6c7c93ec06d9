from __future__ import annotations

import asyncio
import io

import pdfplumber

from conftest import headers, mk_assessment, mk_elements, mk_photos, mk_report, mk_user
from roofreport.domain.defect import Defect


def _text(pdf_bytes: bytes) -> str:
    with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
        return "\n".join(page.extract_text() or "" for page in pdf.pages)


def test_report_pdf_contains_report_details(client, db):
    ana = mk_user(db, "ana@roofs.nz", name="Ana Inspector", lbp_number="BP123456")
    report = mk_report(
        db,
        ana,
        report_number="RANZ-2026-00123",
        findings={"text": "Corrosion at lap joints & fixings"},
    )
    mk_elements(db, report, 2)
    mk_photos(db, report, 1)
    mk_assessment(db, report, {"e2_as1": {"e2_3_1": "pass", "e2_3_2": "fail"}})
    db.add(
        Defect(
            report_id=report.id,
            defect_number=1,
            title="Missing stop-end",
            description="Apron flashing has no stop-end",
            location="South wall junction",
            classification="MAJOR_DEFECT",
            severity="HIGH",
            observation="Water tracking behind cladding",
        )
    )
    db.commit()

    r = client.get(f"/api/v1/reports/{report.id}/pdf", headers=headers(ana))
    assert r.status_code == 200
    assert r.headers["content-type"] == "application/pdf"
    assert 'filename="RANZ-2026-00123.pdf"' in r.headers["content-disposition"]
    assert r.content.startswith(b"%PDF")

    text = _text(r.content)
    assert "RANZ-2026-00123" in text
    assert "12 Kauri Street" in text
    assert "Missing stop-end" in text
    assert "Ana Inspector" in text

    log = client.get(f"/api/v1/reports/{report.id}/audit-log", headers=headers(ana)).json()["data"]
    assert log[0]["action"] == "PDF_GENERATED"


def test_complaint_pdf_lists_grounds(client, db):
    ana = mk_user(db, "ana@roofs.nz")
    admin = mk_user(db, "admin@roofs.nz", role="ADMIN")
    report = mk_report(db, ana, inspection_type="DISPUTE_RESOLUTION")
    mk_photos(db, report, 1)

    complaint = client.post(
        "/api/v1/complaints", json={"reportId": report.id}, headers=headers(admin)
    ).json()["data"]
    client.put(
        f"/api/v1/complaints/{complaint['id']}",
        json={"subjectLbpName": "Rex Roofer", "groundsForDiscipline": ["NEGLIGENT_OR_INCOMPETENT_WORK"]},
        headers=headers(admin),
    )

    r = client.get(f"/api/v1/complaints/{complaint['id']}/pdf", headers=headers(admin))
    assert r.status_code == 200
    text = _text(r.content)
    assert complaint["complaintNumber"] in text
    assert "Rex Roofer" in text
    assert "317(1)(b)" in text


def test_pdf_rendering_runs_in_a_worker_thread(client, db, monkeypatch):
    ana = mk_user(db, "ana@roofs.nz")
    admin = mk_user(db, "admin@roofs.nz", role="ADMIN")
    report = mk_report(db, ana, inspection_type="DISPUTE_RESOLUTION")

    offloaded = []
    to_thread = asyncio.to_thread

    async def recording(func, *args, **kwargs):
        offloaded.append(func.__name__)
        return await to_thread(func, *args, **kwargs)

    monkeypatch.setattr(asyncio, "to_thread", recording)

    assert client.get(f"/api/v1/reports/{report.id}/pdf", headers=headers(ana)).status_code == 200
    assert "build_report_pdf" in offloaded

    complaint = client.post(
        "/api/v1/complaints", json={"reportId": report.id}, headers=headers(admin)
    ).json()["data"]
    r = client.get(f"/api/v1/complaints/{complaint['id']}/pdf", headers=headers(admin))
    assert r.status_code == 200
    assert "build_complaint_pdf" in offloaded
