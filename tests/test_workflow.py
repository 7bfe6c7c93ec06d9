from __future__ import annotations

import base64

from conftest import headers, mk_assessment, mk_elements, mk_photos, mk_report, mk_user, png_bytes


def _complete_report(db, inspector, **fields):
    report = mk_report(db, inspector, declaration_signed=True, weather_conditions="Fine", **fields)
    mk_elements(db, report, 3)
    mk_photos(db, report, 10)
    mk_assessment(db, report, {"e2_as1": {"e2_3_1": "pass", "e2_3_2": "pass"}})
    return report


def test_submit_with_missing_fields_keeps_status(client, db):
    ana = mk_user(db, "ana@roofs.nz")
    report = mk_report(db, ana)
    mk_elements(db, report, 1)

    r = client.post(f"/api/v1/reports/{report.id}/submit", headers=headers(ana))
    assert r.status_code == 200
    body = r.json()["data"]
    assert body["success"] is False
    assert body["newStatus"] is None
    validation = body["validation"]
    assert validation["isValid"] is False
    assert "Roof elements (need 2 more)" in validation["missingRequiredItems"]
    assert "Compliance assessment" in validation["missingRequiredItems"]
    assert "Signed declaration" in validation["missingRequiredItems"]

    detail = client.get(f"/api/v1/reports/{report.id}", headers=headers(ana)).json()["data"]
    assert detail["status"] == "DRAFT"
    assert detail["submittedAt"] is None


def test_dry_run_check_reports_current_status(client, db):
    ana = mk_user(db, "ana@roofs.nz")
    report = _complete_report(db, ana, status="IN_PROGRESS")

    r = client.get(f"/api/v1/reports/{report.id}/submit", headers=headers(ana))
    assert r.status_code == 200
    assert r.json()["data"]["currentStatus"] == "IN_PROGRESS"
    assert r.json()["data"]["validation"]["isValid"] is True


def test_complete_report_submits_for_review(client, db):
    ana = mk_user(db, "ana@roofs.nz")
    report = _complete_report(db, ana)

    r = client.post(f"/api/v1/reports/{report.id}/submit", headers=headers(ana))
    body = r.json()["data"]
    assert body["success"] is True
    assert body["newStatus"] == "PENDING_REVIEW"

    detail = client.get(f"/api/v1/reports/{report.id}", headers=headers(ana)).json()["data"]
    assert detail["status"] == "PENDING_REVIEW"
    assert detail["submittedAt"] is not None

    # No longer a working status
    r = client.post(f"/api/v1/reports/{report.id}/submit", headers=headers(ana))
    assert r.status_code == 400


def test_sign_declaration_stores_signature(client, db, storage):
    ana = mk_user(db, "ana@roofs.nz")
    report = mk_report(db, ana)
    data_url = "data:image/png;base64," + base64.b64encode(png_bytes()).decode()

    r = client.post(
        f"/api/v1/reports/{report.id}/signature",
        json={"signatureDataUrl": data_url, "declarationAccepted": True},
        headers=headers(ana),
    )
    assert r.status_code == 200
    body = r.json()["data"]
    assert body["declarationSigned"] is True
    assert body["signatureUrl"] == f"/media/reports/{report.id}/signatures/signature.png"
    assert body["signedAt"] is not None


def test_sign_rejects_non_png(client, db):
    ana = mk_user(db, "ana@roofs.nz")
    report = mk_report(db, ana)

    r = client.post(
        f"/api/v1/reports/{report.id}/signature",
        json={
            "signatureDataUrl": "data:image/png;base64," + base64.b64encode(b"not a png").decode(),
            "declarationAccepted": True,
        },
        headers=headers(ana),
    )
    assert r.status_code == 422
    assert r.json()["error"]["message"] == "Signature data is not a PNG image"


def test_review_cycle(client, db):
    ana = mk_user(db, "ana@roofs.nz")
    rev = mk_user(db, "rev@roofs.nz", role="REVIEWER")
    report = _complete_report(db, ana, status="PENDING_REVIEW")

    # Inspectors cannot review
    assert client.post(f"/api/v1/reports/{report.id}/review", headers=headers(ana)).status_code == 403

    r = client.post(f"/api/v1/reports/{report.id}/review", headers=headers(rev))
    assert r.status_code == 200
    assert r.json()["data"]["report"]["status"] == "UNDER_REVIEW"
    assert r.json()["data"]["report"]["reviewerId"] == rev.id

    r = client.post(
        f"/api/v1/reports/{report.id}/reject",
        json={"reason": "Photos of the valley flashing are missing", "revisionItems": ["valley"]},
        headers=headers(rev),
    )
    assert r.json()["data"]["report"]["status"] == "REVISION_REQUIRED"

    status = client.get(f"/api/v1/reports/{report.id}/review", headers=headers(ana)).json()["data"]
    assert status["latestFeedback"]["reason"] == "Photos of the valley flashing are missing"
    assert status["permissions"]["canSubmit"] is True
    assert status["permissions"]["canApprove"] is False

    assert client.post(f"/api/v1/reports/{report.id}/submit", headers=headers(ana)).json()["data"][
        "success"
    ] is True

    r = client.post(
        f"/api/v1/reports/{report.id}/approve",
        json={"comments": "Good", "finalise": True},
        headers=headers(rev),
    )
    assert r.status_code == 200
    assert r.json()["data"]["report"]["status"] == "FINALISED"
    assert r.json()["data"]["message"] == "Report approved and finalised"

    r = client.put(f"/api/v1/reports/{report.id}", json={"clientName": "Late"}, headers=headers(ana))
    assert r.status_code == 400


def test_approve_requires_reviewable_status(client, db):
    ana = mk_user(db, "ana@roofs.nz")
    rev = mk_user(db, "rev@roofs.nz", role="REVIEWER")
    report = mk_report(db, ana)

    r = client.post(f"/api/v1/reports/{report.id}/approve", json={}, headers=headers(rev))
    # A reviewer cannot even see someone else's draft
    assert r.status_code == 403


def test_revision_history_groups_entries_by_submission(client, db):
    ana = mk_user(db, "ana@roofs.nz")
    rev = mk_user(db, "rev@roofs.nz", role="REVIEWER", name="Rangi Reviewer")
    report = _complete_report(db, ana)

    client.post(f"/api/v1/reports/{report.id}/submit", headers=headers(ana))
    client.post(f"/api/v1/reports/{report.id}/review", headers=headers(rev))
    client.post(
        f"/api/v1/reports/{report.id}/reject",
        json={"reason": "Gutter outlets are not photographed", "revisionItems": ["gutters"]},
        headers=headers(rev),
    )
    r = client.put(
        f"/api/v1/reports/{report.id}", json={"weatherConditions": "Drizzle"}, headers=headers(ana)
    )
    assert r.status_code == 200

    r = client.get(f"/api/v1/reports/{report.id}/revisions", headers=headers(ana))
    assert r.status_code == 200
    body = r.json()["data"]
    assert body["reportNumber"] == report.report_number
    assert body["status"] == "REVISION_REQUIRED"
    assert body["totalRevisions"] == 2
    assert body["currentRound"] == 1

    latest, initial = body["revisions"]
    assert initial["label"] == "Initial Draft"
    assert initial["isActive"] is False
    assert initial["endedAt"] is not None
    assert latest["label"] == "Revision 1"
    assert latest["isActive"] is True
    assert latest["logs"][0]["action"] == "SUBMITTED"
    assert [c["field"] for c in latest["fieldChanges"]] == ["weather_conditions"]
    assert latest["summary"]["feedbackReceived"] == 1
    [feedback] = latest["feedback"]
    assert feedback["reviewer"] == "Rangi Reviewer"
    assert feedback["decision"] == "REVISION_REQUIRED"
    assert feedback["revisionItems"] == ["gutters"]


def test_revision_history_of_unsubmitted_report(client, db):
    ana = mk_user(db, "ana@roofs.nz")
    ben = mk_user(db, "ben@roofs.nz")
    report = mk_report(db, ana)

    body = client.get(f"/api/v1/reports/{report.id}/revisions", headers=headers(ana)).json()["data"]
    assert body["totalRevisions"] == 1
    [initial] = body["revisions"]
    assert initial["isActive"] is True
    assert initial["summary"]["totalChanges"] == 0

    assert client.get(f"/api/v1/reports/{report.id}/revisions", headers=headers(ben)).status_code == 403
