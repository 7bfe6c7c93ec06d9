from __future__ import annotations

from datetime import datetime, timezone

from conftest import headers, mk_photos, mk_report, mk_user

COMPLAINT_DETAILS = {
    "subjectLbpNumber": "BP654321",
    "subjectLbpName": "Rex Roofer",
    "subjectLbpLicenseTypes": ["Roofing"],
    "workDescription": "Re-roof in long-run corrugate with new flashings",
    "conductDescription": "Flashings were installed without turn-ups and leak at every junction",
    "evidenceSummary": "Thirty photographs and moisture readings taken on site",
    "groundsForDiscipline": ["NEGLIGENT_OR_INCOMPETENT_WORK"],
}


def _setup(db):
    inspector = mk_user(db, "ana@roofs.nz")
    admin = mk_user(db, "admin@roofs.nz", role="ADMIN")
    boss = mk_user(db, "boss@roofs.nz", role="SUPER_ADMIN")
    report = mk_report(db, inspector, inspection_type="DISPUTE_RESOLUTION")
    mk_photos(db, report, 2)
    return admin, boss, report


def _create(client, admin, report):
    return client.post("/api/v1/complaints", json={"reportId": report.id}, headers=headers(admin))


def test_complaints_only_come_from_dispute_reports(client, db):
    admin, _, _ = _setup(db)
    other = mk_report(db, admin, report_number="RANZ-2026-00002")

    r = _create(client, admin, other)
    assert r.status_code == 400
    assert r.json()["error"]["message"] == "Can only create complaints from dispute resolution reports"


def test_create_prefills_from_report_and_numbers_per_year(client, db):
    admin, _, report = _setup(db)
    year = datetime.now(timezone.utc).year

    r = _create(client, admin, report)
    assert r.status_code == 201
    complaint = r.json()["data"]
    assert complaint["complaintNumber"] == f"RANZ-LBP-{year}-00001"
    assert complaint["status"] == "DRAFT"
    assert complaint["workAddress"] == report.property_address
    assert len(complaint["attachedPhotoIds"]) == 2
    assert complaint["preparedBy"] == admin.id

    # One active complaint per report
    assert _create(client, admin, report).status_code == 409

    client.post(
        f"/api/v1/complaints/{complaint['id']}/withdraw", json={"reason": "Settled"}, headers=headers(admin)
    )
    r = _create(client, admin, report)
    assert r.status_code == 201
    assert r.json()["data"]["complaintNumber"] == f"RANZ-LBP-{year}-00002"


def test_inspectors_cannot_manage_complaints(client, db):
    _, _, report = _setup(db)
    inspector_headers = {"X-User-Id": report.inspector_id}
    r = client.post("/api/v1/complaints", json={"reportId": report.id}, headers=inspector_headers)
    assert r.status_code == 403


def test_complaint_state_machine(client, db, storage):
    admin, boss, report = _setup(db)
    complaint = _create(client, admin, report).json()["data"]
    url = f"/api/v1/complaints/{complaint['id']}"

    r = client.post(f"{url}/submit-for-review", headers=headers(admin))
    assert r.status_code == 422
    message = r.json()["error"]["message"]
    assert message.startswith("Missing required fields for submission: ")
    assert "subject_lbp_number" in message
    assert "conduct_description" in r.json()["error"]["details"]["missing_fields"]

    assert client.put(url, json=COMPLAINT_DETAILS, headers=headers(admin)).status_code == 200
    r = client.post(f"{url}/submit-for-review", headers=headers(admin))
    assert r.json()["data"]["status"] == "PENDING_REVIEW"

    # Only a super admin reviews
    r = client.post(f"{url}/review", json={"approved": True}, headers=headers(admin))
    assert r.status_code == 403
    r = client.post(f"{url}/review", json={"approved": True, "reviewNotes": "OK"}, headers=headers(boss))
    assert r.json()["data"]["status"] == "READY_TO_SUBMIT"

    r = client.put(url, json={"evidenceSummary": "Changed"}, headers=headers(admin))
    assert r.status_code == 400
    assert r.json()["error"]["message"] == "Cannot edit complaint after approval"

    r = client.post(f"{url}/submit", headers=headers(boss))
    assert r.status_code == 400
    assert r.json()["error"]["message"] == "Complaint must be signed before submission"

    r = client.post(
        f"{url}/sign", json={"signatureData": "data:image/png;base64,AAAA", "declarationAccepted": False},
        headers=headers(admin),
    )
    assert r.status_code == 422
    r = client.post(
        f"{url}/sign", json={"signatureData": "data:image/png;base64,AAAA", "declarationAccepted": True},
        headers=headers(admin),
    )
    assert r.json()["data"]["signedAt"] is not None

    r = client.post(f"{url}/submit", headers=headers(boss))
    assert r.status_code == 200
    submitted = r.json()["data"]
    assert submitted["status"] == "SUBMITTED"
    assert submitted["submissionMethod"] == "EMAIL"
    assert submitted["submissionConfirmation"].startswith("BPB-")
    assert len(submitted["complaintPdfHash"]) == 64
    stored = storage._path(submitted["complaintPdfUrl"].removeprefix("/media/")).read_bytes()
    assert stored.startswith(b"%PDF")

    r = client.put(
        f"{url}/bpb-response",
        json={"bpbReferenceNumber": "C-2026-118", "bpbAcknowledgedAt": "2026-06-01T00:00:00Z"},
        headers=headers(admin),
    )
    assert r.json()["data"]["status"] == "ACKNOWLEDGED"

    r = client.put(
        f"{url}/bpb-response", json={"bpbDecision": "Upheld", "bpbOutcome": "Censure"}, headers=headers(admin)
    )
    assert r.json()["data"]["status"] == "DECIDED"

    r = client.post(f"{url}/withdraw", json={"reason": "Too late"}, headers=headers(admin))
    assert r.status_code == 400

    stats = client.get("/api/v1/complaints/stats", headers=headers(admin)).json()["data"]
    assert stats["total"] == 1
    assert stats["submitted"] == 0


def test_rejected_review_returns_to_draft(client, db):
    admin, boss, report = _setup(db)
    complaint = _create(client, admin, report).json()["data"]
    url = f"/api/v1/complaints/{complaint['id']}"
    client.put(url, json=COMPLAINT_DETAILS, headers=headers(admin))
    client.post(f"{url}/submit-for-review", headers=headers(admin))

    r = client.post(f"{url}/review", json={"approved": False, "reviewNotes": "Needs more"}, headers=headers(boss))
    assert r.json()["data"]["status"] == "DRAFT"
    assert client.put(url, json={"evidenceSummary": "More photos"}, headers=headers(admin)).status_code == 200


def test_attached_photos_must_belong_to_report(client, db):
    admin, _, report = _setup(db)
    complaint = _create(client, admin, report).json()["data"]

    r = client.put(
        f"/api/v1/complaints/{complaint['id']}",
        json={"attachedPhotoIds": ["not-a-photo"]},
        headers=headers(admin),
    )
    assert r.status_code == 422
