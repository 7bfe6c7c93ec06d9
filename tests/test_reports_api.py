from __future__ import annotations

from datetime import datetime, timezone

from conftest import headers, mk_elements, mk_photos, mk_report, mk_user
from roofreport.domain.complaint import LBPComplaint


def _create_payload(**overrides) -> dict:
    payload = {
        "propertyAddress": "7 Rimu Road",
        "propertyCity": "Hamilton",
        "propertyRegion": "Waikato",
        "propertyPostcode": "3204",
        "propertyType": "RESIDENTIAL_1",
        "inspectionDate": "2026-04-01T10:00:00Z",
        "inspectionType": "FULL_INSPECTION",
        "clientName": "Jo Client",
        "clientEmail": "",
    }
    payload.update(overrides)
    return payload


def test_identity_header_is_required(client, db):
    r = client.get("/api/v1/reports")
    assert r.status_code == 401
    assert r.json()["error"]["code"] == "UNAUTHORIZED"

    r = client.get("/api/v1/reports", headers={"X-User-Id": "nobody"})
    assert r.status_code == 404
    assert r.json()["error"]["message"] == "User not found"


def test_create_report_assigns_number_and_audits(client, db):
    inspector = mk_user(db, "ana@roofs.nz")
    year = datetime.now(timezone.utc).year
    mk_report(db, inspector, report_number=f"RANZ-{year}-00041")
    mk_report(db, inspector, report_number=f"RANZ-{year - 1}-00099")

    r = client.post("/api/v1/reports", json=_create_payload(), headers=headers(inspector))
    assert r.status_code == 201
    body = r.json()["data"]
    assert body["reportNumber"] == f"RANZ-{year}-00042"
    assert body["status"] == "DRAFT"
    assert body["complianceStatus"] == "NOT_ASSESSED"
    assert body["inspectorId"] == inspector.id

    r2 = client.post("/api/v1/reports", json=_create_payload(), headers=headers(inspector))
    assert r2.json()["data"]["reportNumber"] == f"RANZ-{year}-00043"

    log = client.get(f"/api/v1/reports/{body['id']}/audit-log", headers=headers(inspector))
    assert [e["action"] for e in log.json()["data"]] == ["CREATED"]


def test_list_is_scoped_to_inspector(client, db):
    ana = mk_user(db, "ana@roofs.nz")
    ben = mk_user(db, "ben@roofs.nz")
    admin = mk_user(db, "admin@roofs.nz", role="ADMIN")
    mk_report(db, ana, report_number="RANZ-2026-00001")
    mk_report(db, ben, report_number="RANZ-2026-00002", client_name="Kowhai Trust")

    r = client.get("/api/v1/reports", headers=headers(ana))
    assert r.status_code == 200
    assert [item["reportNumber"] for item in r.json()["data"]] == ["RANZ-2026-00001"]
    assert r.json()["meta"] == {"total": 1, "page": 1, "limit": 20, "pages": 1}

    r = client.get("/api/v1/reports", params={"search": "kowhai"}, headers=headers(admin))
    assert [item["reportNumber"] for item in r.json()["data"]] == ["RANZ-2026-00002"]


def test_other_inspector_cannot_read_or_edit(client, db):
    ana = mk_user(db, "ana@roofs.nz")
    ben = mk_user(db, "ben@roofs.nz")
    report = mk_report(db, ana)

    assert client.get(f"/api/v1/reports/{report.id}", headers=headers(ben)).status_code == 403
    r = client.put(f"/api/v1/reports/{report.id}", json={"clientName": "X"}, headers=headers(ben))
    assert r.status_code == 403


def test_update_records_status_change(client, db):
    ana = mk_user(db, "ana@roofs.nz")
    report = mk_report(db, ana)

    r = client.put(
        f"/api/v1/reports/{report.id}",
        json={"status": "IN_PROGRESS", "weatherConditions": "Overcast"},
        headers=headers(ana),
    )
    assert r.status_code == 200
    assert r.json()["data"]["status"] == "IN_PROGRESS"

    r = client.put(f"/api/v1/reports/{report.id}", json={"status": "APPROVED"}, headers=headers(ana))
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "BUSINESS_RULE_VIOLATION"

    log = client.get(f"/api/v1/reports/{report.id}/audit-log", headers=headers(ana)).json()["data"]
    changes = [e["details"] for e in log if e["action"] == "STATUS_CHANGED"]
    assert changes == [{"from": "DRAFT", "to": "IN_PROGRESS"}]


def test_finalised_report_rejects_edits_and_deletes(client, db):
    ana = mk_user(db, "ana@roofs.nz")
    report = mk_report(db, ana, status="FINALISED")

    r = client.put(f"/api/v1/reports/{report.id}", json={"clientName": "New"}, headers=headers(ana))
    assert r.status_code == 400
    assert r.json()["error"]["message"] == "Cannot modify a finalised report"

    assert client.delete(f"/api/v1/reports/{report.id}", headers=headers(ana)).status_code == 400

    r = client.post(
        f"/api/v1/reports/{report.id}/elements",
        json={"elementType": "RIDGE", "location": "Main ridge"},
        headers=headers(ana),
    )
    assert r.status_code == 400


def test_delete_removes_report_and_children(client, db):
    ana = mk_user(db, "ana@roofs.nz")
    report = mk_report(db, ana)
    mk_elements(db, report, 2)

    assert client.delete(f"/api/v1/reports/{report.id}", headers=headers(ana)).status_code == 204
    assert client.get(f"/api/v1/reports/{report.id}", headers=headers(ana)).status_code == 404


def test_duplicate_copies_elements_into_new_draft(client, db):
    ana = mk_user(db, "ana@roofs.nz")
    report = mk_report(db, ana, status="APPROVED")
    mk_elements(db, report, 3)

    r = client.post(f"/api/v1/reports/{report.id}/duplicate", headers=headers(ana))
    assert r.status_code == 201
    copy = r.json()["data"]
    assert copy["status"] == "DRAFT"
    assert copy["reportNumber"] != report.report_number
    assert copy["propertyAddress"] == report.property_address

    elements = client.get(f"/api/v1/reports/{copy['id']}/elements", headers=headers(ana))
    assert len(elements.json()["data"]) == 3


def test_compliance_upsert_updates_report_status(client, db):
    ana = mk_user(db, "ana@roofs.nz")
    report = mk_report(db, ana)

    r = client.put(
        f"/api/v1/reports/{report.id}/compliance",
        json={"checklistResults": {"e2_as1": {"e2_3_1": "pass", "e2_3_2": "partial"}}},
        headers=headers(ana),
    )
    assert r.status_code == 200
    assert r.json()["data"]["complianceStatus"] == "PARTIAL"

    detail = client.get(f"/api/v1/reports/{report.id}", headers=headers(ana)).json()["data"]
    assert detail["complianceStatus"] == "PARTIAL"
    assert detail["complianceAssessment"]["checklistResults"]["e2_as1"]["e2_3_2"] == "partial"


def test_dashboard_stats(client, db):
    ana = mk_user(db, "ana@roofs.nz")
    mk_report(db, ana, report_number="RANZ-2026-00001")
    mk_report(db, ana, report_number="RANZ-2026-00002", status="PENDING_REVIEW")
    mk_report(db, ana, report_number="RANZ-2026-00003", status="FINALISED")

    r = client.get("/api/v1/reports/stats", headers=headers(ana))
    assert r.json()["data"] == {
        "total": 3,
        "draft": 1,
        "inProgress": 0,
        "pendingReview": 1,
        "completed": 1,
    }


def test_delete_is_refused_while_complaints_reference_the_report(client, db):
    ana = mk_user(db, "ana@roofs.nz")
    admin = mk_user(db, "admin@roofs.nz", role="ADMIN")
    report = mk_report(db, ana, inspection_type="DISPUTE_RESOLUTION")

    r = client.post("/api/v1/complaints", json={"reportId": report.id}, headers=headers(admin))
    assert r.status_code == 201
    complaint_id = r.json()["data"]["id"]

    r = client.delete(f"/api/v1/reports/{report.id}", headers=headers(ana))
    assert r.status_code == 409
    assert r.json()["error"]["code"] == "CONFLICT"

    db.expire_all()
    assert db.get(LBPComplaint, complaint_id) is not None
    assert client.get(f"/api/v1/reports/{report.id}", headers=headers(ana)).status_code == 200


def test_status_cannot_leave_review_workflow_through_update(client, db):
    ana = mk_user(db, "ana@roofs.nz")
    pending = mk_report(db, ana, report_number="RANZ-2026-00001", status="PENDING_REVIEW")
    approved = mk_report(db, ana, report_number="RANZ-2026-00002", status="APPROVED")

    for report in (pending, approved):
        r = client.put(f"/api/v1/reports/{report.id}", json={"status": "DRAFT"}, headers=headers(ana))
        assert r.status_code == 400
        assert r.json()["error"]["code"] == "BUSINESS_RULE_VIOLATION"
        detail = client.get(f"/api/v1/reports/{report.id}", headers=headers(ana)).json()["data"]
        assert detail["status"] == report.status

    # Other fields stay editable and a repeated status is not a transition
    r = client.put(
        f"/api/v1/reports/{approved.id}",
        json={"clientName": "Totara Trust"},
        headers=headers(ana),
    )
    assert r.status_code == 200

    revision = mk_report(db, ana, report_number="RANZ-2026-00003", status="REVISION_REQUIRED")
    r = client.put(f"/api/v1/reports/{revision.id}", json={"status": "IN_PROGRESS"}, headers=headers(ana))
    assert r.status_code == 200


def test_evidence_integrity_summary(client, db):
    ana = mk_user(db, "ana@roofs.nz")
    ben = mk_user(db, "ben@roofs.nz")
    report = mk_report(db, ana)
    photos = mk_photos(db, report, 4)
    for photo in photos[:2]:
        photo.hash_verified = True
        photo.gps_lat, photo.gps_lng = -36.85, 174.76
        photo.captured_at = datetime(2026, 3, 4, 9, 45, tzinfo=timezone.utc)
    db.commit()

    client.post(
        "/api/v1/sync/custody-events",
        json={
            "events": [
                {
                    "entityType": "photo",
                    "entityId": photos[0].id,
                    "action": "captured",
                    "timestamp": "2026-03-04T09:45:00Z",
                    "deviceId": "ipad-7",
                }
            ]
        },
        headers=headers(ana),
    )

    r = client.get(f"/api/v1/reports/{report.id}/evidence-integrity", headers=headers(ana))
    assert r.status_code == 200
    body = r.json()["data"]
    assert body["reportNumber"] == report.report_number
    assert body["summary"] == {
        "totalPhotos": 4,
        "withHash": 4,
        "hashVerified": 2,
        "withExif": 4,
        "withGps": 2,
        "withCamera": 4,
        "withTimestamp": 2,
        "pendingUpload": 0,
        "integrityScore": 75,
    }
    assert len(body["photos"]) == 4
    custody = body["chainOfCustody"]
    assert custody["uniqueDevices"] == ["Apple"]
    assert [e["source"] for e in custody["events"]] == ["mobile_custody_sync"]
    assert custody["events"][0]["user"] == "Ana"

    assert (
        client.get(f"/api/v1/reports/{report.id}/evidence-integrity", headers=headers(ben)).status_code
        == 403
    )


def test_evidence_integrity_of_report_without_photos(client, db):
    ana = mk_user(db, "ana@roofs.nz")
    report = mk_report(db, ana)

    body = client.get(
        f"/api/v1/reports/{report.id}/evidence-integrity", headers=headers(ana)
    ).json()["data"]
    assert body["summary"]["integrityScore"] == 0
    assert body["photos"] == []
    assert body["chainOfCustody"]["firstUpload"] is None
