from __future__ import annotations

import hashlib
import uuid

from conftest import headers, mk_elements, mk_photos, mk_report, mk_user, png_bytes
from roofreport.domain.defect import Defect, Photo
from roofreport.domain.report import RoofElement


def _sync_report(report_id: str, number: str = "RANZ-2026-00077", **overrides) -> dict:
    payload = {
        "id": report_id,
        "reportNumber": number,
        "status": "IN_PROGRESS",
        "propertyAddress": "45 Matai Crescent",
        "propertyCity": "Nelson",
        "propertyRegion": "Nelson",
        "propertyPostcode": "7010",
        "propertyType": "RESIDENTIAL_2",
        "inspectionDate": "2026-05-02T08:00:00Z",
        "inspectionType": "NON_INVASIVE",
        "clientName": "Matai Holdings",
        "clientUpdatedAt": "2026-05-02T09:00:00Z",
        "elements": [],
        "defects": [],
        "photoMetadata": [],
    }
    payload.update(overrides)
    return payload


def _upload(client, user, *reports):
    return client.post(
        "/api/v1/sync/upload",
        json={"reports": list(reports), "deviceId": "ipad-7", "syncTimestamp": "2026-05-02T09:05:00Z"},
        headers=headers(user),
    )


def test_new_report_is_created_with_children(client, db):
    ana = mk_user(db, "ana@roofs.nz")
    report_id = str(uuid.uuid4())
    element_id = str(uuid.uuid4())
    defect_id = str(uuid.uuid4())
    photo_id = str(uuid.uuid4())
    image = png_bytes()

    r = _upload(
        client,
        ana,
        _sync_report(
            report_id,
            elements=[{"id": element_id, "elementType": "GUTTER", "location": "East eave"}],
            defects=[
                {
                    "id": defect_id,
                    "defectNumber": 1,
                    "title": "Blocked outlet",
                    "description": "Outlet blocked with leaves",
                    "location": "East eave",
                    "classification": "MAINTENANCE_ITEM",
                    "severity": "LOW",
                    "observation": "Standing water in gutter",
                    "roofElementId": element_id,
                }
            ],
            compliance={"checklistResults": {"e2_as1": {"e2_gutters": "fail"}}},
            photoMetadata=[
                {
                    "id": photo_id,
                    "photoType": "DETAIL",
                    "filename": "gutter.png",
                    "originalFilename": "IMG_0001.png",
                    "mimeType": "image/png",
                    "fileSize": len(image),
                    "originalHash": hashlib.sha256(image).hexdigest(),
                    "defectId": defect_id,
                    "needsUpload": True,
                }
            ],
        ),
    )
    assert r.status_code == 200
    body = r.json()["data"]
    assert body["success"] is True
    assert body["stats"] == {"total": 1, "succeeded": 1, "failed": 0, "conflicts": 0}
    assert body["results"]["syncedReports"] == [report_id]
    uploads = body["results"]["pendingPhotoUploads"]
    assert uploads == [
        {"reportId": report_id, "photoId": photo_id, "uploadUrl": f"/api/v1/photos/{photo_id}/content"}
    ]

    detail = client.get(f"/api/v1/reports/{report_id}", headers=headers(ana)).json()["data"]
    assert detail["status"] == "IN_PROGRESS"
    assert detail["complianceStatus"] == "FAIL"
    assert [e["id"] for e in detail["roofElements"]] == [element_id]
    assert detail["defects"][0]["roofElementId"] == element_id

    # Binary arrives afterwards and must match the announced hash
    r = client.put(
        f"/api/v1/photos/{photo_id}/content", content=b"tampered", headers=headers(ana)
    )
    assert r.status_code == 422
    r = client.put(f"/api/v1/photos/{photo_id}/content", content=image, headers=headers(ana))
    assert r.status_code == 200
    assert r.json()["data"]["hashVerified"] is True


def test_server_edit_newer_than_client_is_a_conflict(client, db):
    ana = mk_user(db, "ana@roofs.nz")
    report = mk_report(db, ana, report_number="RANZ-2026-00077")

    # Server copy changes now; the device copy was last touched in May
    client.put(f"/api/v1/reports/{report.id}", json={"clientName": "Server Name"}, headers=headers(ana))

    r = _upload(client, ana, _sync_report(report.id, clientName="Device Name"))
    body = r.json()["data"]
    assert body["stats"]["conflicts"] == 1
    conflict = body["results"]["conflicts"][0]
    assert conflict["reportId"] == report.id
    assert conflict["resolution"] == "last-write-wins"
    assert body["results"]["syncedReports"] == [report.id]

    detail = client.get(f"/api/v1/reports/{report.id}", headers=headers(ana)).json()["data"]
    assert detail["clientName"] == "Device Name"


def test_sync_refuses_reports_owned_by_someone_else(client, db):
    ana = mk_user(db, "ana@roofs.nz")
    ben = mk_user(db, "ben@roofs.nz")
    report = mk_report(db, ana, report_number="RANZ-2026-00077")
    own_id = str(uuid.uuid4())

    r = _upload(
        client,
        ben,
        _sync_report(report.id, clientName="Hijacked"),
        _sync_report(own_id, number="RANZ-2026-00078"),
    )
    body = r.json()["data"]
    assert body["success"] is False
    assert body["stats"]["failed"] == 1
    assert body["stats"]["succeeded"] == 1
    assert body["results"]["failedReports"] == [
        {"reportId": report.id, "error": "Access denied: You do not own this report"}
    ]
    assert body["results"]["syncedReports"] == [own_id]

    detail = client.get(f"/api/v1/reports/{report.id}", headers=headers(ana)).json()["data"]
    assert detail["clientName"] == report.client_name


def test_sync_cannot_change_status_of_locked_or_submitted_reports(client, db):
    ana = mk_user(db, "ana@roofs.nz")
    approved = mk_report(db, ana, report_number="RANZ-2026-00077", status="APPROVED")
    pending = mk_report(db, ana, report_number="RANZ-2026-00078", status="PENDING_REVIEW")

    r = _upload(
        client,
        ana,
        _sync_report(approved.id),
        _sync_report(pending.id, number="RANZ-2026-00078", status="DRAFT"),
    )
    body = r.json()["data"]
    assert body["results"]["failedReports"] == [
        {"reportId": approved.id, "error": "Cannot modify report with status: APPROVED"}
    ]
    detail = client.get(f"/api/v1/reports/{pending.id}", headers=headers(ana)).json()["data"]
    assert detail["status"] == "PENDING_REVIEW"


def test_tombstones_remove_children(client, db):
    ana = mk_user(db, "ana@roofs.nz")
    report_id = str(uuid.uuid4())
    element_id = str(uuid.uuid4())
    element = {"id": element_id, "elementType": "RIDGE", "location": "Main ridge"}

    _upload(client, ana, _sync_report(report_id, elements=[element]))
    r = _upload(
        client,
        ana,
        _sync_report(
            report_id, clientUpdatedAt="2030-01-01T00:00:00Z", elements=[{**element, "_deleted": True}]
        ),
    )
    assert r.json()["data"]["stats"]["conflicts"] == 0
    detail = client.get(f"/api/v1/reports/{report_id}", headers=headers(ana)).json()["data"]
    assert detail["roofElements"] == []


def test_bootstrap_returns_profile_and_recent_reports(client, db):
    ana = mk_user(db, "ana@roofs.nz")
    mk_report(db, ana, report_number="RANZ-2026-00001")

    r = client.get("/api/v1/sync/bootstrap", headers=headers(ana))
    assert r.status_code == 200
    body = r.json()["data"]
    assert body["user"]["email"] == "ana@roofs.nz"
    assert [rep["reportNumber"] for rep in body["recentReports"]] == ["RANZ-2026-00001"]
    assert body["recentReports"][0]["photoCount"] == 0


def test_metadata_without_binary_creates_nothing(client, db):
    ana = mk_user(db, "ana@roofs.nz")
    report_id = str(uuid.uuid4())
    photo_id = str(uuid.uuid4())

    r = _upload(
        client,
        ana,
        _sync_report(
            report_id,
            photoMetadata=[
                {
                    "id": photo_id,
                    "filename": "ridge.jpg",
                    "originalFilename": "IMG_0042.jpg",
                    "mimeType": "image/jpeg",
                    "fileSize": 2048,
                    "originalHash": "a" * 64,
                    "needsUpload": False,
                }
            ],
        ),
    )
    body = r.json()["data"]
    assert body["results"]["syncedReports"] == [report_id]
    assert body["results"]["pendingPhotoUploads"] == []
    assert db.get(Photo, photo_id) is None


def _defect_payload(defect_id: str, **overrides) -> dict:
    payload = {
        "id": defect_id,
        "defectNumber": 1,
        "title": "Lifted flashing",
        "description": "Apron flashing lifted along the wall junction",
        "location": "North wall",
        "classification": "MAJOR_DEFECT",
        "severity": "HIGH",
        "observation": "Flashing lifted by roughly 20mm",
    }
    payload.update(overrides)
    return payload


def test_tombstones_for_another_reports_children_are_ignored(client, db):
    ana = mk_user(db, "ana@roofs.nz")
    ben = mk_user(db, "ben@roofs.nz")
    report = mk_report(db, ana, report_number="RANZ-2026-00077")
    [element] = mk_elements(db, report, 1)
    defect = Defect(
        report_id=report.id,
        roof_element_id=element.id,
        defect_number=1,
        title="Cracked ridge cap",
        description="Ridge cap cracked at the midpoint",
        location="Main ridge",
        classification="MINOR_DEFECT",
        severity="MEDIUM",
        observation="Hairline crack visible from the ladder",
    )
    db.add(defect)
    db.commit()
    photos = mk_photos(db, report, 2, roof_element_id=element.id, defect_id=defect.id)

    r = _upload(
        client,
        ben,
        _sync_report(
            str(uuid.uuid4()),
            number="RANZ-2026-00078",
            elements=[
                {"id": element.id, "elementType": "ROOF_CLADDING", "location": "Roof plane 1", "_deleted": True}
            ],
            defects=[_defect_payload(defect.id, _deleted=True)],
        ),
    )
    assert r.json()["data"]["stats"]["succeeded"] == 1

    db.expire_all()
    assert db.get(RoofElement, element.id) is not None
    assert db.get(Defect, defect.id) is not None
    for photo in photos:
        stored = db.get(Photo, photo.id)
        assert stored.roof_element_id == element.id
        assert stored.defect_id == defect.id


def _custody(photo_id: str, **overrides) -> dict:
    event = {
        "entityType": "photo",
        "entityId": photo_id,
        "action": "captured",
        "timestamp": "2026-05-01T07:00:00Z",
        "deviceId": "ipad-7",
    }
    event.update(overrides)
    return event


def test_custody_events_are_recorded_for_own_photos_only(client, db):
    ana = mk_user(db, "ana@roofs.nz")
    ben = mk_user(db, "ben@roofs.nz")
    report = mk_report(db, ana, report_number="RANZ-2026-00077")
    other = mk_report(db, ben, report_number="RANZ-2026-00078")
    [photo] = mk_photos(db, report, 1)
    [bens_photo] = mk_photos(db, other, 1)

    r = client.post(
        "/api/v1/sync/custody-events",
        json={
            "events": [
                _custody(photo.id, hashAtTime=photo.original_hash, metadata={"lens": "wide"}),
                _custody(str(uuid.uuid4())),
                _custody(bens_photo.id),
                _custody(photo.id, entityType="voiceNote"),
            ]
        },
        headers=headers(ana),
    )
    assert r.status_code == 200
    body = r.json()["data"]
    assert body["synced"] == 1
    assert body["skipped"] == 3
    assert body["total"] == 4
    assert body["message"] == "Synced 1 events, skipped 3 (missing or inaccessible entities)"

    log = client.get(f"/api/v1/reports/{report.id}/audit-log", headers=headers(ana)).json()["data"]
    [entry] = [e for e in log if (e["details"] or {}).get("source") == "mobile_custody_sync"]
    assert entry["action"] == "CREATED"
    assert entry["createdAt"].startswith("2026-05-01T07:00:00")
    assert entry["details"]["hash_matches"] is True
    assert entry["details"]["original_action"] == "captured"
    assert entry["details"]["lens"] == "wide"

    other_log = client.get(f"/api/v1/reports/{other.id}/audit-log", headers=headers(ben)).json()
    assert other_log["data"] == []


def test_custody_event_with_changed_hash_is_flagged(client, db):
    ana = mk_user(db, "ana@roofs.nz")
    report = mk_report(db, ana)
    [photo] = mk_photos(db, report, 1)

    r = client.post(
        "/api/v1/sync/custody-events",
        json={"events": [_custody(photo.id, action="annotated", hashAtTime="f" * 64)]},
        headers=headers(ana),
    )
    assert r.json()["data"]["message"] == "Synced 1 events successfully"

    [entry] = client.get(f"/api/v1/reports/{report.id}/audit-log", headers=headers(ana)).json()["data"]
    assert entry["action"] == "UPDATED"
    assert entry["details"]["hash_matches"] is False
