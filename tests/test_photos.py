from __future__ import annotations

import hashlib

from conftest import headers, mk_report, mk_user, png_bytes


def _upload(client, report_id, user, data, content_type="image/png", filename="roof.png", **form):
    return client.post(
        f"/api/v1/reports/{report_id}/photos",
        files={"file": (filename, data, content_type)},
        data=form,
        headers=headers(user),
    )


def test_upload_hashes_and_stores_photo(client, db, storage):
    ana = mk_user(db, "ana@roofs.nz")
    report = mk_report(db, ana)
    image = png_bytes()

    r = _upload(client, report.id, ana, image, photoType="OVERVIEW", caption="North elevation")
    assert r.status_code == 201
    photo = r.json()["data"]
    assert photo["originalHash"] == hashlib.sha256(image).hexdigest()
    assert photo["hashVerified"] is True
    assert photo["photoType"] == "OVERVIEW"
    assert photo["sortOrder"] == 1
    assert photo["url"].startswith(f"/media/reports/{report.id}/photos/")

    key = photo["url"].removeprefix("/media/")
    assert storage._path(key).read_bytes() == image


def test_upload_rejects_unsupported_type(client, db):
    ana = mk_user(db, "ana@roofs.nz")
    report = mk_report(db, ana)

    r = _upload(client, report.id, ana, b"%PDF-1.4", content_type="application/pdf")
    assert r.status_code == 422
    assert r.json()["error"]["code"] == "VALIDATION_ERROR"


def test_verify_detects_altered_binary(client, db, storage):
    ana = mk_user(db, "ana@roofs.nz")
    report = mk_report(db, ana)
    photo = _upload(client, report.id, ana, png_bytes()).json()["data"]
    verify_url = f"/api/v1/reports/{report.id}/photos/{photo['id']}/verify"

    r = client.get(verify_url, headers=headers(ana))
    assert r.json()["data"]["verified"] is True

    storage._path(photo["url"].removeprefix("/media/")).write_bytes(png_bytes(colour="blue"))

    r = client.get(verify_url, headers=headers(ana))
    body = r.json()["data"]
    assert body["verified"] is False
    assert body["currentHash"] != body["originalHash"]

    listed = client.get(f"/api/v1/reports/{report.id}/photos", headers=headers(ana)).json()["data"]
    assert listed[0]["hashVerified"] is False


def test_reorder_and_delete(client, db, storage):
    ana = mk_user(db, "ana@roofs.nz")
    report = mk_report(db, ana)
    first = _upload(client, report.id, ana, png_bytes(colour="red"), filename="first.png").json()["data"]
    second = _upload(client, report.id, ana, png_bytes(colour="green"), filename="second.png").json()["data"]

    r = client.put(
        f"/api/v1/reports/{report.id}/photos/reorder",
        json={"photoIds": [second["id"], first["id"]]},
        headers=headers(ana),
    )
    assert [p["id"] for p in r.json()["data"]] == [second["id"], first["id"]]

    r = client.delete(f"/api/v1/reports/{report.id}/photos/{first['id']}", headers=headers(ana))
    assert r.status_code == 204
    assert not storage._path(first["url"].removeprefix("/media/")).exists()
