from __future__ import annotations

import pytest

from conftest import headers, mk_elements, mk_photos, mk_report, mk_user


def _element(n: int = 1, **overrides) -> dict:
    payload = {"elementType": "ROOF_CLADDING", "location": f"Roof plane {n}"}
    payload.update(overrides)
    return payload


def _defect(**overrides) -> dict:
    payload = {
        "title": "Corroded fixings",
        "description": "Fixings along the eaves show red rust",
        "location": "Eaves, north elevation",
        "classification": "MINOR_DEFECT",
        "severity": "MEDIUM",
        "observation": "Rust staining around twelve fixings",
    }
    payload.update(overrides)
    return payload


def test_element_crud(client, db):
    ana = mk_user(db, "ana@roofs.nz")
    report = mk_report(db, ana)
    base = f"/api/v1/reports/{report.id}/elements"

    r = client.post(base, json=_element(material="Colorsteel", pitch=15), headers=headers(ana))
    assert r.status_code == 201
    element = r.json()["data"]
    assert element["reportId"] == report.id
    assert element["material"] == "Colorsteel"

    r = client.put(
        f"{base}/{element['id']}",
        json={"conditionRating": "POOR", "conditionNotes": "Paint failure"},
        headers=headers(ana),
    )
    assert r.status_code == 200
    assert r.json()["data"]["conditionRating"] == "POOR"
    assert r.json()["data"]["material"] == "Colorsteel"

    listed = client.get(base, headers=headers(ana)).json()["data"]
    assert [e["id"] for e in listed] == [element["id"]]

    assert client.delete(f"{base}/{element['id']}", headers=headers(ana)).status_code == 204
    assert client.get(base, headers=headers(ana)).json()["data"] == []
    assert client.delete(f"{base}/{element['id']}", headers=headers(ana)).status_code == 404


def test_element_from_another_report_is_not_found(client, db):
    ana = mk_user(db, "ana@roofs.nz")
    first = mk_report(db, ana, report_number="RANZ-2026-00001")
    second = mk_report(db, ana, report_number="RANZ-2026-00002")
    [element] = mk_elements(db, first, 1)

    r = client.put(
        f"/api/v1/reports/{second.id}/elements/{element.id}",
        json={"location": "Elsewhere"},
        headers=headers(ana),
    )
    assert r.status_code == 404
    r = client.delete(f"/api/v1/reports/{second.id}/elements/{element.id}", headers=headers(ana))
    assert r.status_code == 404


@pytest.mark.parametrize("count, expected", [(0, 422), (1, 201), (50, 201), (51, 422)])
def test_bulk_create_bounds(client, db, count, expected):
    ana = mk_user(db, "ana@roofs.nz")
    report = mk_report(db, ana)

    r = client.post(
        f"/api/v1/reports/{report.id}/elements/bulk",
        json={"elements": [_element(n) for n in range(1, count + 1)]},
        headers=headers(ana),
    )
    assert r.status_code == expected
    if expected == 201:
        assert len(r.json()["data"]) == count
        listed = client.get(f"/api/v1/reports/{report.id}/elements", headers=headers(ana))
        assert len(listed.json()["data"]) == count


def test_defect_numbers_continue_from_highest(client, db):
    ana = mk_user(db, "ana@roofs.nz")
    report = mk_report(db, ana)
    base = f"/api/v1/reports/{report.id}/defects"

    ids = []
    for _ in range(3):
        r = client.post(base, json=_defect(), headers=headers(ana))
        assert r.status_code == 201
        ids.append(r.json()["data"]["id"])
    assert [d["defectNumber"] for d in client.get(base, headers=headers(ana)).json()["data"]] == [1, 2, 3]

    # Removing a middle defect leaves a gap; numbers are never reused below the maximum
    assert client.delete(f"{base}/{ids[1]}", headers=headers(ana)).status_code == 204
    assert client.post(base, json=_defect(), headers=headers(ana)).json()["data"]["defectNumber"] == 4

    assert client.delete(f"{base}/{ids[0]}", headers=headers(ana)).status_code == 204
    r = client.post(base, json=_defect(), headers=headers(ana))
    assert r.json()["data"]["defectNumber"] == 5

    numbers = [d["defectNumber"] for d in client.get(base, headers=headers(ana)).json()["data"]]
    assert numbers == [3, 4, 5]


def test_defect_created_with_photos_links_them(client, db):
    ana = mk_user(db, "ana@roofs.nz")
    report = mk_report(db, ana)
    photos = mk_photos(db, report, 3)

    r = client.post(
        f"/api/v1/reports/{report.id}/defects",
        json=_defect(photoIds=[photos[0].id, photos[2].id]),
        headers=headers(ana),
    )
    assert r.status_code == 201
    defect = r.json()["data"]
    assert sorted(p["id"] for p in defect["photos"]) == sorted([photos[0].id, photos[2].id])

    # Deleting the defect keeps its photos, unlinked
    client.delete(f"/api/v1/reports/{report.id}/defects/{defect['id']}", headers=headers(ana))
    listed = client.get(f"/api/v1/reports/{report.id}/photos", headers=headers(ana)).json()["data"]
    assert len(listed) == 3
    assert all(p["defectId"] is None for p in listed)


def test_link_photos_to_defect(client, db):
    ana = mk_user(db, "ana@roofs.nz")
    report = mk_report(db, ana, report_number="RANZ-2026-00001")
    other = mk_report(db, ana, report_number="RANZ-2026-00002")
    photos = mk_photos(db, report, 2)
    [foreign] = mk_photos(db, other, 1)
    defect = client.post(
        f"/api/v1/reports/{report.id}/defects", json=_defect(), headers=headers(ana)
    ).json()["data"]
    url = f"/api/v1/reports/{report.id}/defects/{defect['id']}/photos"

    r = client.post(url, json={"photoIds": [p.id for p in photos]}, headers=headers(ana))
    assert r.status_code == 200
    assert sorted(p["id"] for p in r.json()["data"]["photos"]) == sorted(p.id for p in photos)

    r = client.post(url, json={"photoIds": [foreign.id]}, headers=headers(ana))
    assert r.status_code == 422
    assert r.json()["error"]["message"] == "One or more photos do not belong to this report"

    assert client.post(url, json={"photoIds": []}, headers=headers(ana)).status_code == 422

    r = client.post(
        f"/api/v1/reports/{report.id}/defects/missing/photos",
        json={"photoIds": [photos[0].id]},
        headers=headers(ana),
    )
    assert r.status_code == 404
