from __future__ import annotations

from conftest import headers, mk_user


def test_profile_update_cannot_change_role(client, db):
    ana = mk_user(db, "ana@roofs.nz")

    r = client.put(
        "/api/v1/users/me",
        json={"lbpNumber": "BP123456", "yearsExperience": 12, "role": "SUPER_ADMIN"},
        headers=headers(ana),
    )
    assert r.status_code == 200
    me = r.json()["data"]
    assert me["lbpNumber"] == "BP123456"
    assert me["yearsExperience"] == 12
    assert me["role"] == "INSPECTOR"


def test_lbp_number_format_is_checked(client, db):
    ana = mk_user(db, "ana@roofs.nz")
    r = client.put("/api/v1/users/me", json={"lbpNumber": "12345"}, headers=headers(ana))
    assert r.status_code == 422


def test_user_administration_roles(client, db):
    ana = mk_user(db, "ana@roofs.nz")
    admin = mk_user(db, "admin@roofs.nz", role="ADMIN")
    boss = mk_user(db, "boss@roofs.nz", role="SUPER_ADMIN")

    assert client.get("/api/v1/users", headers=headers(ana)).status_code == 403

    r = client.post(
        "/api/v1/users", json={"email": "new@roofs.nz", "name": "New Inspector"}, headers=headers(admin)
    )
    assert r.status_code == 201
    new_id = r.json()["data"]["id"]

    r = client.post(
        "/api/v1/users", json={"email": "new@roofs.nz", "name": "Again"}, headers=headers(admin)
    )
    assert r.status_code == 409

    r = client.get("/api/v1/users", params={"role": "INSPECTOR"}, headers=headers(admin))
    assert {u["email"] for u in r.json()["data"]} == {"ana@roofs.nz", "new@roofs.nz"}

    r = client.put(f"/api/v1/users/{new_id}/role", json={"role": "REVIEWER"}, headers=headers(admin))
    assert r.status_code == 403
    r = client.put(f"/api/v1/users/{new_id}/role", json={"role": "REVIEWER"}, headers=headers(boss))
    assert r.json()["data"]["role"] == "REVIEWER"
