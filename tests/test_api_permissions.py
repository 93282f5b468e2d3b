from app.models import PermissionLevel, UserRole


def grant(client, headers, equipment_id, user_id, level):
    return client.post(
        f"/api/permissions/equipment/{equipment_id}/grant",
        json={"user_id": user_id, "permission_level": level},
        headers=headers,
    )


def test_admin_grants_any_level(client, make_user, make_equipment, admin, auth_headers):
    equipment = make_equipment()
    user = make_user()

    r = grant(client, auth_headers(admin), equipment.id, user.id, "manager")
    assert r.status_code == 200
    assert r.json()["permission_level"] == "manager"
    assert r.json()["granted_by_name"] == "admin"

    again = grant(client, auth_headers(admin), equipment.id, user.id, "normal")
    assert again.json()["id"] == r.json()["id"]
    assert again.json()["permission_level"] == "normal"


def test_manager_limits(client, make_user, make_equipment, make_grant, admin, auth_headers):
    equipment = make_equipment()
    manager = make_user("m")
    other_manager = make_user("m2")
    user = make_user("u")
    make_grant(equipment, manager, PermissionLevel.MANAGER)
    make_grant(equipment, other_manager, PermissionLevel.MANAGER)
    headers = auth_headers(manager)

    assert grant(client, headers, equipment.id, user.id, "autonomous").status_code == 200
    assert grant(client, headers, equipment.id, user.id, "manager").status_code == 403

    # Existing manager grants are off limits
    assert grant(client, headers, equipment.id, other_manager.id, "normal").status_code == 403
    r = client.delete(f"/api/permissions/equipment/{equipment.id}/user/{other_manager.id}", headers=headers)
    assert r.status_code == 403

    updated = client.put(
        f"/api/permissions/equipment/{equipment.id}/user/{user.id}",
        json={"permission_level": "normal"},
        headers=headers,
    )
    assert updated.json()["permission_level"] == "normal"

    revoked = client.delete(f"/api/permissions/equipment/{equipment.id}/user/{user.id}", headers=headers)
    assert revoked.json()["revoked"] is True


def test_non_manager_cannot_administer(client, make_user, make_equipment, make_grant, auth_headers):
    equipment = make_equipment()
    autonomous = make_user()
    target = make_user()
    make_grant(equipment, autonomous, PermissionLevel.AUTONOMOUS)

    assert grant(client, auth_headers(autonomous), equipment.id, target.id, "normal").status_code == 403
    listed = client.get(f"/api/permissions/equipment/{equipment.id}", headers=auth_headers(autonomous))
    assert listed.status_code == 403


def test_unknown_equipment(client, admin, auth_headers):
    assert client.get("/api/permissions/equipment/77", headers=auth_headers(admin)).status_code == 404


def test_check_my_and_managed(client, make_user, make_equipment, make_grant, admin, auth_headers):
    sem = make_equipment("SEM")
    afm = make_equipment("AFM")
    user = make_user()
    make_grant(sem, user, PermissionLevel.AUTONOMOUS)
    make_grant(afm, user, PermissionLevel.MANAGER)

    assert client.get(f"/api/permissions/check/{sem.id}", headers=auth_headers(admin)).json() == {
        "has_permission": True, "permission_level": "admin", "reason": "admin",
    }
    check = client.get(f"/api/permissions/check/{sem.id}", headers=auth_headers(user)).json()
    assert check["permission_level"] == "autonomous"

    stranger = make_user()
    assert client.get(f"/api/permissions/check/{sem.id}", headers=auth_headers(stranger)).json()["reason"] == "none"

    assert len(client.get("/api/permissions/my", headers=auth_headers(user)).json()) == 2
    managed = client.get("/api/permissions/my/managed", headers=auth_headers(user)).json()
    assert [e["name"] for e in managed] == ["AFM"]


def test_user_permissions_visibility(client, make_user, make_equipment, make_grant, admin, auth_headers):
    sem = make_equipment("SEM")
    afm = make_equipment("AFM")
    manager = make_user("m")
    user = make_user("u")
    make_grant(afm, manager, PermissionLevel.MANAGER)
    make_grant(sem, user, PermissionLevel.NORMAL)
    make_grant(afm, user, PermissionLevel.NORMAL)

    assert len(client.get(f"/api/permissions/user/{user.id}", headers=auth_headers(admin)).json()) == 2
    seen = client.get(f"/api/permissions/user/{user.id}", headers=auth_headers(manager)).json()
    assert [p["equipment_name"] for p in seen] == ["AFM"]
    assert client.get(f"/api/permissions/user/{manager.id}", headers=auth_headers(user)).status_code == 403


def test_candidates(client, make_user, make_equipment, make_grant, admin, auth_headers):
    equipment = make_equipment()
    make_user("intern", role=UserRole.INTERN, supervisor="Dr. Yoon")
    granted = make_user("granted")
    make_grant(equipment, granted, PermissionLevel.NORMAL)

    r = client.get(f"/api/permissions/equipment/{equipment.id}/candidates", headers=auth_headers(admin))
    assert [u["username"] for u in r.json()] == ["intern"]


def test_autonomous_grant_confirms_booking(client, make_user, make_equipment, admin, auth_headers):
    equipment = make_equipment()
    user = make_user()
    grant(client, auth_headers(admin), equipment.id, user.id, "autonomous")

    r = client.post(
        "/api/reservations/",
        json={"equipment_id": equipment.id, "start_time": "2024-01-11T09:00:00", "end_time": "2024-01-11T11:00:00"},
        headers=auth_headers(user),
    )
    assert r.json()["status"] == "confirmed"
