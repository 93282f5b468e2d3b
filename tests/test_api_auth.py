from app.models import UserRole


def register(client, **overrides):
    body = {
        "username": "kim",
        "email": "kim@example.com",
        "password": "pass1234",
        "department": "Nano Lab",
        "phone": "010-0000-0000",
        "role": "staff",
    }
    body.update(overrides)
    return client.post("/api/auth/register", json=body)


def test_register_login_me(client):
    r = register(client)
    assert r.status_code == 201
    assert r.json()["role"] == "staff"
    assert "hashed_password" not in r.json()

    login = client.post("/api/auth/login", json={"email": "kim@example.com", "password": "pass1234"})
    assert login.status_code == 200
    token = login.json()["access_token"]
    assert login.json()["user"]["username"] == "kim"

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["email"] == "kim@example.com"


def test_student_requires_supervisor(client):
    assert register(client, role="student").status_code == 400
    assert register(client, role="student", supervisor="Prof. Park").status_code == 201


def test_cannot_self_register_as_admin(client):
    assert register(client, role="admin").status_code == 403


def test_duplicate_email(client):
    register(client)
    assert register(client, username="other").status_code == 400


def test_bad_credentials(client, make_user):
    make_user("lee", password="right-pass")
    r = client.post("/api/auth/login", json={"email": "lee@example.com", "password": "wrong"})
    assert r.status_code == 401


def test_token_endpoint_accepts_username(client, make_user):
    make_user("lee", password="right-pass")
    r = client.post("/api/auth/token", data={"username": "lee", "password": "right-pass"})
    assert r.status_code == 200
    assert r.json()["token_type"] == "bearer"


def test_inactive_user_rejected(client, make_user, auth_headers):
    user = make_user("gone", is_active=False)
    assert client.get("/api/auth/me", headers=auth_headers(user)).status_code == 403


def test_invalid_token(client):
    assert client.get("/api/auth/me", headers={"Authorization": "Bearer nonsense"}).status_code == 401


def test_change_password(client, make_user, auth_headers):
    user = make_user("lee", password="old-pass")
    headers = auth_headers(user)
    bad = client.put("/api/auth/me/password", json={"current_password": "nope", "new_password": "new-pass"},
                     headers=headers)
    assert bad.status_code == 400
    ok = client.put("/api/auth/me/password", json={"current_password": "old-pass", "new_password": "new-pass"},
                    headers=headers)
    assert ok.status_code == 200
    login = client.post("/api/auth/login", json={"email": "lee@example.com", "password": "new-pass"})
    assert login.status_code == 200


def test_user_admin_endpoints(client, make_user, admin, auth_headers):
    user = make_user("lee")
    assert client.get("/api/users/", headers=auth_headers(user)).status_code == 403

    listed = client.get("/api/users/", headers=auth_headers(admin))
    assert {u["username"] for u in listed.json()} == {"admin", "lee"}

    updated = client.put(f"/api/users/{user.id}", json={"role": "student", "supervisor": "Prof. Choi"},
                         headers=auth_headers(admin))
    assert updated.json()["role"] == UserRole.STUDENT.value

    assert client.delete(f"/api/users/{admin.id}", headers=auth_headers(admin)).status_code == 400
    assert client.delete(f"/api/users/{user.id}", headers=auth_headers(admin)).status_code == 204
    assert client.get(f"/api/users/{user.id}", headers=auth_headers(admin)).status_code == 404


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}
