from ippl.auth_security import decode_token

from .conftest import PASSWORD


def test_login_with_email_json(anon, admin_user):
    r = anon.post("/api/auth/login", json={"email": "admin@test.local", "password": PASSWORD})
    assert r.status_code == 200
    body = r.json()
    assert body["token"] == body["access_token"]
    assert body["token_type"] == "bearer"
    assert body["user"]["role"] == "admin"

    claims = decode_token(body["token"])
    assert claims["sub"] == admin_user["id"]
    assert claims["role"] == "admin"
    assert claims["email"] == "admin@test.local"


def test_login_with_oauth2_form(anon, admin_user):
    r = anon.post("/api/auth/login", data={"username": "ADMIN@test.local", "password": PASSWORD})
    assert r.status_code == 200


def test_login_wrong_password(anon, admin_user):
    r = anon.post("/api/auth/login", json={"email": "admin@test.local", "password": "otra"})
    assert r.status_code == 401
    assert r.json()["detail"] == "Credenciales inválidas"


def test_login_missing_fields(anon):
    r = anon.post("/api/auth/login", json={"email": "admin@test.local"})
    assert r.status_code == 400


def test_inactive_user_cannot_login(anon, admin, professional):
    admin.put(f"/api/users/{professional['id']}", json={"status": "inactive"})
    r = anon.post("/api/auth/login", json={"email": professional["email"], "password": PASSWORD})
    assert r.status_code == 401


def test_me_requires_token(anon):
    assert anon.get("/api/auth/me").status_code == 401
    anon.headers["Authorization"] = "Bearer basura"
    r = anon.get("/api/auth/me")
    assert r.status_code == 401
    assert r.json()["detail"] == "Token inválido o expirado"


def test_me_returns_user_without_hash(admin):
    r = admin.get("/api/auth/me")
    assert r.status_code == 200
    assert r.json()["email"] == "admin@test.local"
    assert "password_hash" not in r.json()
    assert "passwordHash" not in r.json()


def test_change_password(admin, anon):
    r = admin.post("/api/auth/change-password", json={"currentPassword": "mal", "newPassword": "nueva123"})
    assert r.status_code == 400

    r = admin.post("/api/auth/change-password", json={"currentPassword": PASSWORD, "newPassword": "123"})
    assert r.status_code == 400

    r = admin.post("/api/auth/change-password", json={"currentPassword": PASSWORD, "newPassword": "nueva123"})
    assert r.status_code == 200

    r = anon.post("/api/auth/login", json={"email": "admin@test.local", "password": "nueva123"})
    assert r.status_code == 200


def test_role_guard(pro):
    r = pro.get("/api/users")
    assert r.status_code == 403
    assert r.json()["detail"] == "Acceso denegado"
