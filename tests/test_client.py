from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from ippl.api_main import app
from ippl.client import ApiError, IpplClient, jwt_display_name, jwt_is_expired, jwt_payload, jwt_role

from .conftest import PASSWORD


@pytest.fixture
def api():
    return IpplClient("http://testserver", session=TestClient(app))


def _token(exp: datetime) -> str:
    return jwt.encode({"sub": "u1", "name": "Ana", "role": "admin", "exp": int(exp.timestamp())}, "k")


def test_jwt_helpers():
    now = datetime.now(timezone.utc)
    fresh = _token(now + timedelta(hours=1))
    assert jwt_payload(fresh)["sub"] == "u1"
    assert jwt_display_name(fresh) == "Ana"
    assert jwt_role(fresh) == "admin"
    assert not jwt_is_expired(fresh)
    assert jwt_is_expired(_token(now - timedelta(minutes=1)))
    assert jwt_payload("no-es-un-jwt") == {}


def test_login_and_calls(api, admin_user):
    assert api.token_expired
    data = api.login("admin@test.local", PASSWORD)
    assert api.token == data["token"]
    assert not api.token_expired
    assert api.get("/api/auth/me")["email"] == "admin@test.local"

    created = api.post("/api/patients", {"name": "Cliente API"})
    assert created["status"] == "pending"


def test_unauthorized_raises_permission_error(api):
    api.token = "vencido"
    with pytest.raises(PermissionError):
        api.get("/api/auth/me")


def test_api_error_carries_detail(api, professional):
    api.login(professional["email"], PASSWORD)
    with pytest.raises(ApiError) as exc:
        api.get("/api/users")
    assert exc.value.status_code == 403
    assert exc.value.detail == "Acceso denegado"


def test_no_content_returns_none(api, admin_user, professional):
    api.login("admin@test.local", PASSWORD)
    assert api.delete(f"/api/professionals/{professional['id']}") is None
