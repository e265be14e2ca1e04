import os
import tempfile
from pathlib import Path

# Configuración de prueba antes de importar ippl (config lee el entorno al importar)
_TMP = Path(tempfile.mkdtemp(prefix="ippl-tests-"))
os.environ["IPPL_DATABASE_URL"] = f"sqlite:///{_TMP / 'test.sqlite'}"
os.environ["IPPL_BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["IPPL_UPLOAD_DIR"] = str(_TMP / "uploads")
os.environ["IPPL_CAROUSEL_DIR"] = str(_TMP / "carousel")

import pytest
from fastapi.testclient import TestClient

from ippl import patient_service, user_service
from ippl.api_main import app
from ippl.auth_models import Role
from ippl.db import drop_db, init_db

PASSWORD = "secreto123"


@pytest.fixture(autouse=True)
def fresh_db():
    drop_db()
    init_db()
    yield


def _login(email: str) -> TestClient:
    client = TestClient(app)
    r = client.post("/api/auth/login", json={"email": email, "password": PASSWORD})
    assert r.status_code == 200, r.text
    client.headers["Authorization"] = f"Bearer {r.json()['token']}"
    return client


@pytest.fixture
def anon():
    return TestClient(app)


@pytest.fixture
def admin_user():
    return user_service.create_user("Admin", "admin@test.local", PASSWORD, Role.ADMIN)


@pytest.fixture
def professional():
    return user_service.create_user(
        "Lic. Gómez", "gomez@test.local", PASSWORD, Role.PROFESSIONAL, commission=20
    )


@pytest.fixture
def other_professional():
    return user_service.create_user("Lic. Ruiz", "ruiz@test.local", PASSWORD, Role.PROFESSIONAL, commission=10)


@pytest.fixture
def editor_user():
    return user_service.create_user("Contenidos", "contenido@test.local", PASSWORD, Role.CONTENT_MANAGER)


@pytest.fixture
def financial_user():
    return user_service.create_user("Finanzas", "finanzas@test.local", PASSWORD, Role.FINANCIAL)


@pytest.fixture
def admin(admin_user):
    return _login(admin_user["email"])


@pytest.fixture
def pro(professional):
    return _login(professional["email"])


@pytest.fixture
def other_pro(other_professional):
    return _login(other_professional["email"])


@pytest.fixture
def editor(editor_user):
    return _login(editor_user["email"])


@pytest.fixture
def financial(financial_user):
    return _login(financial_user["email"])


@pytest.fixture
def patient():
    return patient_service.create_patient("Juan Pérez", "Ansiedad", "juan@example.com", "555-1234")


@pytest.fixture
def assigned_patient(patient, professional):
    return patient_service.assign_patient(
        patient["id"],
        {"professional_id": professional["id"], "status": "active", "session_frequency": "weekly"},
    )
