from ippl import activity_service


def test_create_patient_starts_pending(admin):
    r = admin.post("/api/patients", json={"name": "María López", "email": "maria@example.com"})
    assert r.status_code == 201
    assert r.json()["status"] == "pending"
    assert r.json()["professionalId"] is None


def test_create_patient_requires_name(admin):
    assert admin.post("/api/patients", json={"name": "  "}).status_code == 400


def test_only_admin_creates_patients(pro):
    assert pro.post("/api/patients", json={"name": "X"}).status_code == 403


def test_assign_patient(admin, patient, professional):
    r = admin.put(
        f"/api/patients/{patient['id']}/assign",
        json={
            "professionalId": professional["id"],
            "status": "active",
            "sessionFrequency": "biweekly",
            "textNote": "Derivado por guardia",
            "audioNote": "/uploads/audios/nota.webm",
        },
    )
    assert r.status_code == 200
    body = r.json()
    assert body["professionalId"] == professional["id"]
    assert body["professionalName"] == "Lic. Gómez"
    assert body["status"] == "active"
    assert body["sessionFrequency"] == "biweekly"
    assert body["textNote"] == "Derivado por guardia"
    assert body["assignedAt"] is not None

    types = [a["type"] for a in activity_service.list_notifications(only_system=False)]
    assert "PATIENT_ASSIGNED" in types


def test_assign_requires_existing_professional(admin, patient, editor_user):
    r = admin.put(f"/api/patients/{patient['id']}/assign", json={})
    assert r.status_code == 400
    r = admin.put(f"/api/patients/{patient['id']}/assign", json={"professionalId": editor_user["id"]})
    assert r.status_code == 404


def test_assign_rejects_bad_frequency(admin, patient, professional):
    r = admin.put(
        f"/api/patients/{patient['id']}/assign",
        json={"professionalId": professional["id"], "sessionFrequency": "daily"},
    )
    assert r.status_code == 400


def test_professional_patients(pro, professional, assigned_patient, patient):
    r = pro.get(f"/api/patients/professional/{professional['id']}")
    assert r.status_code == 200
    assert [p["id"] for p in r.json()["patients"]] == [assigned_patient["id"]]


def test_soft_delete(admin, patient):
    assert admin.delete(f"/api/patients/{patient['id']}").status_code == 200
    assert admin.get(f"/api/patients/{patient['id']}").status_code == 404
    assert admin.get("/api/patients").json()["patients"] == []


def test_request_discharge(pro, assigned_patient):
    r = pro.post(f"/api/patients/{assigned_patient['id']}/request-discharge", json={"reason": "Fin de tratamiento"})
    assert r.status_code == 201
    req = r.json()["request"]
    assert req["type"] == "status_change"
    assert req["currentStatus"] == "active"
    assert req["requestedStatus"] == "inactive"

    r = pro.post(f"/api/patients/{assigned_patient['id']}/request-activation", json={"reason": "otra"})
    assert r.status_code == 400
    assert r.json()["detail"] == "Ya existe una solicitud pendiente para este paciente"


def test_request_activation(pro, patient):
    r = pro.post(f"/api/patients/{patient['id']}/request-activation", json={"reason": "Listo para alta"})
    assert r.status_code == 201
    assert r.json()["request"]["type"] == "activation"
    assert r.json()["request"]["requestedStatus"] == "alta"

    types = [a["type"] for a in activity_service.list_notifications()]
    assert types == ["PATIENT_ACTIVATION_REQUEST"]


def test_admin_cannot_request_discharge(admin, assigned_patient):
    r = admin.post(f"/api/patients/{assigned_patient['id']}/request-discharge", json={})
    assert r.status_code == 403
