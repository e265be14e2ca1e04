from ippl import activity_service, patient_service


def _status_change(client, patient_id, requested="inactive", reason="Motivo"):
    return client.post(
        "/api/status-requests/status-change",
        json={"patientId": patient_id, "requestedStatus": requested, "reason": reason},
    )


def test_status_change_from_active_only_to_inactive(pro, assigned_patient):
    r = _status_change(pro, assigned_patient["id"], requested="absent")
    assert r.status_code == 400

    r = _status_change(pro, assigned_patient["id"])
    assert r.status_code == 201
    assert r.json()["currentStatus"] == "active"
    assert r.json()["requestedStatus"] == "inactive"
    assert r.json()["status"] == "pending"


def test_status_change_rejects_unknown_status(pro, assigned_patient):
    assert _status_change(pro, assigned_patient["id"], requested="alta").status_code == 400
    assert _status_change(pro, assigned_patient["id"], requested="dormido").status_code == 400


def test_one_pending_request_per_patient(pro, assigned_patient):
    assert _status_change(pro, assigned_patient["id"]).status_code == 201
    r = pro.post(
        f"/api/status-requests/frequency-change/{assigned_patient['id']}",
        json={"newFrequency": "monthly", "reason": "Evolución favorable"},
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "Ya existe una solicitud pendiente para este paciente"


def test_approve_status_change(admin, pro, assigned_patient):
    req = _status_change(pro, assigned_patient["id"]).json()

    r = admin.get("/api/status-requests/pending")
    assert [x["id"] for x in r.json()["requests"]] == [req["id"]]

    r = admin.post(f"/api/status-requests/{req['id']}/approve", json={"adminResponse": "OK"})
    assert r.status_code == 200
    assert r.json()["status"] == "approved"
    assert patient_service.get_patient(assigned_patient["id"])["status"] == "inactive"

    types = [a["type"] for a in activity_service.list_notifications()]
    assert "STATUS_CHANGE_APPROVED" in types

    r = admin.post(f"/api/status-requests/{req['id']}/approve", json={})
    assert r.status_code == 400
    assert r.json()["detail"] == "Esta solicitud ya fue procesada"


def test_approve_activation_sets_alta(admin, pro, patient):
    req = pro.post(f"/api/patients/{patient['id']}/request-activation", json={"reason": "Alta"}).json()["request"]
    assert admin.post(f"/api/status-requests/{req['id']}/approve", json={}).status_code == 200

    p = patient_service.get_patient(patient["id"])
    assert p["status"] == "alta"
    assert p["activatedAt"] is not None


def test_reject_requires_reason(admin, pro, assigned_patient):
    req = _status_change(pro, assigned_patient["id"]).json()

    r = admin.post(f"/api/status-requests/{req['id']}/reject", json={"adminResponse": " "})
    assert r.status_code == 400
    assert r.json()["detail"] == "Se requiere una razón para el rechazo"

    r = admin.post(f"/api/status-requests/{req['id']}/reject", json={"adminResponse": "Faltan datos"})
    assert r.status_code == 200
    assert r.json()["status"] == "rejected"
    assert patient_service.get_patient(assigned_patient["id"])["status"] == "active"

    # ya no bloquea nuevas solicitudes
    assert _status_change(pro, assigned_patient["id"]).status_code == 201


def test_unknown_request(admin):
    assert admin.post("/api/status-requests/999/approve", json={}).status_code == 404
    assert admin.post("/api/status-requests/abc/approve", json={}).status_code == 404


def test_requests_by_professional(admin, pro, other_pro, professional, assigned_patient):
    _status_change(pro, assigned_patient["id"])
    assert len(pro.get(f"/api/status-requests/professional/{professional['id']}").json()["requests"]) == 1
    assert len(admin.get(f"/api/status-requests/professional/{professional['id']}").json()["requests"]) == 1
    assert other_pro.get(f"/api/status-requests/professional/{professional['id']}").status_code == 403


def test_frequency_change_flow(admin, pro, assigned_patient):
    r = pro.post(
        f"/api/status-requests/frequency-change/{assigned_patient['id']}",
        json={"newFrequency": "monthly", "reason": "Evolución favorable"},
    )
    assert r.status_code == 200
    assert r.json()["success"] is True
    req = r.json()["request"]
    assert req["currentFrequency"] == "weekly"
    assert req["requestedFrequency"] == "monthly"

    pending = admin.get("/api/frequency-requests/pending").json()
    assert [x["id"] for x in pending] == [req["id"]]

    assert admin.post(f"/api/frequency-requests/{req['id']}/approve", json={}).status_code == 200
    assert patient_service.get_patient(assigned_patient["id"])["sessionFrequency"] == "monthly"

    history = admin.get(f"/api/frequency-requests/patient/{assigned_patient['id']}").json()
    assert [x["status"] for x in history] == ["approved"]


def test_frequency_change_validation(pro, other_pro, assigned_patient):
    url = "/api/frequency-requests"
    pid = assigned_patient["id"]

    assert pro.post(url, json={"newFrequency": "monthly", "reason": "x"}).status_code == 400
    assert pro.post(url, json={"patientId": pid, "newFrequency": "daily", "reason": "x"}).status_code == 400
    assert pro.post(url, json={"patientId": pid, "newFrequency": "monthly", "reason": ""}).status_code == 400
    assert pro.post(url, json={"patientId": pid, "newFrequency": "weekly", "reason": "x"}).status_code == 400
    assert other_pro.post(url, json={"patientId": pid, "newFrequency": "monthly", "reason": "x"}).status_code == 403

    r = pro.post(url, json={"patientId": pid, "newFrequency": "biweekly", "reason": "Mejoría"})
    assert r.status_code == 201
    types = [a["type"] for a in activity_service.list_notifications()]
    assert types == ["FREQUENCY_CHANGE_REQUEST"]


def test_frequency_reject_logs_activity(admin, pro, assigned_patient):
    req = pro.post(
        "/api/frequency-requests",
        json={"patientId": assigned_patient["id"], "newFrequency": "monthly", "reason": "x"},
    ).json()
    r = admin.post(f"/api/frequency-requests/{req['id']}/reject", json={"adminResponse": "Todavía no"})
    assert r.status_code == 200
    assert patient_service.get_patient(assigned_patient["id"])["sessionFrequency"] == "weekly"
    assert "FREQUENCY_CHANGE_REJECTED" in [a["type"] for a in activity_service.list_notifications()]


def test_malformed_body_is_400_with_message(pro, assigned_patient):
    r = pro.post("/api/status-requests/status-change", json={"requestedStatus": "inactive"})
    assert r.status_code == 400
    assert isinstance(r.json()["detail"], str)
    assert "patientId" in r.json()["detail"]
