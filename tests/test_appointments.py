from datetime import date, timedelta

import pytest

from ippl import appointment_service, user_service

DAY = (date.today() + timedelta(days=7)).isoformat()


@pytest.fixture
def booking(professional, assigned_patient):
    return {
        "patientId": assigned_patient["id"],
        "professionalId": professional["id"],
        "date": DAY,
        "startTime": "10:00",
        "sessionCost": 8000,
    }


def test_create_appointment_defaults_to_one_hour(admin, booking):
    r = admin.post("/api/appointments", json=booking)
    assert r.status_code == 201
    a = r.json()
    assert (a["startTime"], a["endTime"]) == ("10:00", "11:00")
    assert a["status"] == "scheduled"
    assert a["type"] == "regular"
    assert a["patientName"] == "Juan Pérez"
    assert a["professionalName"] == "Lic. Gómez"


def test_professional_books_for_itself(pro, professional, assigned_patient):
    r = pro.post("/api/appointments", json={"patientId": assigned_patient["id"], "date": DAY, "startTime": "09:00"})
    assert r.status_code == 201
    assert r.json()["professionalId"] == professional["id"]


def test_missing_fields(admin, assigned_patient):
    r = admin.post("/api/appointments", json={"patientId": assigned_patient["id"], "date": DAY})
    assert r.status_code == 400


def test_overlapping_booking_rejected(admin, booking):
    assert admin.post("/api/appointments", json=booking).status_code == 201

    r = admin.post("/api/appointments", json={**booking, "startTime": "10:30", "endTime": "11:30"})
    assert r.status_code == 400
    assert r.json()["detail"] == appointment_service.SLOT_TAKEN

    # contiguo: no se pisa
    assert admin.post("/api/appointments", json={**booking, "startTime": "11:00"}).status_code == 201


def test_other_professional_same_hour_is_free(admin, booking, other_professional):
    assert admin.post("/api/appointments", json=booking).status_code == 201
    r = admin.post("/api/appointments", json={**booking, "professionalId": other_professional["id"]})
    assert r.status_code == 201


def test_cancelled_appointment_frees_slot(admin, booking):
    a = admin.post("/api/appointments", json=booking).json()
    r = admin.delete(f"/api/appointments/{a['id']}")
    assert r.status_code == 200
    assert r.json()["message"] == "Cita cancelada correctamente"
    assert admin.post("/api/appointments", json=booking).status_code == 201


def test_free_slots(pro, admin, booking, professional):
    admin.post("/api/appointments", json={**booking, "startTime": "10:30", "endTime": "11:30"})
    r = pro.get(f"/api/appointments/slots/{professional['id']}", params={"date": DAY})
    assert r.status_code == 200
    assert r.json()["slots"] == ["09:00", "12:00", "13:00", "14:00", "15:00", "16:00"]


def test_free_slots_bad_date(pro, professional):
    r = pro.get(f"/api/appointments/slots/{professional['id']}", params={"date": "20-01-2025"})
    assert r.status_code == 400


def test_invalid_time_and_range(admin, booking):
    assert admin.post("/api/appointments", json={**booking, "startTime": "25:00"}).status_code == 400
    assert admin.post("/api/appointments", json={**booking, "endTime": "09:00"}).status_code == 400


def test_foreign_audio_url_is_dropped(admin, booking):
    r = admin.post("/api/appointments", json={**booking, "audioNote": "https://evil.example/a.webm"})
    assert r.json()["audioNote"] is None
    r = admin.post(
        "/api/appointments", json={**booking, "startTime": "12:00", "audioNote": "/uploads/audios/a.webm"}
    )
    assert r.json()["audioNote"] == "/uploads/audios/a.webm"


def test_reschedule_keeps_duration_and_checks_conflicts(admin, booking):
    first = admin.post("/api/appointments", json={**booking, "endTime": "11:30"}).json()
    admin.post("/api/appointments", json={**booking, "startTime": "14:00"})

    r = admin.put(f"/api/appointments/{first['id']}", json={"startTime": "12:00"})
    assert r.status_code == 200
    assert (r.json()["startTime"], r.json()["endTime"]) == ("12:00", "13:30")

    # moverla sobre sí misma no cuenta como conflicto
    assert admin.put(f"/api/appointments/{first['id']}", json={"startTime": "12:30"}).status_code == 200

    r = admin.put(f"/api/appointments/{first['id']}", json={"startTime": "13:00"})
    assert r.status_code == 400


def test_only_owner_or_admin_edits(other_pro, pro, admin, booking):
    a = admin.post("/api/appointments", json=booking).json()
    assert other_pro.put(f"/api/appointments/{a['id']}", json={"notes": "x"}).status_code == 403
    assert other_pro.delete(f"/api/appointments/{a['id']}").status_code == 403
    assert pro.put(f"/api/appointments/{a['id']}", json={"notes": "Primera sesión"}).status_code == 200


def test_complete_updates_balance(admin, pro, booking, professional):
    a = admin.post("/api/appointments", json=booking).json()
    r = pro.put(
        f"/api/appointments/{a['id']}",
        json={"status": "completed", "attended": True, "paymentAmount": 5000},
    )
    assert r.status_code == 200
    body = r.json()
    assert body["remainingBalance"] == 3000
    assert body["completedAt"] is not None
    assert user_service.get_user(professional["id"])["balanceTotal"] == 5000

    # completar de nuevo no suma otra vez
    pro.put(f"/api/appointments/{a['id']}", json={"status": "completed"})
    assert user_service.get_user(professional["id"])["balanceTotal"] == 5000


def test_listings(admin, pro, booking, professional, assigned_patient):
    a = admin.post("/api/appointments", json=booking).json()

    assert [x["id"] for x in admin.get("/api/appointments").json()["appointments"]] == [a["id"]]
    assert pro.get("/api/appointments").status_code == 403
    assert [x["id"] for x in pro.get("/api/appointments/upcoming").json()["appointments"]] == [a["id"]]
    assert len(pro.get(f"/api/appointments/professional/{professional['id']}").json()["appointments"]) == 1
    assert len(pro.get(f"/api/appointments/patient/{assigned_patient['id']}").json()["appointments"]) == 1
    assert pro.get(f"/api/appointments/{a['id']}").json()["id"] == a["id"]
    assert pro.get("/api/appointments/no-existe").status_code == 404


def test_upcoming_excludes_past_and_cancelled(admin, booking):
    appointment_service.create_appointment(
        {
            "patient_id": booking["patientId"],
            "professional_id": booking["professionalId"],
            "date": "2020-01-06",
            "start_time": "09:00",
        }
    )
    a = admin.post("/api/appointments", json=booking).json()
    admin.delete(f"/api/appointments/{a['id']}")

    assert appointment_service.list_upcoming(today=date.today()) == []


def test_negative_amounts_rejected(admin, booking):
    r = admin.post("/api/appointments", json={**booking, "sessionCost": -1})
    assert r.status_code == 400
    assert "sessionCost" in r.json()["detail"]

    a = admin.post("/api/appointments", json=booking).json()
    r = admin.put(f"/api/appointments/{a['id']}", json={"paymentAmount": -50})
    assert r.status_code == 400
    assert isinstance(r.json()["detail"], str)
