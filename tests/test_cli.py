from datetime import date, timedelta

import pytest

from ippl import appointment_service, user_service
from ippl.cli import main
from ippl.seed import DEMO_USERS, seed_base


def test_init_seeds_once(capsys):
    main(["init"])
    main(["init"])
    emails = {u["email"] for u in user_service.list_users()}
    assert emails == {email for _, _, email, _, _ in DEMO_USERS}
    assert "DB inicializada" in capsys.readouterr().out


def test_add_user_and_duplicate(capsys):
    main(["add-user", "--name", "Lic. Paz", "--email", "paz@test.local", "--password", "abc123", "--role", "professional"])
    assert "Usuario creado" in capsys.readouterr().out

    with pytest.raises(SystemExit) as exc:
        main(["add-user", "--name", "Otra", "--email", "paz@test.local", "--password", "abc123", "--role", "admin"])
    assert exc.value.code == 1
    assert "El email ya está registrado" in capsys.readouterr().out


def test_book_slots_and_cancel(capsys, professional, assigned_patient):
    day = (date.today() + timedelta(days=2)).isoformat()
    main(["book", "--patient-id", assigned_patient["id"], "--professional-id", professional["id"],
          "--date", day, "--start", "09:00"])
    assert "09:00-10:00" in capsys.readouterr().out

    main(["slots", "--professional-id", professional["id"], "--date", day])
    out = capsys.readouterr().out
    assert "09:00" not in out and "10:00" in out

    appointment_id = appointment_service.list_appointments()[0]["id"]
    main(["cancel", "--appointment-id", appointment_id])
    assert "Cancelada." in capsys.readouterr().out
    main(["cancel", "--appointment-id", appointment_id])
    assert "No encontrada" in capsys.readouterr().out


def test_reset_password(capsys, anon):
    seed_base()
    main(["reset-password", "--login", "admin", "--password", "nueva-clave"])
    assert "Contraseña actualizada" in capsys.readouterr().out

    r = anon.post("/api/auth/login", json={"username": "admin", "password": "nueva-clave"})
    assert r.status_code == 200

    main(["reset-password", "--login", "nadie", "--password", "nueva-clave"])
    assert "Usuario no encontrado" in capsys.readouterr().out
