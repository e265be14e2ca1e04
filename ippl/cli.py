from __future__ import annotations

import argparse
import logging

from . import activity_service, appointment_service, patient_service, user_service
from .auth_service import reset_password
from .config import LOG_LEVEL
from .db import init_db
from .errors import ServiceError
from .seed import seed_base


def cmd_init(args: argparse.Namespace) -> None:
    init_db()
    seed_base()
    print("DB inicializada y seed completado.")


def cmd_list(args: argparse.Namespace) -> None:
    if args.entity == "users":
        for u in user_service.list_users():
            print(f"{u['id']} | {u['name']} | {u['email']} | {u['role']} | {u['status']}")
    elif args.entity == "professionals":
        for u in user_service.list_professionals():
            print(f"{u['id']} | {u['name']} | comisión {u['commission'] or 0}% | saldo {u['balanceTotal']}")
    elif args.entity == "patients":
        for p in patient_service.list_active_patients():
            print(f"{p['id']} | {p['name']} | {p['status']} | {p['professionalName'] or '-'}")
    elif args.entity == "appointments":
        for a in appointment_service.list_appointments():
            print(
                f"{a['id']} | {a['date']} {a['startTime']}-{a['endTime']} | "
                f"{a['patientName']} con {a['professionalName']} | {a['status']}"
            )


def cmd_add_user(args: argparse.Namespace) -> None:
    u = user_service.create_user(
        name=args.name,
        email=args.email,
        password=args.password,
        role=args.role,
        username=args.username,
        commission=args.commission,
    )
    print(f"Usuario creado: {u['id']}")


def cmd_add_patient(args: argparse.Namespace) -> None:
    p = patient_service.create_patient(args.name, args.description, args.email, args.phone)
    print(f"Paciente creado: {p['id']}")


def cmd_book(args: argparse.Namespace) -> None:
    a = appointment_service.create_appointment(
        {
            "patient_id": args.patient_id,
            "professional_id": args.professional_id,
            "date": args.date,
            "start_time": args.start,
            "end_time": args.end,
            "type": args.type,
            "notes": args.notes,
            "session_cost": args.cost,
        }
    )
    print(f"Cita agendada: {a['id']} ({a['date']} {a['startTime']}-{a['endTime']})")


def cmd_cancel(args: argparse.Namespace) -> None:
    ok = appointment_service.cancel_appointment_as_admin(args.appointment_id)
    print("Cancelada." if ok else "No encontrada / ya cancelada.")


def cmd_slots(args: argparse.Namespace) -> None:
    slots = appointment_service.free_slots(args.professional_id, args.date)
    print(", ".join(slots) if slots else "Sin horarios libres.")


def cmd_activities(args: argparse.Namespace) -> None:
    items = activity_service.list_notifications(only_system=not args.all)[: args.limit]
    if not items:
        print("Sin actividades.")
        return
    for a in items:
        mark = " " if a["read"] else "*"
        print(f"{mark}[{a['id']}] {a['date']} | {a['type']} | {a['title']}")

    if args.mark_read:
        activity_service.mark_all_read()
        print("Actividades marcadas como leídas.")


def cmd_reset_password(args: argparse.Namespace) -> None:
    ok = reset_password(args.login, args.password)
    print("Contraseña actualizada." if ok else "Usuario no encontrado.")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="ippl-cli", description="CLI IPPL (administración y tareas de soporte)")
    sub = p.add_subparsers(required=True)

    p_init = sub.add_parser("init", help="Crea la DB y carga las cuentas demo")
    p_init.set_defaults(func=cmd_init)

    p_list = sub.add_parser("list", help="Lista entidades")
    p_list.add_argument("entity", choices=["users", "professionals", "patients", "appointments"])
    p_list.set_defaults(func=cmd_list)

    p_addu = sub.add_parser("add-user", help="Crea un usuario")
    p_addu.add_argument("--name", required=True)
    p_addu.add_argument("--email", required=True)
    p_addu.add_argument("--password", required=True)
    p_addu.add_argument("--role", required=True, choices=["admin", "professional", "content_manager", "financial"])
    p_addu.add_argument("--username", default=None)
    p_addu.add_argument("--commission", type=float, default=None, help="Porcentaje de comisión (profesionales)")
    p_addu.set_defaults(func=cmd_add_user)

    p_addp = sub.add_parser("add-patient", help="Crea un paciente (estado pending)")
    p_addp.add_argument("--name", required=True)
    p_addp.add_argument("--description", default=None)
    p_addp.add_argument("--email", default=None)
    p_addp.add_argument("--phone", default=None)
    p_addp.set_defaults(func=cmd_add_patient)

    p_book = sub.add_parser("book", help="Agenda una cita")
    p_book.add_argument("--patient-id", required=True)
    p_book.add_argument("--professional-id", required=True)
    p_book.add_argument("--date", required=True, help="YYYY-MM-DD")
    p_book.add_argument("--start", required=True, help="HH:MM")
    p_book.add_argument("--end", default=None, help="HH:MM (por defecto inicio + 60 min)")
    p_book.add_argument("--type", default="regular", choices=["regular", "first_time", "emergency"])
    p_book.add_argument("--cost", type=float, default=None)
    p_book.add_argument("--notes", default=None)
    p_book.set_defaults(func=cmd_book)

    p_cancel = sub.add_parser("cancel", help="Cancela una cita")
    p_cancel.add_argument("--appointment-id", required=True)
    p_cancel.set_defaults(func=cmd_cancel)

    p_slots = sub.add_parser("slots", help="Horarios libres de un profesional")
    p_slots.add_argument("--professional-id", required=True)
    p_slots.add_argument("--date", required=True, help="YYYY-MM-DD")
    p_slots.set_defaults(func=cmd_slots)

    p_act = sub.add_parser("activities", help="Notificaciones del sistema")
    p_act.add_argument("--limit", type=int, default=50)
    p_act.add_argument("--all", action="store_true", help="Incluye todos los tipos de actividad")
    p_act.add_argument("--mark-read", action="store_true", help="Marca todas como leídas después de listarlas")
    p_act.set_defaults(func=cmd_activities)

    p_reset = sub.add_parser("reset-password", help="Cambia la contraseña de un usuario")
    p_reset.add_argument("--login", required=True, help="email o username")
    p_reset.add_argument("--password", required=True)
    p_reset.set_defaults(func=cmd_reset_password)

    return p


def main(argv: list[str] | None = None) -> None:
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    parser = build_parser()
    args = parser.parse_args(argv)
    init_db()  # garantiza las tablas
    try:
        args.func(args)
    except ServiceError as e:
        print(f"Error: {e.message}")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
