from __future__ import annotations

import logging
from datetime import date
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from .activity_service import create_activity
from .auth_models import Role, User
from .config import SLOT_MINUTES
from .db import db_session, utcnow
from .errors import Conflict, NotFound, PermissionDenied, ValidationFailed
from .models import Appointment, AppointmentStatus, AppointmentType, Patient
from .scheduling import Interval, available_slots, find_conflict, parse_hhmm
from .serializers import appointment_flat

logger = logging.getLogger(__name__)

SLOT_TAKEN = "El horario seleccionado no está disponible"


def parse_date(value: str | date) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValidationFailed(f"Fecha no válida: {value!r} (formato YYYY-MM-DD)") from None


def _parse_type(value: str | None) -> AppointmentType:
    if not value:
        return AppointmentType.REGULAR
    try:
        return AppointmentType(value)
    except ValueError:
        raise ValidationFailed(f"Tipo de cita no válido: {value}") from None


def _parse_status(value: str) -> AppointmentStatus:
    try:
        return AppointmentStatus(value)
    except ValueError:
        raise ValidationFailed(f"Estado de cita no válido: {value}") from None


def _clean_audio_note(value: str | None) -> str | None:
    # solo archivos servidos por /uploads
    if value and not value.startswith("/uploads/"):
        logger.warning(f"URL de audio descartada: {value}")
        return None
    return value or None


def _build_interval(start_time: str, end_time: str | None) -> Interval:
    start = parse_hhmm(start_time)
    end = parse_hhmm(end_time) if end_time else start + SLOT_MINUTES
    return Interval(start, end)


def _busy_intervals(
    s: Session, professional_id: str, day: date, exclude_id: str | None = None
) -> list[tuple[str, Interval]]:
    q = select(Appointment).where(
        Appointment.professional_id == professional_id,
        Appointment.date == day,
        Appointment.status != AppointmentStatus.CANCELLED,
    )
    if exclude_id:
        q = q.where(Appointment.id != exclude_id)
    return [(a.id, Interval.from_hhmm(a.start_time, a.end_time)) for a in s.scalars(q)]


def _check_available(
    s: Session, professional_id: str, day: date, interval: Interval, exclude_id: str | None = None
) -> None:
    conflict = find_conflict(interval, _busy_intervals(s, professional_id, day, exclude_id))
    if conflict is not None:
        logger.warning(
            f"Horario {interval.start_hhmm}-{interval.end_hhmm} del {day} ocupado "
            f"para {professional_id} (cita {conflict[0]})"
        )
        raise Conflict(SLOT_TAKEN)


def _lock_professional(s: Session, professional_id: str) -> User:
    # bloquea la fila del profesional: reservas concurrentes del mismo profesional se serializan
    pro = s.get(User, professional_id, with_for_update=True)
    if not pro or pro.role != Role.PROFESSIONAL:
        raise NotFound("Profesional no encontrado")
    return pro


# =========================
# Query
# =========================
def _list(*criteria) -> list[dict]:
    with db_session() as s:
        q = select(Appointment).where(*criteria).order_by(Appointment.date, Appointment.start_time)
        return [appointment_flat(a) for a in s.scalars(q)]


def list_appointments() -> list[dict]:
    return _list()


def list_professional_appointments(professional_id: str) -> list[dict]:
    return _list(Appointment.professional_id == professional_id)


def list_patient_appointments(patient_id: str) -> list[dict]:
    return _list(Appointment.patient_id == patient_id)


def list_upcoming(today: date | None = None) -> list[dict]:
    today = today or date.today()
    return _list(Appointment.date >= today, Appointment.status == AppointmentStatus.SCHEDULED)


def get_appointment(appointment_id: str) -> dict:
    with db_session() as s:
        a = s.get(Appointment, appointment_id)
        if not a:
            raise NotFound("Cita no encontrada")
        return appointment_flat(a)


def free_slots(professional_id: str, day: str | date) -> list[str]:
    """Inicios 'HH:MM' de los turnos libres del profesional en la fecha."""
    day = parse_date(day)
    with db_session() as s:
        busy = [interval for _, interval in _busy_intervals(s, professional_id, day)]
    return [slot.start_hhmm for slot in available_slots(busy)]


# =========================
# Alta / modificación / cancelación
# =========================
def create_appointment(data: dict[str, Any], created_by: User | None = None) -> dict:
    patient_id = data.get("patient_id")
    professional_id = data.get("professional_id")
    if not professional_id and created_by is not None and created_by.role == Role.PROFESSIONAL:
        professional_id = created_by.id
    if not patient_id or not professional_id or not data.get("date") or not data.get("start_time"):
        raise ValidationFailed("Paciente, profesional, fecha y hora de inicio son requeridos")

    day = parse_date(data["date"])
    interval = _build_interval(data["start_time"], data.get("end_time"))
    type_ = _parse_type(data.get("type"))

    with db_session() as s:
        patient = s.get(Patient, patient_id)
        if not patient:
            raise NotFound("Paciente no encontrado")
        pro = _lock_professional(s, professional_id)

        _check_available(s, pro.id, day, interval)

        a = Appointment(
            patient_id=patient.id,
            patient_name=patient.name,
            professional_id=pro.id,
            professional_name=pro.name,
            date=day,
            start_time=interval.start_hhmm,
            end_time=interval.end_hhmm,
            type=type_,
            status=AppointmentStatus.SCHEDULED,
            notes=data.get("notes"),
            audio_note=_clean_audio_note(data.get("audio_note")),
            session_cost=data.get("session_cost"),
        )
        s.add(a)
        s.flush()

        create_activity(
            s,
            "APPOINTMENT_CREATED",
            "Nueva cita agendada",
            f"Cita de {patient.name} con {pro.name} el {day.isoformat()} a las {interval.start_hhmm}",
            {
                "appointmentId": a.id,
                "patientId": patient.id,
                "patientName": patient.name,
                "professionalId": pro.id,
                "professionalName": pro.name,
                "date": day.isoformat(),
                "startTime": a.start_time,
            },
        )
        logger.info(f"Cita creada: {a.id} ({day} {a.start_time}-{a.end_time})")
        return appointment_flat(a)


def _get_editable(s: Session, appointment_id: str, user: User) -> Appointment:
    a = s.get(Appointment, appointment_id, with_for_update=True)
    if not a:
        raise NotFound("Cita no encontrada")
    if user.role != Role.ADMIN and user.id != a.professional_id:
        raise PermissionDenied("Acceso denegado")
    return a


def update_appointment(appointment_id: str, data: dict[str, Any], user: User) -> dict:
    with db_session() as s:
        a = _get_editable(s, appointment_id, user)
        was_completed = a.status == AppointmentStatus.COMPLETED

        new_status = _parse_status(data["status"]) if data.get("status") else a.status

        # reprogramación
        if any(data.get(k) for k in ("date", "start_time", "end_time")) or (
            a.status == AppointmentStatus.CANCELLED and new_status != AppointmentStatus.CANCELLED
        ):
            day = parse_date(data["date"]) if data.get("date") else a.date
            current = Interval.from_hhmm(a.start_time, a.end_time)
            if data.get("start_time") and not data.get("end_time"):
                start = parse_hhmm(data["start_time"])
                interval = Interval(start, start + (current.end - current.start))
            else:
                interval = Interval.from_hhmm(data.get("start_time") or a.start_time, data.get("end_time") or a.end_time)

            if new_status != AppointmentStatus.CANCELLED and a.professional_id:
                _lock_professional(s, a.professional_id)
                _check_available(s, a.professional_id, day, interval, exclude_id=a.id)

            a.date = day
            a.start_time = interval.start_hhmm
            a.end_time = interval.end_hhmm

        if data.get("type"):
            a.type = _parse_type(data["type"])
        for field in ("notes", "session_cost", "attended", "payment_amount"):
            if field in data and data[field] is not None:
                setattr(a, field, data[field])
        if "audio_note" in data:
            a.audio_note = _clean_audio_note(data["audio_note"])

        a.status = new_status
        if new_status == AppointmentStatus.COMPLETED and not was_completed:
            _complete(s, a)

        a.updated_at = utcnow()
        s.flush()
        logger.info(f"Cita actualizada: {a.id} ({a.status.value})")
        return appointment_flat(a)


def _complete(s: Session, a: Appointment) -> None:
    cost = a.session_cost or 0
    paid = a.payment_amount or 0
    a.completed_at = utcnow()
    a.remaining_balance = max(cost - paid, 0)

    if paid and a.professional_id:
        s.execute(
            update(User)
            .where(User.id == a.professional_id)
            .values(balance_total=func.coalesce(User.balance_total, 0) + paid)
            .execution_options(synchronize_session=False)
        )
        logger.info(f"Saldo de {a.professional_id} incrementado en {paid}")


def cancel_appointment(appointment_id: str, user: User) -> None:
    with db_session() as s:
        a = _get_editable(s, appointment_id, user)
        a.status = AppointmentStatus.CANCELLED
        a.updated_at = utcnow()
        logger.info(f"Cita cancelada: {a.id}")


def cancel_appointment_as_admin(appointment_id: str) -> bool:
    """Cancelación sin control de permisos (CLI)."""
    with db_session() as s:
        a = s.get(Appointment, appointment_id)
        if not a or a.status == AppointmentStatus.CANCELLED:
            return False
        a.status = AppointmentStatus.CANCELLED
        a.updated_at = utcnow()
        logger.info(f"Cita cancelada: {a.id}")
        return True
