from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from .activity_service import create_activity
from .auth_models import Role, User
from .db import db_session, utcnow
from .errors import NotFound, ValidationFailed
from .models import Derivation, Patient, PatientStatus, RequestType, SessionFrequency, StatusRequest
from .request_service import add_pending_request, ensure_no_pending_request, lock_patient
from .serializers import patient_flat, request_flat

logger = logging.getLogger(__name__)


def _parse_datetime(value: str | datetime | None) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    try:
        # "2025-08-01T10:00:00.000Z" -> naive UTC
        return datetime.fromisoformat(value.replace("Z", "+00:00")).replace(tzinfo=None)
    except ValueError:
        raise ValidationFailed(f"Fecha no válida: {value}") from None


# =========================
# Query
# =========================
def list_active_patients() -> list[dict]:
    with db_session() as s:
        q = (
            select(Patient)
            .options(selectinload(Patient.derivations))
            .where(Patient.active.is_(True))
            .order_by(Patient.created_at.desc())
        )
        return [patient_flat(p) for p in s.scalars(q)]


def list_professional_patients(professional_id: str) -> list[dict]:
    with db_session() as s:
        q = (
            select(Patient)
            .options(selectinload(Patient.derivations))
            .where(Patient.professional_id == professional_id, Patient.active.is_(True))
            .order_by(Patient.name)
        )
        return [patient_flat(p) for p in s.scalars(q)]


def get_patient(patient_id: str) -> dict:
    with db_session() as s:
        p = s.get(Patient, patient_id)
        if not p or not p.active:
            raise NotFound("Paciente no encontrado")
        return patient_flat(p)


# =========================
# CRUD
# =========================
def create_patient(
    name: str,
    description: str | None = None,
    email: str | None = None,
    phone: str | None = None,
) -> dict:
    if not (name or "").strip():
        raise ValidationFailed("El nombre del paciente es requerido")

    with db_session() as s:
        p = Patient(
            name=name.strip(),
            description=description,
            email=email,
            phone=phone,
            status=PatientStatus.PENDING,
        )
        s.add(p)
        s.flush()
        logger.info(f"Paciente creado: {p.id}")
        return patient_flat(p)


def assign_patient(patient_id: str, data: dict[str, Any]) -> dict:
    """
    Deriva el paciente a un profesional. Cada derivación queda registrada con
    sus notas (texto/audio) y la del último registro es la que se muestra.
    """
    professional_id = data.get("professional_id")
    if not professional_id:
        raise ValidationFailed("Debe indicar el profesional")

    frequency = data.get("session_frequency")
    if frequency:
        try:
            frequency = SessionFrequency(frequency)
        except ValueError:
            raise ValidationFailed("Frecuencia no válida. Debe ser weekly, biweekly o monthly") from None

    status = data.get("status")
    if status:
        try:
            status = PatientStatus(status)
        except ValueError:
            raise ValidationFailed(f"Estado no válido: {status}") from None

    with db_session() as s:
        p = s.get(Patient, patient_id)
        if not p or not p.active:
            raise NotFound("Paciente no encontrado")

        pro = s.get(User, professional_id)
        if not pro or pro.role != Role.PROFESSIONAL:
            raise NotFound("Profesional no encontrado")

        p.professional_id = pro.id
        p.professional_name = data.get("professional_name") or pro.name
        p.assigned_at = _parse_datetime(data.get("assigned_at")) or utcnow()
        if status:
            p.status = status
        if frequency:
            p.session_frequency = frequency

        p.derivations.append(
            Derivation(
                professional_id=pro.id,
                text_note=data.get("text_note"),
                audio_note=data.get("audio_note"),
                session_frequency=frequency or None,
                status_change_reason=data.get("status_change_reason"),
            )
        )
        s.flush()

        create_activity(
            s,
            "PATIENT_ASSIGNED",
            "Paciente asignado",
            f"Paciente {p.name} derivado al profesional {pro.name}",
            {
                "patientId": p.id,
                "patientName": p.name,
                "professionalId": pro.id,
                "professionalName": pro.name,
                "sessionFrequency": frequency.value if frequency else None,
            },
        )
        logger.info(f"Paciente {p.id} asignado a {pro.id}")
        return patient_flat(p)


def delete_patient(patient_id: str) -> None:
    with db_session() as s:
        p = s.get(Patient, patient_id)
        if not p or not p.active:
            raise NotFound("Paciente no encontrado")
        p.active = False
        logger.info(f"Paciente dado de baja (soft delete): {patient_id}")


# =========================
# Solicitudes del profesional
# =========================
def _create_patient_request(
    professional: User,
    patient_id: str,
    reason: str | None,
    type_: RequestType,
    requested: PatientStatus,
    activity_type: str,
    activity_title: str,
    verb: str,
) -> dict:
    with db_session() as s:
        p = lock_patient(s, patient_id)
        ensure_no_pending_request(s, p.id)

        r = StatusRequest(
            type=type_,
            patient_id=p.id,
            patient_name=p.name,
            professional_id=professional.id,
            professional_name=professional.name,
            current_status=p.status,
            requested_status=requested,
            reason=reason,
        )
        add_pending_request(s, r)

        create_activity(
            s,
            activity_type,
            activity_title,
            f"El profesional {professional.name} ha solicitado {verb} al paciente {p.name}",
            {
                "patientId": p.id,
                "patientName": p.name,
                "professionalId": professional.id,
                "professionalName": professional.name,
                "reason": reason,
                "requestId": str(r.id),
            },
        )
        logger.info(f"Solicitud {type_.value} {r.id} para el paciente {p.id}")
        return request_flat(r)


def request_discharge(professional: User, patient_id: str, reason: str | None) -> dict:
    return _create_patient_request(
        professional,
        patient_id,
        reason,
        RequestType.STATUS_CHANGE,
        PatientStatus.INACTIVE,
        "PATIENT_DISCHARGE_REQUEST",
        "Solicitud de baja de paciente",
        "dar de baja",
    )


def request_activation(professional: User, patient_id: str, reason: str | None) -> dict:
    return _create_patient_request(
        professional,
        patient_id,
        reason,
        RequestType.ACTIVATION,
        PatientStatus.ALTA,
        "PATIENT_ACTIVATION_REQUEST",
        "Solicitud de alta de paciente",
        "dar de alta",
    )
