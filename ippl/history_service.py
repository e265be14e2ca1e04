from __future__ import annotations

import logging
from datetime import date
from typing import Any

from sqlalchemy import select

from .auth_models import Role, User
from .db import db_session, utcnow
from .errors import NotFound, PermissionDenied, ValidationFailed
from .models import MedicalHistory, Patient
from .serializers import history_flat

logger = logging.getLogger(__name__)


def _parse_date(value: str | date | None) -> date:
    if isinstance(value, date):
        return value
    if not value:
        return date.today()
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        raise ValidationFailed(f"Fecha no válida: {value!r}") from None


def list_histories(patient_id: str | None = None, professional_id: str | None = None) -> list[dict]:
    with db_session() as s:
        q = select(MedicalHistory).order_by(MedicalHistory.date.desc(), MedicalHistory.created_at.desc())
        if patient_id:
            q = q.where(MedicalHistory.patient_id == patient_id)
        if professional_id:
            q = q.where(MedicalHistory.professional_id == professional_id)
        return [history_flat(h) for h in s.scalars(q)]


def get_history(history_id: str) -> dict:
    with db_session() as s:
        h = s.get(MedicalHistory, history_id)
        if not h:
            raise NotFound("Historial médico no encontrado")
        return history_flat(h)


def create_history(data: dict[str, Any], professional: User) -> dict:
    patient_id = data.get("patient_id")
    if not patient_id or not (data.get("diagnosis") or "").strip():
        raise ValidationFailed("Paciente y diagnóstico son requeridos")

    with db_session() as s:
        if not s.get(Patient, patient_id):
            raise NotFound("Paciente no encontrado")
        h = MedicalHistory(
            patient_id=patient_id,
            professional_id=professional.id,
            date=_parse_date(data.get("date")),
            diagnosis=data["diagnosis"].strip(),
            treatment=data.get("treatment"),
            notes=data.get("notes"),
        )
        s.add(h)
        s.flush()
        logger.info(f"Historial médico creado: {h.id} (paciente {patient_id})")
        return history_flat(h)


def update_history(history_id: str, data: dict[str, Any], user: User) -> dict:
    with db_session() as s:
        h = s.get(MedicalHistory, history_id)
        if not h:
            raise NotFound("Historial médico no encontrado")
        if user.role != Role.ADMIN and h.professional_id != user.id:
            raise PermissionDenied("No tienes permiso para modificar este historial")

        # solo los campos informados
        for field in ("diagnosis", "treatment", "notes"):
            if data.get(field):
                setattr(h, field, data[field])
        h.updated_at = utcnow()
        s.flush()
        return history_flat(h)


def delete_history(history_id: str) -> None:
    with db_session() as s:
        h = s.get(MedicalHistory, history_id)
        if not h:
            raise NotFound("Historial médico no encontrado")
        s.delete(h)
        logger.info(f"Historial médico eliminado: {history_id}")
