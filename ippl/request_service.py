"""
Solicitudes de cambio sobre un paciente (baja, alta, frecuencia de sesiones).

Un profesional las crea, el admin las aprueba o rechaza. Todas viven en la
misma tabla, así la regla "una sola solicitud pendiente por paciente" se
comprueba con una única consulta dentro de la transacción que inserta.
"""
from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .activity_service import create_activity
from .auth_models import User
from .db import db_session, utcnow
from .errors import Conflict, NotFound, PermissionDenied, ValidationFailed
from .models import Patient, PatientStatus, RequestStatus, RequestType, SessionFrequency, StatusRequest
from .serializers import request_flat

logger = logging.getLogger(__name__)

# estados que se pueden pedir con una solicitud de cambio de estado
REQUESTABLE_STATUSES = (PatientStatus.ACTIVE, PatientStatus.PENDING, PatientStatus.INACTIVE, PatientStatus.ABSENT)

PENDING_EXISTS = "Ya existe una solicitud pendiente para este paciente"


def ensure_no_pending_request(s: Session, patient_id: str) -> None:
    pending = s.execute(
        select(StatusRequest.id).where(
            StatusRequest.patient_id == patient_id,
            StatusRequest.status == RequestStatus.PENDING,
        )
    ).first()
    if pending is not None:
        logger.warning(f"Solicitud duplicada para el paciente {patient_id}")
        raise Conflict(PENDING_EXISTS)


def add_pending_request(s: Session, r: StatusRequest) -> None:
    """Inserta la solicitud; el índice único parcial rechaza una segunda pendiente."""
    s.add(r)
    try:
        s.flush()
    except IntegrityError:
        logger.warning(f"Solicitud pendiente duplicada para el paciente {r.patient_id}")
        raise Conflict(PENDING_EXISTS) from None


def lock_patient(s: Session, patient_id: str) -> Patient:
    # bloquea la fila del paciente: solicitudes concurrentes sobre el mismo paciente se serializan
    p = s.get(Patient, patient_id, with_for_update=True)
    if not p or not p.active:
        raise NotFound("Paciente no encontrado")
    return p


def _parse_frequency(value: str | None) -> SessionFrequency:
    try:
        return SessionFrequency(value)
    except ValueError:
        raise ValidationFailed("Frecuencia no válida. Debe ser weekly, biweekly o monthly") from None


# =========================
# Creación
# =========================
def create_status_change_request(professional: User, patient_id: str, requested_status: str, reason: str | None) -> dict:
    try:
        requested = PatientStatus(requested_status)
    except ValueError:
        requested = None
    if requested not in REQUESTABLE_STATUSES:
        raise ValidationFailed(
            "Estado no válido. Los estados permitidos son: activo, pendiente, inactivo y ausente"
        )

    with db_session() as s:
        p = lock_patient(s, patient_id)
        if p.status not in REQUESTABLE_STATUSES:
            raise ValidationFailed(
                "Estado no válido. Los estados permitidos son: activo, pendiente, inactivo y ausente"
            )
        if p.status == PatientStatus.ACTIVE and requested != PatientStatus.INACTIVE:
            raise ValidationFailed("Solo se permiten solicitudes de cambio de estado de activo a inactivo")
        ensure_no_pending_request(s, p.id)

        r = StatusRequest(
            type=RequestType.STATUS_CHANGE,
            patient_id=p.id,
            patient_name=p.name,
            professional_id=professional.id,
            professional_name=professional.name,
            current_status=p.status,
            requested_status=requested,
            reason=reason,
        )
        add_pending_request(s, r)
        logger.info(f"Solicitud de cambio de estado {r.id} para el paciente {p.id}")
        return request_flat(r)


def create_frequency_request(professional: User, patient_id: str, new_frequency: str, reason: str | None) -> dict:
    requested = _parse_frequency(new_frequency)
    if not (reason or "").strip():
        raise ValidationFailed("Debe indicar el motivo del cambio de frecuencia")

    with db_session() as s:
        p = lock_patient(s, patient_id)
        if p.professional_id != professional.id:
            raise PermissionDenied("No tienes permiso para solicitar cambios para este paciente")
        if p.session_frequency == requested:
            raise ValidationFailed("La nueva frecuencia debe ser diferente a la actual")
        ensure_no_pending_request(s, p.id)

        current = p.session_frequency
        r = StatusRequest(
            type=RequestType.FREQUENCY_CHANGE,
            patient_id=p.id,
            patient_name=p.name,
            professional_id=professional.id,
            professional_name=professional.name,
            current_status=p.status,
            current_frequency=current,
            requested_frequency=requested,
            reason=reason.strip(),
        )
        add_pending_request(s, r)

        create_activity(
            s,
            "FREQUENCY_CHANGE_REQUEST",
            "Solicitud de cambio de frecuencia",
            f"El profesional {professional.name} ha solicitado cambiar la frecuencia de sesiones del paciente "
            f"{p.name} de {current.value if current else 'sin definir'} a {requested.value}",
            {
                "patientId": p.id,
                "patientName": p.name,
                "professionalId": professional.id,
                "professionalName": professional.name,
                "currentFrequency": current.value if current else None,
                "newFrequency": requested.value,
                "reason": r.reason,
                "requestId": str(r.id),
            },
        )
        logger.info(f"Solicitud de cambio de frecuencia {r.id} para el paciente {p.id}")
        return request_flat(r)


# =========================
# Consultas
# =========================
def list_pending(type_: RequestType | None = None) -> list[dict]:
    with db_session() as s:
        q = select(StatusRequest).where(StatusRequest.status == RequestStatus.PENDING)
        if type_ is not None:
            q = q.where(StatusRequest.type == type_)
        q = q.order_by(StatusRequest.created_at.desc(), StatusRequest.id.desc())
        return [request_flat(r) for r in s.scalars(q)]


def list_by_professional(professional_id: str) -> list[dict]:
    with db_session() as s:
        q = (
            select(StatusRequest)
            .where(StatusRequest.professional_id == professional_id)
            .order_by(StatusRequest.created_at.desc(), StatusRequest.id.desc())
        )
        return [request_flat(r) for r in s.scalars(q)]


def list_by_patient(patient_id: str, type_: RequestType | None = None) -> list[dict]:
    with db_session() as s:
        q = select(StatusRequest).where(StatusRequest.patient_id == patient_id)
        if type_ is not None:
            q = q.where(StatusRequest.type == type_)
        q = q.order_by(StatusRequest.created_at.desc(), StatusRequest.id.desc())
        return [request_flat(r) for r in s.scalars(q)]


# =========================
# Resolución (admin)
# =========================
def _get_pending(s: Session, request_id: int | str) -> StatusRequest:
    try:
        rid = int(request_id)
    except (TypeError, ValueError):
        raise NotFound("Solicitud no encontrada") from None
    r = s.get(StatusRequest, rid)
    if not r:
        raise NotFound("Solicitud no encontrada")
    if r.status != RequestStatus.PENDING:
        raise ValidationFailed("Esta solicitud ya fue procesada")
    return r


def _base_metadata(r: StatusRequest) -> dict:
    return {
        "patientId": r.patient_id,
        "patientName": r.patient_name,
        "professionalId": r.professional_id,
        "professionalName": r.professional_name,
        "requestId": str(r.id),
    }


def approve_request(request_id: int | str, admin_response: str | None = None) -> dict:
    with db_session() as s:
        r = _get_pending(s, request_id)
        p = s.get(Patient, r.patient_id)
        if not p:
            raise NotFound("Paciente no encontrado")

        meta = _base_metadata(r)
        meta["adminResponse"] = admin_response

        if r.type == RequestType.FREQUENCY_CHANGE:
            p.session_frequency = r.requested_frequency
            old = r.current_frequency.value if r.current_frequency else None
            meta.update(oldFrequency=old, newFrequency=r.requested_frequency.value)
            create_activity(
                s,
                "FREQUENCY_CHANGE_APPROVED",
                "Cambio de frecuencia aprobado",
                f"Se ha aprobado el cambio de frecuencia de sesiones para el paciente {r.patient_name} "
                f"de {old or 'sin definir'} a {r.requested_frequency.value}",
                meta,
            )
        elif r.type == RequestType.ACTIVATION:
            p.status = PatientStatus.ALTA
            p.activated_at = utcnow()
            create_activity(
                s,
                "PATIENT_ACTIVATION_APPROVED",
                "Alta de paciente aprobada",
                f"Se ha aprobado el alta para el paciente {r.patient_name}",
                meta,
            )
        else:
            p.status = r.requested_status
            old = r.current_status.value if r.current_status else None
            meta.update(oldStatus=old, newStatus=r.requested_status.value)
            create_activity(
                s,
                "STATUS_CHANGE_APPROVED",
                "Cambio de estado aprobado",
                f"Se ha aprobado el cambio de estado para el paciente {r.patient_name} "
                f"de {old} a {r.requested_status.value}",
                meta,
            )

        r.status = RequestStatus.APPROVED
        r.admin_response = admin_response
        r.updated_at = utcnow()
        logger.info(f"Solicitud {r.id} aprobada ({r.type.value})")
        return request_flat(r)


def reject_request(request_id: int | str, admin_response: str | None) -> dict:
    if not (admin_response or "").strip():
        raise ValidationFailed("Se requiere una razón para el rechazo")

    with db_session() as s:
        r = _get_pending(s, request_id)
        r.status = RequestStatus.REJECTED
        r.admin_response = admin_response
        r.updated_at = utcnow()

        meta = _base_metadata(r)
        meta["reason"] = admin_response
        if r.type == RequestType.FREQUENCY_CHANGE:
            meta.update(
                currentFrequency=r.current_frequency.value if r.current_frequency else None,
                requestedFrequency=r.requested_frequency.value if r.requested_frequency else None,
            )
            create_activity(
                s,
                "FREQUENCY_CHANGE_REJECTED",
                "Cambio de frecuencia rechazado",
                f"Se ha rechazado el cambio de frecuencia de sesiones para el paciente {r.patient_name}",
                meta,
            )
        else:
            meta.update(
                currentStatus=r.current_status.value if r.current_status else None,
                requestedStatus=r.requested_status.value if r.requested_status else None,
            )
            create_activity(
                s,
                "STATUS_CHANGE_REJECTED",
                "Cambio de estado rechazado",
                f"Se ha rechazado el cambio de estado para el paciente {r.patient_name}",
                meta,
            )

        logger.info(f"Solicitud {r.id} rechazada ({r.type.value})")
        return request_flat(r)
