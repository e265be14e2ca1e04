from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from .db import db_session
from .errors import NotFound
from .models import Activity
from .serializers import activity_flat

logger = logging.getLogger(__name__)

# Actividades que el panel muestra como notificaciones del sistema
SYSTEM_NOTIFICATION_TYPES = (
    "PATIENT_DISCHARGE_REQUEST",
    "PATIENT_ACTIVATION_REQUEST",
    "PATIENT_ACTIVATION_APPROVED",
    "STATUS_CHANGE_APPROVED",
    "STATUS_CHANGE_REJECTED",
    "FREQUENCY_CHANGE_REQUEST",
    "FREQUENCY_CHANGE_APPROVED",
    "FREQUENCY_CHANGE_REJECTED",
)


def create_activity(
    s: Session,
    type_: str,
    title: str,
    description: str,
    metadata: dict[str, Any] | None = None,
) -> Activity:
    """Registra una actividad dentro de la transacción de quien la provoca."""
    metadata = metadata or {}
    activity = Activity(
        type=type_,
        title=title,
        description=description,
        meta=metadata,
        patient_id=metadata.get("patientId"),
        professional_id=metadata.get("professionalId"),
    )
    s.add(activity)
    s.flush()
    logger.info(f"Actividad {type_} registrada ({activity.id})")
    return activity


def add_activity(type_: str, title: str, description: str, metadata: dict[str, Any] | None = None) -> dict:
    with db_session() as s:
        return activity_flat(create_activity(s, type_, title, description, metadata))


def list_notifications(only_system: bool = True) -> list[dict]:
    with db_session() as s:
        q = select(Activity).order_by(Activity.occurred_at.desc(), Activity.id.desc())
        if only_system:
            q = q.where(Activity.type.in_(SYSTEM_NOTIFICATION_TYPES))
        return [activity_flat(a) for a in s.scalars(q)]


def unread_count() -> int:
    with db_session() as s:
        return s.scalar(select(func.count(Activity.id)).where(Activity.read.is_(False))) or 0


def mark_read(activity_id: int) -> None:
    with db_session() as s:
        a = s.get(Activity, activity_id)
        if not a:
            raise NotFound("Actividad no encontrada")
        a.read = True


def mark_all_read() -> None:
    with db_session() as s:
        s.execute(update(Activity).values(read=True))


def clear_all() -> int:
    with db_session() as s:
        deleted = s.execute(delete(Activity)).rowcount
        logger.info(f"{deleted} actividades eliminadas")
        return deleted
