from __future__ import annotations

import logging

from sqlalchemy import delete, select

from .db import db_session
from .errors import NotFound, ValidationFailed
from .models import Message
from .serializers import message_flat

logger = logging.getLogger(__name__)


def create_message(first_name: str, email: str, message: str, last_name: str | None = None) -> dict:
    """Formulario de contacto de la web pública."""
    if not (first_name or "").strip() or not (email or "").strip() or not (message or "").strip():
        raise ValidationFailed("Nombre, email y mensaje son requeridos")

    with db_session() as s:
        m = Message(
            first_name=first_name.strip(),
            last_name=(last_name or "").strip() or None,
            email=email.strip(),
            message=message.strip(),
        )
        s.add(m)
        s.flush()
        logger.info(f"Mensaje de contacto recibido: {m.id}")
        return message_flat(m)


def list_messages() -> list[dict]:
    with db_session() as s:
        q = select(Message).order_by(Message.created_at.desc(), Message.id.desc())
        return [message_flat(m) for m in s.scalars(q)]


def mark_read(message_id: int) -> dict:
    with db_session() as s:
        m = s.get(Message, message_id)
        if not m:
            raise NotFound("Mensaje no encontrado")
        m.read = True
        return message_flat(m)


def clear_all() -> int:
    with db_session() as s:
        deleted = s.execute(delete(Message)).rowcount
        logger.info(f"{deleted} mensajes eliminados")
        return deleted
