from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, status

from .. import message_service
from ..auth_models import Role, User
from ..deps import require_roles
from ..schemas import MessageIn

router = APIRouter(prefix="/api/messages", tags=["messages"])

require_inbox = require_roles(Role.ADMIN, Role.CONTENT_MANAGER)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_message(payload: MessageIn) -> dict[str, Any]:
    message_service.create_message(payload.first_name, payload.email, payload.message, payload.last_name)
    return {"message": "Mensaje enviado exitosamente"}


@router.get("")
def list_messages(_: User = Depends(require_inbox)) -> list[dict]:
    return message_service.list_messages()


@router.delete("/clear-all")
def clear_all(_: User = Depends(require_inbox)) -> dict[str, Any]:
    message_service.clear_all()
    return {"success": True, "message": "Todos los mensajes han sido eliminados"}


@router.put("/{message_id}/read")
def mark_read(message_id: int, _: User = Depends(require_inbox)) -> dict[str, Any]:
    message_service.mark_read(message_id)
    return {"success": True}
