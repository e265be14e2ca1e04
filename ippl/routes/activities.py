from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, status

from .. import activity_service
from ..auth_models import User
from ..deps import get_current_user, require_admin
from ..schemas import ActivityIn

router = APIRouter(prefix="/api/activities", tags=["activities"])


@router.get("")
def list_activities(_: User = Depends(get_current_user)) -> list[dict]:
    return activity_service.list_notifications()


@router.get("/unread-count")
def unread_count(_: User = Depends(get_current_user)) -> dict[str, Any]:
    return {"count": activity_service.unread_count()}


@router.put("/read-all")
def mark_all_read(_: User = Depends(get_current_user)) -> dict[str, Any]:
    activity_service.mark_all_read()
    return {"success": True}


@router.delete("/clear-all")
def clear_all(_: User = Depends(require_admin)) -> dict[str, Any]:
    activity_service.clear_all()
    return {"success": True, "message": "Todas las actividades han sido eliminadas"}


@router.put("/{activity_id}/read")
def mark_read(activity_id: int, _: User = Depends(get_current_user)) -> dict[str, Any]:
    activity_service.mark_read(activity_id)
    return {"success": True}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_activity(payload: ActivityIn, _: User = Depends(require_admin)) -> dict[str, Any]:
    return activity_service.add_activity(payload.type, payload.title, payload.description, payload.metadata)
