from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, status

from .. import request_service
from ..auth_models import Role, User
from ..deps import get_current_user, require_admin, require_roles
from ..errors import PermissionDenied
from ..schemas import AdminResponseIn, FrequencyChangeIn, StatusChangeIn

router = APIRouter(prefix="/api/status-requests", tags=["status-requests"])

require_professional = require_roles(Role.PROFESSIONAL)


@router.post("/status-change", status_code=status.HTTP_201_CREATED)
def create_status_change(payload: StatusChangeIn, user: User = Depends(require_professional)) -> dict[str, Any]:
    return request_service.create_status_change_request(
        user, payload.patient_id, payload.requested_status, payload.reason
    )


@router.post("/frequency-change/{patient_id}")
def create_frequency_change(
    patient_id: str, payload: FrequencyChangeIn, user: User = Depends(require_professional)
) -> dict[str, Any]:
    request = request_service.create_frequency_request(user, patient_id, payload.new_frequency, payload.reason)
    return {
        "success": True,
        "message": "Solicitud de cambio de frecuencia enviada correctamente",
        "request": request,
    }


@router.get("/pending")
def pending(_: User = Depends(require_admin)) -> dict[str, Any]:
    return {"requests": request_service.list_pending()}


@router.get("/professional/{professional_id}")
def by_professional(professional_id: str, user: User = Depends(get_current_user)) -> dict[str, Any]:
    if user.role != Role.ADMIN and user.id != professional_id:
        raise PermissionDenied("Acceso denegado")
    return {"requests": request_service.list_by_professional(professional_id)}


@router.post("/{request_id}/approve")
def approve(request_id: str, payload: AdminResponseIn, _: User = Depends(require_admin)) -> dict[str, Any]:
    return request_service.approve_request(request_id, payload.admin_response)


@router.post("/{request_id}/reject")
def reject(request_id: str, payload: AdminResponseIn, _: User = Depends(require_admin)) -> dict[str, Any]:
    return request_service.reject_request(request_id, payload.admin_response)
