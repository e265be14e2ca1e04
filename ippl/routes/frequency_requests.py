from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, status

from .. import request_service
from ..auth_models import Role, User
from ..deps import require_admin, require_roles
from ..errors import ValidationFailed
from ..models import RequestType
from ..schemas import AdminResponseIn, FrequencyChangeIn

router = APIRouter(prefix="/api/frequency-requests", tags=["frequency-requests"])


@router.post("", status_code=status.HTTP_201_CREATED)
def create(payload: FrequencyChangeIn, user: User = Depends(require_roles(Role.PROFESSIONAL))) -> dict[str, Any]:
    if not payload.patient_id:
        raise ValidationFailed("Debe indicar el paciente")
    return request_service.create_frequency_request(user, payload.patient_id, payload.new_frequency, payload.reason)


@router.get("/pending")
def pending(_: User = Depends(require_admin)) -> list[dict]:
    return request_service.list_pending(RequestType.FREQUENCY_CHANGE)


@router.get("/patient/{patient_id}")
def by_patient(patient_id: str, _: User = Depends(require_roles(Role.ADMIN, Role.PROFESSIONAL))) -> list[dict]:
    return request_service.list_by_patient(patient_id, RequestType.FREQUENCY_CHANGE)


@router.post("/{request_id}/approve")
def approve(request_id: str, payload: AdminResponseIn, _: User = Depends(require_admin)) -> dict[str, Any]:
    return request_service.approve_request(request_id, payload.admin_response)


@router.post("/{request_id}/reject")
def reject(request_id: str, payload: AdminResponseIn, _: User = Depends(require_admin)) -> dict[str, Any]:
    return request_service.reject_request(request_id, payload.admin_response)
