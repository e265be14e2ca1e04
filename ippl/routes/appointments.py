from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query, status

from .. import appointment_service
from ..auth_models import User
from ..deps import get_current_user, require_admin
from ..schemas import AppointmentCreateIn, AppointmentUpdateIn

router = APIRouter(prefix="/api/appointments", tags=["appointments"])


@router.get("")
def list_appointments(_: User = Depends(require_admin)) -> dict[str, Any]:
    return {"appointments": appointment_service.list_appointments()}


@router.get("/upcoming")
def upcoming(_: User = Depends(get_current_user)) -> dict[str, Any]:
    return {"appointments": appointment_service.list_upcoming()}


@router.get("/slots/{professional_id}")
def slots(
    professional_id: str,
    date: str = Query(..., description="YYYY-MM-DD"),
    _: User = Depends(get_current_user),
) -> dict[str, Any]:
    return {"slots": appointment_service.free_slots(professional_id, date)}


@router.get("/professional/{professional_id}")
def by_professional(professional_id: str, _: User = Depends(get_current_user)) -> dict[str, Any]:
    return {"appointments": appointment_service.list_professional_appointments(professional_id)}


@router.get("/patient/{patient_id}")
def by_patient(patient_id: str, _: User = Depends(get_current_user)) -> dict[str, Any]:
    return {"appointments": appointment_service.list_patient_appointments(patient_id)}


@router.get("/{appointment_id}")
def get_appointment(appointment_id: str, _: User = Depends(get_current_user)) -> dict[str, Any]:
    return appointment_service.get_appointment(appointment_id)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_appointment(payload: AppointmentCreateIn, user: User = Depends(get_current_user)) -> dict[str, Any]:
    return appointment_service.create_appointment(payload.model_dump(exclude_unset=True), created_by=user)


@router.put("/{appointment_id}")
def update_appointment(
    appointment_id: str, payload: AppointmentUpdateIn, user: User = Depends(get_current_user)
) -> dict[str, Any]:
    return appointment_service.update_appointment(appointment_id, payload.model_dump(exclude_unset=True), user)


@router.delete("/{appointment_id}")
def cancel_appointment(appointment_id: str, user: User = Depends(get_current_user)) -> dict[str, Any]:
    appointment_service.cancel_appointment(appointment_id, user)
    return {"message": "Cita cancelada correctamente"}
