from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, status

from .. import patient_service
from ..auth_models import Role, User
from ..deps import require_admin, require_roles
from ..schemas import PatientAssignIn, PatientCreateIn, ReasonIn

router = APIRouter(prefix="/api/patients", tags=["patients"])

require_staff = require_roles(Role.ADMIN, Role.PROFESSIONAL, Role.FINANCIAL)
require_professional = require_roles(Role.PROFESSIONAL)


@router.get("")
def list_patients(_: User = Depends(require_staff)) -> dict[str, Any]:
    return {"patients": patient_service.list_active_patients()}


@router.get("/professional/{professional_id}")
def list_professional_patients(professional_id: str, _: User = Depends(require_staff)) -> dict[str, Any]:
    return {"patients": patient_service.list_professional_patients(professional_id)}


@router.get("/{patient_id}")
def get_patient(patient_id: str, _: User = Depends(require_staff)) -> dict[str, Any]:
    return patient_service.get_patient(patient_id)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_patient(payload: PatientCreateIn, _: User = Depends(require_admin)) -> dict[str, Any]:
    return patient_service.create_patient(**payload.model_dump())


@router.put("/{patient_id}/assign")
def assign_patient(patient_id: str, payload: PatientAssignIn, _: User = Depends(require_admin)) -> dict[str, Any]:
    return patient_service.assign_patient(patient_id, payload.model_dump(exclude_unset=True))


@router.delete("/{patient_id}")
def delete_patient(patient_id: str, _: User = Depends(require_admin)) -> dict[str, Any]:
    patient_service.delete_patient(patient_id)
    return {"message": "Paciente eliminado correctamente"}


@router.post("/{patient_id}/request-discharge", status_code=status.HTTP_201_CREATED)
def request_discharge(
    patient_id: str, payload: ReasonIn, user: User = Depends(require_professional)
) -> dict[str, Any]:
    request = patient_service.request_discharge(user, patient_id, payload.reason)
    return {"message": "Solicitud de baja enviada correctamente", "request": request}


@router.post("/{patient_id}/request-activation", status_code=status.HTTP_201_CREATED)
def request_activation(
    patient_id: str, payload: ReasonIn, user: User = Depends(require_professional)
) -> dict[str, Any]:
    request = patient_service.request_activation(user, patient_id, payload.reason)
    return {"message": "Solicitud de alta enviada correctamente", "request": request}
