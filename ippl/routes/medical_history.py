from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, status

from .. import history_service
from ..auth_models import Role, User
from ..deps import require_admin, require_roles
from ..schemas import HistoryCreateIn, HistoryUpdateIn

router = APIRouter(prefix="/api/medical-history", tags=["medical-history"])

require_clinical = require_roles(Role.ADMIN, Role.PROFESSIONAL)


@router.get("")
def list_histories(
    patientId: str | None = None,
    professionalId: str | None = None,
    _: User = Depends(require_clinical),
) -> list[dict]:
    return history_service.list_histories(patient_id=patientId, professional_id=professionalId)


@router.get("/patient/{patient_id}")
def by_patient(patient_id: str, _: User = Depends(require_clinical)) -> list[dict]:
    return history_service.list_histories(patient_id=patient_id)


@router.get("/professional/{professional_id}")
def by_professional(professional_id: str, _: User = Depends(require_clinical)) -> list[dict]:
    return history_service.list_histories(professional_id=professional_id)


@router.get("/{history_id}")
def get_history(history_id: str, _: User = Depends(require_clinical)) -> dict[str, Any]:
    return history_service.get_history(history_id)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_history(payload: HistoryCreateIn, user: User = Depends(require_roles(Role.PROFESSIONAL))) -> dict[str, Any]:
    return history_service.create_history(payload.model_dump(), user)


@router.put("/{history_id}")
def update_history(history_id: str, payload: HistoryUpdateIn, user: User = Depends(require_clinical)) -> dict[str, Any]:
    return history_service.update_history(history_id, payload.model_dump(exclude_unset=True), user)


@router.delete("/{history_id}")
def delete_history(history_id: str, _: User = Depends(require_admin)) -> dict[str, Any]:
    history_service.delete_history(history_id)
    return {"message": "Historial médico eliminado correctamente"}
