from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Response, status

from .. import user_service
from ..auth_models import User
from ..deps import require_admin
from ..schemas import UserCreateIn, UserUpdateIn

router = APIRouter(prefix="/api/professionals", tags=["professionals"])


# Públicas (web del instituto)

@router.get("")
def list_professionals() -> dict[str, Any]:
    return {"professionals": user_service.list_professionals(only_active=True)}


@router.get("/{professional_id}")
def get_professional(professional_id: str) -> dict[str, Any]:
    return user_service.get_professional(professional_id)


# Admin

@router.post("", status_code=status.HTTP_201_CREATED)
def create_professional(payload: UserCreateIn, _: User = Depends(require_admin)) -> dict[str, Any]:
    return user_service.create_professional(payload.model_dump())


@router.put("/{professional_id}")
def update_professional(
    professional_id: str, payload: UserUpdateIn, _: User = Depends(require_admin)
) -> dict[str, Any]:
    return user_service.update_professional(professional_id, payload.model_dump(exclude_unset=True))


@router.delete("/{professional_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_professional(professional_id: str, _: User = Depends(require_admin)) -> Response:
    user_service.delete_professional(professional_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
