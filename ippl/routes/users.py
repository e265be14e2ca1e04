from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, status

from .. import finance_service, user_service
from ..auth_models import Role, User
from ..deps import get_current_user, require_admin, require_roles
from ..schemas import CommissionPaymentIn, UserCreateIn, UserUpdateIn

router = APIRouter(prefix="/api/users", tags=["users"])

require_finance = require_roles(Role.ADMIN, Role.FINANCIAL)


@router.get("")
def list_users(_: User = Depends(require_admin)) -> dict[str, Any]:
    return {"users": user_service.list_users()}


@router.get("/professionals")
def list_professionals(_: User = Depends(get_current_user)) -> dict[str, Any]:
    return {"professionals": user_service.list_professionals()}


@router.get("/abonos")
def list_payments(_: User = Depends(require_finance)) -> list[dict]:
    return finance_service.list_payments()


@router.get("/{user_id}")
def get_user(user_id: str, _: User = Depends(get_current_user)) -> dict[str, Any]:
    return user_service.get_user(user_id)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_user(payload: UserCreateIn, _: User = Depends(require_admin)) -> dict[str, Any]:
    return user_service.create_user(**payload.model_dump())


@router.put("/{user_id}")
def update_user(user_id: str, payload: UserUpdateIn, _: User = Depends(require_admin)) -> dict[str, Any]:
    return user_service.update_user(user_id, payload.model_dump(exclude_unset=True))


@router.delete("/{user_id}")
def delete_user(user_id: str, admin: User = Depends(require_admin)) -> dict[str, Any]:
    user_service.delete_user(user_id, acting_user_id=admin.id)
    return {"message": "Usuario eliminado correctamente"}


@router.post("/{user_id}/abonar-comision")
def pay_commission(user_id: str, payload: CommissionPaymentIn, _: User = Depends(require_finance)) -> dict[str, Any]:
    return finance_service.pay_commission(user_id, payload.amount)
