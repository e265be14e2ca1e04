from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import ValidationError

from ..auth_models import User
from ..auth_security import token_for
from ..auth_service import authenticate, change_password
from ..deps import get_current_user
from ..schemas import ChangePasswordIn, LoginIn
from ..serializers import user_flat

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


async def _read_credentials(request: Request) -> LoginIn:
    """JSON {username|email, password} desde el frontend o formulario OAuth2 desde /docs."""
    if request.headers.get("content-type", "").startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            body = {}
        if isinstance(body, dict) and "username" not in body and "email" in body:
            body = {**body, "username": body["email"]}
    else:
        body = dict(await request.form())
    try:
        return LoginIn.model_validate(body)
    except ValidationError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Usuario y contraseña son requeridos")


@router.post("/login")
async def login(request: Request) -> dict[str, Any]:
    creds = await _read_credentials(request)
    u = authenticate(creds.username, creds.password)
    if not u:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Credenciales inválidas")

    token = token_for(u)
    logger.info(f"Login correcto: {u.id}")
    return {
        "token": token,
        "access_token": token,
        "token_type": "bearer",
        "user": {"id": u.id, "email": u.email, "role": u.role.value, "name": u.name, "status": u.status.value},
    }


@router.get("/me")
def me(user: User = Depends(get_current_user)) -> dict[str, Any]:
    return user_flat(user)


@router.post("/change-password")
def change_password_route(payload: ChangePasswordIn, user: User = Depends(get_current_user)) -> dict[str, Any]:
    change_password(user.id, payload.current_password, payload.new_password)
    return {"message": "Contraseña actualizada correctamente"}
