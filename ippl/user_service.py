from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func, select, update

from .auth_models import Role, User, UserStatus
from .auth_security import hash_password
from .db import db_session
from .errors import Conflict, NotFound, PermissionDenied, ValidationFailed
from .models import (
    Activity,
    Appointment,
    CommissionPayment,
    Derivation,
    MedicalHistory,
    Patient,
    Post,
    StatusRequest,
)
from .serializers import user_flat

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("name", "email", "username", "role", "status", "commission")


def _parse_role(role: str | Role) -> Role:
    if isinstance(role, Role):
        return role
    try:
        return Role(role)
    except ValueError:
        raise ValidationFailed(f"Rol no válido: {role}") from None


def _parse_status(status: str | UserStatus) -> UserStatus:
    if isinstance(status, UserStatus):
        return status
    try:
        return UserStatus(status)
    except ValueError:
        raise ValidationFailed(f"Estado no válido: {status}") from None


def _email_taken(s, email: str, exclude_id: str | None = None) -> bool:
    q = select(User.id).where(func.lower(User.email) == email.lower())
    if exclude_id:
        q = q.where(User.id != exclude_id)
    return s.execute(q).first() is not None


def _username_taken(s, username: str, exclude_id: str | None = None) -> bool:
    q = select(User.id).where(func.lower(User.username) == username.lower())
    if exclude_id:
        q = q.where(User.id != exclude_id)
    return s.execute(q).first() is not None


# =========================
# Query
# =========================
def list_users() -> list[dict]:
    with db_session() as s:
        return [user_flat(u) for u in s.scalars(select(User).order_by(User.name))]


def list_professionals(only_active: bool = False) -> list[dict]:
    with db_session() as s:
        q = select(User).where(User.role == Role.PROFESSIONAL).order_by(User.name)
        if only_active:
            q = q.where(User.status == UserStatus.ACTIVE)
        return [user_flat(u) for u in s.scalars(q)]


def get_user(user_id: str) -> dict:
    with db_session() as s:
        u = s.get(User, user_id)
        if not u:
            raise NotFound("Usuario no encontrado")
        return user_flat(u)


def get_professional(user_id: str) -> dict:
    with db_session() as s:
        u = s.get(User, user_id)
        if not u or u.role != Role.PROFESSIONAL:
            raise NotFound("Profesional no encontrado")
        return user_flat(u)


# =========================
# CRUD
# =========================
def create_user(
    name: str,
    email: str,
    password: str,
    role: str | Role,
    username: str | None = None,
    commission: float | None = None,
) -> dict:
    if not (name or "").strip() or not (email or "").strip() or not password or not role:
        raise ValidationFailed("Todos los campos son requeridos")

    role = _parse_role(role)
    email = email.strip().lower()
    username = username.strip().lower() if username and username.strip() else None

    with db_session() as s:
        if _email_taken(s, email):
            raise Conflict("El email ya está registrado")
        if username and _username_taken(s, username):
            raise Conflict("El nombre de usuario ya está registrado")

        u = User(
            name=name.strip(),
            email=email,
            username=username,
            password_hash=hash_password(password),
            role=role,
            status=UserStatus.ACTIVE,
            commission=commission,
        )
        s.add(u)
        s.flush()
        logger.info(f"Usuario creado: {u.id} ({role.value})")
        return user_flat(u)


def update_user(user_id: str, data: dict[str, Any]) -> dict:
    with db_session() as s:
        u = s.get(User, user_id)
        if not u:
            raise NotFound("Usuario no encontrado")
        _apply_user_changes(s, u, data)
        s.flush()
        return user_flat(u)


def _apply_user_changes(s, u: User, data: dict[str, Any]) -> None:
    for field in UPDATABLE_FIELDS:
        if field not in data or data[field] is None:
            continue
        value = data[field]
        if field == "role":
            value = _parse_role(value)
        elif field == "status":
            value = _parse_status(value)
        elif field == "email":
            value = value.strip().lower()
            if _email_taken(s, value, exclude_id=u.id):
                raise Conflict("El email ya está registrado")
        elif field == "username":
            value = value.strip().lower() or None
            if value and _username_taken(s, value, exclude_id=u.id):
                raise Conflict("El nombre de usuario ya está registrado")
        setattr(u, field, value)

    if data.get("password"):
        u.password_hash = hash_password(data["password"])


def delete_user(user_id: str, acting_user_id: str | None = None) -> None:
    """
    Borrado físico del usuario. Pacientes, turnos y demás conservan el snapshot
    del nombre; la referencia queda en NULL.
    """
    if acting_user_id and acting_user_id == user_id:
        raise PermissionDenied("No puedes eliminar tu propio usuario")

    with db_session() as s:
        u = s.get(User, user_id)
        if not u:
            raise NotFound("Usuario no encontrado")

        for model, column in (
            (Patient, Patient.professional_id),
            (Derivation, Derivation.professional_id),
            (Appointment, Appointment.professional_id),
            (StatusRequest, StatusRequest.professional_id),
            (MedicalHistory, MedicalHistory.professional_id),
            (CommissionPayment, CommissionPayment.professional_id),
            (Post, Post.author_id),
            (Activity, Activity.professional_id),
        ):
            s.execute(update(model).where(column == user_id).values({column.key: None}))

        s.delete(u)
        logger.info(f"Usuario eliminado: {user_id}")


# =========================
# Profesionales
# =========================
def create_professional(data: dict[str, Any]) -> dict:
    return create_user(
        name=data.get("name", ""),
        email=data.get("email", ""),
        password=data.get("password", ""),
        role=Role.PROFESSIONAL,
        username=data.get("username"),
        commission=data.get("commission"),
    )


def update_professional(user_id: str, data: dict[str, Any]) -> dict:
    # password y rol no se cambian por esta vía
    data = {k: v for k, v in data.items() if k not in ("password", "role")}
    with db_session() as s:
        u = s.get(User, user_id)
        if not u or u.role != Role.PROFESSIONAL:
            raise NotFound("Profesional no encontrado")
        _apply_user_changes(s, u, data)
        s.flush()
        return user_flat(u)


def delete_professional(user_id: str) -> None:
    with db_session() as s:
        u = s.get(User, user_id)
        if not u or u.role != Role.PROFESSIONAL:
            raise NotFound("Profesional no encontrado")
    delete_user(user_id)
