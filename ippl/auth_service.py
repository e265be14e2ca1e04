from __future__ import annotations

import logging

from sqlalchemy import func, or_, select

from .auth_models import User
from .auth_security import hash_password, verify_password
from .db import db_session, utcnow
from .errors import NotFound, ValidationFailed

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def authenticate(login: str, password: str) -> User | None:
    """Login por username o email; actualiza last_login."""
    login = (login or "").strip().lower()
    if not login or not password:
        return None

    with db_session() as s:
        u = s.execute(
            select(User).where(or_(func.lower(User.email) == login, func.lower(User.username) == login))
        ).scalar_one_or_none()
        if not u or not u.is_active:
            logger.warning(f"Login rechazado para '{login}'")
            return None
        if not verify_password(password, u.password_hash):
            logger.warning(f"Contraseña incorrecta para '{login}'")
            return None
        u.last_login = utcnow()
        return u


def get_user_by_id(user_id: str) -> User | None:
    with db_session() as s:
        return s.get(User, user_id)


def change_password(user_id: str, current_password: str, new_password: str) -> None:
    if not new_password or len(new_password) < MIN_PASSWORD_LENGTH:
        raise ValidationFailed(f"La nueva contraseña debe tener al menos {MIN_PASSWORD_LENGTH} caracteres")

    with db_session() as s:
        u = s.get(User, user_id)
        if not u:
            raise NotFound("Usuario no encontrado")
        if not verify_password(current_password or "", u.password_hash):
            raise ValidationFailed("La contraseña actual es incorrecta")
        u.password_hash = hash_password(new_password)
        logger.info(f"Contraseña actualizada para el usuario {user_id}")


def reset_password(login: str, new_password: str) -> bool:
    """Reset administrativo (CLI): no pide la contraseña actual."""
    if not new_password or len(new_password) < MIN_PASSWORD_LENGTH:
        raise ValidationFailed(f"La nueva contraseña debe tener al menos {MIN_PASSWORD_LENGTH} caracteres")

    login = (login or "").strip().lower()
    with db_session() as s:
        u = s.execute(
            select(User).where(or_(func.lower(User.email) == login, func.lower(User.username) == login))
        ).scalar_one_or_none()
        if not u:
            return False
        u.password_hash = hash_password(new_password)
        logger.info(f"Contraseña reseteada para el usuario {u.id}")
        return True
