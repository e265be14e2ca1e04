from __future__ import annotations

import logging

from sqlalchemy import select

from .auth_models import Role, User, UserStatus
from .auth_security import hash_password
from .config import SEED_PASSWORD
from .db import db_session

logger = logging.getLogger(__name__)

DEMO_USERS = [
    # (username, nombre, email, rol, comisión %)
    ("admin", "Administración IPPL", "admin@ippl.local", Role.ADMIN, None),
    ("contenido", "Gestión de Contenidos", "contenido@ippl.local", Role.CONTENT_MANAGER, None),
    ("finanzas", "Administración Financiera", "finanzas@ippl.local", Role.FINANCIAL, None),
    ("lic.perez", "Lic. Ana Pérez", "ana.perez@ippl.local", Role.PROFESSIONAL, 20),
]


def seed_base() -> None:
    """
    Cuentas demo (idempotente): una por rol.
    La contraseña sale de IPPL_SEED_PASSWORD.
    """
    created = 0
    with db_session() as s:
        for username, name, email, role, commission in DEMO_USERS:
            exists = s.execute(select(User).where(User.email == email)).scalar_one_or_none()
            if exists is not None:
                continue
            s.add(
                User(
                    username=username,
                    name=name,
                    email=email,
                    password_hash=hash_password(SEED_PASSWORD),
                    role=role,
                    status=UserStatus.ACTIVE,
                    commission=commission,
                )
            )
            created += 1

    if created:
        logger.warning(f"{created} cuentas demo creadas con la contraseña de IPPL_SEED_PASSWORD: cámbiala en producción")
