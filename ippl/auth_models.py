from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from .db import Base, new_uuid, utcnow


class Role(enum.Enum):
    ADMIN = "admin"
    PROFESSIONAL = "professional"
    CONTENT_MANAGER = "content_manager"
    FINANCIAL = "financial"


class UserStatus(enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class User(Base):
    """
    Usuario de la aplicación (admin, profesional, gestor de contenido, finanzas).
    - login por username o email
    - password_hash con bcrypt (passlib)
    - los profesionales llevan comisión y saldos
    """
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    username: Mapped[str | None] = mapped_column(String(50), unique=True, nullable=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(150), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    role: Mapped[Role] = mapped_column(Enum(Role), default=Role.PROFESSIONAL, nullable=False)
    status: Mapped[UserStatus] = mapped_column(Enum(UserStatus), default=UserStatus.ACTIVE, nullable=False)

    # porcentaje que retiene el instituto sobre lo cobrado
    commission: Mapped[float | None] = mapped_column(Numeric(5, 2, asdecimal=False), nullable=True)
    # total cobrado por el profesional en sesiones completadas
    balance_total: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), default=0, nullable=False)
    # comisiones ya abonadas al instituto
    commission_paid: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), default=0, nullable=False)

    last_login: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True, onupdate=utcnow)

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE

    def __repr__(self) -> str:
        return f"User({self.email}, {self.role.value})"
