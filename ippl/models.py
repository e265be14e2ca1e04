from __future__ import annotations

import enum
import datetime as dt
from datetime import datetime

from sqlalchemy import JSON, Boolean, Date, DateTime, Enum, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .auth_models import User
from .db import Base, new_uuid, utcnow


class PatientStatus(enum.Enum):
    ACTIVE = "active"
    PENDING = "pending"
    INACTIVE = "inactive"
    ABSENT = "absent"
    ALTA = "alta"


class SessionFrequency(enum.Enum):
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"


class AppointmentType(enum.Enum):
    REGULAR = "regular"
    FIRST_TIME = "first_time"
    EMERGENCY = "emergency"


class AppointmentStatus(enum.Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class RequestType(enum.Enum):
    STATUS_CHANGE = "status_change"
    ACTIVATION = "activation"
    FREQUENCY_CHANGE = "frequency_change"


class RequestStatus(enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PostStatus(enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class Patient(Base):
    __tablename__ = "patients"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    email: Mapped[str | None] = mapped_column(String(150), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)

    status: Mapped[PatientStatus] = mapped_column(Enum(PatientStatus), default=PatientStatus.ACTIVE, nullable=False)
    session_frequency: Mapped[SessionFrequency | None] = mapped_column(Enum(SessionFrequency), nullable=True)

    professional_id: Mapped[str | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    # snapshot del nombre, sobrevive al borrado del profesional
    professional_name: Mapped[str | None] = mapped_column(String(150), nullable=True)
    assigned_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    activated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True, onupdate=utcnow)

    professional: Mapped[User | None] = relationship(foreign_keys=[professional_id])
    derivations: Mapped[list["Derivation"]] = relationship(
        back_populates="patient", cascade="all, delete-orphan", order_by="Derivation.id"
    )

    def __repr__(self) -> str:
        return f"Patient({self.name}, {self.status.value})"


class Derivation(Base):
    """Registro de cada asignación de un paciente a un profesional."""
    __tablename__ = "derivations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    patient_id: Mapped[str] = mapped_column(ForeignKey("patients.id"), nullable=False)
    professional_id: Mapped[str | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    text_note: Mapped[str | None] = mapped_column(Text, nullable=True)
    audio_note: Mapped[str | None] = mapped_column(String(255), nullable=True)
    session_frequency: Mapped[SessionFrequency | None] = mapped_column(Enum(SessionFrequency), nullable=True)
    status_change_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    patient: Mapped["Patient"] = relationship(back_populates="derivations")


class Appointment(Base):
    __tablename__ = "appointments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)

    patient_id: Mapped[str] = mapped_column(ForeignKey("patients.id"), nullable=False, index=True)
    patient_name: Mapped[str | None] = mapped_column(String(150), nullable=True)
    professional_id: Mapped[str | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    professional_name: Mapped[str | None] = mapped_column(String(150), nullable=True)

    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    # "HH:MM"
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)

    type: Mapped[AppointmentType] = mapped_column(Enum(AppointmentType), default=AppointmentType.REGULAR, nullable=False)
    status: Mapped[AppointmentStatus] = mapped_column(
        Enum(AppointmentStatus), default=AppointmentStatus.SCHEDULED, nullable=False
    )

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    audio_note: Mapped[str | None] = mapped_column(String(255), nullable=True)

    session_cost: Mapped[float | None] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=True)
    attended: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    payment_amount: Mapped[float | None] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=True)
    remaining_balance: Mapped[float | None] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True, onupdate=utcnow)


class StatusRequest(Base):
    """Solicitud de cambio (baja, alta, frecuencia) pendiente de aprobación del admin."""
    __tablename__ = "status_requests"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    type: Mapped[RequestType] = mapped_column(Enum(RequestType), default=RequestType.STATUS_CHANGE, nullable=False)

    patient_id: Mapped[str] = mapped_column(ForeignKey("patients.id"), nullable=False, index=True)
    patient_name: Mapped[str | None] = mapped_column(String(150), nullable=True)
    professional_id: Mapped[str | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    professional_name: Mapped[str | None] = mapped_column(String(150), nullable=True)

    current_status: Mapped[PatientStatus | None] = mapped_column(Enum(PatientStatus), nullable=True)
    requested_status: Mapped[PatientStatus | None] = mapped_column(Enum(PatientStatus), nullable=True)
    current_frequency: Mapped[SessionFrequency | None] = mapped_column(Enum(SessionFrequency), nullable=True)
    requested_frequency: Mapped[SessionFrequency | None] = mapped_column(Enum(SessionFrequency), nullable=True)

    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[RequestStatus] = mapped_column(Enum(RequestStatus), default=RequestStatus.PENDING, nullable=False)
    admin_response: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)


# a lo sumo una solicitud pendiente por paciente
Index(
    "uq_status_requests_pending_patient",
    StatusRequest.patient_id,
    unique=True,
    sqlite_where=StatusRequest.status == RequestStatus.PENDING,
    postgresql_where=StatusRequest.status == RequestStatus.PENDING,
)


class Post(Base):
    __tablename__ = "posts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    excerpt: Mapped[str] = mapped_column(String(300), nullable=False, default="")
    section: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[PostStatus] = mapped_column(Enum(PostStatus), default=PostStatus.DRAFT, nullable=False)

    # nombre del archivo dentro de uploads/posts
    thumbnail: Mapped[str | None] = mapped_column(String(255), nullable=True)
    tags: Mapped[list | None] = mapped_column(JSON, nullable=True)
    seo: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    author_id: Mapped[str | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    author_name: Mapped[str | None] = mapped_column(String(150), nullable=True)

    featured: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    read_time: Mapped[str] = mapped_column(String(50), default="1 min", nullable=False)
    views: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    likes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    comments: Mapped[list | None] = mapped_column(JSON, nullable=True)
    liked_by: Mapped[list | None] = mapped_column(JSON, nullable=True)      # [user_id]
    viewed_by: Mapped[list | None] = mapped_column(JSON, nullable=True)     # [{"userId", "date"}]

    published_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True, onupdate=utcnow)


class Activity(Base):
    __tablename__ = "activities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    type: Mapped[str] = mapped_column(String(80), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    # "metadata" está reservado por DeclarativeBase
    meta: Mapped[dict | None] = mapped_column("metadata", JSON, nullable=True)
    read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    patient_id: Mapped[str | None] = mapped_column(ForeignKey("patients.id", ondelete="SET NULL"), nullable=True)
    professional_id: Mapped[str | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    occurred_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)


class Message(Base):
    """Mensaje del formulario de contacto público."""
    __tablename__ = "messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    email: Mapped[str] = mapped_column(String(150), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)


class MedicalHistory(Base):
    __tablename__ = "medical_histories"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    patient_id: Mapped[str] = mapped_column(ForeignKey("patients.id"), nullable=False, index=True)
    professional_id: Mapped[str | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    diagnosis: Mapped[str] = mapped_column(Text, nullable=False)
    treatment: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True, onupdate=utcnow)


class CommissionPayment(Base):
    """Abono de comisión de un profesional al instituto."""
    __tablename__ = "commission_payments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    professional_id: Mapped[str | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    professional_name: Mapped[str | None] = mapped_column(String(150), nullable=True)
    amount: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
