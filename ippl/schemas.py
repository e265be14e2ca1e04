"""
Cuerpos JSON de entrada. El frontend envía camelCase; los servicios reciben
dicts en snake_case vía model_dump(exclude_unset=True).
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Auth

class LoginIn(CamelModel):
    username: str
    password: str


class ChangePasswordIn(CamelModel):
    current_password: str
    new_password: str


# Usuarios / profesionales

class UserCreateIn(CamelModel):
    name: str = ""
    email: str = ""
    password: str = ""
    role: str = ""
    username: str | None = None
    commission: float | None = None


class UserUpdateIn(CamelModel):
    name: str | None = None
    email: str | None = None
    password: str | None = None
    role: str | None = None
    status: str | None = None
    username: str | None = None
    commission: float | None = None


class CommissionPaymentIn(CamelModel):
    amount: float = 0


# Pacientes y solicitudes

class PatientCreateIn(CamelModel):
    name: str = ""
    description: str | None = None
    email: str | None = None
    phone: str | None = None


class PatientAssignIn(CamelModel):
    professional_id: str | None = None
    professional_name: str | None = None
    status: str | None = None
    assigned_at: str | None = None
    text_note: str | None = None
    audio_note: str | None = None
    session_frequency: str | None = None
    status_change_reason: str | None = None


class ReasonIn(CamelModel):
    reason: str | None = None


class StatusChangeIn(CamelModel):
    patient_id: str
    requested_status: str
    reason: str | None = None


class FrequencyChangeIn(CamelModel):
    patient_id: str | None = None
    new_frequency: str = ""
    reason: str | None = None


class AdminResponseIn(CamelModel):
    admin_response: str | None = None


# Citas

class AppointmentCreateIn(CamelModel):
    patient_id: str | None = None
    professional_id: str | None = None
    date: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    type: str | None = None
    notes: str | None = None
    audio_note: str | None = None
    session_cost: float | None = Field(default=None, ge=0)


class AppointmentUpdateIn(CamelModel):
    date: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    type: str | None = None
    status: str | None = None
    notes: str | None = None
    audio_note: str | None = None
    session_cost: float | None = Field(default=None, ge=0)
    attended: bool | None = None
    payment_amount: float | None = Field(default=None, ge=0)


# Mensajes / actividades / historial

class MessageIn(CamelModel):
    first_name: str = ""
    last_name: str | None = None
    email: str = ""
    message: str = ""


class ActivityIn(CamelModel):
    type: str
    title: str
    description: str = ""
    metadata: dict = Field(default_factory=dict)


class HistoryCreateIn(CamelModel):
    patient_id: str | None = None
    date: str | None = None
    diagnosis: str = ""
    treatment: str | None = None
    notes: str | None = None


class HistoryUpdateIn(CamelModel):
    diagnosis: str | None = None
    treatment: str | None = None
    notes: str | None = None
