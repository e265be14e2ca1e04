"""
Versiones 'flat' de los modelos: dict serializables con las claves que espera el frontend.
Se construyen dentro de la sesión para evitar lazy-load sobre instancias detached.
"""
from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import Any

from .auth_models import User
from .models import Activity, Appointment, CommissionPayment, MedicalHistory, Message, Patient, Post, StatusRequest


def iso(value: dt.date | dt.datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def val(value: Enum | None) -> str | None:
    return value.value if value is not None else None


def user_flat(u: User) -> dict[str, Any]:
    # nunca el hash de la contraseña
    return {
        "id": u.id,
        "username": u.username,
        "name": u.name,
        "email": u.email,
        "role": u.role.value,
        "status": u.status.value,
        "commission": u.commission,
        "balanceTotal": u.balance_total or 0,
        "commissionPaid": u.commission_paid or 0,
        "lastLogin": iso(u.last_login),
        "createdAt": iso(u.created_at),
        "updatedAt": iso(u.updated_at),
    }


def patient_flat(p: Patient) -> dict[str, Any]:
    last = p.derivations[-1] if p.derivations else None
    return {
        "id": p.id,
        "name": p.name,
        "description": p.description,
        "email": p.email,
        "phone": p.phone,
        "status": p.status.value,
        "professionalId": p.professional_id,
        "professionalName": p.professional_name,
        "assignedAt": iso(p.assigned_at),
        "activatedAt": iso(p.activated_at),
        "sessionFrequency": val(p.session_frequency),
        "active": p.active,
        "createdAt": iso(p.created_at),
        "textNote": last.text_note if last else None,
        "audioNote": last.audio_note if last else None,
    }


def appointment_flat(a: Appointment) -> dict[str, Any]:
    return {
        "id": a.id,
        "patientId": a.patient_id,
        "patientName": a.patient_name or "",
        "professionalId": a.professional_id or "",
        "professionalName": a.professional_name or "",
        "date": a.date.isoformat(),
        "startTime": a.start_time,
        "endTime": a.end_time,
        "type": a.type.value,
        "status": a.status.value,
        "notes": a.notes,
        "audioNote": a.audio_note,
        "sessionCost": a.session_cost,
        "attended": a.attended,
        "paymentAmount": a.payment_amount,
        "remainingBalance": a.remaining_balance,
        "completedAt": iso(a.completed_at),
        "createdAt": iso(a.created_at),
        "updatedAt": iso(a.updated_at),
    }


def request_flat(r: StatusRequest) -> dict[str, Any]:
    return {
        "id": str(r.id),
        "type": r.type.value,
        "patientId": r.patient_id,
        "patientName": r.patient_name,
        "professionalId": r.professional_id or "",
        "professionalName": r.professional_name,
        "currentStatus": val(r.current_status),
        "requestedStatus": val(r.requested_status),
        "currentFrequency": val(r.current_frequency),
        "requestedFrequency": val(r.requested_frequency),
        "reason": r.reason or "",
        "status": r.status.value,
        "adminResponse": r.admin_response,
        "createdAt": iso(r.created_at),
        "updatedAt": iso(r.updated_at),
    }


def post_flat(p: Post) -> dict[str, Any]:
    seo = p.seo or {}
    return {
        "id": p.id,
        "title": p.title,
        "slug": p.slug,
        "content": p.content,
        "excerpt": p.excerpt,
        "section": p.section,
        "status": p.status.value,
        "thumbnail": f"/uploads/posts/{p.thumbnail}" if p.thumbnail else None,
        "tags": p.tags or [],
        "seo": {
            "metaTitle": seo.get("metaTitle", ""),
            "metaDescription": seo.get("metaDescription", ""),
            "keywords": seo.get("keywords", ""),
        },
        "author": p.author_id or "",
        "authorName": p.author_name or "",
        "featured": p.featured,
        "readTime": p.read_time,
        "views": p.views,
        "likes": p.likes,
        "comments": p.comments or [],
        "createdAt": iso(p.created_at),
        "updatedAt": iso(p.updated_at),
        "publishedAt": iso(p.published_at),
    }


def activity_flat(a: Activity) -> dict[str, Any]:
    return {
        "id": str(a.id),
        "type": a.type,
        "title": a.title,
        "description": a.description,
        "metadata": a.meta or {},
        "read": a.read,
        "date": iso(a.occurred_at),
    }


def message_flat(m: Message) -> dict[str, Any]:
    return {
        "id": str(m.id),
        "firstName": m.first_name,
        "lastName": m.last_name,
        "email": m.email,
        "message": m.message,
        "read": m.read,
        "createdAt": iso(m.created_at),
    }


def history_flat(h: MedicalHistory) -> dict[str, Any]:
    return {
        "id": h.id,
        "patientId": h.patient_id,
        "professionalId": h.professional_id,
        "date": h.date.isoformat(),
        "diagnosis": h.diagnosis,
        "treatment": h.treatment,
        "notes": h.notes,
        "createdAt": iso(h.created_at),
        "updatedAt": iso(h.updated_at),
    }


def payment_flat(c: CommissionPayment) -> dict[str, Any]:
    return {
        "id": str(c.id),
        "professionalId": c.professional_id,
        "name": c.professional_name,
        "amount": c.amount,
        "date": iso(c.date),
    }
