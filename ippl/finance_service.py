"""
Saldos de los profesionales.

- balance_total: lo cobrado en sesiones completadas
- commission: porcentaje que corresponde al instituto
- commission_paid: lo ya abonado al instituto
"""
from __future__ import annotations

import logging
from collections import defaultdict

from sqlalchemy import func, select, update

from .auth_models import Role, User
from .db import db_session
from .errors import NotFound, ValidationFailed
from .models import Appointment, AppointmentStatus, CommissionPayment
from .serializers import payment_flat

logger = logging.getLogger(__name__)


def commission_amount(balance_total: float, commission: float | None) -> float:
    return round((balance_total or 0) * (commission or 0) / 100, 2)


def commission_due(balance_total: float, commission: float | None, commission_paid: float) -> float:
    return max(round(commission_amount(balance_total, commission) - (commission_paid or 0), 2), 0)


def pay_commission(professional_id: str, amount: float) -> dict:
    try:
        amount = float(amount)
    except (TypeError, ValueError):
        amount = 0
    if amount <= 0:
        raise ValidationFailed("El monto debe ser mayor a 0")

    with db_session() as s:
        pro = s.get(User, professional_id, with_for_update=True)
        if not pro or pro.role != Role.PROFESSIONAL:
            raise NotFound("Profesional no encontrado")

        s.execute(
            update(User)
            .where(User.id == pro.id)
            .values(commission_paid=func.coalesce(User.commission_paid, 0) + amount)
            .execution_options(synchronize_session=False)
        )
        s.refresh(pro)
        payment = CommissionPayment(professional_id=pro.id, professional_name=pro.name, amount=amount)
        s.add(payment)
        s.flush()
        logger.info(f"Abono de comisión {payment.id}: {amount} de {pro.id}")
        return {
            "message": "Abono registrado correctamente",
            "abono": payment_flat(payment),
            "commissionPaid": pro.commission_paid,
            "commissionDue": commission_due(pro.balance_total, pro.commission, pro.commission_paid),
        }


def list_payments() -> list[dict]:
    with db_session() as s:
        q = select(CommissionPayment).order_by(CommissionPayment.date.desc(), CommissionPayment.id.desc())
        return [payment_flat(c) for c in s.scalars(q)]


def summary() -> dict:
    with db_session() as s:
        professionals = list(s.scalars(select(User).where(User.role == Role.PROFESSIONAL).order_by(User.name)))

        debts: dict[str, float] = defaultdict(float)
        rows = s.execute(
            select(Appointment.professional_id, func.sum(Appointment.remaining_balance))
            .where(Appointment.status == AppointmentStatus.COMPLETED)
            .group_by(Appointment.professional_id)
        ).all()
        for professional_id, debt in rows:
            if professional_id:
                debts[professional_id] = float(debt or 0)

        items = []
        for u in professionals:
            balance = u.balance_total or 0
            commission = commission_amount(balance, u.commission)
            items.append(
                {
                    "id": u.id,
                    "name": u.name,
                    "balanceTotal": balance,
                    "commission": u.commission or 0,
                    "commissionPaid": u.commission_paid or 0,
                    "commissionDue": commission_due(balance, u.commission, u.commission_paid),
                    "netBalance": round(balance - commission, 2),
                    "patientDebt": round(debts[u.id], 2),
                }
            )

    return {
        "professionals": items,
        "totals": {
            "balanceTotal": round(sum(i["balanceTotal"] for i in items), 2),
            "commissionPaid": round(sum(i["commissionPaid"] for i in items), 2),
            "commissionDue": round(sum(i["commissionDue"] for i in items), 2),
            "netBalance": round(sum(i["netBalance"] for i in items), 2),
            "patientDebt": round(sum(i["patientDebt"] for i in items), 2),
        },
    }
