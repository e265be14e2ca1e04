from __future__ import annotations

from datetime import date

from sqlalchemy import func, select

from .auth_models import Role, User, UserStatus
from .db import db_session
from .errors import NotFound
from .models import Appointment, AppointmentStatus, MedicalHistory, Patient, PatientStatus, Post, PostStatus


def system_stats(today: date | None = None) -> dict:
    today = today or date.today()
    with db_session() as s:
        users_by_role = dict(s.execute(select(User.role, func.count(User.id)).group_by(User.role)).all())

        patients = Patient.active.is_(True)
        upcoming = (Appointment.date >= today) & (Appointment.status == AppointmentStatus.SCHEDULED)
        with_upcoming = s.scalar(
            select(func.count(func.distinct(Appointment.patient_id)))
            .select_from(Appointment)
            .join(Patient, Patient.id == Appointment.patient_id)
            .where(upcoming, patients)
        )
        by_professional = dict(
            s.execute(
                select(Patient.professional_id, func.count(Patient.id))
                .where(patients, Patient.professional_id.is_not(None))
                .group_by(Patient.professional_id)
            ).all()
        )

        posts = Post.active.is_(True)
        by_section = dict(s.execute(select(Post.section, func.count(Post.id)).where(posts).group_by(Post.section)).all())

        return {
            "users": {
                "total": s.scalar(select(func.count(User.id))) or 0,
                "byRole": {role.value: users_by_role.get(role, 0) for role in Role},
                "active": s.scalar(select(func.count(User.id)).where(User.status == UserStatus.ACTIVE)) or 0,
            },
            "patients": {
                "total": s.scalar(select(func.count(Patient.id)).where(patients)) or 0,
                "active": s.scalar(
                    select(func.count(Patient.id)).where(patients, Patient.status == PatientStatus.ACTIVE)
                ) or 0,
                "withAppointments": with_upcoming or 0,
                "byProfessional": by_professional,
            },
            "posts": {
                "total": s.scalar(select(func.count(Post.id)).where(posts)) or 0,
                "published": s.scalar(
                    select(func.count(Post.id)).where(posts, Post.status == PostStatus.PUBLISHED)
                ) or 0,
                "totalViews": s.scalar(select(func.coalesce(func.sum(Post.views), 0)).where(posts)) or 0,
                "totalLikes": s.scalar(select(func.coalesce(func.sum(Post.likes), 0)).where(posts)) or 0,
                "bySection": by_section,
            },
            "appointments": {
                "upcoming": s.scalar(select(func.count(Appointment.id)).where(upcoming)) or 0,
                "completed": s.scalar(
                    select(func.count(Appointment.id)).where(Appointment.status == AppointmentStatus.COMPLETED)
                ) or 0,
            },
        }


def professional_stats(professional_id: str, today: date | None = None) -> dict:
    today = today or date.today()
    with db_session() as s:
        pro = s.get(User, professional_id)
        if not pro or pro.role != Role.PROFESSIONAL:
            raise NotFound("Profesional no encontrado")

        mine = (Patient.professional_id == professional_id) & Patient.active.is_(True)
        own = Appointment.professional_id == professional_id
        upcoming = own & (Appointment.date >= today) & (Appointment.status == AppointmentStatus.SCHEDULED)

        return {
            "patients": {
                "total": s.scalar(select(func.count(Patient.id)).where(mine)) or 0,
                "active": s.scalar(
                    select(func.count(Patient.id)).where(mine, Patient.status == PatientStatus.ACTIVE)
                ) or 0,
                "withUpcomingAppointments": s.scalar(
                    select(func.count(func.distinct(Appointment.patient_id))).where(upcoming)
                ) or 0,
            },
            "appointments": {
                "completed": s.scalar(
                    select(func.count(Appointment.id)).where(own, Appointment.status == AppointmentStatus.COMPLETED)
                ) or 0,
                "upcoming": s.scalar(select(func.count(Appointment.id)).where(upcoming)) or 0,
            },
            "notes": {
                "total": s.scalar(
                    select(func.count(MedicalHistory.id)).where(MedicalHistory.professional_id == professional_id)
                ) or 0,
                "audio": s.scalar(
                    select(func.count(Appointment.id)).where(own, Appointment.audio_note.is_not(None))
                ) or 0,
            },
        }
