from __future__ import annotations

import logging
import math
import re
import unicodedata
from datetime import date, datetime
from typing import Any

from sqlalchemy import func, select, update

from .auth_models import Role, User
from .db import db_session, utcnow
from .errors import NotFound, PermissionDenied, ValidationFailed
from .models import Post, PostStatus
from .serializers import post_flat

logger = logging.getLogger(__name__)

WORDS_PER_MINUTE = 200
EDITABLE_FIELDS = ("content", "excerpt", "section", "featured", "read_time", "tags", "seo")


def slugify(text: str) -> str:
    """'¿Qué es la ansiedad?' -> 'que-es-la-ansiedad'"""
    text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    text = re.sub(r"[^a-zA-Z0-9]+", "-", text).strip("-").lower()
    return text or "post"


def _unique_slug(s, title: str, exclude_id: str | None = None) -> str:
    base = slugify(title)
    slug, n = base, 2
    while True:
        q = select(Post.id).where(Post.slug == slug)
        if exclude_id:
            q = q.where(Post.id != exclude_id)
        if s.execute(q).first() is None:
            return slug
        slug = f"{base}-{n}"
        n += 1


def estimate_read_time(content: str) -> str:
    words = len(re.findall(r"\w+", re.sub(r"<[^>]+>", " ", content or "")))
    return f"{max(1, math.ceil(words / WORDS_PER_MINUTE))} min"


def _parse_status(value: str | None) -> PostStatus:
    if not value:
        return PostStatus.DRAFT
    try:
        return PostStatus(value)
    except ValueError:
        raise ValidationFailed(f"Estado de post no válido: {value}") from None


def _get(s, post_id: str, lock: bool = False) -> Post:
    p = s.get(Post, post_id, with_for_update=lock)
    if not p or not p.active:
        raise NotFound("Post no encontrado")
    return p


# =========================
# Lectura
# =========================
def list_published() -> list[dict]:
    with db_session() as s:
        q = (
            select(Post)
            .where(Post.active.is_(True), Post.status == PostStatus.PUBLISHED)
            .order_by(Post.published_at.desc())
        )
        return [post_flat(p) for p in s.scalars(q)]


def list_all() -> list[dict]:
    with db_session() as s:
        q = select(Post).where(Post.active.is_(True)).order_by(Post.created_at.desc())
        return [post_flat(p) for p in s.scalars(q)]


def get_post(post_id: str) -> dict:
    with db_session() as s:
        return post_flat(_get(s, post_id))


def get_by_slug(slug: str) -> dict:
    with db_session() as s:
        p = s.execute(
            select(Post).where(Post.slug == slug, Post.active.is_(True), Post.status == PostStatus.PUBLISHED)
        ).scalar_one_or_none()
        if not p:
            raise NotFound("Post no encontrado")
        return post_flat(p)


# =========================
# Escritura
# =========================
def create_post(data: dict[str, Any], author: User, thumbnail: str | None = None) -> dict:
    title = (data.get("title") or "").strip()
    if not title or not (data.get("content") or "").strip() or not (data.get("section") or "").strip():
        raise ValidationFailed("Título, contenido y sección son requeridos")

    status = _parse_status(data.get("status"))
    with db_session() as s:
        p = Post(
            title=title,
            slug=_unique_slug(s, title),
            content=data["content"],
            excerpt=data.get("excerpt") or "",
            section=data["section"].strip(),
            status=status,
            thumbnail=thumbnail,
            tags=data.get("tags") or [],
            seo=data.get("seo") or {},
            author_id=author.id,
            author_name=author.name,
            featured=bool(data.get("featured")),
            read_time=data.get("read_time") or estimate_read_time(data["content"]),
            comments=[],
            liked_by=[],
            viewed_by=[],
            published_at=utcnow() if status == PostStatus.PUBLISHED else None,
        )
        s.add(p)
        s.flush()
        logger.info(f"Post creado: {p.id} ({p.slug}, {status.value})")
        return post_flat(p)


def update_post(post_id: str, data: dict[str, Any], thumbnail: str | None = None) -> dict:
    """
    Actualización parcial. publishedAt se fija la primera vez que el post pasa a
    publicado y se borra si vuelve a borrador.
    """
    with db_session() as s:
        p = _get(s, post_id)

        for field in EDITABLE_FIELDS:
            if field in data and data[field] is not None:
                setattr(p, field, data[field])

        if data.get("title"):
            p.title = data["title"].strip()
            p.slug = _unique_slug(s, p.title, exclude_id=p.id)
        if thumbnail:
            p.thumbnail = thumbnail

        if data.get("status"):
            p.status = _parse_status(data["status"])
            if p.status == PostStatus.PUBLISHED and p.published_at is None:
                p.published_at = utcnow()
            elif p.status == PostStatus.DRAFT:
                p.published_at = None

        p.updated_at = utcnow()
        s.flush()
        logger.info(f"Post actualizado: {p.id}")
        return post_flat(p)


def delete_post(post_id: str, user: User) -> None:
    with db_session() as s:
        p = _get(s, post_id)
        if user.role != Role.ADMIN and p.author_id != user.id:
            raise PermissionDenied("Solo el autor o un administrador pueden eliminar el post")
        p.active = False
        logger.info(f"Post eliminado (soft delete): {post_id}")


# =========================
# Likes y vistas
# =========================
def like(post_id: str) -> dict:
    """Like anónimo desde la web pública."""
    with db_session() as s:
        # incremento en la base, sin leer el valor antes
        result = s.execute(
            update(Post)
            .where(Post.id == post_id, Post.active.is_(True))
            .values(likes=func.coalesce(Post.likes, 0) + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFound("Post no encontrado")
        return post_flat(_get(s, post_id))


def toggle_like(post_id: str, user_id: str) -> dict:
    with db_session() as s:
        p = _get(s, post_id, lock=True)
        # lista nueva: JSON no detecta mutaciones in-place
        liked_by = list(p.liked_by or [])
        if user_id in liked_by:
            liked_by.remove(user_id)
            p.likes = max(0, (p.likes or 1) - 1)
            is_liked = False
        else:
            liked_by.append(user_id)
            p.likes = (p.likes or 0) + 1
            is_liked = True
        p.liked_by = liked_by
        return {"likes": p.likes, "isLiked": is_liked}


def check_like(post_id: str, user_id: str) -> dict:
    with db_session() as s:
        p = _get(s, post_id)
        return {"isLiked": user_id in (p.liked_by or [])}


def _has_viewed(p: Post, user_id: str) -> bool:
    return any(v.get("userId") == user_id for v in (p.viewed_by or []))


def increment_view(post_id: str, user_id: str) -> dict:
    with db_session() as s:
        p = _get(s, post_id, lock=True)
        if not _has_viewed(p, user_id):
            p.viewed_by = list(p.viewed_by or []) + [{"userId": user_id, "date": utcnow().isoformat()}]
            p.views = (p.views or 0) + 1
        return {"views": p.views, "isViewed": True}


def check_view(post_id: str, user_id: str) -> dict:
    with db_session() as s:
        p = _get(s, post_id)
        return {"isViewed": _has_viewed(p, user_id)}


# =========================
# Estadísticas
# =========================
def weekly_visits(viewed_dates: list[datetime], today: date | None = None) -> list[int]:
    """Vistas de los últimos 7 días; el último elemento es hoy."""
    today = today or utcnow().date()
    counters = [0] * 7
    for d in viewed_dates:
        diff = (today - d.date()).days
        if 0 <= diff < 7:
            counters[6 - diff] += 1
    return counters


def _parse_view_date(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).replace(tzinfo=None)
    except ValueError:
        return None


def post_stats(today: date | None = None) -> dict:
    with db_session() as s:
        posts = list(s.scalars(select(Post).where(Post.active.is_(True))))
        professionals = s.scalar(select(func.count(User.id)).where(User.role == Role.PROFESSIONAL)) or 0
        users = s.scalar(select(func.count(User.id))) or 0

        dates = []
        for p in posts:
            for v in p.viewed_by or []:
                d = _parse_view_date(v.get("date"))
                if d is not None:
                    dates.append(d)
        total_views = sum(p.views or 0 for p in posts)
        return {
            "totalVisits": total_views,
            "activeUsers": users - professionals,
            "activeDoctors": professionals,
            "totalPosts": len(posts),
            "totalLikes": sum(p.likes or 0 for p in posts),
            "totalViews": total_views,
            "weeklyVisits": weekly_visits(dates, today),
        }
