from __future__ import annotations

import json
from typing import Any

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status

from .. import post_service, storage
from ..auth_models import Role, User
from ..deps import get_current_user, require_roles
from ..errors import ValidationFailed

router = APIRouter(prefix="/api/posts", tags=["posts"])

require_editor = require_roles(Role.ADMIN, Role.CONTENT_MANAGER)


def _json_field(raw: str | None, name: str, expected: type) -> Any:
    # tags y seo llegan como JSON dentro del multipart
    if raw is None or raw == "":
        return None
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        raise ValidationFailed(f"El campo {name} no es JSON válido") from None
    if not isinstance(value, expected):
        raise ValidationFailed(f"El campo {name} tiene un formato no válido")
    return value


def _form_data(
    title: str | None,
    content: str | None,
    excerpt: str | None,
    section: str | None,
    post_status: str | None,
    tags: str | None,
    seo: str | None,
    featured: bool | None,
    read_time: str | None,
) -> dict[str, Any]:
    data = {
        "title": title,
        "content": content,
        "excerpt": excerpt,
        "section": section,
        "status": post_status,
        "tags": _json_field(tags, "tags", list),
        "seo": _json_field(seo, "seo", dict),
        "featured": featured,
        "read_time": read_time,
    }
    return {k: v for k, v in data.items() if v is not None}


def _save_thumbnail(thumbnail: UploadFile | None) -> str | None:
    if thumbnail is None or not thumbnail.filename:
        return None
    return storage.save_post_thumbnail(thumbnail.file.read(), thumbnail.filename, thumbnail.content_type)


# =========================
# Públicas
# =========================
@router.get("")
def list_published() -> list[dict]:
    return post_service.list_published()


@router.get("/slug/{slug}")
def get_by_slug(slug: str) -> dict[str, Any]:
    return {"post": post_service.get_by_slug(slug)}


@router.post("/{post_id}/like")
def like(post_id: str) -> dict[str, Any]:
    return post_service.like(post_id)


# =========================
# Autenticadas
# =========================
@router.get("/all")
def list_all(_: User = Depends(require_editor)) -> list[dict]:
    return post_service.list_all()


@router.get("/stats")
def stats(_: User = Depends(get_current_user)) -> dict[str, Any]:
    return post_service.post_stats()


@router.get("/{post_id}")
def get_post(post_id: str, _: User = Depends(get_current_user)) -> dict[str, Any]:
    return post_service.get_post(post_id)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_post(
    title: str = Form(""),
    content: str = Form(""),
    section: str = Form(""),
    excerpt: str | None = Form(None),
    post_status: str | None = Form(None, alias="status"),
    tags: str | None = Form(None),
    seo: str | None = Form(None),
    featured: bool | None = Form(None),
    read_time: str | None = Form(None, alias="readTime"),
    thumbnail: UploadFile | None = File(None),
    user: User = Depends(require_editor),
) -> dict[str, Any]:
    data = _form_data(title, content, excerpt, section, post_status, tags, seo, featured, read_time)
    return post_service.create_post(data, author=user, thumbnail=_save_thumbnail(thumbnail))


@router.put("/{post_id}")
def update_post(
    post_id: str,
    title: str | None = Form(None),
    content: str | None = Form(None),
    section: str | None = Form(None),
    excerpt: str | None = Form(None),
    post_status: str | None = Form(None, alias="status"),
    tags: str | None = Form(None),
    seo: str | None = Form(None),
    featured: bool | None = Form(None),
    read_time: str | None = Form(None, alias="readTime"),
    thumbnail: UploadFile | None = File(None),
    _: User = Depends(require_editor),
) -> dict[str, Any]:
    data = _form_data(title, content, excerpt, section, post_status, tags, seo, featured, read_time)
    return post_service.update_post(post_id, data, thumbnail=_save_thumbnail(thumbnail))


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_post(post_id: str, user: User = Depends(get_current_user)) -> Response:
    post_service.delete_post(post_id, user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{post_id}/toggle-like")
def toggle_like(post_id: str, user: User = Depends(get_current_user)) -> dict[str, Any]:
    return post_service.toggle_like(post_id, user.id)


@router.get("/{post_id}/check-like")
def check_like(post_id: str, user: User = Depends(get_current_user)) -> dict[str, Any]:
    return post_service.check_like(post_id, user.id)


@router.post("/{post_id}/increment-view")
def increment_view(post_id: str, user: User = Depends(get_current_user)) -> dict[str, Any]:
    return post_service.increment_view(post_id, user.id)


@router.get("/{post_id}/check-view")
def check_view(post_id: str, user: User = Depends(get_current_user)) -> dict[str, Any]:
    return post_service.check_view(post_id, user.id)
