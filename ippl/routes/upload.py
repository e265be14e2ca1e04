from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, File, UploadFile

from .. import storage
from ..auth_models import Role, User
from ..deps import get_current_user, require_roles

router = APIRouter(prefix="/api/upload", tags=["upload"])


@router.post("/audio")
def upload_audio(audio: UploadFile = File(...), _: User = Depends(get_current_user)) -> dict[str, Any]:
    return storage.save_audio(audio.file.read(), audio.content_type)


@router.post("/carousel")
def upload_carousel(
    image: UploadFile = File(...),
    _: User = Depends(require_roles(Role.ADMIN, Role.CONTENT_MANAGER)),
) -> dict[str, Any]:
    return storage.save_carousel_image(image.file.read(), image.filename, image.content_type)
