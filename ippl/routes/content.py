from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from .. import storage
from ..auth_models import Role, User
from ..deps import require_roles

router = APIRouter(prefix="/api/content", tags=["content"])


@router.get("/carousel")
def carousel_images() -> list[str]:
    return storage.list_carousel_images()


@router.delete("/carousel/{filename}")
def delete_carousel_image(
    filename: str, _: User = Depends(require_roles(Role.ADMIN, Role.CONTENT_MANAGER))
) -> dict[str, Any]:
    storage.delete_carousel_image(filename)
    return {"message": "Imagen eliminada correctamente."}
