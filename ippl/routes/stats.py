from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from .. import stats_service
from ..auth_models import Role, User
from ..deps import get_current_user, require_admin
from ..errors import PermissionDenied

router = APIRouter(prefix="/api/stats", tags=["stats"])


@router.get("/system")
def system(_: User = Depends(require_admin)) -> dict[str, Any]:
    return stats_service.system_stats()


@router.get("/professional/{professional_id}")
def professional(professional_id: str, user: User = Depends(get_current_user)) -> dict[str, Any]:
    if user.role != Role.ADMIN and user.id != professional_id:
        raise PermissionDenied("Acceso denegado")
    return stats_service.professional_stats(professional_id)
