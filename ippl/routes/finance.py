from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from .. import finance_service
from ..auth_models import Role, User
from ..deps import require_roles

router = APIRouter(prefix="/api/finance", tags=["finance"])


@router.get("/summary")
def summary(_: User = Depends(require_roles(Role.ADMIN, Role.FINANCIAL))) -> dict[str, Any]:
    return finance_service.summary()
