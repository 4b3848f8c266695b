from __future__ import annotations

from typing import Union

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from residenthub.apps.accounts import models as account_models
from residenthub.database import get_read_db
from residenthub.security import get_current_active_user

from . import schemas, services

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get(
    "",
    response_model=Union[
        schemas.ResidentDashboard,
        schemas.AdminDashboard,
        schemas.PlatformDashboard,
    ],
)
def get_dashboard(
    db: Session = Depends(get_read_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    return services.build_dashboard(db, user=current_user)
