from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from residenthub.apps.accounts import models as account_models
from residenthub.apps.accounts.models import UserRole
from residenthub.database import get_db, get_read_db
from residenthub.security import get_current_active_user, require_roles

from . import schemas, services

router = APIRouter(prefix="/units", tags=["units"])

_unit_managers = require_roles(UserRole.SOCIETY_ADMIN, UserRole.PLATFORM_OWNER)


@router.post("", response_model=schemas.UnitRead, status_code=status.HTTP_201_CREATED)
def create_unit(
    payload: schemas.UnitCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(_unit_managers),
):
    return services.create_unit(db, actor=current_user, payload=payload)


@router.get("/available/{society_id}", response_model=List[schemas.UnitAvailableRead])
def list_available_units(society_id: str, db: Session = Depends(get_read_db)):
    return services.list_available_units(db, society_id=society_id)


@router.get("", response_model=List[schemas.UnitRead])
def list_units(
    society_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    return services.list_units(db, actor=current_user, society_id=society_id)


@router.get("/{unit_id}", response_model=schemas.UnitRead)
def get_unit(
    unit_id: str,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    return services.get_unit(db, actor=current_user, unit_id=unit_id)


@router.patch("/{unit_id}", response_model=schemas.UnitRead)
def update_unit(
    unit_id: str,
    payload: schemas.UnitUpdate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(_unit_managers),
):
    return services.update_unit(db, actor=current_user, unit_id=unit_id, payload=payload)


@router.delete("/{unit_id}", response_model=schemas.UnitRead)
def delete_unit(
    unit_id: str,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(_unit_managers),
):
    return services.delete_unit(db, actor=current_user, unit_id=unit_id)
