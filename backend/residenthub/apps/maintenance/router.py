from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from residenthub.apps.accounts import models as account_models
from residenthub.apps.accounts.models import UserRole
from residenthub.database import get_db
from residenthub.security import get_current_active_user, require_roles

from . import models, schemas, services

router = APIRouter(prefix="/maintenance", tags=["maintenance"])

_admins = require_roles(UserRole.SOCIETY_ADMIN, UserRole.PLATFORM_OWNER)


@router.post("", response_model=schemas.MaintenanceRead, status_code=status.HTTP_201_CREATED)
def create_maintenance(
    payload: schemas.MaintenanceCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(_admins),
):
    return services.create_maintenance(db, actor=current_user, payload=payload)


@router.post("/update-overdue", response_model=schemas.OverdueSweepResult)
def update_overdue(
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(UserRole.PLATFORM_OWNER)),
):
    count = services.update_overdue_statuses(db)
    return schemas.OverdueSweepResult(message="Overdue statuses updated", count=count)


@router.get("/my-dues", response_model=List[schemas.MaintenanceRead])
def my_dues(
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(UserRole.RESIDENT)),
):
    return services.list_my_dues(db, user=current_user)


@router.get("/my-history", response_model=List[schemas.MaintenanceRead])
def my_history(
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(UserRole.RESIDENT)),
):
    return services.list_my_history(db, user=current_user)


@router.get("", response_model=List[schemas.MaintenanceRead])
def list_maintenance(
    unit_id: Optional[str] = Query(None),
    status: Optional[models.MaintenanceStatus] = Query(None),
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=2000),
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    return services.list_maintenance(
        db,
        actor=current_user,
        unit_id=unit_id,
        status=status,
        month=month,
        year=year,
    )


@router.get("/{maintenance_id}", response_model=schemas.MaintenanceRead)
def get_maintenance(
    maintenance_id: str,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    return services.get_maintenance(db, actor=current_user, maintenance_id=maintenance_id)


@router.patch("/{maintenance_id}", response_model=schemas.MaintenanceRead)
def update_maintenance(
    maintenance_id: str,
    payload: schemas.MaintenanceUpdate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(_admins),
):
    return services.update_maintenance(
        db, actor=current_user, maintenance_id=maintenance_id, payload=payload
    )


@router.patch("/{maintenance_id}/mark-paid", response_model=schemas.MaintenanceRead)
def mark_paid(
    maintenance_id: str,
    payload: Optional[schemas.MarkPaidRequest] = None,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(_admins),
):
    return services.mark_paid(
        db,
        actor=current_user,
        maintenance_id=maintenance_id,
        notes=payload.notes if payload else None,
    )
