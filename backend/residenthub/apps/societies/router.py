from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from residenthub.apps.accounts import models as account_models
from residenthub.apps.accounts.models import UserRole
from residenthub.database import get_db, get_read_db
from residenthub.security import get_current_active_user, require_roles

from . import schemas, services

router = APIRouter(prefix="/societies", tags=["societies"])


@router.post("", response_model=schemas.SocietyRead, status_code=status.HTTP_201_CREATED)
def create_society(
    payload: schemas.SocietyCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(UserRole.SOCIETY_ADMIN)),
):
    return services.create_society(db, actor=current_user, payload=payload)


@router.get("/public", response_model=List[schemas.SocietyPublicRead])
def list_public_societies(db: Session = Depends(get_read_db)):
    return services.list_public_societies(db)


@router.get("", response_model=List[schemas.SocietySummary])
def list_societies(
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    societies = services.list_societies(db, actor=current_user)
    return services.summarise(db, societies)


@router.get("/{society_id}", response_model=schemas.SocietySummary)
def get_society(
    society_id: str,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    society = services.get_society(db, actor=current_user, society_id=society_id)
    return services.summarise(db, [society])[0]


@router.patch("/{society_id}", response_model=schemas.SocietyRead)
def update_society(
    society_id: str,
    payload: schemas.SocietyUpdate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(
        require_roles(UserRole.SOCIETY_ADMIN, UserRole.PLATFORM_OWNER)
    ),
):
    return services.update_society(db, actor=current_user, society_id=society_id, payload=payload)


@router.delete("/{society_id}", response_model=schemas.SocietyRead)
def delete_society(
    society_id: str,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(
        require_roles(UserRole.SOCIETY_ADMIN, UserRole.PLATFORM_OWNER)
    ),
):
    return services.deactivate_society(db, actor=current_user, society_id=society_id)
