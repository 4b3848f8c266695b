from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from residenthub.apps.accounts import models as account_models
from residenthub.apps.accounts.models import UserRole
from residenthub.database import get_db
from residenthub.security import get_current_active_user, require_roles

from . import schemas, services

router = APIRouter(prefix="/announcements", tags=["announcements"])

_admins = require_roles(UserRole.SOCIETY_ADMIN, UserRole.PLATFORM_OWNER)


@router.post("", response_model=schemas.AnnouncementRead, status_code=status.HTTP_201_CREATED)
def create_announcement(
    payload: schemas.AnnouncementCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(_admins),
):
    return services.create_announcement(db, actor=current_user, payload=payload)


@router.get("", response_model=List[schemas.AnnouncementRead])
def list_announcements(
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    return services.list_announcements(db, actor=current_user)


@router.get("/{announcement_id}", response_model=schemas.AnnouncementRead)
def get_announcement(
    announcement_id: str,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    return services.get_announcement(db, actor=current_user, announcement_id=announcement_id)


@router.patch("/{announcement_id}", response_model=schemas.AnnouncementRead)
def update_announcement(
    announcement_id: str,
    payload: schemas.AnnouncementUpdate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(_admins),
):
    return services.update_announcement(
        db, actor=current_user, announcement_id=announcement_id, payload=payload
    )


@router.delete("/{announcement_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_announcement(
    announcement_id: str,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(_admins),
):
    services.delete_announcement(db, actor=current_user, announcement_id=announcement_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
