from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from residenthub.apps.accounts import models as account_models
from residenthub.apps.accounts.models import UserRole
from residenthub.database import get_db
from residenthub.security import get_current_active_user, require_roles

from . import models, schemas, services

router = APIRouter(prefix="/issues", tags=["issues"])


@router.post("", response_model=schemas.IssueRead, status_code=status.HTTP_201_CREATED)
def create_issue(
    payload: schemas.IssueCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    return services.create_issue(db, actor=current_user, payload=payload)


@router.get("/by-status", response_model=List[schemas.IssueRead])
def list_issues_by_status(
    status: models.IssueStatus = Query(...),
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(
        require_roles(UserRole.SOCIETY_ADMIN, UserRole.PLATFORM_OWNER)
    ),
):
    return services.list_issues(db, actor=current_user, status=status)


@router.get("", response_model=List[schemas.IssueRead])
def list_issues(
    status: Optional[models.IssueStatus] = Query(None),
    priority: Optional[models.IssuePriority] = Query(None),
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    return services.list_issues(db, actor=current_user, status=status, priority=priority)


@router.get("/{issue_id}", response_model=schemas.IssueRead)
def get_issue(
    issue_id: str,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    return services.get_issue(db, actor=current_user, issue_id=issue_id)


@router.patch("/{issue_id}", response_model=schemas.IssueRead)
def update_issue(
    issue_id: str,
    payload: schemas.IssueUpdate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    return services.update_issue(db, actor=current_user, issue_id=issue_id, payload=payload)
