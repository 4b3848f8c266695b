from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from residenthub.apps.accounts import models as account_models
from residenthub.apps.accounts.models import UserRole
from residenthub.database import get_db
from residenthub.security import get_current_active_user, get_current_user, require_roles

from . import models, schemas, services

router = APIRouter(prefix="/residents", tags=["residents"])

_admins = require_roles(UserRole.SOCIETY_ADMIN, UserRole.PLATFORM_OWNER)


# ---------------------------------------------------------------------------
# Join requests
# ---------------------------------------------------------------------------


@router.post(
    "/join-request",
    response_model=schemas.JoinRequestSubmitted,
    status_code=status.HTTP_201_CREATED,
)
def submit_join_request(payload: schemas.JoinRequestCreate, db: Session = Depends(get_db)):
    request = services.submit_join_request(db, payload)
    return schemas.JoinRequestSubmitted(
        id=request.id,
        user_id=request.user_id,
        status=request.status,
        message="Join request submitted. Waiting for admin approval.",
    )


@router.get("/my-join-request", response_model=schemas.JoinRequestRead)
def my_join_request(
    db: Session = Depends(get_db),
    # Not status-gated: pending applicants poll this.
    current_user: account_models.User = Depends(get_current_user),
):
    request = services.get_my_join_request(db, user=current_user)
    return services.describe_join_requests(db, [request])[0]


@router.get("/join-requests", response_model=List[schemas.JoinRequestRead])
def list_join_requests(
    status: Optional[models.JoinRequestStatus] = Query(None),
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(_admins),
):
    requests = services.list_join_requests(db, actor=current_user, status=status)
    return services.describe_join_requests(db, requests)


@router.get("/join-requests/{request_id}", response_model=schemas.JoinRequestRead)
def get_join_request(
    request_id: str,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(_admins),
):
    request = services.get_join_request(db, actor=current_user, request_id=request_id)
    return services.describe_join_requests(db, [request])[0]


@router.patch("/join-requests/{request_id}/approve", response_model=schemas.JoinRequestDecision)
def approve_join_request(
    request_id: str,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(_admins),
):
    request = services.approve_join_request(db, actor=current_user, request_id=request_id)
    return schemas.JoinRequestDecision(
        message="Resident approved successfully",
        request=services.describe_join_requests(db, [request])[0],
    )


@router.patch("/join-requests/{request_id}/reject", response_model=schemas.JoinRequestDecision)
def reject_join_request(
    request_id: str,
    payload: Optional[schemas.JoinRequestReject] = None,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(_admins),
):
    request = services.reject_join_request(
        db,
        actor=current_user,
        request_id=request_id,
        reason=payload.rejection_reason if payload else None,
    )
    return schemas.JoinRequestDecision(
        message="Resident join request rejected",
        request=services.describe_join_requests(db, [request])[0],
    )


# ---------------------------------------------------------------------------
# Directory
# ---------------------------------------------------------------------------


@router.post("", response_model=schemas.ResidentRead, status_code=status.HTTP_201_CREATED)
def create_resident(
    payload: schemas.ResidentCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(_admins),
):
    return services.create_resident(db, actor=current_user, payload=payload)


@router.get("", response_model=List[schemas.ResidentRead])
def list_residents(
    unit_id: Optional[str] = Query(None),
    status: Optional[models.ResidentStatus] = Query(None),
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    return services.list_residents(db, actor=current_user, unit_id=unit_id, status=status)


@router.get("/{resident_id}", response_model=schemas.ResidentRead)
def get_resident(
    resident_id: str,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    return services.get_resident(db, actor=current_user, resident_id=resident_id)


@router.patch("/{resident_id}", response_model=schemas.ResidentRead)
def update_resident(
    resident_id: str,
    payload: schemas.ResidentUpdate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(_admins),
):
    return services.update_resident(db, actor=current_user, resident_id=resident_id, payload=payload)


@router.patch("/{resident_id}/status", response_model=schemas.ResidentRead)
def update_resident_status(
    resident_id: str,
    payload: schemas.ResidentStatusUpdate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(_admins),
):
    return services.update_resident_status(
        db, actor=current_user, resident_id=resident_id, status=payload.status
    )
