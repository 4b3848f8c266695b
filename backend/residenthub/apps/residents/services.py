# backend/residenthub/apps/residents/services.py

"""
Resident onboarding and the resident directory.

Join requests move PENDING -> APPROVED | REJECTED exactly once. Every change
that touches more than one row (user + request, resident + unit back-reference)
runs inside database.unit_of_work so the rows never diverge.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from residenthub.access import Action, Principal, Resource, Target, enforce, list_scope
from residenthub.apps.accounts import models as account_models
from residenthub.apps.accounts import services as account_services
from residenthub.apps.societies import models as society_models
from residenthub.apps.units import models as unit_models
from residenthub.apps.units import services as unit_services
from residenthub.database import unit_of_work
from residenthub.errors import BadRequestError, ConflictError, NotFoundError
from residenthub.notifications import Notifier, get_notifier
from residenthub.scoping import apply_list_scope
from residenthub.security import get_password_hash

from . import models, schemas

logger = logging.getLogger(__name__)

ALREADY_PROCESSED_MESSAGE = "This join request has already been processed"
UNIT_OCCUPIED_MESSAGE = "This unit already has an active resident"


# ---------------------------------------------------------------------------
# Join requests
# ---------------------------------------------------------------------------


def _active_society_or_404(db: Session, society_id: str) -> society_models.Society:
    society = (
        db.query(society_models.Society)
        .filter(
            society_models.Society.id == society_id,
            society_models.Society.status == society_models.SocietyStatus.ACTIVE,
        )
        .first()
    )
    if society is None:
        raise NotFoundError("Society not found")
    return society


def submit_join_request(
    db: Session,
    payload: schemas.JoinRequestCreate,
) -> models.ResidentJoinRequest:
    """
    Public signup for residents.

    Creates a PENDING_APPROVAL resident user and its PENDING join request in
    one transaction.
    """
    email = account_services.ensure_email_available(db, payload.email)
    society = _active_society_or_404(db, payload.society_id)
    unit = unit_services.get_unit_or_404(db, payload.unit_id)
    if unit.society_id != society.id:
        raise BadRequestError("Unit does not belong to the specified society")
    if unit_services.unit_has_active_resident_user(db, unit.id):
        raise ConflictError(UNIT_OCCUPIED_MESSAGE)

    user = account_models.User(
        name=payload.name.strip(),
        email=email,
        password_hash=get_password_hash(payload.password),
        role=account_models.UserRole.RESIDENT,
        status=account_models.AccountStatus.PENDING_APPROVAL,
        society_id=society.id,
        unit_id=unit.id,
    )
    with unit_of_work(db, conflict_message="User with this email already exists"):
        db.add(user)
        db.flush()
        request = models.ResidentJoinRequest(
            user_id=user.id,
            society_id=society.id,
            unit_id=unit.id,
            status=models.JoinRequestStatus.PENDING,
        )
        db.add(request)
    db.refresh(request)
    logger.info(
        "Join request submitted",
        extra={"join_request_id": request.id, "society_id": society.id, "unit_id": unit.id},
    )
    return request


def describe_join_requests(
    db: Session,
    requests: List[models.ResidentJoinRequest],
) -> List[schemas.JoinRequestRead]:
    """Attach applicant and unit labels for the admin review screen."""
    user_ids = {r.user_id for r in requests}
    unit_ids = {r.unit_id for r in requests}
    users: Dict[str, account_models.User] = {
        u.id: u
        for u in db.query(account_models.User).filter(account_models.User.id.in_(user_ids)).all()
    } if user_ids else {}
    units: Dict[str, unit_models.Unit] = {
        u.id: u
        for u in db.query(unit_models.Unit).filter(unit_models.Unit.id.in_(unit_ids)).all()
    } if unit_ids else {}

    described = []
    for request in requests:
        item = schemas.JoinRequestRead.model_validate(request)
        applicant = users.get(request.user_id)
        unit = units.get(request.unit_id)
        if applicant is not None:
            item.applicant_name = applicant.name
            item.applicant_email = applicant.email
        if unit is not None:
            item.unit_label = unit.label
        described.append(item)
    return described


def _join_request_or_404(db: Session, request_id: str) -> models.ResidentJoinRequest:
    request = (
        db.query(models.ResidentJoinRequest)
        .filter(models.ResidentJoinRequest.id == request_id)
        .first()
    )
    if request is None:
        raise NotFoundError("Join request not found")
    return request


def list_join_requests(
    db: Session,
    *,
    actor: account_models.User,
    status: Optional[models.JoinRequestStatus] = None,
) -> List[models.ResidentJoinRequest]:
    """
    Admins default to the PENDING queue of their society; the platform owner
    sees every request unless a status is given.
    """
    scope = list_scope(Principal.from_user(actor), Resource.JOIN_REQUEST)
    qs = apply_list_scope(
        db.query(models.ResidentJoinRequest),
        scope,
        society_column=models.ResidentJoinRequest.society_id,
    )
    if status is None and actor.role == account_models.UserRole.SOCIETY_ADMIN:
        status = models.JoinRequestStatus.PENDING
    if status is not None:
        qs = qs.filter(models.ResidentJoinRequest.status == status)
    return qs.order_by(models.ResidentJoinRequest.created_at.desc()).all()


def get_join_request(
    db: Session,
    *,
    actor: account_models.User,
    request_id: str,
) -> models.ResidentJoinRequest:
    request = _join_request_or_404(db, request_id)
    enforce(
        Principal.from_user(actor),
        Resource.JOIN_REQUEST,
        Action.READ,
        Target(society_id=request.society_id, unit_id=request.unit_id),
        message="You do not have access to this join request",
    )
    return request


def get_my_join_request(db: Session, *, user: account_models.User) -> models.ResidentJoinRequest:
    request = (
        db.query(models.ResidentJoinRequest)
        .filter(models.ResidentJoinRequest.user_id == user.id)
        .first()
    )
    if request is None:
        raise NotFoundError("No join request found for this account")
    return request


def _load_pending_for_review(
    db: Session,
    *,
    actor: account_models.User,
    request_id: str,
    message: str,
) -> models.ResidentJoinRequest:
    request = _join_request_or_404(db, request_id)
    enforce(
        Principal.from_user(actor),
        Resource.JOIN_REQUEST,
        Action.UPDATE,
        Target(society_id=request.society_id, unit_id=request.unit_id),
        message=message,
    )
    if request.status != models.JoinRequestStatus.PENDING:
        raise ConflictError(ALREADY_PROCESSED_MESSAGE)
    return request


def approve_join_request(
    db: Session,
    *,
    actor: account_models.User,
    request_id: str,
    now: Optional[datetime] = None,
    notifier: Optional[Notifier] = None,
) -> models.ResidentJoinRequest:
    request = _load_pending_for_review(
        db,
        actor=actor,
        request_id=request_id,
        message="You can only approve residents in your own society",
    )
    applicant = db.query(account_models.User).filter(account_models.User.id == request.user_id).first()
    if applicant is None:
        raise NotFoundError("Applicant account not found")
    if applicant.status != account_models.AccountStatus.PENDING_APPROVAL:
        raise ConflictError(
            f"Applicant account is {applicant.status.value.lower()}, not pending approval"
        )

    # Another request for the same unit may have been approved meanwhile.
    if unit_services.unit_has_active_resident_user(db, request.unit_id):
        raise ConflictError(UNIT_OCCUPIED_MESSAGE)

    now = now or datetime.now(timezone.utc)
    with unit_of_work(db):
        request.status = models.JoinRequestStatus.APPROVED
        request.reviewed_by = actor.id
        request.reviewed_at = now
        applicant.status = account_models.AccountStatus.ACTIVE
        applicant.society_id = request.society_id
        applicant.unit_id = request.unit_id
        db.add(request)
        db.add(applicant)
    db.refresh(request)

    logger.info(
        "Join request approved",
        extra={"join_request_id": request.id, "reviewed_by": actor.id},
    )
    (notifier or get_notifier()).send_join_request_decision(
        recipient=applicant.email, name=applicant.name, approved=True
    )
    return request


def reject_join_request(
    db: Session,
    *,
    actor: account_models.User,
    request_id: str,
    reason: Optional[str] = None,
    now: Optional[datetime] = None,
    notifier: Optional[Notifier] = None,
) -> models.ResidentJoinRequest:
    """Reject a pending request. The applicant stays PENDING_APPROVAL."""
    request = _load_pending_for_review(
        db,
        actor=actor,
        request_id=request_id,
        message="You can only reject residents in your own society",
    )
    request.status = models.JoinRequestStatus.REJECTED
    request.reviewed_by = actor.id
    request.reviewed_at = now or datetime.now(timezone.utc)
    request.rejection_reason = reason.strip() if reason and reason.strip() else None
    db.add(request)
    db.commit()
    db.refresh(request)

    logger.info(
        "Join request rejected",
        extra={"join_request_id": request.id, "reviewed_by": actor.id},
    )
    applicant = db.query(account_models.User).filter(account_models.User.id == request.user_id).first()
    if applicant is not None:
        (notifier or get_notifier()).send_join_request_decision(
            recipient=applicant.email,
            name=applicant.name,
            approved=False,
            reason=request.rejection_reason,
        )
    return request


# ---------------------------------------------------------------------------
# Resident directory
# ---------------------------------------------------------------------------


def _resident_or_404(db: Session, resident_id: str) -> models.Resident:
    resident = db.query(models.Resident).filter(models.Resident.id == resident_id).first()
    if resident is None:
        raise NotFoundError("Resident not found")
    return resident


def _resident_target(resident: models.Resident) -> Target:
    return Target(society_id=resident.society_id, unit_id=resident.unit_id)


def _active_resident_of_type(
    db: Session,
    *,
    unit_id: str,
    resident_type: models.ResidentType,
    exclude_id: Optional[str] = None,
) -> Optional[models.Resident]:
    qs = db.query(models.Resident).filter(
        models.Resident.unit_id == unit_id,
        models.Resident.resident_type == resident_type,
        models.Resident.status == models.ResidentStatus.ACTIVE,
    )
    if exclude_id:
        qs = qs.filter(models.Resident.id != exclude_id)
    return qs.first()


def _ensure_slot_free(
    db: Session,
    *,
    unit_id: str,
    resident_type: models.ResidentType,
    exclude_id: Optional[str] = None,
) -> None:
    if _active_resident_of_type(db, unit_id=unit_id, resident_type=resident_type, exclude_id=exclude_id):
        kind = "owner" if resident_type == models.ResidentType.OWNER else "tenant"
        raise ConflictError(f"This unit already has an active {kind}")


def _attach_to_unit(unit: unit_models.Unit, resident: models.Resident) -> None:
    if resident.resident_type == models.ResidentType.OWNER:
        unit.owner_resident_id = resident.id
    else:
        unit.tenant_resident_id = resident.id
    unit.status = unit_models.UnitStatus.OCCUPIED
    unit.ownership_type = (
        unit_models.OwnershipType.RENTED
        if unit.tenant_resident_id
        else unit_models.OwnershipType.OWNER
    )


def _detach_from_unit(unit: unit_models.Unit, resident: models.Resident) -> None:
    if unit.owner_resident_id == resident.id:
        unit.owner_resident_id = None
    if unit.tenant_resident_id == resident.id:
        unit.tenant_resident_id = None
    if unit.owner_resident_id is None and unit.tenant_resident_id is None:
        unit.status = unit_models.UnitStatus.VACANT
        unit.ownership_type = unit_models.OwnershipType.VACANT
    elif unit.tenant_resident_id is None:
        unit.ownership_type = unit_models.OwnershipType.OWNER


def create_resident(
    db: Session,
    *,
    actor: account_models.User,
    payload: schemas.ResidentCreate,
) -> models.Resident:
    """
    Add a resident to a unit.

    The resident row, the optional login, the unit's owner/tenant
    back-reference and its OCCUPIED status are committed together.
    """
    society_id = payload.society_id or actor.society_id
    if not society_id:
        raise BadRequestError("society_id is required")

    unit = unit_services.get_unit_or_404(db, payload.unit_id)
    if unit.society_id != society_id:
        raise BadRequestError("Unit does not belong to the specified society")
    enforce(
        Principal.from_user(actor),
        Resource.RESIDENT,
        Action.CREATE,
        Target(society_id=unit.society_id, unit_id=unit.id),
        message="You can only add residents to your own society",
    )

    owner_id = None
    if payload.resident_type == models.ResidentType.TENANT:
        if not payload.owner_id:
            raise BadRequestError("Tenant residents require owner_id")
        owner = db.query(models.Resident).filter(models.Resident.id == payload.owner_id).first()
        if owner is None:
            raise NotFoundError("Owner resident not found")
        if (
            owner.resident_type != models.ResidentType.OWNER
            or owner.status != models.ResidentStatus.ACTIVE
            or owner.society_id != unit.society_id
        ):
            raise BadRequestError("owner_id must reference an active owner in the same society")
        owner_id = owner.id
    _ensure_slot_free(db, unit_id=unit.id, resident_type=payload.resident_type)

    login = None
    if payload.password:
        if not payload.email:
            raise BadRequestError("email is required to create a resident login")
        login = account_models.User(
            name=payload.name.strip(),
            email=account_services.ensure_email_available(db, payload.email),
            password_hash=get_password_hash(payload.password),
            role=account_models.UserRole.RESIDENT,
            status=account_models.AccountStatus.ACTIVE,
            society_id=unit.society_id,
            unit_id=unit.id,
            created_by=actor.id,
        )

    resident = models.Resident(
        society_id=unit.society_id,
        unit_id=unit.id,
        resident_type=payload.resident_type,
        status=models.ResidentStatus.ACTIVE,
        owner_id=owner_id,
        name=payload.name.strip(),
        email=str(payload.email).lower() if payload.email else None,
        mobile=payload.mobile.strip(),
        emergency_contact=payload.emergency_contact,
        start_date=payload.start_date,
        end_date=payload.end_date,
        created_by=actor.id,
    )
    with unit_of_work(db):
        if login is not None:
            db.add(login)
            db.flush()
            resident.user_id = login.id
        db.add(resident)
        db.flush()
        _attach_to_unit(unit, resident)
        db.add(unit)
    db.refresh(resident)
    logger.info(
        "Resident added",
        extra={"resident_id": resident.id, "unit_id": unit.id, "type": resident.resident_type.value},
    )
    return resident


def list_residents(
    db: Session,
    *,
    actor: account_models.User,
    unit_id: Optional[str] = None,
    status: Optional[models.ResidentStatus] = None,
) -> List[models.Resident]:
    scope = list_scope(Principal.from_user(actor), Resource.RESIDENT)
    qs = apply_list_scope(
        db.query(models.Resident),
        scope,
        society_column=models.Resident.society_id,
        unit_column=models.Resident.unit_id,
    )
    if unit_id:
        qs = qs.filter(models.Resident.unit_id == unit_id)
    if status:
        qs = qs.filter(models.Resident.status == status)
    return qs.order_by(models.Resident.name.asc()).all()


def get_resident(db: Session, *, actor: account_models.User, resident_id: str) -> models.Resident:
    resident = _resident_or_404(db, resident_id)
    enforce(
        Principal.from_user(actor),
        Resource.RESIDENT,
        Action.READ,
        _resident_target(resident),
        message="You do not have access to this resident",
    )
    return resident


def update_resident(
    db: Session,
    *,
    actor: account_models.User,
    resident_id: str,
    payload: schemas.ResidentUpdate,
) -> models.Resident:
    resident = _resident_or_404(db, resident_id)
    enforce(
        Principal.from_user(actor),
        Resource.RESIDENT,
        Action.UPDATE,
        _resident_target(resident),
        message="You can only update residents in your own society",
    )

    data = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not data:
        raise BadRequestError("No fields provided to update")
    start = data.get("start_date", resident.start_date)
    end = data.get("end_date", resident.end_date)
    if start and end and end < start:
        raise BadRequestError("end_date must not be before start_date")

    for field, value in data.items():
        if field == "email":
            value = str(value).lower()
        elif isinstance(value, str):
            value = value.strip()
        setattr(resident, field, value)

    db.add(resident)
    db.commit()
    db.refresh(resident)
    return resident


def update_resident_status(
    db: Session,
    *,
    actor: account_models.User,
    resident_id: str,
    status: models.ResidentStatus,
) -> models.Resident:
    """
    Suspend or reactivate a resident.

    Suspension clears the unit's back-reference (the unit turns VACANT when
    nobody is left); reactivation re-checks the slot and restores it. A
    linked login follows the resident's status.
    """
    resident = _resident_or_404(db, resident_id)
    enforce(
        Principal.from_user(actor),
        Resource.RESIDENT,
        Action.UPDATE,
        _resident_target(resident),
        message="You can only update residents in your own society",
    )
    if resident.status == status:
        return resident

    unit = unit_services.get_unit_or_404(db, resident.unit_id)
    if status == models.ResidentStatus.ACTIVE:
        _ensure_slot_free(
            db,
            unit_id=unit.id,
            resident_type=resident.resident_type,
            exclude_id=resident.id,
        )

    login = None
    if resident.user_id:
        login = db.query(account_models.User).filter(account_models.User.id == resident.user_id).first()

    with unit_of_work(db):
        resident.status = status
        if status == models.ResidentStatus.SUSPENDED:
            _detach_from_unit(unit, resident)
        else:
            _attach_to_unit(unit, resident)
        if login is not None:
            login.status = (
                account_models.AccountStatus.ACTIVE
                if status == models.ResidentStatus.ACTIVE
                else account_models.AccountStatus.SUSPENDED
            )
            db.add(login)
        db.add(resident)
        db.add(unit)
    db.refresh(resident)
    logger.info(
        "Resident status changed",
        extra={"resident_id": resident.id, "status": status.value, "actor_id": actor.id},
    )
    return resident
