# backend/residenthub/apps/societies/services.py

from __future__ import annotations

import logging
from typing import Dict, List, Sequence, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from residenthub.access import Action, Principal, Resource, Target, enforce, list_scope
from residenthub.apps.accounts import models as account_models
from residenthub.apps.units import models as unit_models
from residenthub.database import unit_of_work
from residenthub.errors import BadRequestError, ConflictError, NotFoundError
from residenthub.scoping import apply_list_scope
from residenthub.utils.identifiers import generate_society_code

from . import models, schemas

logger = logging.getLogger(__name__)


def society_target(society: models.Society) -> Target:
    return Target(society_id=society.id, society_created_by=society.created_by)


def get_society_or_404(db: Session, society_id: str) -> models.Society:
    society = db.query(models.Society).filter(models.Society.id == society_id).first()
    if society is None:
        raise NotFoundError("Society not found")
    return society


def _code_exists(db: Session, code: str) -> bool:
    return db.query(models.Society.id).filter(models.Society.code == code).first() is not None


def counts_by_society(db: Session, society_ids: Sequence[str]) -> Dict[str, Tuple[int, int]]:
    """Return {society_id: (unit_count, active_resident_user_count)}."""
    if not society_ids:
        return {}
    unit_rows = (
        db.query(unit_models.Unit.society_id, func.count(unit_models.Unit.id))
        .filter(unit_models.Unit.society_id.in_(society_ids))
        .group_by(unit_models.Unit.society_id)
        .all()
    )
    resident_rows = (
        db.query(account_models.User.society_id, func.count(account_models.User.id))
        .filter(
            account_models.User.society_id.in_(society_ids),
            account_models.User.role == account_models.UserRole.RESIDENT,
            account_models.User.status == account_models.AccountStatus.ACTIVE,
        )
        .group_by(account_models.User.society_id)
        .all()
    )
    units = dict(unit_rows)
    residents = dict(resident_rows)
    return {sid: (units.get(sid, 0), residents.get(sid, 0)) for sid in society_ids}


def summarise(db: Session, societies: List[models.Society]) -> List[schemas.SocietySummary]:
    counts = counts_by_society(db, [s.id for s in societies])
    summaries = []
    for society in societies:
        unit_count, resident_count = counts.get(society.id, (0, 0))
        summary = schemas.SocietySummary.model_validate(society)
        summary.unit_count = unit_count
        summary.resident_count = resident_count
        summaries.append(summary)
    return summaries


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def create_society(
    db: Session,
    *,
    actor: account_models.User,
    payload: schemas.SocietyCreate,
) -> models.Society:
    """
    Register the admin's society and link the admin to it.

    The society row and the admin's society_id change are committed together.
    """
    enforce(Principal.from_user(actor), Resource.SOCIETY, Action.CREATE)

    existing = db.query(models.Society).filter(models.Society.created_by == actor.id).first()
    if existing is not None:
        raise ConflictError(
            "You already have a society. Each admin can manage only one society."
        )

    society = models.Society(
        name=payload.name.strip(),
        address_line1=payload.address_line1.strip(),
        city=payload.city.strip(),
        state=payload.state.strip(),
        pincode=payload.pincode,
        society_type=payload.society_type,
        status=models.SocietyStatus.ACTIVE,
        code=generate_society_code(lambda code: _code_exists(db, code)),
        created_by=actor.id,
    )
    with unit_of_work(db, conflict_message="Society could not be created, please retry"):
        db.add(society)
        db.flush()
        actor.society_id = society.id
        db.add(actor)
    db.refresh(society)
    logger.info(
        "Society created",
        extra={"society_id": society.id, "code": society.code, "admin_id": actor.id},
    )
    return society


def update_society(
    db: Session,
    *,
    actor: account_models.User,
    society_id: str,
    payload: schemas.SocietyUpdate,
) -> models.Society:
    society = get_society_or_404(db, society_id)
    enforce(
        Principal.from_user(actor),
        Resource.SOCIETY,
        Action.UPDATE,
        society_target(society),
        message="You can only update your own society",
    )

    data = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not data:
        raise BadRequestError("No fields provided to update")
    for field, value in data.items():
        setattr(society, field, value.strip() if isinstance(value, str) else value)

    db.add(society)
    db.commit()
    db.refresh(society)
    return society


def deactivate_society(
    db: Session,
    *,
    actor: account_models.User,
    society_id: str,
) -> models.Society:
    """Soft delete: flip to INACTIVE. Refused while the society still has units."""
    society = get_society_or_404(db, society_id)
    enforce(
        Principal.from_user(actor),
        Resource.SOCIETY,
        Action.DELETE,
        society_target(society),
        message="You can only delete your own society",
    )

    unit_count = (
        db.query(func.count(unit_models.Unit.id))
        .filter(unit_models.Unit.society_id == society.id)
        .scalar()
    )
    if unit_count:
        raise BadRequestError(
            "Cannot delete society with existing units. Please remove all units first."
        )

    society.status = models.SocietyStatus.INACTIVE
    db.add(society)
    db.commit()
    db.refresh(society)
    logger.info("Society deactivated", extra={"society_id": society.id})
    return society


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def list_public_societies(db: Session) -> List[models.Society]:
    return (
        db.query(models.Society)
        .filter(models.Society.status == models.SocietyStatus.ACTIVE)
        .order_by(models.Society.name.asc())
        .all()
    )


def list_societies(db: Session, *, actor: account_models.User) -> List[models.Society]:
    scope = list_scope(Principal.from_user(actor), Resource.SOCIETY)
    qs = apply_list_scope(db.query(models.Society), scope, society_column=models.Society.id)
    return qs.order_by(models.Society.created_at.desc()).all()


def get_society(
    db: Session,
    *,
    actor: account_models.User,
    society_id: str,
) -> models.Society:
    society = get_society_or_404(db, society_id)
    enforce(
        Principal.from_user(actor),
        Resource.SOCIETY,
        Action.READ,
        society_target(society),
        message="You do not have access to this society",
    )
