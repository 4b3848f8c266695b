from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from residenthub.access import (
    Action,
    Principal,
    Resource,
    ScopeKind,
    Target,
    enforce,
    list_scope,
)
from residenthub.apps.accounts import models as account_models
from residenthub.apps.residents import models as resident_models
from residenthub.apps.societies import models as society_models
from residenthub.database import unit_of_work
from residenthub.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from residenthub.scoping import apply_list_scope

from . import models, schemas

logger = logging.getLogger(__name__)


def _duplicate_message(building_name: str, unit_number: str) -> str:
    return f"Unit {building_name}-{unit_number} already exists in this society"


def get_unit_or_404(db: Session, unit_id: str) -> models.Unit:
    unit = db.query(models.Unit).filter(models.Unit.id == unit_id).first()
    if unit is None:
        raise NotFoundError("Unit not found")
    return unit


def _society_or_404(db: Session, society_id: str) -> society_models.Society:
    society = (
        db.query(society_models.Society)
        .filter(society_models.Society.id == society_id)
        .first()
    )
    if society is None:
        raise NotFoundError("Society not found")
    return society


def unit_target(db: Session, unit: models.Unit) -> Target:
    society = _society_or_404(db, unit.society_id)
    return Target(
        society_id=unit.society_id,
        unit_id=unit.id,
        society_created_by=society.created_by,
    )


def _slot_taken(
    db: Session,
    *,
    society_id: str,
    building_name: str,
    unit_number: str,
    exclude_unit_id: Optional[str] = None,
) -> bool:
    qs = db.query(models.Unit.id).filter(
        models.Unit.society_id == society_id,
        models.Unit.building_name == building_name,
        models.Unit.unit_number == unit_number,
    )
    if exclude_unit_id:
        qs = qs.filter(models.Unit.id != exclude_unit_id)
    return qs.first() is not None


def active_resident_user_query(db: Session):
    return db.query(account_models.User).filter(
        account_models.User.role == account_models.UserRole.RESIDENT,
        account_models.User.status == account_models.AccountStatus.ACTIVE,
    )


def unit_has_active_resident_user(db: Session, unit_id: str) -> bool:
    return (
        active_resident_user_query(db)
        .filter(account_models.User.unit_id == unit_id)
        .first()
        is not None
    )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def create_unit(
    db: Session,
    *,
    actor: account_models.User,
    payload: schemas.UnitCreate,
) -> models.Unit:
    society_id = payload.society_id or actor.society_id
    if not society_id:
        if actor.role == account_models.UserRole.PLATFORM_OWNER:
            raise BadRequestError("society_id is required")
        raise BadRequestError("Create your society before adding units")

    society = _society_or_404(db, society_id)
    enforce(
        Principal.from_user(actor),
        Resource.UNIT,
        Action.CREATE,
        Target(society_id=society.id, society_created_by=society.created_by),
        message="You can only add units to your own society",
    )

    building_name = payload.building_name.strip()
    unit_number = payload.unit_number.strip()
    if _slot_taken(db, society_id=society.id, building_name=building_name, unit_number=unit_number):
        raise ConflictError(_duplicate_message(building_name, unit_number))

    unit = models.Unit(
        society_id=society.id,
        building_name=building_name,
        unit_number=unit_number,
        floor_number=payload.floor_number,
        unit_type=payload.unit_type,
        area_sq_ft=payload.area_sq_ft,
        ownership_type=payload.ownership_type,
        status=models.UnitStatus.VACANT,
        created_by=actor.id,
    )
    with unit_of_work(db, conflict_message=_duplicate_message(building_name, unit_number)):
        db.add(unit)
    db.refresh(unit)
    return unit


def update_unit(
    db: Session,
    *,
    actor: account_models.User,
    unit_id: str,
    payload: schemas.UnitUpdate,
) -> models.Unit:
    unit = get_unit_or_404(db, unit_id)
    enforce(
        Principal.from_user(actor),
        Resource.UNIT,
        Action.UPDATE,
        unit_target(db, unit),
        message="You can only update units in your own society",
    )

    data = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not data:
        raise BadRequestError("No fields provided to update")

    building_name = (data.get("building_name") or unit.building_name).strip()
    unit_number = (data.get("unit_number") or unit.unit_number).strip()
    if (building_name, unit_number) != (unit.building_name, unit.unit_number):
        if _slot_taken(
            db,
            society_id=unit.society_id,
            building_name=building_name,
            unit_number=unit_number,
            exclude_unit_id=unit.id,
        ):
            raise ConflictError(_duplicate_message(building_name, unit_number))
    data["building_name"] = building_name
    data["unit_number"] = unit_number

    for field, value in data.items():
        setattr(unit, field, value)

    with unit_of_work(db, conflict_message=_duplicate_message(building_name, unit_number)):
        db.add(unit)
    db.refresh(unit)
    return unit


def delete_unit(
    db: Session,
    *,
    actor: account_models.User,
    unit_id: str,
) -> models.Unit:
    """Soft delete: the unit is marked VACANT. Refused while residents live there."""
    unit = get_unit_or_404(db, unit_id)
    enforce(
        Principal.from_user(actor),
        Resource.UNIT,
        Action.DELETE,
        unit_target(db, unit),
        message="You can only delete units in your own society",
    )

    has_directory_residents = (
        db.query(resident_models.Resident.id)
        .filter(
            resident_models.Resident.unit_id == unit.id,
            resident_models.Resident.status == resident_models.ResidentStatus.ACTIVE,
        )
        .first()
        is not None
    )
    if has_directory_residents or unit_has_active_resident_user(db, unit.id):
        raise BadRequestError("Cannot delete unit with existing residents")

    unit.status = models.UnitStatus.VACANT
    unit.owner_resident_id = None
    unit.tenant_resident_id = None
    db.add(unit)
    db.commit()
    db.refresh(unit)
    return unit


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def _ordered(qs):
    return qs.order_by(
        models.Unit.building_name.asc(),
        models.Unit.floor_number.desc(),
        models.Unit.unit_number.asc(),
    )


def list_available_units(db: Session, *, society_id: str) -> List[models.Unit]:
    """Units of an active society that no active resident account occupies."""
    society = _society_or_404(db, society_id)
    if society.status != society_models.SocietyStatus.ACTIVE:
        raise NotFoundError("Society not found")

    occupied = select(account_models.User.unit_id).where(
        account_models.User.role == account_models.UserRole.RESIDENT,
        account_models.User.status == account_models.AccountStatus.ACTIVE,
        account_models.User.society_id == society.id,
        account_models.User.unit_id.is_not(None),
    )
    qs = db.query(models.Unit).filter(
        models.Unit.society_id == society.id,
        models.Unit.id.not_in(occupied),
    )
    return _ordered(qs).all()


def list_units(
    db: Session,
    *,
    actor: account_models.User,
    society_id: Optional[str] = None,
) -> List[models.Unit]:
    scope = list_scope(Principal.from_user(actor), Resource.UNIT)
    if society_id and scope.kind == ScopeKind.SOCIETY and society_id != scope.society_id:
        raise ForbiddenError("You do not have access to units of this society")

    qs = apply_list_scope(db.query(models.Unit), scope, society_column=models.Unit.society_id)
    if society_id:
        qs = qs.filter(models.Unit.society_id == society_id)
    return _ordered(qs).all()


def get_unit(db: Session, *, actor: account_models.User, unit_id: str) -> models.Unit:
    unit = get_unit_or_404(db, unit_id)
    enforce(
        Principal.from_user(actor),
        Resource.UNIT,
        Action.READ,
        unit_target(db, unit),
        message="You do not have access to this unit",
    )
    return unit


def count_units(db: Session, *, society_id: Optional[str] = None) -> int:
    qs = db.query(func.count(models.Unit.id))
    if society_id:
        qs = qs.filter(models.Unit.society_id == society_id)
    return qs.scalar() or 0
