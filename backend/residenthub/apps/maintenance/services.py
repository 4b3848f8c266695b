# backend/residenthub/apps/maintenance/services.py

"""
Maintenance billing.

Lifecycle: UPCOMING -> DUE -> OVERDUE -> PAID. PAID is terminal and only
reachable through mark_paid(). DUE -> OVERDUE happens in bulk through
update_overdue_statuses(), which cron (jobs/maintenance_overdue.py) or the
platform owner triggers.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from residenthub.access import Action, Principal, Resource, Target, enforce, list_scope
from residenthub.apps.accounts import models as account_models
from residenthub.apps.units import services as unit_services
from residenthub.database import unit_of_work
from residenthub.errors import BadRequestError, ConflictError, NotFoundError
from residenthub.scoping import apply_list_scope
from residenthub.utils.dates import ensure_aware

from . import models, schemas

logger = logging.getLogger(__name__)


def _status_for_due_date(due_date: datetime, now: datetime) -> models.MaintenanceStatus:
    if ensure_aware(due_date) <= now:
        return models.MaintenanceStatus.DUE
    return models.MaintenanceStatus.UPCOMING


def _target(record: models.Maintenance) -> Target:
    return Target(society_id=record.society_id, unit_id=record.unit_id)


def _duplicate_message(month: int, year: int) -> str:
    return f"Maintenance for {month:02d}/{year} already exists for this unit"


def _record_or_404(db: Session, maintenance_id: str) -> models.Maintenance:
    record = db.query(models.Maintenance).filter(models.Maintenance.id == maintenance_id).first()
    if record is None:
        raise NotFoundError("Maintenance record not found")
    return record


def _ordered(qs):
    return qs.order_by(
        models.Maintenance.year.desc(),
        models.Maintenance.month.desc(),
        models.Maintenance.due_date.desc(),
    )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def create_maintenance(
    db: Session,
    *,
    actor: account_models.User,
    payload: schemas.MaintenanceCreate,
    now: Optional[datetime] = None,
) -> models.Maintenance:
    unit = unit_services.get_unit_or_404(db, payload.unit_id)
    enforce(
        Principal.from_user(actor),
        Resource.MAINTENANCE,
        Action.CREATE,
        Target(society_id=unit.society_id, unit_id=unit.id),
        message="You can only create maintenance for units in your own society",
    )

    exists = (
        db.query(models.Maintenance.id)
        .filter(
            models.Maintenance.unit_id == unit.id,
            models.Maintenance.month == payload.month,
            models.Maintenance.year == payload.year,
        )
        .first()
    )
    if exists is not None:
        raise ConflictError(_duplicate_message(payload.month, payload.year))

    now = ensure_aware(now) or datetime.now(timezone.utc)
    due_date = ensure_aware(payload.due_date)
    record = models.Maintenance(
        society_id=unit.society_id,
        unit_id=unit.id,
        month=payload.month,
        year=payload.year,
        amount=payload.amount,
        due_date=due_date,
        status=_status_for_due_date(due_date, now),
        notes=payload.notes,
        created_by=actor.id,
    )
    with unit_of_work(db, conflict_message=_duplicate_message(payload.month, payload.year)):
        db.add(record)
    db.refresh(record)
    return record


def update_maintenance(
    db: Session,
    *,
    actor: account_models.User,
    maintenance_id: str,
    payload: schemas.MaintenanceUpdate,
    now: Optional[datetime] = None,
) -> models.Maintenance:
    record = _record_or_404(db, maintenance_id)
    enforce(
        Principal.from_user(actor),
        Resource.MAINTENANCE,
        Action.UPDATE,
        _target(record),
        message="You can only update maintenance in your own society",
    )

    data = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not data:
        raise BadRequestError("No fields provided to update")
    if record.status == models.MaintenanceStatus.PAID:
        raise ConflictError("Paid maintenance records cannot be modified")
    if data.get("status") == models.MaintenanceStatus.PAID:
        raise BadRequestError("Use mark-paid to record a payment")

    now = ensure_aware(now) or datetime.now(timezone.utc)
    if "due_date" in data:
        data["due_date"] = ensure_aware(data["due_date"])
        if "status" not in data:
            data["status"] = _status_for_due_date(data["due_date"], now)

    for field, value in data.items():
        setattr(record, field, value)

    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def mark_paid(
    db: Session,
    *,
    actor: account_models.User,
    maintenance_id: str,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> models.Maintenance:
    record = _record_or_404(db, maintenance_id)
    enforce(
        Principal.from_user(actor),
        Resource.MAINTENANCE,
        Action.UPDATE,
        _target(record),
        message="You can only update maintenance in your own society",
    )
    if record.status == models.MaintenanceStatus.PAID:
        raise ConflictError("This maintenance has already been paid")

    record.status = models.MaintenanceStatus.PAID
    record.paid_at = ensure_aware(now) or datetime.now(timezone.utc)
    record.paid_by = actor.id
    if notes:
        record.notes = notes
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info(
        "Maintenance marked paid",
        extra={"maintenance_id": record.id, "unit_id": record.unit_id, "paid_by": actor.id},
    )
    return record


def update_overdue_statuses(db: Session, *, now: Optional[datetime] = None) -> int:
    """
    Move every DUE record whose due date has passed to OVERDUE.

    Idempotent: rows already OVERDUE or PAID never match the filter.
    Returns the number of rows updated.
    """
    now = ensure_aware(now) or datetime.now(timezone.utc)
    count = (
        db.query(models.Maintenance)
        .filter(
            models.Maintenance.status == models.MaintenanceStatus.DUE,
            models.Maintenance.due_date < now,
        )
        .update(
            {
                models.Maintenance.status: models.MaintenanceStatus.OVERDUE,
                models.Maintenance.updated_at: now,
            },
            synchronize_session=False,
        )
    )
    db.commit()
    logger.info("Overdue maintenance sweep finished", extra={"updated": count})
    return count


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def list_maintenance(
    db: Session,
    *,
    actor: account_models.User,
    unit_id: Optional[str] = None,
    status: Optional[models.MaintenanceStatus] = None,
    month: Optional[int] = None,
    year: Optional[int] = None,
) -> List[models.Maintenance]:
    scope = list_scope(Principal.from_user(actor), Resource.MAINTENANCE)
    qs = apply_list_scope(
        db.query(models.Maintenance),
        scope,
        society_column=models.Maintenance.society_id,
        unit_column=models.Maintenance.unit_id,
    )
    if unit_id:
        qs = qs.filter(models.Maintenance.unit_id == unit_id)
    if status:
        qs = qs.filter(models.Maintenance.status == status)
    if month:
        qs = qs.filter(models.Maintenance.month == month)
    if year:
        qs = qs.filter(models.Maintenance.year == year)
    return _ordered(qs).all()


def get_maintenance(
    db: Session,
    *,
    actor: account_models.User,
    maintenance_id: str,
) -> models.Maintenance:
    record = _record_or_404(db, maintenance_id)
    enforce(
        Principal.from_user(actor),
        Resource.MAINTENANCE,
        Action.READ,
        _target(record),
        message="You do not have access to this maintenance record",
    )
    return record


def _own_unit_query(db: Session, user: account_models.User):
    return db.query(models.Maintenance).filter(
        models.Maintenance.unit_id == user.unit_id,
        models.Maintenance.society_id == user.society_id,
    )


def list_my_dues(db: Session, *, user: account_models.User) -> List[models.Maintenance]:
    if not user.unit_id or not user.society_id:
        return []
    return (
        _own_unit_query(db, user)
        .filter(models.Maintenance.status.in_(models.OUTSTANDING_STATUSES))
        .order_by(models.Maintenance.due_date.asc())
        .all()
    )


def list_my_history(db: Session, *, user: account_models.User) -> List[models.Maintenance]:
    if not user.unit_id or not user.society_id:
        return []
    return _ordered(
        _own_unit_query(db, user).filter(
            models.Maintenance.status == models.MaintenanceStatus.PAID
        )
    ).all()
