# backend/residenthub/apps/dashboard/services.py

"""
Per-role landing dashboards.

Read-only composition over the other apps, computed on every request.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Union

from sqlalchemy import func
from sqlalchemy.orm import Session

from residenthub.apps.accounts import models as account_models
from residenthub.apps.announcements import services as announcement_services
from residenthub.apps.announcements.schemas import AnnouncementRead
from residenthub.apps.issues import models as issue_models
from residenthub.apps.maintenance import models as maintenance_models
from residenthub.apps.maintenance.schemas import MaintenanceRead
from residenthub.apps.residents import models as resident_models
from residenthub.apps.societies import models as society_models
from residenthub.apps.societies import services as society_services
from residenthub.apps.units import services as unit_services
from residenthub.utils.dates import ensure_aware, utcnow

from . import schemas

RECENT_LIMIT = 5

Dashboard = Union[schemas.ResidentDashboard, schemas.AdminDashboard, schemas.PlatformDashboard]


def _sum_amount(qs) -> float:
    return float(qs.with_entities(func.coalesce(func.sum(maintenance_models.Maintenance.amount), 0)).scalar() or 0)


def resident_dashboard(
    db: Session,
    *,
    user: account_models.User,
    now: Optional[datetime] = None,
) -> schemas.ResidentDashboard:
    if not user.unit_id or not user.society_id:
        return schemas.ResidentDashboard()

    Maintenance = maintenance_models.Maintenance
    own_unit = db.query(Maintenance).filter(
        Maintenance.unit_id == user.unit_id,
        Maintenance.society_id == user.society_id,
    )
    outstanding = own_unit.filter(Maintenance.status.in_(maintenance_models.OUTSTANDING_STATUSES))

    active_issues = db.query(issue_models.Issue).filter(
        issue_models.Issue.raised_by == user.id,
        issue_models.Issue.status.in_(issue_models.ACTIVE_ISSUE_STATUSES),
    )

    return schemas.ResidentDashboard(
        outstanding_balance=_sum_amount(outstanding),
        active_issues_count=active_issues.count(),
        latest_announcements=[
            AnnouncementRead.model_validate(a)
            for a in announcement_services.list_announcements(db, actor=user, now=now, limit=RECENT_LIMIT)
        ],
        pending_dues=[
            MaintenanceRead.model_validate(m)
            for m in outstanding.order_by(Maintenance.due_date.asc()).limit(RECENT_LIMIT).all()
        ],
        recent_payments=[
            MaintenanceRead.model_validate(m)
            for m in own_unit.filter(Maintenance.status == maintenance_models.MaintenanceStatus.PAID)
            .order_by(Maintenance.paid_at.desc())
            .limit(RECENT_LIMIT)
            .all()
        ],
    )


def admin_dashboard(
    db: Session,
    *,
    user: account_models.User,
    now: Optional[datetime] = None,
) -> schemas.AdminDashboard:
    society_id = user.society_id
    if not society_id:
        return schemas.AdminDashboard()

    Maintenance = maintenance_models.Maintenance
    pending_dues = db.query(Maintenance).filter(
        Maintenance.society_id == society_id,
        Maintenance.status.in_(maintenance_models.PENDING_STATUSES),
    )
    pending_requests = db.query(resident_models.ResidentJoinRequest).filter(
        resident_models.ResidentJoinRequest.society_id == society_id,
        resident_models.ResidentJoinRequest.status == resident_models.JoinRequestStatus.PENDING,
    )
    open_issues = db.query(issue_models.Issue).filter(
        issue_models.Issue.society_id == society_id,
        issue_models.Issue.status.in_(issue_models.ACTIVE_ISSUE_STATUSES),
    )
    residents = unit_services.active_resident_user_query(db).filter(
        account_models.User.society_id == society_id
    )

    return schemas.AdminDashboard(
        pending_maintenance_dues=_sum_amount(pending_dues),
        pending_join_requests_count=pending_requests.count(),
        open_issues_count=open_issues.count(),
        recent_announcements=[
            AnnouncementRead.model_validate(a)
            for a in announcement_services.live_announcements(
                db, society_id=society_id, now=now or utcnow(), limit=RECENT_LIMIT
            )
        ],
        total_units=unit_services.count_units(db, society_id=society_id),
        total_residents=residents.count(),
    )


def platform_dashboard(db: Session) -> schemas.PlatformDashboard:
    Society = society_models.Society
    User = account_models.User

    total_societies = db.query(func.count(Society.id)).scalar() or 0
    active_societies = (
        db.query(func.count(Society.id))
        .filter(Society.status == society_models.SocietyStatus.ACTIVE)
        .scalar()
        or 0
    )
    recent = db.query(Society).order_by(Society.created_at.desc()).limit(RECENT_LIMIT).all()

    return schemas.PlatformDashboard(
        total_societies=total_societies,
        active_societies=active_societies,
        inactive_societies=total_societies - active_societies,
        total_users=db.query(func.count(User.id)).scalar() or 0,
        total_admins=(
            db.query(func.count(User.id))
            .filter(User.role == account_models.UserRole.SOCIETY_ADMIN)
            .scalar()
            or 0
        ),
        total_residents=(
            db.query(func.count(User.id))
            .filter(User.role == account_models.UserRole.RESIDENT)
            .scalar()
            or 0
        ),
        total_units=unit_services.count_units(db),
        recent_societies=society_services.summarise(db, recent),
    )


def build_dashboard(
    db: Session,
    *,
    user: account_models.User,
    now: Optional[datetime] = None,
) -> Dashboard:
    now = ensure_aware(now) or utcnow()
    if user.role == account_models.UserRole.PLATFORM_OWNER:
        return platform_dashboard(db)
    if user.role == account_models.UserRole.SOCIETY_ADMIN:
        return admin_dashboard(db, user=user, now=now)
    return resident_dashboard(db, user=user, now=now)
