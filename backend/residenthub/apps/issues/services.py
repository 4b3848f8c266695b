from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Set

from sqlalchemy.orm import Session

from residenthub.access import Action, Principal, Resource, Target, enforce, list_scope
from residenthub.apps.accounts import models as account_models
from residenthub.apps.units import services as unit_services
from residenthub.database import unit_of_work
from residenthub.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from residenthub.scoping import apply_list_scope

from . import models, schemas

logger = logging.getLogger(__name__)

ISSUE_TRANSITIONS: Dict[models.IssueStatus, Set[models.IssueStatus]] = {
    models.IssueStatus.OPEN: {
        models.IssueStatus.IN_PROGRESS,
        models.IssueStatus.RESOLVED,
        models.IssueStatus.CLOSED,
    },
    models.IssueStatus.IN_PROGRESS: {
        models.IssueStatus.RESOLVED,
        models.IssueStatus.CLOSED,
    },
    models.IssueStatus.RESOLVED: {models.IssueStatus.CLOSED},
    models.IssueStatus.CLOSED: set(),
}


def _issue_or_404(db: Session, issue_id: str) -> models.Issue:
    issue = db.query(models.Issue).filter(models.Issue.id == issue_id).first()
    if issue is None:
        raise NotFoundError("Issue not found")
    return issue


def _target(issue: models.Issue) -> Target:
    return Target(society_id=issue.society_id, unit_id=issue.unit_id, author_id=issue.raised_by)


def create_issue(
    db: Session,
    *,
    actor: account_models.User,
    payload: schemas.IssueCreate,
) -> models.Issue:
    society_id = actor.society_id
    unit_id = payload.unit_id
    if unit_id:
        unit = unit_services.get_unit_or_404(db, unit_id)
        if society_id is None and actor.role == account_models.UserRole.PLATFORM_OWNER:
            society_id = unit.society_id
        elif unit.society_id != society_id:
            raise ForbiddenError("Unit does not belong to your society")
    elif actor.role == account_models.UserRole.RESIDENT:
        unit_id = actor.unit_id
        if not unit_id:
            raise BadRequestError("Residents must be assigned to a unit to raise issues")

    if not society_id:
        raise BadRequestError("You must belong to a society to raise issues")

    enforce(
        Principal.from_user(actor),
        Resource.ISSUE,
        Action.CREATE,
        Target(society_id=society_id, unit_id=unit_id, author_id=actor.id),
    )

    issue = models.Issue(
        society_id=society_id,
        unit_id=unit_id,
        raised_by=actor.id,
        title=payload.title.strip(),
        description=payload.description.strip(),
        priority=payload.priority,
        status=models.IssueStatus.OPEN,
    )
    db.add(issue)
    db.commit()
    db.refresh(issue)
    return issue


def _apply_transition(
    issue: models.Issue,
    new_status: models.IssueStatus,
    *,
    actor: account_models.User,
    now: datetime,
) -> None:
    if new_status not in ISSUE_TRANSITIONS[issue.status]:
        raise ConflictError(
            f"Cannot change issue status from {issue.status.value} to {new_status.value}"
        )

    if new_status == models.IssueStatus.RESOLVED:
        if not (issue.resolution_notes or "").strip():
            raise BadRequestError("Resolution notes are required when resolving an issue")
        issue.resolved_at = now
        issue.resolved_by = actor.id
    elif new_status == models.IssueStatus.CLOSED:
        issue.closed_at = now
        # Closing implicitly resolves.
        if issue.resolved_at is None:
            issue.resolved_at = now
            issue.resolved_by = actor.id

    issue.status = new_status


def update_issue(
    db: Session,
    *,
    actor: account_models.User,
    issue_id: str,
    payload: schemas.IssueUpdate,
    now: Optional[datetime] = None,
) -> models.Issue:
    """
    Edit an issue and optionally move it through its lifecycle.

    Residents may edit title, description and priority of their own issues;
    any status field from a resident is refused before ownership is checked.
    """
    issue = _issue_or_404(db, issue_id)
    submitted = payload.model_dump(exclude_unset=True)
    enforce(
        Principal.from_user(actor),
        Resource.ISSUE,
        Action.UPDATE,
        _target(issue),
        changes=submitted.keys(),
        message="You can only update your own issues",
    )
    data = {field: value for field, value in submitted.items() if value is not None}
    if not data:
        raise BadRequestError("No fields provided to update")

    new_status = data.pop("status", None)
    previous = issue.status
    with unit_of_work(db):
        if "resolution_notes" in data:
            issue.resolution_notes = data.pop("resolution_notes").strip() or None
        for field, value in data.items():
            setattr(issue, field, value.strip() if isinstance(value, str) else value)
        if new_status is not None and new_status != previous:
            _apply_transition(issue, new_status, actor=actor, now=now or datetime.now(timezone.utc))
        db.add(issue)
    db.refresh(issue)

    if issue.status != previous:
        logger.info(
            "Issue status changed",
            extra={"issue_id": issue.id, "from": previous.value, "to": issue.status.value},
        )
    return issue


def list_issues(
    db: Session,
    *,
    actor: account_models.User,
    status: Optional[models.IssueStatus] = None,
    priority: Optional[models.IssuePriority] = None,
) -> List[models.Issue]:
    scope = list_scope(Principal.from_user(actor), Resource.ISSUE)
    qs = apply_list_scope(
        db.query(models.Issue),
        scope,
        society_column=models.Issue.society_id,
        unit_column=models.Issue.unit_id,
        author_column=models.Issue.raised_by,
    )
    if status:
        qs = qs.filter(models.Issue.status == status)
    if priority:
        qs = qs.filter(models.Issue.priority == priority)
    return qs.order_by(models.Issue.created_at.desc()).all()


def get_issue(db: Session, *, actor: account_models.User, issue_id: str) -> models.Issue:
    issue = _issue_or_404(db, issue_id)
    enforce(
        Principal.from_user(actor),
        Resource.ISSUE,
        Action.READ,
        _target(issue),
        message="You do not have access to this issue",
    )
    return issue
