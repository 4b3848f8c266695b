from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from residenthub.access import Action, Principal, Resource, Target, enforce, list_scope
from residenthub.apps.accounts import models as account_models
from residenthub.apps.societies import services as society_services
from residenthub.errors import BadRequestError, NotFoundError
from residenthub.scoping import apply_list_scope
from residenthub.utils.dates import ensure_aware, utcnow

from . import models, schemas

logger = logging.getLogger(__name__)


def _announcement_or_404(db: Session, announcement_id: str) -> models.Announcement:
    announcement = (
        db.query(models.Announcement)
        .filter(models.Announcement.id == announcement_id)
        .first()
    )
    if announcement is None:
        raise NotFoundError("Announcement not found")
    return announcement


def _target(announcement: models.Announcement) -> Target:
    return Target(
        society_id=announcement.society_id,
        author_id=announcement.created_by,
        expires_at=announcement.expires_at,
    )


def _ordered(qs):
    return qs.order_by(
        models.Announcement.is_important.desc(),
        models.Announcement.created_at.desc(),
    )


def create_announcement(
    db: Session,
    *,
    actor: account_models.User,
    payload: schemas.AnnouncementCreate,
) -> models.Announcement:
    society_id = payload.society_id or actor.society_id
    if not society_id:
        raise BadRequestError("society_id is required")
    society = society_services.get_society_or_404(db, society_id)
    enforce(
        Principal.from_user(actor),
        Resource.ANNOUNCEMENT,
        Action.CREATE,
        Target(society_id=society.id),
        message="You can only post announcements to your own society",
    )

    announcement = models.Announcement(
        society_id=society.id,
        created_by=actor.id,
        title=payload.title.strip(),
        content=payload.content.strip(),
        is_important=payload.is_important,
        expires_at=ensure_aware(payload.expires_at),
    )
    db.add(announcement)
    db.commit()
    db.refresh(announcement)
    return announcement


def list_announcements(
    db: Session,
    *,
    actor: account_models.User,
    now: Optional[datetime] = None,
    limit: Optional[int] = None,
) -> List[models.Announcement]:
    """Newest first with important notices on top; residents never see expired ones."""
    scope = list_scope(Principal.from_user(actor), Resource.ANNOUNCEMENT, now=ensure_aware(now) or utcnow())
    qs = apply_list_scope(
        db.query(models.Announcement),
        scope,
        society_column=models.Announcement.society_id,
        expires_column=models.Announcement.expires_at,
    )
    qs = _ordered(qs)
    if limit:
        qs = qs.limit(limit)
    return qs.all()


def live_announcements(
    db: Session,
    *,
    society_id: str,
    now: datetime,
    limit: int,
) -> List[models.Announcement]:
    """Unexpired notices of one society, important first."""
    Announcement = models.Announcement
    qs = db.query(Announcement).filter(
        Announcement.society_id == society_id,
        or_(Announcement.expires_at.is_(None), Announcement.expires_at > now),
    )
    return _ordered(qs).limit(limit).all()


def get_announcement(
    db: Session,
    *,
    actor: account_models.User,
    announcement_id: str,
    now: Optional[datetime] = None,
) -> models.Announcement:
    announcement = _announcement_or_404(db, announcement_id)
    enforce(
        Principal.from_user(actor),
        Resource.ANNOUNCEMENT,
        Action.READ,
        _target(announcement),
        now=now,
        message="You do not have access to this announcement",
    )
    return announcement


def update_announcement(
    db: Session,
    *,
    actor: account_models.User,
    announcement_id: str,
    payload: schemas.AnnouncementUpdate,
) -> models.Announcement:
    announcement = _announcement_or_404(db, announcement_id)
    enforce(
        Principal.from_user(actor),
        Resource.ANNOUNCEMENT,
        Action.UPDATE,
        _target(announcement),
        message="You can only update announcements of your own society",
    )

    data = payload.model_dump(exclude_unset=True)
    if not data:
        raise BadRequestError("No fields provided to update")
    for field, value in data.items():
        if field == "expires_at":
            # null clears the expiry
            announcement.expires_at = ensure_aware(value)
        elif value is not None:
            setattr(announcement, field, value.strip() if isinstance(value, str) else value)

    db.add(announcement)
    db.commit()
    db.refresh(announcement)
    return announcement


def delete_announcement(
    db: Session,
    *,
    actor: account_models.User,
    announcement_id: str,
) -> None:
    announcement = _announcement_or_404(db, announcement_id)
    enforce(
        Principal.from_user(actor),
        Resource.ANNOUNCEMENT,
        Action.DELETE,
        _target(announcement),
        message="You can only delete announcements of your own society",
    )
    db.delete(announcement)
    db.commit()
    logger.info("Announcement deleted", extra={"announcement_id": announcement_id, "actor_id": actor.id})
