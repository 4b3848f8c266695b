from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from residenthub.apps.announcements import router, schemas, services
from residenthub.apps.announcements.models import Announcement
from residenthub.errors import BadRequestError, ForbiddenError, NotFoundError
from residenthub.tests.factories import (
    make_admin_with_society,
    make_platform_owner,
    make_resident_user,
    make_unit,
)

NOW = datetime(2026, 6, 1, 8, 0, tzinfo=timezone.utc)


def _post(db_session, actor, **overrides):
    data = dict(title="Water cut", content="No water supply on Sunday 10am-2pm")
    data.update(overrides)
    return services.create_announcement(db_session, actor=actor, payload=schemas.AnnouncementCreate(**data))


def _setup(db_session):
    admin, society = make_admin_with_society(db_session)
    resident = make_resident_user(db_session, make_unit(db_session, society))
    return admin, society, resident


def test_admin_posts_to_own_society(db_session):
    admin, society, _ = _setup(db_session)

    announcement = _post(db_session, admin, title="  Diwali party  ")

    assert announcement.society_id == society.id
    assert announcement.created_by == admin.id
    assert announcement.title == "Diwali party"
    assert announcement.is_important is False


def test_posting_rules(db_session):
    admin, _, resident = _setup(db_session)
    _, other = make_admin_with_society(db_session, name="Other")
    owner = make_platform_owner(db_session)

    with pytest.raises(ForbiddenError):
        _post(db_session, admin, society_id=other.id)
    with pytest.raises(ForbiddenError):
        _post(db_session, resident)
    with pytest.raises(BadRequestError):
        _post(db_session, owner)

    posted = _post(db_session, owner, society_id=other.id)
    assert posted.society_id == other.id


def test_residents_never_see_expired_announcements(db_session):
    admin, _, resident = _setup(db_session)
    live = _post(db_session, admin, expires_at=NOW + timedelta(days=3))
    forever = _post(db_session, admin)
    expired = _post(db_session, admin, expires_at=NOW - timedelta(hours=1))

    visible = services.list_announcements(db_session, actor=resident, now=NOW)
    assert {a.id for a in visible} == {live.id, forever.id}

    with pytest.raises(NotFoundError):
        services.get_announcement(db_session, actor=resident, announcement_id=expired.id, now=NOW)

    # admins still manage expired notices
    assert len(services.list_announcements(db_session, actor=admin, now=NOW)) == 3
    assert services.get_announcement(db_session, actor=admin, announcement_id=expired.id, now=NOW).id == expired.id


def test_important_announcements_come_first(db_session):
    admin, _, resident = _setup(db_session)
    _post(db_session, admin, title="Routine")
    important = _post(db_session, admin, title="Fire drill", is_important=True)

    listed = services.list_announcements(db_session, actor=resident, now=NOW)

    assert listed[0].id == important.id


def test_other_society_announcement_is_forbidden(db_session):
    _, _, resident = _setup(db_session)
    other_admin, _ = make_admin_with_society(db_session, name="Other")
    foreign = _post(db_session, other_admin)

    with pytest.raises(ForbiddenError):
        services.get_announcement(db_session, actor=resident, announcement_id=foreign.id, now=NOW)
    assert services.list_announcements(db_session, actor=resident, now=NOW) == []


def test_update_can_clear_expiry(db_session):
    admin, _, resident = _setup(db_session)
    announcement = _post(db_session, admin, expires_at=NOW - timedelta(days=1))

    updated = services.update_announcement(
        db_session,
        actor=admin,
        announcement_id=announcement.id,
        payload=schemas.AnnouncementUpdate(expires_at=None, is_important=True),
    )

    assert updated.expires_at is None
    assert updated.is_important is True
    assert services.get_announcement(db_session, actor=resident, announcement_id=announcement.id, now=NOW)

    with pytest.raises(BadRequestError):
        services.update_announcement(
            db_session, actor=admin, announcement_id=announcement.id, payload=schemas.AnnouncementUpdate()
        )


def test_delete_is_permanent_and_scoped(db_session):
    admin, _, resident = _setup(db_session)
    announcement = _post(db_session, admin)

    with pytest.raises(ForbiddenError):
        services.delete_announcement(db_session, actor=resident, announcement_id=announcement.id)

    router.delete_announcement(announcement.id, db=db_session, current_user=admin)

    assert db_session.query(Announcement).count() == 0
    with pytest.raises(NotFoundError):
        services.get_announcement(db_session, actor=admin, announcement_id=announcement.id)
