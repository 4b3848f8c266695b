from __future__ import annotations

import pytest

from residenthub.apps.accounts.models import AccountStatus, User, UserRole
from residenthub.apps.residents import router, schemas, services
from residenthub.apps.residents.models import JoinRequestStatus, ResidentJoinRequest
from residenthub.apps.societies.models import SocietyStatus
from residenthub.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from residenthub.notifications import Notifier
from residenthub.tests.factories import (
    make_admin_with_society,
    make_platform_owner,
    make_resident_user,
    make_unit,
    make_user,
)


class RecordingNotifier(Notifier):
    def __init__(self):
        self.decisions = []

    def send_password_reset(self, *, recipient, name, token):
        return None

    def send_join_request_decision(self, *, recipient, name, approved, reason=None):
        self.decisions.append((recipient, approved, reason))


def _join(db_session, society, unit, email="applicant@example.com"):
    payload = schemas.JoinRequestCreate(
        name="Ravi Kumar",
        email=email,
        password="Password123!",
        society_id=society.id,
        unit_id=unit.id,
    )
    return services.submit_join_request(db_session, payload)


def test_submit_creates_pending_user_and_request(db_session):
    _, society = make_admin_with_society(db_session)
    unit = make_unit(db_session, society)

    request = _join(db_session, society, unit, email="Applicant@Example.com")

    assert request.status == JoinRequestStatus.PENDING
    user = db_session.get(User, request.user_id)
    assert user.email == "applicant@example.com"
    assert user.role == UserRole.RESIDENT
    assert user.status == AccountStatus.PENDING_APPROVAL
    assert user.society_id == society.id
    assert user.unit_id == unit.id


def test_submit_validates_society_and_unit(db_session):
    _, society = make_admin_with_society(db_session, name="Alpha")
    _, other = make_admin_with_society(db_session, name="Beta")
    other_unit = make_unit(db_session, other)

    with pytest.raises(BadRequestError) as exc:
        _join(db_session, society, other_unit)
    assert exc.value.message == "Unit does not belong to the specified society"

    other.status = SocietyStatus.INACTIVE
    db_session.commit()
    with pytest.raises(NotFoundError):
        _join(db_session, other, other_unit)

    # nothing half-created
    assert db_session.query(ResidentJoinRequest).count() == 0
    assert db_session.query(User).filter(User.email == "applicant@example.com").count() == 0


def test_submit_rejects_taken_email_and_occupied_unit(db_session):
    _, society = make_admin_with_society(db_session)
    occupied = make_unit(db_session, society, unit_number="101")
    make_resident_user(db_session, occupied)
    make_user(db_session, email="taken@example.com")

    with pytest.raises(ConflictError):
        _join(db_session, society, make_unit(db_session, society, unit_number="102"), email="taken@example.com")

    with pytest.raises(ConflictError) as exc:
        _join(db_session, society, occupied)
    assert exc.value.message == services.UNIT_OCCUPIED_MESSAGE


def test_pending_applicant_sees_own_request(db_session):
    _, society = make_admin_with_society(db_session)
    unit = make_unit(db_session, society, unit_number="101")
    request = _join(db_session, society, unit)
    applicant = db_session.get(User, request.user_id)

    mine = router.my_join_request(db=db_session, current_user=applicant)

    assert mine.id == request.id
    assert mine.unit_label == "A-101"
    assert mine.applicant_email == "applicant@example.com"


def test_my_join_request_without_one_is_not_found(db_session):
    user = make_user(db_session)

    with pytest.raises(NotFoundError):
        services.get_my_join_request(db_session, user=user)


def test_approve_activates_applicant(db_session):
    admin, society = make_admin_with_society(db_session)
    unit = make_unit(db_session, society)
    request = _join(db_session, society, unit)
    notifier = RecordingNotifier()

    approved = services.approve_join_request(
        db_session, actor=admin, request_id=request.id, notifier=notifier
    )

    assert approved.status == JoinRequestStatus.APPROVED
    assert approved.reviewed_by == admin.id
    assert approved.reviewed_at is not None
    applicant = db_session.get(User, request.user_id)
    assert applicant.status == AccountStatus.ACTIVE
    assert notifier.decisions == [("applicant@example.com", True, None)]


def test_second_decision_conflicts(db_session):
    admin, society = make_admin_with_society(db_session)
    unit = make_unit(db_session, society)
    request = _join(db_session, society, unit)
    services.approve_join_request(db_session, actor=admin, request_id=request.id, notifier=RecordingNotifier())

    with pytest.raises(ConflictError) as exc:
        services.approve_join_request(db_session, actor=admin, request_id=request.id, notifier=RecordingNotifier())
    assert exc.value.message == services.ALREADY_PROCESSED_MESSAGE

    with pytest.raises(ConflictError):
        services.reject_join_request(db_session, actor=admin, request_id=request.id, notifier=RecordingNotifier())


def test_suspended_applicant_is_not_reactivated_by_approval(db_session):
    admin, society = make_admin_with_society(db_session)
    unit = make_unit(db_session, society)
    request = _join(db_session, society, unit)
    applicant = db_session.get(User, request.user_id)
    applicant.status = AccountStatus.SUSPENDED
    db_session.commit()
    notifier = RecordingNotifier()

    with pytest.raises(ConflictError):
        services.approve_join_request(db_session, actor=admin, request_id=request.id, notifier=notifier)

    assert db_session.get(User, request.user_id).status == AccountStatus.SUSPENDED
    assert db_session.get(ResidentJoinRequest, request.id).status == JoinRequestStatus.PENDING
    assert notifier.decisions == []


def test_only_one_of_two_requests_for_a_unit_is_approved(db_session):
    admin, society = make_admin_with_society(db_session)
    unit = make_unit(db_session, society)
    first = _join(db_session, society, unit, email="first@example.com")
    second = _join(db_session, society, unit, email="second@example.com")

    services.approve_join_request(db_session, actor=admin, request_id=first.id, notifier=RecordingNotifier())

    with pytest.raises(ConflictError) as exc:
        services.approve_join_request(db_session, actor=admin, request_id=second.id, notifier=RecordingNotifier())
    assert exc.value.message == services.UNIT_OCCUPIED_MESSAGE

    db_session.refresh(second)
    assert second.status == JoinRequestStatus.PENDING
    assert db_session.get(User, second.user_id).status == AccountStatus.PENDING_APPROVAL


def test_reject_records_reason_and_keeps_user_pending(db_session):
    admin, society = make_admin_with_society(db_session)
    unit = make_unit(db_session, society)
    request = _join(db_session, society, unit)
    notifier = RecordingNotifier()

    rejected = services.reject_join_request(
        db_session, actor=admin, request_id=request.id, reason="  Not a resident  ", notifier=notifier
    )

    assert rejected.status == JoinRequestStatus.REJECTED
    assert rejected.rejection_reason == "Not a resident"
    assert db_session.get(User, request.user_id).status == AccountStatus.PENDING_APPROVAL
    assert notifier.decisions == [("applicant@example.com", False, "Not a resident")]


def test_reject_without_body_through_router(db_session):
    admin, society = make_admin_with_society(db_session)
    request = _join(db_session, society, make_unit(db_session, society))

    decision = router.reject_join_request(request.id, payload=None, db=db_session, current_user=admin)

    assert decision.request.status == JoinRequestStatus.REJECTED
    assert decision.request.rejection_reason is None


def test_admin_cannot_review_other_society(db_session):
    _, society = make_admin_with_society(db_session, name="Alpha")
    other_admin, _ = make_admin_with_society(db_session, name="Beta")
    request = _join(db_session, society, make_unit(db_session, society))

    with pytest.raises(ForbiddenError) as exc:
        services.approve_join_request(db_session, actor=other_admin, request_id=request.id, notifier=RecordingNotifier())
    assert exc.value.message == "You can only approve residents in your own society"

    with pytest.raises(ForbiddenError):
        services.get_join_request(db_session, actor=other_admin, request_id=request.id)


def test_platform_owner_may_approve_anywhere(db_session):
    owner = make_platform_owner(db_session)
    _, society = make_admin_with_society(db_session)
    request = _join(db_session, society, make_unit(db_session, society))

    approved = services.approve_join_request(db_session, actor=owner, request_id=request.id, notifier=RecordingNotifier())

    assert approved.status == JoinRequestStatus.APPROVED


def test_admin_queue_defaults_to_pending_in_own_society(db_session):
    admin, society = make_admin_with_society(db_session, name="Alpha")
    _, other = make_admin_with_society(db_session, name="Beta")
    pending = _join(db_session, society, make_unit(db_session, society), email="p@example.com")
    decided = _join(db_session, society, make_unit(db_session, society), email="d@example.com")
    _join(db_session, other, make_unit(db_session, other), email="o@example.com")
    services.reject_join_request(db_session, actor=admin, request_id=decided.id, notifier=RecordingNotifier())

    queue = services.list_join_requests(db_session, actor=admin)
    assert [r.id for r in queue] == [pending.id]

    rejected = services.list_join_requests(db_session, actor=admin, status=JoinRequestStatus.REJECTED)
    assert [r.id for r in rejected] == [decided.id]

    owner = make_platform_owner(db_session)
    assert len(services.list_join_requests(db_session, actor=owner)) == 3
