from __future__ import annotations

from datetime import date

import pytest

from residenthub.apps.accounts.models import AccountStatus, User
from residenthub.apps.residents import schemas, services
from residenthub.apps.residents.models import Resident, ResidentStatus, ResidentType
from residenthub.apps.units.models import OwnershipType, UnitStatus
from residenthub.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from residenthub.security import verify_password
from residenthub.tests.factories import make_admin_with_society, make_resident_user, make_unit


def _owner_payload(unit, **overrides) -> schemas.ResidentCreate:
    data = dict(
        unit_id=unit.id,
        resident_type=ResidentType.OWNER,
        name="Meera Iyer",
        mobile="9876543210",
    )
    data.update(overrides)
    return schemas.ResidentCreate(**data)


def test_adding_owner_occupies_unit(db_session):
    admin, society = make_admin_with_society(db_session)
    unit = make_unit(db_session, society)

    resident = services.create_resident(db_session, actor=admin, payload=_owner_payload(unit))

    assert resident.society_id == society.id
    assert resident.status == ResidentStatus.ACTIVE
    db_session.refresh(unit)
    assert unit.owner_resident_id == resident.id
    assert unit.status == UnitStatus.OCCUPIED
    assert unit.ownership_type == OwnershipType.OWNER


def test_tenant_requires_active_owner_and_marks_unit_rented(db_session):
    admin, society = make_admin_with_society(db_session)
    unit = make_unit(db_session, society)

    with pytest.raises(BadRequestError):
        services.create_resident(
            db_session, actor=admin, payload=_owner_payload(unit, resident_type=ResidentType.TENANT)
        )
    with pytest.raises(NotFoundError):
        services.create_resident(
            db_session,
            actor=admin,
            payload=_owner_payload(unit, resident_type=ResidentType.TENANT, owner_id="missing"),
        )

    owner = services.create_resident(db_session, actor=admin, payload=_owner_payload(unit))
    tenant = services.create_resident(
        db_session,
        actor=admin,
        payload=_owner_payload(unit, resident_type=ResidentType.TENANT, owner_id=owner.id, name="Tenant"),
    )

    assert tenant.owner_id == owner.id
    db_session.refresh(unit)
    assert unit.tenant_resident_id == tenant.id
    assert unit.ownership_type == OwnershipType.RENTED


def test_one_active_owner_per_unit(db_session):
    admin, society = make_admin_with_society(db_session)
    unit = make_unit(db_session, society)
    services.create_resident(db_session, actor=admin, payload=_owner_payload(unit))

    with pytest.raises(ConflictError) as exc:
        services.create_resident(db_session, actor=admin, payload=_owner_payload(unit, name="Second"))
    assert exc.value.message == "This unit already has an active owner"


def test_resident_login_is_provisioned_with_password(db_session):
    admin, society = make_admin_with_society(db_session)
    unit = make_unit(db_session, society)

    with pytest.raises(BadRequestError):
        services.create_resident(db_session, actor=admin, payload=_owner_payload(unit, password="Password123!"))

    resident = services.create_resident(
        db_session,
        actor=admin,
        payload=_owner_payload(unit, email="Meera@Example.com", password="Password123!"),
    )

    login = db_session.get(User, resident.user_id)
    assert login.email == "meera@example.com"
    assert login.status == AccountStatus.ACTIVE
    assert login.unit_id == unit.id
    assert verify_password("Password123!", login.password_hash)


def test_admin_cannot_add_resident_to_other_society(db_session):
    admin, _ = make_admin_with_society(db_session, name="Alpha")
    _, other = make_admin_with_society(db_session, name="Beta")
    unit = make_unit(db_session, other)

    with pytest.raises(BadRequestError):
        services.create_resident(db_session, actor=admin, payload=_owner_payload(unit))
    with pytest.raises(ForbiddenError):
        services.create_resident(db_session, actor=admin, payload=_owner_payload(unit, society_id=other.id))
    assert db_session.query(Resident).count() == 0


def test_end_date_before_start_date_is_invalid():
    with pytest.raises(ValueError):
        schemas.ResidentCreate(
            unit_id="u",
            resident_type=ResidentType.OWNER,
            name="X",
            mobile="9876543210",
            start_date=date(2026, 5, 1),
            end_date=date(2026, 4, 1),
        )


def test_residents_only_see_their_unit(db_session):
    admin, society = make_admin_with_society(db_session)
    unit_a = make_unit(db_session, society, unit_number="101")
    unit_b = make_unit(db_session, society, unit_number="102")
    mine = services.create_resident(db_session, actor=admin, payload=_owner_payload(unit_a))
    neighbour = services.create_resident(db_session, actor=admin, payload=_owner_payload(unit_b, name="Neighbour"))
    viewer = make_resident_user(db_session, unit_a)

    assert [r.id for r in services.list_residents(db_session, actor=viewer)] == [mine.id]
    assert services.get_resident(db_session, actor=viewer, resident_id=mine.id).id == mine.id
    with pytest.raises(ForbiddenError):
        services.get_resident(db_session, actor=viewer, resident_id=neighbour.id)
    assert len(services.list_residents(db_session, actor=admin)) == 2


def test_update_resident_details(db_session):
    admin, society = make_admin_with_society(db_session)
    resident = services.create_resident(
        db_session, actor=admin, payload=_owner_payload(make_unit(db_session, society))
    )

    updated = services.update_resident(
        db_session,
        actor=admin,
        resident_id=resident.id,
        payload=schemas.ResidentUpdate(mobile=" 9123456780 ", email="NEW@example.com"),
    )

    assert updated.mobile == "9123456780"
    assert updated.email == "new@example.com"

    with pytest.raises(BadRequestError):
        services.update_resident(db_session, actor=admin, resident_id=resident.id, payload=schemas.ResidentUpdate())


def test_suspend_and_reactivate_resident(db_session):
    admin, society = make_admin_with_society(db_session)
    unit = make_unit(db_session, society)
    resident = services.create_resident(
        db_session,
        actor=admin,
        payload=_owner_payload(unit, email="meera@example.com", password="Password123!"),
    )

    services.update_resident_status(
        db_session, actor=admin, resident_id=resident.id, status=ResidentStatus.SUSPENDED
    )
    db_session.refresh(unit)
    assert unit.status == UnitStatus.VACANT
    assert unit.owner_resident_id is None
    assert db_session.get(User, resident.user_id).status == AccountStatus.SUSPENDED

    services.update_resident_status(
        db_session, actor=admin, resident_id=resident.id, status=ResidentStatus.ACTIVE
    )
    db_session.refresh(unit)
    assert unit.status == UnitStatus.OCCUPIED
    assert unit.owner_resident_id == resident.id
    assert db_session.get(User, resident.user_id).status == AccountStatus.ACTIVE


def test_reactivation_refused_when_slot_was_refilled(db_session):
    admin, society = make_admin_with_society(db_session)
    unit = make_unit(db_session, society)
    first = services.create_resident(db_session, actor=admin, payload=_owner_payload(unit))
    services.update_resident_status(db_session, actor=admin, resident_id=first.id, status=ResidentStatus.SUSPENDED)
    services.create_resident(db_session, actor=admin, payload=_owner_payload(unit, name="New Owner"))

    with pytest.raises(ConflictError):
        services.update_resident_status(db_session, actor=admin, resident_id=first.id, status=ResidentStatus.ACTIVE)
