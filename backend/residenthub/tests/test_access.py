from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from residenthub import access
from residenthub.access import Action, Effect, Principal, Resource, ScopeKind, Target, UserRole
from residenthub.errors import ForbiddenError, NotFoundError

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _owner() -> Principal:
    return Principal(user_id="po-1", role=UserRole.PLATFORM_OWNER)


def _admin(society_id: str = "soc-1", user_id: str = "sa-1") -> Principal:
    return Principal(user_id=user_id, role=UserRole.SOCIETY_ADMIN, society_id=society_id)


def _resident(society_id: str = "soc-1", unit_id: str = "unit-1", user_id: str = "res-1") -> Principal:
    return Principal(user_id=user_id, role=UserRole.RESIDENT, society_id=society_id, unit_id=unit_id)


def test_platform_owner_is_unrestricted_except_society_creation():
    owner = _owner()
    other = Target(society_id="soc-9", unit_id="unit-9", author_id="someone", society_created_by="sa-9")

    for resource, actions in access.POLICY.items():
        for action in actions:
            decision = access.evaluate(owner, resource, action, other)
            if resource == Resource.SOCIETY and action == Action.CREATE:
                assert decision.effect == Effect.DENY
            else:
                assert decision.allowed, (resource, action)


def test_admin_is_limited_to_own_society():
    admin = _admin()
    mine = Target(society_id="soc-1", unit_id="unit-1")
    theirs = Target(society_id="soc-2", unit_id="unit-2")

    assert access.evaluate(admin, Resource.MAINTENANCE, Action.CREATE, mine).allowed
    decision = access.evaluate(admin, Resource.MAINTENANCE, Action.CREATE, theirs)
    assert decision.effect == Effect.DENY
    assert decision.reason == access.FORBIDDEN_MESSAGE


def test_admin_without_society_is_denied_society_scoped_reads():
    admin = Principal(user_id="sa-1", role=UserRole.SOCIETY_ADMIN)
    decision = access.evaluate(admin, Resource.RESIDENT, Action.READ, Target(society_id=None))
    assert decision.effect == Effect.DENY


def test_unit_writes_require_society_creator():
    admin = _admin()
    created = Target(society_id="soc-1", society_created_by="sa-1")
    co_admin_target = Target(society_id="soc-1", society_created_by="sa-2")

    assert access.evaluate(admin, Resource.UNIT, Action.UPDATE, created).allowed
    assert not access.evaluate(admin, Resource.UNIT, Action.UPDATE, co_admin_target).allowed


def test_resident_cannot_touch_admin_resources():
    resident = _resident()
    target = Target(society_id="soc-1", unit_id="unit-1")

    assert not access.evaluate(resident, Resource.UNIT, Action.CREATE, target).allowed
    assert not access.evaluate(resident, Resource.MAINTENANCE, Action.UPDATE, target).allowed
    assert not access.evaluate(resident, Resource.ANNOUNCEMENT, Action.CREATE, target).allowed
    assert not access.evaluate(resident, Resource.JOIN_REQUEST, Action.READ, target).allowed


def test_resident_reads_only_own_unit_maintenance():
    resident = _resident()
    assert access.evaluate(
        resident, Resource.MAINTENANCE, Action.READ, Target(society_id="soc-1", unit_id="unit-1")
    ).allowed
    assert not access.evaluate(
        resident, Resource.MAINTENANCE, Action.READ, Target(society_id="soc-1", unit_id="unit-2")
    ).allowed
    # same unit id under another society still fails
    assert not access.evaluate(
        resident, Resource.MAINTENANCE, Action.READ, Target(society_id="soc-2", unit_id="unit-1")
    ).allowed


def test_resident_issue_access_follows_authorship():
    resident = _resident()
    own = Target(society_id="soc-1", author_id="res-1")
    neighbour = Target(society_id="soc-1", author_id="res-2")

    assert access.evaluate(resident, Resource.ISSUE, Action.READ, own).allowed
    assert not access.evaluate(resident, Resource.ISSUE, Action.READ, neighbour).allowed
    assert access.evaluate(resident, Resource.ISSUE, Action.UPDATE, own, changes=["description"]).allowed


@pytest.mark.parametrize("field", ["status", "resolution_notes"])
def test_resident_cannot_change_issue_status_fields(field):
    resident = _resident()
    own = Target(society_id="soc-1", author_id="res-1")

    decision = access.evaluate(resident, Resource.ISSUE, Action.UPDATE, own, changes=[field])

    assert decision.effect == Effect.DENY
    assert "cannot change issue status" in decision.reason


def test_admin_may_change_issue_status():
    admin = _admin()
    target = Target(society_id="soc-1", author_id="res-1")
    assert access.evaluate(admin, Resource.ISSUE, Action.UPDATE, target, changes=["status"]).allowed


def test_expired_announcement_is_hidden_from_residents_only():
    expired = Target(society_id="soc-1", expires_at=NOW - timedelta(minutes=1))
    live = Target(society_id="soc-1", expires_at=NOW + timedelta(days=1))

    assert access.evaluate(_resident(), Resource.ANNOUNCEMENT, Action.READ, expired, now=NOW).effect == Effect.HIDE
    assert access.evaluate(_resident(), Resource.ANNOUNCEMENT, Action.READ, live, now=NOW).allowed
    assert access.evaluate(_admin(), Resource.ANNOUNCEMENT, Action.READ, expired, now=NOW).allowed


def test_announcement_expiring_exactly_now_is_expired():
    target = Target(society_id="soc-1", expires_at=NOW)
    decision = access.evaluate(_resident(), Resource.ANNOUNCEMENT, Action.READ, target, now=NOW)
    assert decision.effect == Effect.HIDE


def test_enforce_maps_effects_to_errors():
    with pytest.raises(ForbiddenError) as exc:
        access.enforce(_admin(), Resource.UNIT, Action.READ, Target(society_id="soc-2"), message="Nope")
    assert exc.value.message == "Nope"

    with pytest.raises(NotFoundError) as exc:
        access.enforce(
            _resident(),
            Resource.ANNOUNCEMENT,
            Action.READ,
            Target(society_id="soc-1", expires_at=NOW - timedelta(days=1)),
            now=NOW,
            message="Announcement not found",
        )
    assert exc.value.message == "Announcement not found"


def test_enforce_keeps_restricted_field_message():
    with pytest.raises(ForbiddenError) as exc:
        access.enforce(
            _resident(),
            Resource.ISSUE,
            Action.UPDATE,
            Target(society_id="soc-1", author_id="res-1"),
            changes={"status"},
            message="You can only update your own issues",
        )
    assert exc.value.message == "Residents cannot change issue status. Please contact admin."


def test_list_scopes_per_role():
    assert access.list_scope(_owner(), Resource.UNIT).kind == ScopeKind.ALL

    admin_scope = access.list_scope(_admin(), Resource.RESIDENT)
    assert admin_scope.kind == ScopeKind.SOCIETY
    assert admin_scope.society_id == "soc-1"

    unit_scope = access.list_scope(_resident(), Resource.MAINTENANCE)
    assert unit_scope.kind == ScopeKind.UNIT
    assert unit_scope.unit_id == "unit-1"

    author_scope = access.list_scope(_resident(), Resource.ISSUE)
    assert author_scope.kind == ScopeKind.AUTHOR
    assert author_scope.author_id == "res-1"

    live_scope = access.list_scope(_resident(), Resource.ANNOUNCEMENT, now=NOW)
    assert live_scope.kind == ScopeKind.SOCIETY
    assert live_scope.exclude_expired is True
    assert live_scope.now == NOW


def test_list_scope_is_empty_without_tenant():
    orphan_admin = Principal(user_id="sa-1", role=UserRole.SOCIETY_ADMIN)
    unitless_resident = Principal(user_id="res-1", role=UserRole.RESIDENT, society_id="soc-1")

    assert access.list_scope(orphan_admin, Resource.UNIT).kind == ScopeKind.NONE
    assert access.list_scope(unitless_resident, Resource.MAINTENANCE).kind == ScopeKind.NONE
    assert access.list_scope(_resident(), Resource.JOIN_REQUEST).kind == ScopeKind.NONE
