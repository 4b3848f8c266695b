# backend/residenthub/access.py
"""
Role-and-tenant access policy.

Pure functions over plain values: no FastAPI, no SQLAlchemy. Services build a
`Principal` from the authenticated user and a `Target` from the entity as it
was fetched from storage (never from client-supplied IDs), then call
`enforce()` before reading or changing anything. List endpoints ask
`list_scope()` for the row filter and hand it to residenthub.scoping.

The whole policy is the POLICY table below: one Rule per
(resource, action, role). A role missing from a cell is denied.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, FrozenSet, Iterable, Optional, Tuple

from .errors import ForbiddenError, NotFoundError
from .utils.dates import is_expired, utcnow


class UserRole(str, enum.Enum):
    PLATFORM_OWNER = "PLATFORM_OWNER"   # operates the whole platform
    SOCIETY_ADMIN = "SOCIETY_ADMIN"     # owns at most one society
    RESIDENT = "RESIDENT"               # scoped to one unit


class AccountStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    PENDING_APPROVAL = "PENDING_APPROVAL"
    SUSPENDED = "SUSPENDED"


class Resource(str, enum.Enum):
    SOCIETY = "SOCIETY"
    UNIT = "UNIT"
    RESIDENT = "RESIDENT"
    JOIN_REQUEST = "JOIN_REQUEST"
    MAINTENANCE = "MAINTENANCE"
    ISSUE = "ISSUE"
    ANNOUNCEMENT = "ANNOUNCEMENT"


class Action(str, enum.Enum):
    READ = "READ"
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class Rule(str, enum.Enum):
    ANY = "ANY"                      # no tenant restriction
    SOCIETY = "SOCIETY"              # target in the principal's society
    CREATOR = "CREATOR"              # target's society was created by the principal
    UNIT = "UNIT"                    # target on the principal's unit
    AUTHOR = "AUTHOR"                # target raised/authored by the principal
    LIVE_SOCIETY = "LIVE_SOCIETY"    # SOCIETY, and expired targets are hidden


class Effect(str, enum.Enum):
    ALLOW = "ALLOW"
    DENY = "DENY"      # reported as forbidden
    HIDE = "HIDE"      # reported as not found


@dataclass(frozen=True)
class Principal:
    user_id: str
    role: UserRole
    society_id: Optional[str] = None
    unit_id: Optional[str] = None

    @classmethod
    def from_user(cls, user) -> "Principal":
        return cls(
            user_id=user.id,
            role=UserRole(user.role),
            society_id=user.society_id,
            unit_id=user.unit_id,
        )


@dataclass(frozen=True)
class Target:
    society_id: Optional[str] = None
    unit_id: Optional[str] = None
    author_id: Optional[str] = None
    society_created_by: Optional[str] = None
    expires_at: Optional[datetime] = None


@dataclass(frozen=True)
class Decision:
    effect: Effect
    reason: str = ""

    @property
    def allowed(self) -> bool:
        return self.effect == Effect.ALLOW


PO = UserRole.PLATFORM_OWNER
SA = UserRole.SOCIETY_ADMIN
RES = UserRole.RESIDENT

_ADMIN_WRITE = {PO: Rule.ANY, SA: Rule.SOCIETY}
_CREATOR_WRITE = {PO: Rule.ANY, SA: Rule.CREATOR}

POLICY: Dict[Resource, Dict[Action, Dict[UserRole, Rule]]] = {
    Resource.SOCIETY: {
        # Only admins register societies; the platform owner manages them.
        Action.CREATE: {SA: Rule.ANY},
        Action.READ: {PO: Rule.ANY, SA: Rule.SOCIETY, RES: Rule.SOCIETY},
        Action.UPDATE: _CREATOR_WRITE,
        Action.DELETE: _CREATOR_WRITE,
    },
    Resource.UNIT: {
        Action.CREATE: _CREATOR_WRITE,
        Action.READ: {PO: Rule.ANY, SA: Rule.SOCIETY, RES: Rule.SOCIETY},
        Action.UPDATE: _CREATOR_WRITE,
        Action.DELETE: _CREATOR_WRITE,
    },
    Resource.RESIDENT: {
        Action.CREATE: _ADMIN_WRITE,
        Action.READ: {PO: Rule.ANY, SA: Rule.SOCIETY, RES: Rule.UNIT},
        Action.UPDATE: _ADMIN_WRITE,
        Action.DELETE: _ADMIN_WRITE,
    },
    Resource.JOIN_REQUEST: {
        Action.READ: _ADMIN_WRITE,
        Action.UPDATE: _ADMIN_WRITE,
    },
    Resource.MAINTENANCE: {
        Action.CREATE: _ADMIN_WRITE,
        Action.READ: {PO: Rule.ANY, SA: Rule.SOCIETY, RES: Rule.UNIT},
        Action.UPDATE: _ADMIN_WRITE,
        Action.DELETE: _ADMIN_WRITE,
    },
    Resource.ISSUE: {
        Action.CREATE: {PO: Rule.ANY, SA: Rule.SOCIETY, RES: Rule.SOCIETY},
        Action.READ: {PO: Rule.ANY, SA: Rule.SOCIETY, RES: Rule.AUTHOR},
        Action.UPDATE: {PO: Rule.ANY, SA: Rule.SOCIETY, RES: Rule.AUTHOR},
    },
    Resource.ANNOUNCEMENT: {
        Action.CREATE: _ADMIN_WRITE,
        Action.READ: {PO: Rule.ANY, SA: Rule.SOCIETY, RES: Rule.LIVE_SOCIETY},
        Action.UPDATE: _ADMIN_WRITE,
        Action.DELETE: _ADMIN_WRITE,
    },
}

# Fields a role may never change on a resource, whatever the row scope says.
RESTRICTED_FIELDS: Dict[Tuple[Resource, UserRole], Tuple[FrozenSet[str], str]] = {
    (Resource.ISSUE, RES): (
        frozenset({"status", "resolution_notes"}),
        "Residents cannot change issue status. Please contact admin.",
    ),
}

FORBIDDEN_MESSAGE = "Insufficient permissions for this operation"
NOT_FOUND_MESSAGE = "Not found"


def rule_for(principal: Principal, resource: Resource, action: Action) -> Optional[Rule]:
    return POLICY.get(resource, {}).get(action, {}).get(principal.role)


def _same_society(principal: Principal, target: Target) -> bool:
    return principal.society_id is not None and principal.society_id == target.society_id


def evaluate(
    principal: Principal,
    resource: Resource,
    action: Action,
    target: Optional[Target] = None,
    *,
    changes: Iterable[str] = (),
    now: Optional[datetime] = None,
) -> Decision:
    """Decide whether `principal` may perform `action` on `target`."""
    rule = rule_for(principal, resource, action)
    if rule is None:
        return Decision(Effect.DENY, FORBIDDEN_MESSAGE)

    if action == Action.UPDATE:
        restricted = RESTRICTED_FIELDS.get((resource, principal.role))
        if restricted is not None and restricted[0].intersection(changes):
            return Decision(Effect.DENY, restricted[1])

    if rule == Rule.ANY:
        return Decision(Effect.ALLOW)
    if target is None:
        return Decision(Effect.DENY, FORBIDDEN_MESSAGE)

    if rule == Rule.SOCIETY:
        allowed = _same_society(principal, target)
    elif rule == Rule.CREATOR:
        allowed = target.society_created_by is not None and target.society_created_by == principal.user_id
    elif rule == Rule.UNIT:
        allowed = (
            principal.unit_id is not None
            and principal.unit_id == target.unit_id
            and _same_society(principal, target)
        )
    elif rule == Rule.AUTHOR:
        allowed = target.author_id is not None and target.author_id == principal.user_id
    elif rule == Rule.LIVE_SOCIETY:
        if not _same_society(principal, target):
            return Decision(Effect.DENY, FORBIDDEN_MESSAGE)
        if is_expired(target.expires_at, now=now or utcnow()):
            return Decision(Effect.HIDE, NOT_FOUND_MESSAGE)
        allowed = True
    else:  # pragma: no cover - enum is closed
        allowed = False

    if allowed:
        return Decision(Effect.ALLOW)
    return Decision(Effect.DENY, FORBIDDEN_MESSAGE)


def enforce(
    principal: Principal,
    resource: Resource,
    action: Action,
    target: Optional[Target] = None,
    *,
    changes: Iterable[str] = (),
    now: Optional[datetime] = None,
    message: Optional[str] = None,
) -> None:
    """Raise ForbiddenError / NotFoundError unless the policy allows the action."""
    decision = evaluate(principal, resource, action, target, changes=changes, now=now)
    if decision.effect == Effect.ALLOW:
        return
    if decision.effect == Effect.HIDE:
        raise NotFoundError(message or decision.reason)
    # Restricted-field messages are specific; keep them over the caller's.
    if decision.reason != FORBIDDEN_MESSAGE:
        raise ForbiddenError(decision.reason)
    raise ForbiddenError(message or decision.reason)


# ---------------------------------------------------------------------------
# LIST SCOPES
# ---------------------------------------------------------------------------


class ScopeKind(str, enum.Enum):
    ALL = "ALL"
    SOCIETY = "SOCIETY"
    UNIT = "UNIT"
    AUTHOR = "AUTHOR"
    NONE = "NONE"


@dataclass(frozen=True)
class ListScope:
    kind: ScopeKind
    society_id: Optional[str] = None
    unit_id: Optional[str] = None
    author_id: Optional[str] = None
    exclude_expired: bool = False
    now: Optional[datetime] = None


def list_scope(
    principal: Principal,
    resource: Resource,
    *,
    now: Optional[datetime] = None,
) -> ListScope:
    """
    Row filter for READ listings.

    A principal missing the society/unit the rule needs gets an empty
    scope rather than an error.
    """
    rule = rule_for(principal, resource, Action.READ)
    if rule is None:
        return ListScope(ScopeKind.NONE)
    if rule == Rule.ANY:
        return ListScope(ScopeKind.ALL)
    if rule == Rule.AUTHOR:
        return ListScope(ScopeKind.AUTHOR, author_id=principal.user_id)
    if principal.society_id is None:
        return ListScope(ScopeKind.NONE)
    if rule == Rule.UNIT:
        if principal.unit_id is None:
            return ListScope(ScopeKind.NONE)
        return ListScope(ScopeKind.UNIT, society_id=principal.society_id, unit_id=principal.unit_id)
    if rule == Rule.LIVE_SOCIETY:
        return ListScope(
            ScopeKind.SOCIETY,
            society_id=principal.society_id,
            exclude_expired=True,
            now=now or utcnow(),
        )
    # SOCIETY / CREATOR both list the principal's own society
    return ListScope(ScopeKind.SOCIETY, society_id=principal.society_id)
