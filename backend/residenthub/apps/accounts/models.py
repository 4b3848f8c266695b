# backend/residenthub/apps/accounts/models.py

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Enum as SAEnum, Index, String

from residenthub.access import AccountStatus, UserRole
from residenthub.database import Base
from residenthub.utils.identifiers import generate_uuid7


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


ADMIN_ROLES = (UserRole.PLATFORM_OWNER, UserRole.SOCIETY_ADMIN)

__all__ = ["AccountStatus", "UserRole", "ADMIN_ROLES", "User"]


# ---------------------------------------------------------------------------
# USER
# ---------------------------------------------------------------------------


class User(Base):
    """
    Login identity.

    `society_id` / `unit_id` carry the tenant scope. They are plain columns
    (no FK) because societies reference their creating admin, and a resident
    user is created before anyone reviews the join request.
    """

    __tablename__ = "users"
    __table_args__ = (
        Index("ix_users_society_role_status", "society_id", "role", "status"),
        Index("ix_users_unit_role_status", "unit_id", "role", "status"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid7, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)

    role = Column(
        SAEnum(UserRole, name="user_role_enum", native_enum=False),
        nullable=False,
        default=UserRole.RESIDENT,
    )
    status = Column(
        SAEnum(AccountStatus, name="account_status_enum", native_enum=False),
        nullable=False,
        default=AccountStatus.PENDING_APPROVAL,
    )

    society_id = Column(String(36), nullable=True, index=True)
    unit_id = Column(String(36), nullable=True, index=True)
    created_by = Column(String(36), nullable=True)

    password_reset_token_hash = Column(String(128), nullable=True, index=True)
    password_reset_expires_at = Column(DateTime(timezone=True), nullable=True)
    last_login_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    @property
    def is_active(self) -> bool:
        return self.status == AccountStatus.ACTIVE

    def __repr__(self) -> str:
        return f"<User {self.email} {self.role}>"
