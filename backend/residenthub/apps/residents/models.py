from __future__ import annotations

from datetime import datetime, timezone
import enum

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    String,
    Text,
)

from residenthub.database import Base
from residenthub.utils.identifiers import generate_uuid7


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ResidentType(str, enum.Enum):
    OWNER = "OWNER"
    TENANT = "TENANT"


class ResidentStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"


class JoinRequestStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class Resident(Base):
    """
    Directory entry for a person living in (or owning) a unit.

    Distinct from the login User; `user_id` is set only when a login was
    provisioned alongside the directory entry.
    """

    __tablename__ = "residents"
    __table_args__ = (
        Index("ix_residents_unit_type_status", "unit_id", "resident_type", "status"),
        Index("ix_residents_society_status", "society_id", "status"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid7, index=True)
    society_id = Column(String(36), ForeignKey("societies.id"), nullable=False, index=True)
    unit_id = Column(String(36), ForeignKey("units.id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=True, unique=True)

    resident_type = Column(
        SAEnum(ResidentType, name="resident_type_enum", native_enum=False),
        nullable=False,
    )
    status = Column(
        SAEnum(ResidentStatus, name="resident_status_enum", native_enum=False),
        nullable=False,
        default=ResidentStatus.ACTIVE,
    )
    # TENANT rows point at the OWNER they rent from.
    owner_id = Column(String(36), ForeignKey("residents.id"), nullable=True)

    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    mobile = Column(String(32), nullable=False)
    emergency_contact = Column(String(64), nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)

    created_by = Column(String(36), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    def __repr__(self) -> str:
        return f"<Resident {self.name} {self.resident_type}>"


class ResidentJoinRequest(Base):
    __tablename__ = "resident_join_requests"
    __table_args__ = (
        Index("ix_join_requests_society_status", "society_id", "status"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid7, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, unique=True)
    society_id = Column(String(36), ForeignKey("societies.id"), nullable=False, index=True)
    unit_id = Column(String(36), ForeignKey("units.id"), nullable=False, index=True)

    status = Column(
        SAEnum(JoinRequestStatus, name="join_request_status_enum", native_enum=False),
        nullable=False,
        default=JoinRequestStatus.PENDING,
    )
    reviewed_by = Column(String(36), ForeignKey("users.id"), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)
