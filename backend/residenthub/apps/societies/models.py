from __future__ import annotations

from datetime import datetime, timezone
import enum

from sqlalchemy import Column, DateTime, Enum as SAEnum, ForeignKey, Index, String

from residenthub.database import Base
from residenthub.utils.identifiers import generate_uuid7


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SocietyType(str, enum.Enum):
    APARTMENT = "APARTMENT"
    GATED_COMMUNITY = "GATED_COMMUNITY"
    VILLA_COMMUNITY = "VILLA_COMMUNITY"
    COMMERCIAL = "COMMERCIAL"
    OTHER = "OTHER"


class SocietyStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class Society(Base):
    """Tenant root. Every unit, resident, bill, issue and notice hangs off one."""

    __tablename__ = "societies"
    __table_args__ = (
        Index("ix_societies_status_name", "status", "name"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid7, index=True)
    name = Column(String(255), nullable=False)
    code = Column(String(16), nullable=False, unique=True, index=True)

    address_line1 = Column(String(255), nullable=False)
    city = Column(String(128), nullable=False)
    state = Column(String(128), nullable=False)
    pincode = Column(String(6), nullable=False)
    society_type = Column(
        SAEnum(SocietyType, name="society_type_enum", native_enum=False),
        nullable=False,
    )
    status = Column(
        SAEnum(SocietyStatus, name="society_status_enum", native_enum=False),
        nullable=False,
        default=SocietyStatus.ACTIVE,
    )

    # One admin owns at most one society.
    created_by = Column(String(36), ForeignKey("users.id"), nullable=False, unique=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    def __repr__(self) -> str:
        return f"<Society {self.code} {self.name}>"
