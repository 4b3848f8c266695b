from __future__ import annotations

from datetime import datetime, timezone
import enum

from sqlalchemy import (
    Column,
    DateTime,
    Enum as SAEnum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)

from residenthub.database import Base
from residenthub.utils.identifiers import generate_uuid7


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UnitType(str, enum.Enum):
    ONE_RK = "ONE_RK"
    ONE_BHK = "ONE_BHK"
    TWO_BHK = "TWO_BHK"
    THREE_BHK = "THREE_BHK"
    FOUR_BHK = "FOUR_BHK"
    VILLA = "VILLA"
    PENTHOUSE = "PENTHOUSE"
    SHOP = "SHOP"
    OFFICE = "OFFICE"
    OTHER = "OTHER"


class OwnershipType(str, enum.Enum):
    OWNER = "OWNER"
    RENTED = "RENTED"
    VACANT = "VACANT"


class UnitStatus(str, enum.Enum):
    VACANT = "VACANT"
    OCCUPIED = "OCCUPIED"
    UNDER_MAINTENANCE = "UNDER_MAINTENANCE"


class Unit(Base):
    __tablename__ = "units"
    __table_args__ = (
        UniqueConstraint(
            "society_id",
            "building_name",
            "unit_number",
            name="uq_units_society_building_number",
        ),
        Index("ix_units_society_status", "society_id", "status"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid7, index=True)
    society_id = Column(String(36), ForeignKey("societies.id"), nullable=False, index=True)

    building_name = Column(String(128), nullable=False)
    unit_number = Column(String(32), nullable=False)
    floor_number = Column(Integer, nullable=True)
    unit_type = Column(
        SAEnum(UnitType, name="unit_type_enum", native_enum=False),
        nullable=False,
    )
    area_sq_ft = Column(Float, nullable=True)
    ownership_type = Column(
        SAEnum(OwnershipType, name="ownership_type_enum", native_enum=False),
        nullable=False,
        default=OwnershipType.VACANT,
    )
    status = Column(
        SAEnum(UnitStatus, name="unit_status_enum", native_enum=False),
        nullable=False,
        default=UnitStatus.VACANT,
    )

    # Back-references to the current residents; residents.unit_id is the
    # owning side, so these stay plain columns.
    owner_resident_id = Column(String(36), nullable=True)
    tenant_resident_id = Column(String(36), nullable=True)

    created_by = Column(String(36), ForeignKey("users.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    @property
    def label(self) -> str:
        return f"{self.building_name}-{self.unit_number}"

    def __repr__(self) -> str:
        return f"<Unit {self.label}>"
