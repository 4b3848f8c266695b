from __future__ import annotations

from datetime import datetime, timezone
import enum

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)

from residenthub.database import Base
from residenthub.utils.identifiers import generate_uuid7


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MaintenanceStatus(str, enum.Enum):
    UPCOMING = "UPCOMING"
    DUE = "DUE"
    OVERDUE = "OVERDUE"
    PAID = "PAID"


OUTSTANDING_STATUSES = (
    MaintenanceStatus.UPCOMING,
    MaintenanceStatus.DUE,
    MaintenanceStatus.OVERDUE,
)
PENDING_STATUSES = (MaintenanceStatus.DUE, MaintenanceStatus.OVERDUE)


class Maintenance(Base):
    """One maintenance bill per unit per billing month."""

    __tablename__ = "maintenance"
    __table_args__ = (
        UniqueConstraint("unit_id", "month", "year", name="uq_maintenance_unit_period"),
        CheckConstraint("month >= 1 AND month <= 12", name="ck_maintenance_month"),
        CheckConstraint("year >= 2000", name="ck_maintenance_year"),
        CheckConstraint("amount >= 0", name="ck_maintenance_amount"),
        Index("ix_maintenance_society_status", "society_id", "status"),
        Index("ix_maintenance_status_due", "status", "due_date"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid7, index=True)
    society_id = Column(String(36), ForeignKey("societies.id"), nullable=False, index=True)
    unit_id = Column(String(36), ForeignKey("units.id"), nullable=False, index=True)

    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    amount = Column(Numeric(12, 2, asdecimal=False), nullable=False)
    due_date = Column(DateTime(timezone=True), nullable=False)

    status = Column(
        SAEnum(MaintenanceStatus, name="maintenance_status_enum", native_enum=False),
        nullable=False,
        default=MaintenanceStatus.UPCOMING,
    )
    notes = Column(Text, nullable=True)

    paid_at = Column(DateTime(timezone=True), nullable=True)
    paid_by = Column(String(36), ForeignKey("users.id"), nullable=True)

    created_by = Column(String(36), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    def __repr__(self) -> str:
        return f"<Maintenance unit={self.unit_id} {self.month:02d}/{self.year} {self.status}>"
