from __future__ import annotations

from datetime import datetime, timezone
import enum

from sqlalchemy import Column, DateTime, Enum as SAEnum, ForeignKey, Index, String, Text

from residenthub.database import Base
from residenthub.utils.identifiers import generate_uuid7


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IssueStatus(str, enum.Enum):
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"


class IssuePriority(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


ACTIVE_ISSUE_STATUSES = (IssueStatus.OPEN, IssueStatus.IN_PROGRESS)


class Issue(Base):
    __tablename__ = "issues"
    __table_args__ = (
        Index("ix_issues_society_status", "society_id", "status"),
        Index("ix_issues_raised_by_status", "raised_by", "status"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid7, index=True)
    society_id = Column(String(36), ForeignKey("societies.id"), nullable=False, index=True)
    unit_id = Column(String(36), ForeignKey("units.id"), nullable=True, index=True)
    raised_by = Column(String(36), ForeignKey("users.id"), nullable=False)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)

    status = Column(
        SAEnum(IssueStatus, name="issue_status_enum", native_enum=False),
        nullable=False,
        default=IssueStatus.OPEN,
    )
    priority = Column(
        SAEnum(IssuePriority, name="issue_priority_enum", native_enum=False),
        nullable=False,
        default=IssuePriority.MEDIUM,
    )

    resolution_notes = Column(Text, nullable=True)
    resolved_at = Column(DateTime(timezone=True), nullable=True)
    resolved_by = Column(String(36), ForeignKey("users.id"), nullable=True)
    closed_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    def __repr__(self) -> str:
        return f"<Issue {self.title!r} {self.status}>"
