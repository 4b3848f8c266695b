from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .models import IssuePriority, IssueStatus


class IssueCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    priority: IssuePriority = IssuePriority.MEDIUM
    unit_id: Optional[str] = None


class IssueUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, min_length=1)
    priority: Optional[IssuePriority] = None
    status: Optional[IssueStatus] = None
    resolution_notes: Optional[str] = None


class IssueRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    society_id: str
    unit_id: Optional[str] = None
    raised_by: str
    title: str
    description: str
    status: IssueStatus
    priority: IssuePriority
    resolution_notes: Optional[str] = None
    resolved_at: Optional[datetime] = None
    resolved_by: Optional[str] = None
    closed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
