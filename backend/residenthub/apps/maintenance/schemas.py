from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .models import MaintenanceStatus


class MaintenanceCreate(BaseModel):
    unit_id: str = Field(min_length=1)
    month: int = Field(ge=1, le=12)
    year: int = Field(ge=2000)
    amount: float = Field(ge=0)
    due_date: datetime
    notes: Optional[str] = None


class MaintenanceUpdate(BaseModel):
    amount: Optional[float] = Field(default=None, ge=0)
    due_date: Optional[datetime] = None
    status: Optional[MaintenanceStatus] = None
    notes: Optional[str] = None


class MarkPaidRequest(BaseModel):
    notes: Optional[str] = None


class MaintenanceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    society_id: str
    unit_id: str
    month: int
    year: int
    amount: float
    due_date: datetime
    status: MaintenanceStatus
    notes: Optional[str] = None
    paid_at: Optional[datetime] = None
    paid_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class OverdueSweepResult(BaseModel):
    message: str
    count: int
