from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from .models import JoinRequestStatus, ResidentStatus, ResidentType


# ---------------------------------------------------------------------------
# Join requests
# ---------------------------------------------------------------------------


class JoinRequestCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    society_id: str = Field(min_length=1)
    unit_id: str = Field(min_length=1)


class JoinRequestSubmitted(BaseModel):
    id: str
    user_id: str
    status: JoinRequestStatus
    message: str


class JoinRequestRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    society_id: str
    unit_id: str
    status: JoinRequestStatus
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: datetime

    applicant_name: Optional[str] = None
    applicant_email: Optional[str] = None
    unit_label: Optional[str] = None


class JoinRequestReject(BaseModel):
    rejection_reason: Optional[str] = Field(default=None, max_length=1000)


class JoinRequestDecision(BaseModel):
    message: str
    request: JoinRequestRead


# ---------------------------------------------------------------------------
# Resident directory
# ---------------------------------------------------------------------------


class ResidentCreate(BaseModel):
    # Required for the platform owner; admins default to their own society.
    society_id: Optional[str] = None
    unit_id: str = Field(min_length=1)
    resident_type: ResidentType
    owner_id: Optional[str] = None
    name: str = Field(min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    mobile: str = Field(min_length=6, max_length=32)
    emergency_contact: Optional[str] = Field(default=None, max_length=64)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    # When set, a RESIDENT login is provisioned for `email`.
    password: Optional[str] = Field(default=None, min_length=8, max_length=128)

    @model_validator(mode="after")
    def _check_dates(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class ResidentUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    mobile: Optional[str] = Field(default=None, min_length=6, max_length=32)
    emergency_contact: Optional[str] = Field(default=None, max_length=64)
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class ResidentStatusUpdate(BaseModel):
    status: ResidentStatus


class ResidentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    society_id: str
    unit_id: str
    user_id: Optional[str] = None
    resident_type: ResidentType
    status: ResidentStatus
    owner_id: Optional[str] = None
    name: str
    email: Optional[str] = None
    mobile: str
    emergency_contact: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    created_at: datetime
    updated_at: datetime
