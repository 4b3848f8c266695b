from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .models import SocietyStatus, SocietyType

PINCODE_PATTERN = r"^\d{6}$"


class SocietyCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    address_line1: str = Field(min_length=1, max_length=255)
    city: str = Field(min_length=1, max_length=128)
    state: str = Field(min_length=1, max_length=128)
    pincode: str = Field(pattern=PINCODE_PATTERN)
    society_type: SocietyType


class SocietyUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    address_line1: Optional[str] = Field(default=None, min_length=1, max_length=255)
    city: Optional[str] = Field(default=None, min_length=1, max_length=128)
    state: Optional[str] = Field(default=None, min_length=1, max_length=128)
    pincode: Optional[str] = Field(default=None, pattern=PINCODE_PATTERN)
    society_type: Optional[SocietyType] = None
    status: Optional[SocietyStatus] = None


class SocietyRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    code: str
    address_line1: str
    city: str
    state: str
    pincode: str
    society_type: SocietyType
    status: SocietyStatus
    created_by: str
    created_at: datetime
    updated_at: datetime


class SocietySummary(SocietyRead):
    unit_count: int = 0
    resident_count: int = 0


class SocietyPublicRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    code: str
    city: str
    state: str
    society_type: SocietyType
