from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .models import OwnershipType, UnitStatus, UnitType


class UnitCreate(BaseModel):
    # Required for the platform owner; admins default to their own society.
    society_id: Optional[str] = None
    building_name: str = Field(min_length=1, max_length=128)
    unit_number: str = Field(min_length=1, max_length=32)
    floor_number: Optional[int] = Field(default=None, ge=0)
    unit_type: UnitType
    area_sq_ft: Optional[float] = Field(default=None, gt=0)
    ownership_type: OwnershipType = OwnershipType.VACANT


class UnitUpdate(BaseModel):
    building_name: Optional[str] = Field(default=None, min_length=1, max_length=128)
    unit_number: Optional[str] = Field(default=None, min_length=1, max_length=32)
    floor_number: Optional[int] = Field(default=None, ge=0)
    unit_type: Optional[UnitType] = None
    area_sq_ft: Optional[float] = Field(default=None, gt=0)
    ownership_type: Optional[OwnershipType] = None
    status: Optional[UnitStatus] = None


class UnitRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    society_id: str
    building_name: str
    unit_number: str
    floor_number: Optional[int]
    unit_type: UnitType
    area_sq_ft: Optional[float]
    ownership_type: OwnershipType
    status: UnitStatus
    owner_resident_id: Optional[str] = None
    tenant_resident_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class UnitAvailableRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    building_name: str
    unit_number: str
    floor_number: Optional[int]
    unit_type: UnitType
