from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AnnouncementCreate(BaseModel):
    # Required for the platform owner; admins post to their own society.
    society_id: Optional[str] = None
    title: str = Field(min_length=1, max_length=255)
    content: str = Field(min_length=1)
    is_important: bool = False
    expires_at: Optional[datetime] = None


class AnnouncementUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    content: Optional[str] = Field(default=None, min_length=1)
    is_important: Optional[bool] = None
    expires_at: Optional[datetime] = None


class AnnouncementRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    society_id: str
    created_by: str
    title: str
    content: str
    is_important: bool
    expires_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
