from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel, Field

from residenthub.apps.announcements.schemas import AnnouncementRead
from residenthub.apps.maintenance.schemas import MaintenanceRead
from residenthub.apps.societies.schemas import SocietySummary


class ResidentDashboard(BaseModel):
    role: Literal["RESIDENT"] = "RESIDENT"
    outstanding_balance: float = 0.0
    active_issues_count: int = 0
    latest_announcements: List[AnnouncementRead] = Field(default_factory=list)
    pending_dues: List[MaintenanceRead] = Field(default_factory=list)
    recent_payments: List[MaintenanceRead] = Field(default_factory=list)


class AdminDashboard(BaseModel):
    role: Literal["SOCIETY_ADMIN"] = "SOCIETY_ADMIN"
    pending_maintenance_dues: float = 0.0
    pending_join_requests_count: int = 0
    open_issues_count: int = 0
    recent_announcements: List[AnnouncementRead] = Field(default_factory=list)
    total_units: int = 0
    total_residents: int = 0


class PlatformDashboard(BaseModel):
    role: Literal["PLATFORM_OWNER"] = "PLATFORM_OWNER"
    total_societies: int = 0
    active_societies: int = 0
    inactive_societies: int = 0
    total_users: int = 0
    total_admins: int = 0
    total_residents: int = 0
    total_units: int = 0
    recent_societies: List[SocietySummary] = Field(default_factory=list)
