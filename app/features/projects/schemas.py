"""
Pydantic schemas for projects.
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.features.projects.models import ProjectStatus
from app.features.users.schemas import UserPublic
from app.utils import dates_in_order


class ProjectBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    status: ProjectStatus = ProjectStatus.PLANNING
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @model_validator(mode="after")
    def check_dates(self):
        if not dates_in_order(self.start_date, self.end_date):
            raise ValueError("end_date must not be before start_date")
        return self


class ProjectCreate(ProjectBase):
    """The creator becomes the owner."""
    member_ids: List[str] = []


class ProjectUpdate(BaseModel):
    """Partial update. Sending ``member_ids`` replaces the member list."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    status: Optional[ProjectStatus] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    member_ids: Optional[List[str]] = None


class ProjectResponse(ProjectBase):
    id: str
    owner_id: Optional[str]
    owner: Optional[UserPublic] = None
    members: List[UserPublic] = []
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
