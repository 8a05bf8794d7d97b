"""
Pydantic schemas for tasks.
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.features.tasks.models import TaskPriority, TaskStatus
from app.features.users.schemas import UserPublic
from app.utils import dates_in_order


class TaskBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    project_id: Optional[str] = None

    @model_validator(mode="after")
    def check_dates(self):
        if not dates_in_order(self.start_date, self.end_date):
            raise ValueError("end_date must not be before start_date")
        return self


class TaskCreate(TaskBase):
    """Assigning anyone at creation needs ASSIGN_TASKS."""
    assignee_ids: List[str] = []


class TaskUpdate(BaseModel):
    """Partial update. Sending ``assignee_ids`` replaces the assignee list."""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    assignee_ids: Optional[List[str]] = None


class TaskResponse(TaskBase):
    id: str
    created_by_id: Optional[str]
    creator: Optional[UserPublic] = None
    assignees: List[UserPublic] = []
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
