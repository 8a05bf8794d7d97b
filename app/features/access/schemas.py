"""
Pydantic schemas for the access endpoints.
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

from app.features.access.permissions import Permission
from app.features.access.roles import UserRole, UserStatus


class ActorResponse(BaseModel):
    """Role/status snapshot the server decided with."""
    id: Optional[str]
    role: Optional[UserRole]
    status: Optional[UserStatus]
    refreshed_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class SessionResponse(BaseModel):
    is_valid: bool
    reason: str
    redirect_to: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class AccessSummaryResponse(BaseModel):
    """Everything the UI needs to shape itself for the current user."""
    actor: ActorResponse
    session: SessionResponse
    permissions: List[Permission] = []


class PermissionCheckRequest(BaseModel):
    permission: str = Field(..., min_length=1, max_length=100, description="Permission name, e.g. 'VIEW_TASKS'")


class PermissionCheckResponse(BaseModel):
    permission: str
    has_permission: bool
    reason: Optional[str] = None


class NavigationItemResponse(BaseModel):
    title: str
    path: str
    visible: bool
    icon: Optional[str] = None
    children: List["NavigationItemResponse"] = []

    model_config = ConfigDict(from_attributes=True)


class RouteCheckResponse(BaseModel):
    path: str
    required_role: Optional[UserRole] = None
    allowed: bool


class ResourceDecisionResponse(BaseModel):
    is_owner: bool
    can_view: bool
    can_edit: bool
    can_delete: bool
    can_manage_members: Optional[bool] = None

    model_config = ConfigDict(from_attributes=True)


NavigationItemResponse.model_rebuild()
