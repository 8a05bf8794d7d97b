"""
Pydantic schemas for user-related requests and responses.
"""
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field

from app.features.access.roles import UserRole, UserStatus


class UserBase(BaseModel):
    """Base user schema with common fields."""
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=255)


class UserUpdate(BaseModel):
    """Schema for updating own profile. Role and status are not editable here."""
    name: str | None = Field(None, min_length=1, max_length=255)
    avatar_url: str | None = Field(None, max_length=500)
    bio: str | None = Field(None, max_length=1000)
    job_title: str | None = Field(None, max_length=255)
    phone: str | None = Field(None, max_length=50)


class UserResponse(UserBase):
    """Schema for user responses."""
    id: str
    avatar_url: str | None = None
    bio: str | None = None
    job_title: str | None = None
    phone: str | None = None
    role: UserRole
    status: UserStatus
    approved_at: datetime | None = None
    last_login_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class UserPublic(BaseModel):
    """Public user information (limited fields)."""
    id: str
    name: str
    avatar_url: str | None = None
    role: UserRole

    model_config = {"from_attributes": True}


class UserStatusUpdate(BaseModel):
    """Admin action: approve, reject, suspend or reactivate an account."""
    status: UserStatus


class UserRoleUpdate(BaseModel):
    role: UserRole


class UserStatusResponse(BaseModel):
    """Live status compared with the snapshot in the caller's token."""
    status: UserStatus
    role: UserRole
    has_status_changed: bool
    has_role_changed: bool
    redirect_to: str


class UserCreate(UserBase):
    """Admin-created account. Starts ACTIVE and approved by the creator."""
    role: UserRole = UserRole.VOLUNTEER
    job_title: str | None = Field(None, max_length=255)
    phone: str | None = Field(None, max_length=50)
