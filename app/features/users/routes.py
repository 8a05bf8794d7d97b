"""
User feature routes.
"""
from datetime import datetime, timezone
from typing import Annotated, Optional
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import case, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db
from app.core.rate_limit import limiter, mutation_limit
from app.features.access.actor import Actor
from app.features.access.dependencies import require_permission, require_route
from app.features.access.permissions import Permission, has_permission
from app.features.access.roles import (
    UserStatus,
    get_redirect_url_for_status,
    is_admin,
    is_super_admin,
    parse_role,
    parse_status,
)
from app.features.audit.dependencies import create_audit_log
from app.features.users.models import User
from app.features.users.schemas import (
    UserCreate,
    UserPublic,
    UserResponse,
    UserRoleUpdate,
    UserStatusResponse,
    UserStatusUpdate,
    UserUpdate,
)
from app.features.users.dependencies import get_current_user, get_token_claims, load_user
from app.utils import get_logger


log = get_logger(__name__)
router = APIRouter(tags=["users"])


async def get_user_or_404(db: AsyncSession, user_id: str) -> User:
    user = await load_user(db, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return user


@router.get("/me", response_model=UserResponse)
async def get_current_user_profile(
    user: Annotated[User, Depends(get_current_user)]
):
    """Get current authenticated user's profile. Available in any status."""
    return user


@router.patch("/me", response_model=UserResponse)
@limiter.limit(mutation_limit)
async def update_current_user_profile(
    request: Request,
    update_data: UserUpdate,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Update current user's profile. Pending users may complete their profile."""
    for key, value in update_data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(user, key, value)

    await db.commit()
    await db.refresh(user)
    return user


@router.get("/me/status", response_model=UserStatusResponse)
async def get_current_user_status(
    user: Annotated[User, Depends(get_current_user)],
    claims: Annotated[dict, Depends(get_token_claims)]
):
    """
    Live role and status versus the snapshot in the token.

    Clients poll this to notice approvals, suspensions and role changes
    before their session snapshot is refreshed.
    """
    return UserStatusResponse(
        status=user.status,
        role=user.role,
        has_status_changed=parse_status(claims.get("status")) is not user.status,
        has_role_changed=parse_role(claims.get("role")) is not user.role,
        redirect_to=get_redirect_url_for_status(user.status),
    )


@router.get("/", response_model=list[UserPublic])
async def list_users(
    db: Annotated[AsyncSession, Depends(get_db)],
    actor: Annotated[Actor, Depends(require_permission(Permission.VIEW_ALL_USERS))],
    skip: int = 0,
    limit: int = 50
):
    """List active users (staff and above)."""
    result = await db.execute(
        select(User)
        .where(User.status == UserStatus.ACTIVE)
        .order_by(User.name)
        .offset(skip)
        .limit(limit)
    )
    return result.scalars().all()


@router.get("/admin", response_model=list[UserResponse])
async def list_all_users(
    db: Annotated[AsyncSession, Depends(get_db)],
    actor: Annotated[Actor, Depends(require_permission(Permission.MANAGE_USERS, fresh=True))],
    user_status: Optional[UserStatus] = None,
    skip: int = 0,
    limit: int = 100
):
    """
    Every account in any status (admin only).

    Pending accounts come first, then newest first. Suspended and rejected
    accounts are listed here so they can be reactivated.
    """
    stmt = select(User)
    if user_status:
        stmt = stmt.where(User.status == user_status)
    result = await db.execute(
        stmt.order_by(case((User.status == UserStatus.PENDING, 0), else_=1), User.created_at.desc())
        .offset(skip)
        .limit(limit)
    )
    return result.scalars().all()


@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(mutation_limit)
async def create_user(
    request: Request,
    user_data: UserCreate,
    admin: Annotated[Actor, Depends(require_permission(Permission.MANAGE_USERS, fresh=True))],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """
    Create an account that is active immediately (admin only).

    Only super admins may create ADMIN or SUPER_ADMIN accounts.
    """
    if is_admin(user_data.role) and not has_permission(admin.role, Permission.MANAGE_ROLES):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only super admins can create admin accounts"
        )

    existing = await db.execute(select(User).where(User.email == user_data.email))
    if existing.scalars().first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already in use"
        )

    user = User(
        **user_data.model_dump(),
        status=UserStatus.ACTIVE,
        approved_at=datetime.now(timezone.utc),
        approved_by_id=admin.id,
    )
    db.add(user)
    await db.flush()

    await create_audit_log(
        db,
        user_id=admin.id,
        action="create",
        resource_type="user",
        resource_id=user.id,
        details={"email": user.email, "role": user.role.value},
        request=request,
    )
    await db.commit()
    await db.refresh(user)

    log.info("User %s created account %s with role %s", admin.id, user.id, user.role.value)
    return user


@router.get(
    "/pending",
    response_model=list[UserResponse],
    dependencies=[Depends(require_route("/admin/users/approve"))]
)
async def list_pending_users(
    db: Annotated[AsyncSession, Depends(get_db)],
    actor: Annotated[Actor, Depends(require_permission(Permission.APPROVE_USERS, fresh=True))]
):
    """Accounts waiting for approval, oldest first (admin only)."""
    result = await db.execute(
        select(User)
        .where(User.status == UserStatus.PENDING)
        .order_by(User.created_at)
    )
    return result.scalars().all()


@router.get("/{user_id}", response_model=UserPublic)
async def get_user_by_id(
    user_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    actor: Annotated[Actor, Depends(require_permission(Permission.VIEW_ALL_USERS))]
):
    """Get public user profile by ID."""
    return await get_user_or_404(db, user_id)


# Admin-only routes
@router.patch("/{user_id}/status", response_model=UserResponse)
@limiter.limit(mutation_limit)
async def update_user_status(
    user_id: str,
    update: UserStatusUpdate,
    request: Request,
    admin: Annotated[Actor, Depends(require_permission(Permission.APPROVE_USERS, fresh=True))],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """
    Approve, reject, suspend or reactivate an account (admin only).

    Admin accounts can only be changed by a super admin, and nobody can
    change their own status.
    """
    user = await get_user_or_404(db, user_id)

    # Prevent self-modification
    if user.id == admin.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot modify your own status"
        )

    if is_admin(user.role) and not is_super_admin(admin.role):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only super admins can modify other admin accounts"
        )

    previous = user.status
    user.status = update.status
    if update.status is UserStatus.ACTIVE and previous is UserStatus.PENDING:
        user.approved_at = datetime.now(timezone.utc)
        user.approved_by_id = admin.id

    await create_audit_log(
        db,
        user_id=admin.id,
        action="update_status",
        resource_type="user",
        resource_id=user.id,
        details={"from": previous.value, "to": update.status.value},
        request=request,
    )
    await db.commit()
    await db.refresh(user)

    log.info("User %s changed status of %s from %s to %s", admin.id, user.id, previous.value, user.status.value)
    return user


@router.patch("/{user_id}/role", response_model=UserResponse)
@limiter.limit(mutation_limit)
async def update_user_role(
    user_id: str,
    update: UserRoleUpdate,
    request: Request,
    admin: Annotated[Actor, Depends(require_permission(Permission.MANAGE_ROLES, fresh=True))],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Change an account's role (super admin only)."""
    user = await get_user_or_404(db, user_id)

    # Prevent self-demotion
    if user.id == admin.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot modify your own role"
        )

    previous = user.role
    user.role = update.role

    await create_audit_log(
        db,
        user_id=admin.id,
        action="update_role",
        resource_type="user",
        resource_id=user.id,
        details={"from": previous.value, "to": update.role.value},
        request=request,
    )
    await db.commit()
    await db.refresh(user)

    log.info("User %s changed role of %s from %s to %s", admin.id, user.id, previous.value, user.role.value)
    return user


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(mutation_limit)
async def delete_user(
    user_id: str,
    request: Request,
    admin: Annotated[Actor, Depends(require_permission(Permission.DELETE_USERS, fresh=True))],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """
    Delete an account (admin only).

    Owned projects and created tasks are kept with their owner/creator
    cleared; memberships and assignments are removed.
    """
    user = await get_user_or_404(db, user_id)

    if user.id == admin.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot delete your own account"
        )

    if is_admin(user.role) and not is_super_admin(admin.role):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only super admins can delete other admin accounts"
        )

    await create_audit_log(
        db,
        user_id=admin.id,
        action="delete",
        resource_type="user",
        resource_id=user.id,
        details={"email": user.email, "role": user.role.value},
        request=request,
    )
    await db.delete(user)
    await db.commit()

    log.info("User %s deleted account %s", admin.id, user_id)
    return None
