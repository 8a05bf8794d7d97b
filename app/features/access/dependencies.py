"""
FastAPI dependencies that feed the decision engine and enforce its answers.

Implements:
- Actor snapshots from the session token, reloaded when stale
- Fresh actors (always reloaded) for mutating routes
- Permission and route guards
"""
from datetime import timedelta
from typing import Annotated
from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import config
from app.core.database.engine import get_db
from app.features.access.actor import Actor, validate_user_session
from app.features.access.decisions import ResourceDecision
from app.features.access.navigation import can_access_route
from app.features.access.permissions import Permission, has_permission
from app.features.access.roles import has_active_status
from app.features.users.dependencies import get_current_user, get_token_claims, load_user
from app.features.users.models import User
from app.utils import get_logger


log = get_logger(__name__)


# ============================================================================
# Actor Snapshots
# ============================================================================

async def get_current_actor(
    claims: Annotated[dict, Depends(get_token_claims)],
    db: Annotated[AsyncSession, Depends(get_db)]
) -> Actor:
    """
    Actor snapshot for the current request.

    The role/status carried by the token is used while it is younger than
    SESSION_REFRESH_SECONDS. Older or incomplete snapshots are replaced by
    the current database row.
    """
    actor = Actor.from_claims(claims)
    max_age = timedelta(seconds=config.SESSION_REFRESH_SECONDS)
    if actor.is_complete and not actor.is_stale(max_age):
        return actor

    user = await load_user(db, actor.id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    log.debug("Refreshed actor snapshot for user %s (age %s)", user.id, actor.age())
    return Actor.from_user(user)


async def get_fresh_actor(
    user: Annotated[User, Depends(get_current_user)]
) -> Actor:
    """Actor built from the live database row. Use before any mutation."""
    return Actor.from_user(user)


def ensure_active(actor: Actor) -> Actor:
    """Raise 403 with the reason the session cannot enter the dashboard."""
    if not has_active_status(actor.status):
        validation = validate_user_session(actor)
        log.info("Blocked user %s with status %s", actor.id, actor.status)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=validation.reason,
        )
    return actor


async def require_active_actor(
    actor: Annotated[Actor, Depends(get_current_actor)]
) -> Actor:
    return ensure_active(actor)


async def require_fresh_active_actor(
    actor: Annotated[Actor, Depends(get_fresh_actor)]
) -> Actor:
    return ensure_active(actor)


# ============================================================================
# Guards
# ============================================================================

def require_permission(permission: Permission, fresh: bool = False):
    """
    FastAPI dependency to require a capability from the permission table.

    Usage:
        @router.post("/")
        async def create_project(
            actor: Actor = Depends(require_permission(Permission.CREATE_PROJECTS, fresh=True))
        ):
            ...

    Args:
        permission: Capability to require
        fresh: Reload role/status from the database instead of trusting the
            token snapshot (use for mutations)

    Returns:
        Dependency function that returns the actor if they hold the permission

    Raises:
        HTTPException: 403 if the account is not active or lacks the permission
    """
    actor_dependency = get_fresh_actor if fresh else get_current_actor

    async def permission_dependency(
        actor: Annotated[Actor, Depends(actor_dependency)]
    ) -> Actor:
        ensure_active(actor)
        if not has_permission(actor.role, permission):
            log.debug("User %s (%s) denied %s", actor.id, actor.role, permission.value)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Permission denied: {permission.value}",
            )
        return actor

    return permission_dependency


def require_route(path: str):
    """FastAPI dependency gating a whole page by the route permission map."""
    async def route_dependency(
        actor: Annotated[Actor, Depends(get_current_actor)]
    ) -> Actor:
        if not can_access_route(actor.role, actor.status, path, strict=config.STRICT_ADMIN_ROUTES):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied: {path}",
            )
        return actor

    return route_dependency


def enforce(decision: ResourceDecision, action: str, resource: str) -> None:
    """
    Turn a resource decision into a hard rejection.

    Args:
        decision: Composer output for this actor and resource
        action: One of "view", "edit", "delete", "manage_members"
        resource: Resource name used in the error message
    """
    allowed = {
        "view": decision.can_view,
        "edit": decision.can_edit,
        "delete": decision.can_delete,
        "manage_members": decision.can_manage_members,
    }.get(action)
    if not allowed:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"You do not have permission to {action.replace('_', ' ')} this {resource}",
        )
