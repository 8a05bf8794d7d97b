"""
Access API routes.

Read-only views of the decision engine for the UI. These shape what gets
rendered; the resource routes enforce the same decisions on their own.
"""
from typing import Annotated, List
from fastapi import APIRouter, Depends, Query

from app.core import config
from app.features.access.actor import Actor, validate_user_session
from app.features.access.dependencies import get_current_actor
from app.features.access.navigation import (
    can_access_route,
    get_navigation_items,
    normalize_path,
    required_role_for_route,
)
from app.features.access.permissions import has_permission, parse_permission, permissions_for_role
from app.features.access.roles import has_active_status
from app.features.access.schemas import (
    AccessSummaryResponse,
    ActorResponse,
    NavigationItemResponse,
    PermissionCheckRequest,
    PermissionCheckResponse,
    RouteCheckResponse,
    SessionResponse,
)


router = APIRouter(tags=["access"])


@router.get("/me", response_model=AccessSummaryResponse)
async def get_access_summary(
    actor: Annotated[Actor, Depends(get_current_actor)]
):
    """Current actor, where their session should land, and their capabilities."""
    validation = validate_user_session(actor)
    permissions = permissions_for_role(actor.role) if has_active_status(actor.status) else []
    return AccessSummaryResponse(
        actor=ActorResponse.model_validate(actor),
        session=SessionResponse.model_validate(validation),
        permissions=permissions,
    )


@router.post("/check", response_model=PermissionCheckResponse)
async def check_permission(
    check_request: PermissionCheckRequest,
    actor: Annotated[Actor, Depends(get_current_actor)]
):
    """Check if the current user holds a permission."""
    name = check_request.permission
    if parse_permission(name) is None:
        return PermissionCheckResponse(permission=name, has_permission=False, reason="Unknown permission")
    if not has_active_status(actor.status):
        return PermissionCheckResponse(
            permission=name,
            has_permission=False,
            reason=validate_user_session(actor).reason,
        )

    allowed = has_permission(actor.role, name)
    return PermissionCheckResponse(
        permission=name,
        has_permission=allowed,
        reason=None if allowed else "Permission denied",
    )


@router.get("/navigation", response_model=List[NavigationItemResponse])
async def get_navigation(
    actor: Annotated[Actor, Depends(get_current_actor)]
):
    """Menu entries for the current user."""
    items = get_navigation_items(actor.role, actor.status)
    return [NavigationItemResponse.model_validate(item) for item in items]


@router.get("/routes", response_model=RouteCheckResponse)
async def check_route(
    actor: Annotated[Actor, Depends(get_current_actor)],
    path: str = Query(..., min_length=1, description="Page path, e.g. /dashboard/team"),
):
    """Check whether the current user may open a page."""
    return RouteCheckResponse(
        path=normalize_path(path),
        required_role=required_role_for_route(path),
        allowed=can_access_route(actor.role, actor.status, path, strict=config.STRICT_ADMIN_ROUTES),
    )
