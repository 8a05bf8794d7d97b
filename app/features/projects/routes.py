"""
Project routes.

Every read and write goes through ``check_project_permissions``; mutations
decide with an actor reloaded from the database.
"""
from typing import Annotated, List
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db
from app.core.rate_limit import limiter, mutation_limit
from app.features.access.actor import Actor
from app.features.access.decisions import check_project_permissions
from app.features.access.dependencies import (
    enforce,
    get_current_actor,
    require_active_actor,
    require_fresh_active_actor,
    require_permission,
)
from app.features.access.permissions import Permission
from app.features.access.schemas import ResourceDecisionResponse
from app.features.audit.dependencies import create_audit_log
from app.features.projects.dependencies import get_project_by_id, project_relationship
from app.features.projects.models import Project
from app.features.projects.schemas import ProjectCreate, ProjectResponse, ProjectUpdate
from app.features.users.dependencies import load_users
from app.utils import dates_in_order, get_logger


log = get_logger(__name__)
router = APIRouter(tags=["projects"])


async def reload_project(db: AsyncSession, project_id: str) -> Project:
    result = await db.execute(
        select(Project)
        .where(Project.id == project_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


@router.get("/", response_model=List[ProjectResponse])
async def list_projects(
    db: Annotated[AsyncSession, Depends(get_db)],
    actor: Annotated[Actor, Depends(require_active_actor)]
):
    """Projects the current user may view."""
    result = await db.execute(select(Project).order_by(Project.created_at.desc()))
    return [
        project for project in result.scalars().all()
        if check_project_permissions(actor, project_relationship(project)).can_view
    ]


@router.post("/", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(mutation_limit)
async def create_project(
    request: Request,
    project_data: ProjectCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    actor: Annotated[Actor, Depends(require_permission(Permission.CREATE_PROJECTS, fresh=True))]
):
    """Create a project owned by the current user (staff and above)."""
    members = await load_users(db, project_data.member_ids)

    project = Project(**project_data.model_dump(exclude={"member_ids"}), owner_id=actor.id)
    project.members = members
    db.add(project)
    await db.commit()

    log.info("User %s created project %s", actor.id, project.id)
    return await reload_project(db, project.id)


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project: Annotated[Project, Depends(get_project_by_id)],
    actor: Annotated[Actor, Depends(require_active_actor)]
):
    decision = check_project_permissions(actor, project_relationship(project))
    enforce(decision, "view", "project")
    return project


@router.get("/{project_id}/permissions", response_model=ResourceDecisionResponse)
async def get_project_permissions(
    project: Annotated[Project, Depends(get_project_by_id)],
    actor: Annotated[Actor, Depends(get_current_actor)]
):
    """What the current user may do with this project. Used to shape the UI."""
    return check_project_permissions(actor, project_relationship(project))


@router.patch("/{project_id}", response_model=ProjectResponse)
@limiter.limit(mutation_limit)
async def update_project(
    request: Request,
    update: ProjectUpdate,
    project: Annotated[Project, Depends(get_project_by_id)],
    actor: Annotated[Actor, Depends(require_fresh_active_actor)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """
    Update a project.

    Changing the member list additionally needs ``can_manage_members``.
    """
    decision = check_project_permissions(actor, project_relationship(project))
    enforce(decision, "edit", "project")

    update_data = update.model_dump(exclude_unset=True)
    member_ids = update_data.pop("member_ids", None)
    if member_ids is not None:
        enforce(decision, "manage_members", "project")
        project.members = await load_users(db, member_ids)

    for key, value in update_data.items():
        if key in ("name", "status") and value is None:
            continue
        setattr(project, key, value)

    if not dates_in_order(project.start_date, project.end_date):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="end_date must not be before start_date"
        )

    await db.commit()
    log.info("User %s updated project %s", actor.id, project.id)
    return await reload_project(db, project.id)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(mutation_limit)
async def delete_project(
    request: Request,
    project: Annotated[Project, Depends(get_project_by_id)],
    actor: Annotated[Actor, Depends(require_fresh_active_actor)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Delete a project (owner with DELETE_OWN_PROJECTS, or DELETE_ALL_PROJECTS)."""
    decision = check_project_permissions(actor, project_relationship(project))
    enforce(decision, "delete", "project")

    await create_audit_log(
        db,
        user_id=actor.id,
        action="delete",
        resource_type="project",
        resource_id=project.id,
        details={"name": project.name},
        request=request,
    )
    await db.delete(project)
    await db.commit()

    return None
