"""
Task routes.

Tasks are decided by ``check_task_permissions``: creators own their tasks,
assignees may work on them and the owner of the task's project may look at
them. Staff and above see everything.
"""
from datetime import datetime, timezone
from typing import Annotated, List, Optional
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db
from app.core.rate_limit import limiter, mutation_limit
from app.features.access.actor import Actor
from app.features.access.decisions import check_project_permissions, check_task_permissions
from app.features.access.dependencies import (
    enforce,
    get_current_actor,
    require_active_actor,
    require_fresh_active_actor,
    require_permission,
)
from app.features.access.permissions import Permission, has_permission
from app.features.access.schemas import ResourceDecisionResponse
from app.features.audit.dependencies import create_audit_log
from app.features.projects.dependencies import project_relationship
from app.features.projects.models import Project
from app.features.tasks.dependencies import get_task_by_id, task_relationship
from app.features.tasks.models import Task, TaskStatus
from app.features.tasks.schemas import TaskCreate, TaskResponse, TaskUpdate
from app.features.users.dependencies import load_users
from app.utils import dates_in_order, get_logger


log = get_logger(__name__)
router = APIRouter(tags=["tasks"])


def require_task_permission(actor: Actor, permission: Permission) -> None:
    if not has_permission(actor.role, permission):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Permission denied: {permission.value}"
        )


def stamp_completion(task: Task, previous: Optional[TaskStatus]) -> None:
    """Set ``completed_at`` on entering COMPLETED, clear it on leaving."""
    if task.status is TaskStatus.COMPLETED and previous is not TaskStatus.COMPLETED:
        task.completed_at = datetime.now(timezone.utc)
    elif task.status is not TaskStatus.COMPLETED:
        task.completed_at = None


async def reload_task(db: AsyncSession, task_id: str) -> Task:
    result = await db.execute(
        select(Task)
        .where(Task.id == task_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


@router.get("/", response_model=List[TaskResponse])
async def list_tasks(
    db: Annotated[AsyncSession, Depends(get_db)],
    actor: Annotated[Actor, Depends(require_active_actor)],
    project_id: Optional[str] = None,
    task_status: Optional[TaskStatus] = None
):
    """
    Tasks the current user may view.

    Query params:
    - project_id: Only tasks of this project
    - task_status: Only tasks in this status
    """
    stmt = select(Task).order_by(Task.created_at.desc())
    if project_id:
        stmt = stmt.where(Task.project_id == project_id)
    if task_status:
        stmt = stmt.where(Task.status == task_status)

    result = await db.execute(stmt)
    return [
        task for task in result.scalars().all()
        if check_task_permissions(actor, task_relationship(task)).can_view
    ]


@router.post("/", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(mutation_limit)
async def create_task(
    request: Request,
    task_data: TaskCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    actor: Annotated[Actor, Depends(require_permission(Permission.CREATE_TASKS, fresh=True))]
):
    """
    Create a task. The creator owns it.

    Assigning anyone needs ASSIGN_TASKS. A task can only be attached to a
    project the creator can view.
    """
    if task_data.assignee_ids:
        require_task_permission(actor, Permission.ASSIGN_TASKS)
    assignees = await load_users(db, task_data.assignee_ids)

    if task_data.project_id:
        project = await db.get(Project, task_data.project_id)
        if project is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Project not found"
            )
        enforce(check_project_permissions(actor, project_relationship(project)), "view", "project")

    task = Task(**task_data.model_dump(exclude={"assignee_ids"}), created_by_id=actor.id)
    task.assignees = assignees
    stamp_completion(task, None)
    db.add(task)
    await db.commit()

    log.info("User %s created task %s", actor.id, task.id)
    return await reload_task(db, task.id)


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task: Annotated[Task, Depends(get_task_by_id)],
    actor: Annotated[Actor, Depends(require_active_actor)]
):
    decision = check_task_permissions(actor, task_relationship(task))
    enforce(decision, "view", "task")
    return task


@router.get("/{task_id}/permissions", response_model=ResourceDecisionResponse)
async def get_task_permissions(
    task: Annotated[Task, Depends(get_task_by_id)],
    actor: Annotated[Actor, Depends(get_current_actor)]
):
    return check_task_permissions(actor, task_relationship(task))


@router.patch("/{task_id}", response_model=TaskResponse)
@limiter.limit(mutation_limit)
async def update_task(
    request: Request,
    update: TaskUpdate,
    task: Annotated[Task, Depends(get_task_by_id)],
    actor: Annotated[Actor, Depends(require_fresh_active_actor)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """
    Update a task.

    Adding assignees needs ASSIGN_TASKS, removing them needs UNASSIGN_TASKS.
    """
    decision = check_task_permissions(actor, task_relationship(task))
    enforce(decision, "edit", "task")

    update_data = update.model_dump(exclude_unset=True)
    assignee_ids = update_data.pop("assignee_ids", None)
    if assignee_ids is not None:
        current = {assignee.id for assignee in task.assignees}
        wanted = set(assignee_ids)
        if wanted - current:
            require_task_permission(actor, Permission.ASSIGN_TASKS)
        if current - wanted:
            require_task_permission(actor, Permission.UNASSIGN_TASKS)
        task.assignees = await load_users(db, assignee_ids)

    previous = task.status
    for key, value in update_data.items():
        if key in ("title", "status", "priority") and value is None:
            continue
        setattr(task, key, value)
    stamp_completion(task, previous)

    if not dates_in_order(task.start_date, task.end_date):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="end_date must not be before start_date"
        )

    await db.commit()
    log.info("User %s updated task %s", actor.id, task.id)
    return await reload_task(db, task.id)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(mutation_limit)
async def delete_task(
    request: Request,
    task: Annotated[Task, Depends(get_task_by_id)],
    actor: Annotated[Actor, Depends(require_fresh_active_actor)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    decision = check_task_permissions(actor, task_relationship(task))
    enforce(decision, "delete", "task")

    await create_audit_log(
        db,
        user_id=actor.id,
        action="delete",
        resource_type="task",
        resource_id=task.id,
        details={"title": task.title, "project_id": task.project_id},
        request=request,
    )
    await db.delete(task)
    await db.commit()

    return None
