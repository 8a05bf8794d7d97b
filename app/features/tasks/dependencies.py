"""
Task lookup and relationship facts for the decision engine.
"""
from typing import Annotated
from fastapi import Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db
from app.features.access.decisions import TaskRelationship
from app.features.tasks.models import Task


async def get_task_by_id(
    task_id: str,
    db: Annotated[AsyncSession, Depends(get_db)]
) -> Task:
    """
    Get task by ID or raise 404.

    Raises:
        HTTPException: 404 if task not found
    """
    result = await db.execute(select(Task).where(Task.id == task_id))
    task = result.scalar_one_or_none()

    if task is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Task not found"
        )

    return task


def task_relationship(task: Task) -> TaskRelationship:
    return TaskRelationship.build(
        creator_id=task.created_by_id,
        assignee_ids=[assignee.id for assignee in task.assignees],
        project_owner_id=task.project.owner_id if task.project else None,
    )
