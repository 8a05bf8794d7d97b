"""
Project lookup and relationship facts for the decision engine.
"""
from typing import Annotated
from fastapi import Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db
from app.features.access.decisions import ProjectRelationship
from app.features.projects.models import Project


async def get_project_by_id(
    project_id: str,
    db: Annotated[AsyncSession, Depends(get_db)]
) -> Project:
    """
    Get project by ID or raise 404.

    Raises:
        HTTPException: 404 if project not found
    """
    result = await db.execute(select(Project).where(Project.id == project_id))
    project = result.scalar_one_or_none()

    if project is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Project not found"
        )

    return project


def project_relationship(project: Project) -> ProjectRelationship:
    """Owner and member ids as read in this request."""
    return ProjectRelationship.build(
        owner_id=project.owner_id,
        member_ids=[member.id for member in project.members],
    )
