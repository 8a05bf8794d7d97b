"""
Resource decision composer for projects and tasks.

Both composers follow the same order:
1. status gate (blocked actors get an all-false decision; ``is_owner`` is
   still reported because it is a plain relationship fact),
2. SUPER_ADMIN short-circuit, kept separate from the composite rules so a
   change to an ordinary threshold cannot narrow or widen it,
3. relationship facts,
4. composite rules over the permission table.

Nothing here raises. Missing relationship facts count as "not related".
"""
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from app.features.access.actor import Actor
from app.features.access.permissions import Permission, has_permission
from app.features.access.roles import (
    UserRole,
    has_active_status,
    has_minimum_role,
    is_staff_or_above,
    is_super_admin,
)
from app.utils import get_logger


log = get_logger(__name__)


@dataclass(frozen=True)
class ProjectRelationship:
    owner_id: Optional[str] = None
    member_ids: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def build(cls, owner_id: Any = None, member_ids: Optional[Iterable[Any]] = None) -> "ProjectRelationship":
        return cls(owner_id=_as_id(owner_id), member_ids=_as_id_set(member_ids))


@dataclass(frozen=True)
class TaskRelationship:
    creator_id: Optional[str] = None
    assignee_ids: frozenset[str] = field(default_factory=frozenset)
    project_owner_id: Optional[str] = None

    @classmethod
    def build(
        cls,
        creator_id: Any = None,
        assignee_ids: Optional[Iterable[Any]] = None,
        project_owner_id: Any = None,
    ) -> "TaskRelationship":
        return cls(
            creator_id=_as_id(creator_id),
            assignee_ids=_as_id_set(assignee_ids),
            project_owner_id=_as_id(project_owner_id),
        )


@dataclass(frozen=True)
class ResourceDecision:
    is_owner: bool
    can_view: bool
    can_edit: bool
    can_delete: bool
    # Only meaningful for projects
    can_manage_members: Optional[bool] = None


def _as_id(value: Any) -> Optional[str]:
    return str(value) if value else None


def _as_id_set(values: Optional[Iterable[Any]]) -> frozenset[str]:
    if not values:
        return frozenset()
    return frozenset(str(value) for value in values if value)


def _is_same(actor_id: Optional[str], other_id: Optional[str]) -> bool:
    return actor_id is not None and other_id is not None and actor_id == other_id


def _blocked(is_owner: bool) -> ResourceDecision:
    return ResourceDecision(
        is_owner=is_owner,
        can_view=False,
        can_edit=False,
        can_delete=False,
        can_manage_members=False,
    )


def _universal(is_owner: bool) -> ResourceDecision:
    return ResourceDecision(
        is_owner=is_owner,
        can_view=True,
        can_edit=True,
        can_delete=True,
        can_manage_members=True,
    )


# ============================================================================
# Project / Task Composers
# ============================================================================

def check_project_permissions(
    actor: Actor,
    relationship: Optional[ProjectRelationship] = None,
) -> ResourceDecision:
    """
    Decide what ``actor`` may do with one project.

    Args:
        actor: Role/status snapshot of the requester
        relationship: Owner and member ids of the project

    Returns:
        ResourceDecision including ``can_manage_members``
    """
    relationship = relationship or ProjectRelationship()
    role = actor.role
    is_owner = _is_same(actor.id, relationship.owner_id)

    if not has_active_status(actor.status):
        return _blocked(is_owner)

    if is_super_admin(role):
        log.debug("SUPER_ADMIN %s granted universal project access", actor.id)
        return _universal(is_owner)

    is_member = actor.id is not None and actor.id in relationship.member_ids

    can_view = has_permission(role, Permission.VIEW_PROJECTS) and (
        is_owner or is_member or has_permission(role, Permission.VIEW_ALL_PROJECTS)
    )
    can_edit = (
        (is_owner and has_permission(role, Permission.EDIT_OWN_PROJECTS))
        or has_permission(role, Permission.EDIT_ALL_PROJECTS)
    )
    can_delete = (
        (is_owner and has_permission(role, Permission.DELETE_OWN_PROJECTS))
        or has_permission(role, Permission.DELETE_ALL_PROJECTS)
    )
    can_manage_members = (
        (is_owner and has_permission(role, Permission.MANAGE_PROJECT_MEMBERS))
        or has_permission(role, Permission.EDIT_ALL_PROJECTS)
    )

    return ResourceDecision(
        is_owner=is_owner,
        can_view=can_view,
        can_edit=can_edit,
        can_delete=can_delete,
        can_manage_members=can_manage_members,
    )


def check_task_permissions(
    actor: Actor,
    relationship: Optional[TaskRelationship] = None,
) -> ResourceDecision:
    """
    Decide what ``actor`` may do with one task.

    The task's creator is its owner. Assignees may view and edit (editing
    only needs EDIT_OWN_TASKS) but deleting needs creator + DELETE_OWN_TASKS
    or DELETE_ALL_TASKS. The owner of the task's project may view it.
    """
    relationship = relationship or TaskRelationship()
    role = actor.role
    is_creator = _is_same(actor.id, relationship.creator_id)

    if not has_active_status(actor.status):
        return _blocked(is_creator)

    if is_super_admin(role):
        log.debug("SUPER_ADMIN %s granted universal task access", actor.id)
        return _universal(is_creator)

    is_assignee = actor.id is not None and actor.id in relationship.assignee_ids
    is_project_owner = _is_same(actor.id, relationship.project_owner_id)

    can_view = has_permission(role, Permission.VIEW_TASKS) and (
        is_creator
        or is_assignee
        or is_project_owner
        or has_permission(role, Permission.VIEW_ALL_TASKS)
    )
    can_edit = (
        ((is_creator or is_assignee) and has_permission(role, Permission.EDIT_OWN_TASKS))
        or has_permission(role, Permission.EDIT_ALL_TASKS)
    )
    can_delete = (
        (is_creator and has_permission(role, Permission.DELETE_OWN_TASKS))
        or has_permission(role, Permission.DELETE_ALL_TASKS)
    )

    return ResourceDecision(
        is_owner=is_creator,
        can_view=can_view,
        can_edit=can_edit,
        can_delete=can_delete,
    )


# ============================================================================
# Coarse Checks
# ============================================================================

def can_access_resource(
    actor: Actor,
    required_role: Any,
    require_active_status: bool = True,
) -> bool:
    """Minimum-role check with the status gate applied unless disabled."""
    if not has_minimum_role(actor.role, required_role):
        return False
    if require_active_status and not has_active_status(actor.status):
        return False
    return True


def can_manage_owned_resource(
    actor: Actor,
    is_owner: bool,
    required_role_for_others: Any = UserRole.ADMIN,
) -> bool:
    """
    Owners at STAFF or above may manage their own resource; everybody else
    needs ``required_role_for_others``.
    """
    if not has_active_status(actor.status):
        return False
    if is_owner and is_staff_or_above(actor.role):
        return True
    return has_minimum_role(actor.role, required_role_for_others)
