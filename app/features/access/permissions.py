"""
Static permission table.

Each capability is bound to a minimum-role predicate at definition time.
The table never looks at account status; callers apply the status gate on
top of it (see ``decisions`` and ``navigation``).

"Own" capabilities are granted lower in the hierarchy than the matching
"all" capability of the same verb (EDIT_OWN_TASKS at VOLUNTEER,
EDIT_ALL_TASKS at STAFF). The composers rely on that split.
"""
import enum
from typing import Any, Callable

from app.features.access.roles import (
    UserRole,
    has_minimum_role,
    is_admin,
    is_staff_or_above,
    is_super_admin,
    parse_role,
)


class Permission(str, enum.Enum):
    # User management
    MANAGE_USERS = "MANAGE_USERS"
    APPROVE_USERS = "APPROVE_USERS"
    VIEW_ALL_USERS = "VIEW_ALL_USERS"
    DELETE_USERS = "DELETE_USERS"

    # Project management
    VIEW_PROJECTS = "VIEW_PROJECTS"
    VIEW_ALL_PROJECTS = "VIEW_ALL_PROJECTS"
    CREATE_PROJECTS = "CREATE_PROJECTS"
    EDIT_OWN_PROJECTS = "EDIT_OWN_PROJECTS"
    EDIT_ALL_PROJECTS = "EDIT_ALL_PROJECTS"
    DELETE_OWN_PROJECTS = "DELETE_OWN_PROJECTS"
    DELETE_ALL_PROJECTS = "DELETE_ALL_PROJECTS"
    MANAGE_PROJECT_MEMBERS = "MANAGE_PROJECT_MEMBERS"
    VIEW_PROJECT_ANALYTICS = "VIEW_PROJECT_ANALYTICS"

    # Task management
    VIEW_TASKS = "VIEW_TASKS"
    VIEW_ALL_TASKS = "VIEW_ALL_TASKS"
    CREATE_TASKS = "CREATE_TASKS"
    EDIT_OWN_TASKS = "EDIT_OWN_TASKS"
    EDIT_ALL_TASKS = "EDIT_ALL_TASKS"
    DELETE_OWN_TASKS = "DELETE_OWN_TASKS"
    DELETE_ALL_TASKS = "DELETE_ALL_TASKS"
    ASSIGN_TASKS = "ASSIGN_TASKS"
    UNASSIGN_TASKS = "UNASSIGN_TASKS"
    COMPLETE_ASSIGNED_TASKS = "COMPLETE_ASSIGNED_TASKS"

    # Team management
    VIEW_TEAM = "VIEW_TEAM"
    MANAGE_TEAM = "MANAGE_TEAM"
    EDIT_TEAM_MEMBERS = "EDIT_TEAM_MEMBERS"
    DELETE_TEAM_MEMBERS = "DELETE_TEAM_MEMBERS"

    # Financial management
    MANAGE_FINANCES = "MANAGE_FINANCES"
    VIEW_FINANCES = "VIEW_FINANCES"
    CREATE_TRANSACTIONS = "CREATE_TRANSACTIONS"
    EDIT_TRANSACTIONS = "EDIT_TRANSACTIONS"
    DELETE_TRANSACTIONS = "DELETE_TRANSACTIONS"

    # Document management
    UPLOAD_DOCUMENTS = "UPLOAD_DOCUMENTS"
    VIEW_DOCUMENTS = "VIEW_DOCUMENTS"
    EDIT_OWN_DOCUMENTS = "EDIT_OWN_DOCUMENTS"
    EDIT_ALL_DOCUMENTS = "EDIT_ALL_DOCUMENTS"
    DELETE_OWN_DOCUMENTS = "DELETE_OWN_DOCUMENTS"
    DELETE_ALL_DOCUMENTS = "DELETE_ALL_DOCUMENTS"
    MANAGE_DOCUMENT_CATEGORIES = "MANAGE_DOCUMENT_CATEGORIES"

    # Reports and analytics
    VIEW_REPORTS = "VIEW_REPORTS"
    VIEW_ANALYTICS = "VIEW_ANALYTICS"
    VIEW_ADMIN_ANALYTICS = "VIEW_ADMIN_ANALYTICS"
    EXPORT_DATA = "EXPORT_DATA"

    # Communication
    SEND_ANNOUNCEMENTS = "SEND_ANNOUNCEMENTS"
    MANAGE_ANNOUNCEMENTS = "MANAGE_ANNOUNCEMENTS"
    VIEW_ALL_MESSAGES = "VIEW_ALL_MESSAGES"

    # System settings
    MANAGE_SETTINGS = "MANAGE_SETTINGS"
    MANAGE_ROLES = "MANAGE_ROLES"
    MANAGE_PERMISSIONS = "MANAGE_PERMISSIONS"
    VIEW_AUDIT_LOGS = "VIEW_AUDIT_LOGS"
    MANAGE_SYSTEM = "MANAGE_SYSTEM"


def _at_least(required: UserRole) -> Callable[[Any], bool]:
    def check(role: Any) -> bool:
        return has_minimum_role(role, required)
    return check


_any_member = _at_least(UserRole.VOLUNTEER)


PERMISSIONS: dict[Permission, Callable[[Any], bool]] = {
    # User management
    Permission.MANAGE_USERS: is_admin,
    Permission.APPROVE_USERS: is_admin,
    Permission.VIEW_ALL_USERS: is_staff_or_above,
    Permission.DELETE_USERS: is_admin,

    # Project management
    Permission.VIEW_PROJECTS: _any_member,
    Permission.VIEW_ALL_PROJECTS: is_staff_or_above,
    Permission.CREATE_PROJECTS: is_staff_or_above,
    Permission.EDIT_OWN_PROJECTS: is_staff_or_above,
    Permission.EDIT_ALL_PROJECTS: is_admin,
    Permission.DELETE_OWN_PROJECTS: is_staff_or_above,
    Permission.DELETE_ALL_PROJECTS: is_admin,
    Permission.MANAGE_PROJECT_MEMBERS: is_staff_or_above,
    Permission.VIEW_PROJECT_ANALYTICS: is_staff_or_above,

    # Task management
    Permission.VIEW_TASKS: _any_member,
    Permission.VIEW_ALL_TASKS: is_staff_or_above,
    Permission.CREATE_TASKS: is_staff_or_above,
    Permission.EDIT_OWN_TASKS: _any_member,
    Permission.EDIT_ALL_TASKS: is_staff_or_above,
    Permission.DELETE_OWN_TASKS: is_staff_or_above,
    Permission.DELETE_ALL_TASKS: is_staff_or_above,
    Permission.ASSIGN_TASKS: is_staff_or_above,
    Permission.UNASSIGN_TASKS: is_staff_or_above,
    Permission.COMPLETE_ASSIGNED_TASKS: _any_member,

    # Team management
    Permission.VIEW_TEAM: is_staff_or_above,
    Permission.MANAGE_TEAM: is_admin,
    Permission.EDIT_TEAM_MEMBERS: is_admin,
    Permission.DELETE_TEAM_MEMBERS: is_admin,

    # Financial management
    Permission.MANAGE_FINANCES: is_admin,
    Permission.VIEW_FINANCES: is_staff_or_above,
    Permission.CREATE_TRANSACTIONS: is_admin,
    Permission.EDIT_TRANSACTIONS: is_admin,
    Permission.DELETE_TRANSACTIONS: is_admin,

    # Document management
    Permission.UPLOAD_DOCUMENTS: _any_member,
    Permission.VIEW_DOCUMENTS: _any_member,
    Permission.EDIT_OWN_DOCUMENTS: _any_member,
    Permission.EDIT_ALL_DOCUMENTS: is_staff_or_above,
    Permission.DELETE_OWN_DOCUMENTS: _any_member,
    Permission.DELETE_ALL_DOCUMENTS: is_staff_or_above,
    Permission.MANAGE_DOCUMENT_CATEGORIES: is_staff_or_above,

    # Reports and analytics
    Permission.VIEW_REPORTS: is_staff_or_above,
    Permission.VIEW_ANALYTICS: is_staff_or_above,
    Permission.VIEW_ADMIN_ANALYTICS: is_admin,
    Permission.EXPORT_DATA: is_staff_or_above,

    # Communication
    Permission.SEND_ANNOUNCEMENTS: is_staff_or_above,
    Permission.MANAGE_ANNOUNCEMENTS: is_staff_or_above,
    Permission.VIEW_ALL_MESSAGES: is_admin,

    # System settings
    Permission.MANAGE_SETTINGS: is_super_admin,
    Permission.MANAGE_ROLES: is_super_admin,
    Permission.MANAGE_PERMISSIONS: is_super_admin,
    Permission.VIEW_AUDIT_LOGS: is_admin,
    Permission.MANAGE_SYSTEM: is_super_admin,
}


def parse_permission(value: Any) -> Permission | None:
    """Coerce a permission name (any case) to Permission, or None if unknown."""
    if isinstance(value, Permission):
        return value
    if not isinstance(value, str):
        return None
    try:
        return Permission(value.upper())
    except ValueError:
        return None


def has_permission(role: Any, permission: Any) -> bool:
    """
    Check whether a role holds a named capability.

    Args:
        role: UserRole or role name
        permission: Permission or permission name

    Returns:
        The bound predicate evaluated on ``role``; False for unknown
        permissions or roles. Account status is not consulted.
    """
    parsed = parse_permission(permission)
    if parsed is None or parse_role(role) is None:
        return False
    return PERMISSIONS[parsed](role)


def permissions_for_role(role: Any) -> list[Permission]:
    """All capabilities granted to ``role``, in table order."""
    if parse_role(role) is None:
        return []
    return [permission for permission, check in PERMISSIONS.items() if check(role)]
