"""
Route permission map and dashboard navigation.

Whole pages are gated by a static path -> minimum role table. Paths missing
from the table only need an active account, unless ``strict`` is set, in
which case anything under an admin prefix without its own entry is denied.
"""
from dataclasses import dataclass, field
from typing import Any, Optional

from app.features.access.permissions import Permission, has_permission
from app.features.access.roles import (
    UserRole,
    has_active_status,
    has_minimum_role,
    is_admin,
    parse_role,
)


ROUTE_PERMISSIONS: dict[str, UserRole] = {
    # Admin routes
    "/admin": UserRole.ADMIN,
    "/admin/users": UserRole.ADMIN,
    "/admin/users/approve": UserRole.ADMIN,
    "/admin/users/manage": UserRole.ADMIN,
    "/admin/settings": UserRole.SUPER_ADMIN,
    "/admin/reports": UserRole.ADMIN,
    "/admin/finance": UserRole.ADMIN,
    "/admin/analytics": UserRole.ADMIN,

    # Dashboard routes
    "/dashboard/projects": UserRole.VOLUNTEER,
    "/dashboard/projects/create": UserRole.STAFF,
    "/dashboard/tasks": UserRole.VOLUNTEER,
    "/dashboard/tasks/create": UserRole.STAFF,
    "/dashboard/team": UserRole.STAFF,
    "/dashboard/team/manage": UserRole.ADMIN,
    "/dashboard/reports": UserRole.STAFF,
    "/dashboard/analytics": UserRole.STAFF,
    "/dashboard/finance": UserRole.STAFF,
    "/dashboard/documents": UserRole.VOLUNTEER,
    "/dashboard/settings": UserRole.VOLUNTEER,

    # Profile and basic access
    "/dashboard": UserRole.VOLUNTEER,
    "/dashboard/profile": UserRole.VOLUNTEER,
    "/dashboard/checkin": UserRole.VOLUNTEER,
    "/dashboard/pending": UserRole.VOLUNTEER,
}

ADMIN_PREFIXES = ("/admin", "/super-admin")


def normalize_path(path: str) -> str:
    path = path.split("?", 1)[0].split("#", 1)[0]
    if len(path) > 1:
        path = path.rstrip("/") or "/"
    return path


def _under_prefix(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix + "/")


def required_role_for_route(path: str) -> Optional[UserRole]:
    return ROUTE_PERMISSIONS.get(normalize_path(path))


def can_access_route(role: Any, status: Any, path: str, strict: bool = False) -> bool:
    """
    Check whether an actor may open a page.

    Args:
        role: Actor role
        status: Actor account status
        path: Page path, e.g. "/dashboard/team"
        strict: Deny unlisted paths under an admin prefix

    Returns:
        Listed path: active status and the minimum role. Unlisted path:
        active status only (or False in strict mode under an admin prefix).
    """
    if not has_active_status(status):
        return False

    path = normalize_path(path)
    required = ROUTE_PERMISSIONS.get(path)
    if required is not None:
        return has_minimum_role(role, required)

    if strict and any(_under_prefix(path, prefix) for prefix in ADMIN_PREFIXES):
        return False
    return True


# ============================================================================
# Navigation
# ============================================================================

@dataclass(frozen=True)
class NavigationItem:
    title: str
    path: str
    visible: bool
    icon: Optional[str] = None
    children: tuple["NavigationItem", ...] = field(default_factory=tuple)


def get_navigation_items(role: Any, status: Any) -> list[NavigationItem]:
    """
    Menu entries for an actor, in display order.

    Only visible top-level entries are returned. Children of
    "Administration" are gated one by one and keep their own ``visible``
    flag, so an ADMIN sees the section but not the "Settings" entry.
    Inactive or unknown actors get no entries.
    """
    if not has_active_status(status) or parse_role(role) is None:
        return []

    def allowed(permission: Permission) -> bool:
        return has_permission(role, permission)

    items = [
        NavigationItem("Dashboard", "/dashboard", True, "LayoutDashboard"),
        NavigationItem("Projects", "/dashboard/projects", allowed(Permission.VIEW_PROJECTS), "FolderKanban"),
        NavigationItem("Tasks", "/dashboard/tasks", allowed(Permission.VIEW_TASKS), "ClipboardList"),
        NavigationItem("Team Management", "/dashboard/team", allowed(Permission.VIEW_TEAM), "Users"),
        NavigationItem("Documents", "/dashboard/documents", allowed(Permission.VIEW_DOCUMENTS), "FileText"),
        NavigationItem("Reports", "/dashboard/reports", allowed(Permission.VIEW_REPORTS), "BarChart"),
        NavigationItem("Finance", "/dashboard/finance", allowed(Permission.VIEW_FINANCES), "Wallet"),
        NavigationItem(
            "Administration",
            "/admin",
            is_admin(role),
            "Settings",
            children=(
                NavigationItem("User Management", "/admin/users", allowed(Permission.MANAGE_USERS)),
                NavigationItem("System Reports", "/admin/reports", allowed(Permission.VIEW_ADMIN_ANALYTICS)),
                NavigationItem("Settings", "/admin/settings", allowed(Permission.MANAGE_SETTINGS)),
            ),
        ),
    ]
    return [item for item in items if item.visible]
