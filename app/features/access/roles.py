"""
Role hierarchy and account status gate.

Roles are totally ordered by level. Statuses are a lifecycle value; only
ACTIVE lets an actor through. Every predicate here accepts enum members or
raw strings (token claims, database rows) and resolves anything it does not
recognise to False instead of raising.
"""
import enum
from typing import Any, Optional


class UserRole(str, enum.Enum):
    """Dashboard roles, lowest privilege first."""
    VOLUNTEER = "VOLUNTEER"
    STAFF = "STAFF"
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"


class UserStatus(str, enum.Enum):
    """Account lifecycle status."""
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    INACTIVE = "INACTIVE"
    REJECTED = "REJECTED"


PERMISSION_LEVELS: dict[UserRole, int] = {
    UserRole.VOLUNTEER: 1,
    UserRole.STAFF: 2,
    UserRole.ADMIN: 3,
    UserRole.SUPER_ADMIN: 4,
}

BLOCKED_STATUSES = frozenset({UserStatus.SUSPENDED, UserStatus.REJECTED, UserStatus.INACTIVE})


def parse_role(value: Any) -> Optional[UserRole]:
    """Coerce a role claim to UserRole, or None if it is not a known role."""
    if isinstance(value, UserRole):
        return value
    if not isinstance(value, str):
        return None
    try:
        return UserRole(value.upper())
    except ValueError:
        return None


def parse_status(value: Any) -> Optional[UserStatus]:
    """Coerce a status claim to UserStatus, or None if it is not a known status."""
    if isinstance(value, UserStatus):
        return value
    if not isinstance(value, str):
        return None
    try:
        return UserStatus(value.upper())
    except ValueError:
        return None


# ============================================================================
# Role Hierarchy
# ============================================================================

def role_level(role: Any) -> int:
    """Numeric level of a role; 0 for unknown roles."""
    parsed = parse_role(role)
    return PERMISSION_LEVELS[parsed] if parsed is not None else 0


def has_minimum_role(role: Any, required: Any) -> bool:
    """
    Check whether ``role`` is at least as privileged as ``required``.

    Unknown or missing values on either side resolve to False.
    """
    user_role = parse_role(role)
    required_role = parse_role(required)
    if user_role is None or required_role is None:
        return False
    return PERMISSION_LEVELS[user_role] >= PERMISSION_LEVELS[required_role]


def is_staff_or_above(role: Any) -> bool:
    return has_minimum_role(role, UserRole.STAFF)


def is_admin(role: Any) -> bool:
    """ADMIN or SUPER_ADMIN."""
    return has_minimum_role(role, UserRole.ADMIN)


def is_super_admin(role: Any) -> bool:
    return has_minimum_role(role, UserRole.SUPER_ADMIN)


# ============================================================================
# Account Status Gate
# ============================================================================

def has_active_status(status: Any) -> bool:
    """The only status gate that takes part in permission decisions."""
    return parse_status(status) is UserStatus.ACTIVE


def is_pending_approval(status: Any) -> bool:
    return parse_status(status) is UserStatus.PENDING


def is_user_blocked(status: Any) -> bool:
    """Suspended, rejected or inactive. Informational; used to pick a redirect."""
    return parse_status(status) in BLOCKED_STATUSES


def get_redirect_url_for_status(status: Any) -> str:
    """
    Page a user with the given status should land on.

    Returns:
        "/dashboard" for active users, a holding page for pending or blocked
        users and the sign-in page for anything unrecognised.
    """
    parsed = parse_status(status)
    if parsed is UserStatus.ACTIVE:
        return "/dashboard"
    if parsed is UserStatus.PENDING:
        return "/pending-approval"
    if parsed is UserStatus.REJECTED:
        return "/auth/rejected"
    if parsed in (UserStatus.SUSPENDED, UserStatus.INACTIVE):
        return "/auth/suspended"
    return "/auth/signin"
