"""
Actor snapshot passed into every decision.

The snapshot carries the moment its role and status were read
(``refreshed_at``) so the staleness window is visible at the call site.
The engine never refreshes it; ``dependencies.get_current_actor`` does.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional

from app.features.access.roles import (
    UserRole,
    UserStatus,
    get_redirect_url_for_status,
    parse_role,
    parse_status,
)
from app.utils import as_utc


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_datetime(value: Any) -> Optional[datetime]:
    """
    Accept epoch seconds or an aware/naive datetime; naive means UTC.

    Out-of-range or non-finite timestamps give None, which makes the
    snapshot stale.
    """
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, ValueError, OSError):
            return None
    return None


@dataclass(frozen=True)
class Actor:
    """Who is asking. Any field may be missing; decisions then fail closed."""
    id: Optional[str]
    role: Optional[UserRole]
    status: Optional[UserStatus]
    refreshed_at: Optional[datetime] = None

    @classmethod
    def build(
        cls,
        id: Any,
        role: Any,
        status: Any,
        refreshed_at: Any = None,
    ) -> "Actor":
        """Build a snapshot from loosely typed values without raising."""
        return cls(
            id=str(id) if id else None,
            role=parse_role(role),
            status=parse_status(status),
            refreshed_at=_as_datetime(refreshed_at),
        )

    @classmethod
    def from_claims(cls, claims: Mapping[str, Any]) -> "Actor":
        """
        Build a snapshot from session token claims.

        ``refreshed_at`` falls back to ``iat`` when the issuer did not stamp
        an explicit refresh time.
        """
        return cls.build(
            id=claims.get("sub"),
            role=claims.get("role"),
            status=claims.get("status"),
            refreshed_at=claims.get("refreshed_at", claims.get("iat")),
        )

    @classmethod
    def from_user(cls, user: Any, refreshed_at: Optional[datetime] = None) -> "Actor":
        """Fresh snapshot from a persisted user row."""
        return cls.build(
            id=getattr(user, "id", None),
            role=getattr(user, "role", None),
            status=getattr(user, "status", None),
            refreshed_at=refreshed_at or utcnow(),
        )

    @property
    def is_complete(self) -> bool:
        return self.id is not None and self.role is not None and self.status is not None

    def age(self, now: Optional[datetime] = None) -> Optional[timedelta]:
        if self.refreshed_at is None:
            return None
        return (now or utcnow()) - self.refreshed_at

    def is_stale(self, max_age: timedelta, now: Optional[datetime] = None) -> bool:
        """A snapshot without a refresh time is always stale."""
        age = self.age(now)
        return age is None or age > max_age


@dataclass(frozen=True)
class SessionValidation:
    is_valid: bool
    reason: str
    redirect_to: Optional[str] = None


def validate_user_session(actor: Optional[Actor]) -> SessionValidation:
    """
    Decide whether a session may enter the dashboard, and where to send it
    otherwise.
    """
    if actor is None or actor.id is None:
        return SessionValidation(False, "No valid session found", "/auth/signin")

    status = actor.status
    if status is UserStatus.ACTIVE:
        return SessionValidation(True, "Valid active user")
    if status is UserStatus.REJECTED:
        reason = "User account rejected"
    elif status in (UserStatus.SUSPENDED, UserStatus.INACTIVE):
        reason = "User account suspended or inactive"
    elif status is UserStatus.PENDING:
        reason = "User pending approval"
    else:
        reason = "Invalid user status"
    return SessionValidation(False, reason, get_redirect_url_for_status(status))
