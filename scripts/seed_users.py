"""
Seed script to bootstrap dashboard accounts.

Creates (or promotes) an ACTIVE super admin so somebody can approve the
first sign-ups, and activates every STAFF account that is not active yet.

Usage:
    uv run python -m scripts.seed_users admin@example.org "Admin Name"

Without arguments, SEED_ADMIN_EMAIL and SEED_ADMIN_NAME are used.
"""
import asyncio
import os
import sys
from datetime import datetime, timezone
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db, init_db
from app.features.access.roles import UserRole, UserStatus
from app.features.users.models import User
from app.utils import get_logger


log = get_logger(__name__)


async def ensure_super_admin(db: AsyncSession, email: str, name: str) -> User:
    """Create the account as SUPER_ADMIN/ACTIVE, or promote an existing one."""
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalars().first()

    if user is None:
        user = User(
            email=email,
            name=name,
            role=UserRole.SUPER_ADMIN,
            status=UserStatus.ACTIVE,
            approved_at=datetime.now(timezone.utc),
        )
        db.add(user)
        log.info("Created super admin %s", email)
    else:
        user.role = UserRole.SUPER_ADMIN
        user.status = UserStatus.ACTIVE
        if user.approved_at is None:
            user.approved_at = datetime.now(timezone.utc)
        log.info("Promoted existing user %s to super admin", email)

    await db.commit()
    await db.refresh(user)
    return user


async def activate_staff(db: AsyncSession) -> int:
    """Set every non-active STAFF account ACTIVE. Returns the number updated."""
    result = await db.execute(
        update(User)
        .where(User.role == UserRole.STAFF, User.status != UserStatus.ACTIVE)
        .values(status=UserStatus.ACTIVE, approved_at=datetime.now(timezone.utc))
    )
    await db.commit()
    log.info("Updated %s STAFF user(s) to ACTIVE", result.rowcount)
    return result.rowcount


async def main(argv: list[str]):
    email = argv[0] if argv else os.environ.get("SEED_ADMIN_EMAIL")
    name = argv[1] if len(argv) > 1 else os.environ.get("SEED_ADMIN_NAME", "Super Admin")
    if not email:
        log.error("No admin email given (argument or SEED_ADMIN_EMAIL)")
        sys.exit(1)

    log.info("Initializing database tables...")
    await init_db()

    async for db in get_db():
        try:
            await ensure_super_admin(db, email, name)
            await activate_staff(db)
            log.info("User seeding completed successfully!")
        except Exception as e:
            log.error("Error seeding users: %s", e, exc_info=True)
            await db.rollback()
            raise

        break  # Only use first session


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1:]))
