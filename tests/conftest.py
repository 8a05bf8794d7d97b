from __future__ import annotations

import asyncio
import os
import tempfile
import time
from pathlib import Path
from typing import Generator

import jwt
import pytest

# Config is read at import time, so the test database must be set first.
_DB_DIR = tempfile.mkdtemp(prefix="volunteer-dashboard-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{Path(_DB_DIR) / 'test.db'}"
os.environ.setdefault("AUTH_SECRET", "test-secret")

from fastapi.testclient import TestClient  # noqa: E402

from app.core import config  # noqa: E402
from app.core.database.engine import AsyncSessionLocal, drop_db  # noqa: E402
from app.features.access.roles import UserRole, UserStatus  # noqa: E402
from app.features.users.models import User  # noqa: E402


def make_jwt(
    sub: str,
    role: str | None = None,
    status: str | None = None,
    refreshed_at: int | None = None,
    secret: str | None = None,
    exp: int | None = None,
) -> str:
    now = int(time.time())
    claims: dict = {"sub": sub, "iat": now, "exp": exp or now + 3600}
    if role is not None:
        claims["role"] = role
    if status is not None:
        claims["status"] = status
    if refreshed_at is not None:
        claims["refreshed_at"] = refreshed_at
    return jwt.encode(claims, secret or config.AUTH_SECRET, algorithm=config.AUTH_ALGORITHM)


def auth_header(user: User, role: str | None = None, status: str | None = None, **kwargs) -> dict[str, str]:
    """Bearer header whose snapshot matches ``user`` unless overridden."""
    token = make_jwt(
        sub=user.id,
        role=role or user.role.value,
        status=status or user.status.value,
        **kwargs,
    )
    return {"Authorization": f"Bearer {token}"}


async def _create_user(email: str, name: str, role: UserRole, status: UserStatus) -> User:
    async with AsyncSessionLocal() as session:
        user = User(email=email, name=name, role=role, status=status)
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user


@pytest.fixture()
def client() -> Generator[TestClient, None, None]:
    """Fresh schema per test; startup creates the tables."""
    from app.core.rate_limit import limiter
    from app.main import app

    limiter.reset()
    asyncio.run(drop_db())
    with TestClient(app) as c:
        yield c
    asyncio.run(drop_db())


@pytest.fixture()
def make_user(client: TestClient):
    counter = {"n": 0}

    def _make(role: UserRole = UserRole.VOLUNTEER, status: UserStatus = UserStatus.ACTIVE, name: str | None = None) -> User:
        counter["n"] += 1
        label = name or f"{role.value.lower()}-{counter['n']}"
        return asyncio.run(_create_user(f"{label}@example.org", label, role, status))

    return _make


@pytest.fixture()
def db_fetch():
    """Run a coroutine against a fresh session and return its result."""
    def _fetch(fn):
        async def _run():
            async with AsyncSessionLocal() as session:
                return await fn(session)
        return asyncio.run(_run())

    return _fetch

