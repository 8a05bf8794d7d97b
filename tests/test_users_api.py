from __future__ import annotations

from sqlalchemy import select

from app.features.access.roles import UserRole, UserStatus
from app.features.audit.models import AuditLog

from conftest import auth_header


def test_admin_approves_pending_user(client, make_user, db_fetch):
    admin = make_user(UserRole.ADMIN)
    pending = make_user(UserRole.VOLUNTEER, UserStatus.PENDING)

    r = client.get("/users/pending", headers=auth_header(admin))
    assert [u["id"] for u in r.json()] == [pending.id]

    r = client.patch(f"/users/{pending.id}/status", json={"status": "ACTIVE"}, headers=auth_header(admin))
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "ACTIVE"
    assert r.json()["approved_at"] is not None

    async def _logs(session):
        result = await session.execute(select(AuditLog).where(AuditLog.resource_id == pending.id))
        return result.scalars().all()

    logs = db_fetch(_logs)
    assert len(logs) == 1
    assert logs[0].action == "update_status"
    assert logs[0].details == {"from": "PENDING", "to": "ACTIVE"}


def test_staff_cannot_approve(client, make_user):
    staff = make_user(UserRole.STAFF)
    pending = make_user(UserRole.VOLUNTEER, UserStatus.PENDING)
    r = client.patch(f"/users/{pending.id}/status", json={"status": "ACTIVE"}, headers=auth_header(staff))
    assert r.status_code == 403
    assert r.json()["detail"] == "Permission denied: APPROVE_USERS"


def test_cannot_change_own_status(client, make_user):
    admin = make_user(UserRole.ADMIN)
    r = client.patch(f"/users/{admin.id}/status", json={"status": "SUSPENDED"}, headers=auth_header(admin))
    assert r.status_code == 400


def test_only_super_admin_changes_admin_accounts(client, make_user):
    admin = make_user(UserRole.ADMIN)
    other_admin = make_user(UserRole.ADMIN)
    root = make_user(UserRole.SUPER_ADMIN)

    r = client.patch(f"/users/{other_admin.id}/status", json={"status": "SUSPENDED"}, headers=auth_header(admin))
    assert r.status_code == 403

    r = client.patch(f"/users/{other_admin.id}/status", json={"status": "SUSPENDED"}, headers=auth_header(root))
    assert r.status_code == 200
    assert r.json()["status"] == "SUSPENDED"


def test_suspension_takes_effect_on_mutations_immediately(client, make_user):
    admin = make_user(UserRole.ADMIN)
    staff = make_user(UserRole.STAFF)
    stale_headers = auth_header(staff)

    r = client.patch(f"/users/{staff.id}/status", json={"status": "SUSPENDED"}, headers=auth_header(admin))
    assert r.status_code == 200

    r = client.post("/projects/", json={"name": "After suspension"}, headers=stale_headers)
    assert r.status_code == 403


def test_role_changes_need_super_admin(client, make_user):
    admin = make_user(UserRole.ADMIN)
    root = make_user(UserRole.SUPER_ADMIN)
    volunteer = make_user(UserRole.VOLUNTEER)

    r = client.patch(f"/users/{volunteer.id}/role", json={"role": "STAFF"}, headers=auth_header(admin))
    assert r.status_code == 403

    r = client.patch(f"/users/{volunteer.id}/role", json={"role": "STAFF"}, headers=auth_header(root))
    assert r.status_code == 200
    assert r.json()["role"] == "STAFF"

    r = client.patch(f"/users/{root.id}/role", json={"role": "VOLUNTEER"}, headers=auth_header(root))
    assert r.status_code == 400


def test_invalid_status_is_a_validation_error(client, make_user):
    admin = make_user(UserRole.ADMIN)
    volunteer = make_user(UserRole.VOLUNTEER)
    r = client.patch(f"/users/{volunteer.id}/status", json={"status": "DELETED"}, headers=auth_header(admin))
    assert r.status_code == 400
    assert "status" in r.json()


def test_status_endpoint_reports_changes(client, make_user):
    user = make_user(UserRole.VOLUNTEER, UserStatus.ACTIVE)
    r = client.get("/users/me/status", headers=auth_header(user, status="PENDING"))
    assert r.status_code == 200
    assert r.json() == {
        "status": "ACTIVE",
        "role": "VOLUNTEER",
        "has_status_changed": True,
        "has_role_changed": False,
        "redirect_to": "/dashboard",
    }


def test_user_listing_needs_staff(client, make_user):
    volunteer = make_user(UserRole.VOLUNTEER)
    staff = make_user(UserRole.STAFF)
    make_user(UserRole.VOLUNTEER, UserStatus.PENDING)

    assert client.get("/users/", headers=auth_header(volunteer)).status_code == 403
    r = client.get("/users/", headers=auth_header(staff))
    assert r.status_code == 200
    assert {u["id"] for u in r.json()} == {volunteer.id, staff.id}


def test_update_own_profile(client, make_user):
    user = make_user(UserRole.VOLUNTEER, UserStatus.PENDING)
    r = client.patch("/users/me", json={"job_title": "Driver"}, headers=auth_header(user))
    assert r.status_code == 200
    assert r.json()["job_title"] == "Driver"
    assert r.json()["status"] == "PENDING"


def test_admin_lists_accounts_in_every_status(client, make_user):
    admin = make_user(UserRole.ADMIN)
    staff = make_user(UserRole.STAFF)
    suspended = make_user(UserRole.VOLUNTEER, UserStatus.SUSPENDED)
    pending = make_user(UserRole.VOLUNTEER, UserStatus.PENDING)

    r = client.get("/users/admin", headers=auth_header(admin))
    assert r.status_code == 200
    ids = [u["id"] for u in r.json()]
    assert set(ids) == {admin.id, staff.id, suspended.id, pending.id}
    assert ids[0] == pending.id

    r = client.get("/users/admin", params={"user_status": "SUSPENDED"}, headers=auth_header(admin))
    assert [u["id"] for u in r.json()] == [suspended.id]

    assert client.get("/users/admin", headers=auth_header(staff)).status_code == 403


def test_suspended_account_can_be_reactivated(client, make_user):
    admin = make_user(UserRole.ADMIN)
    suspended = make_user(UserRole.VOLUNTEER, UserStatus.SUSPENDED)

    r = client.patch(f"/users/{suspended.id}/status", json={"status": "ACTIVE"}, headers=auth_header(admin))
    assert r.status_code == 200
    assert client.get("/projects/", headers=auth_header(suspended, status="ACTIVE")).status_code == 200


def test_admin_creates_active_account(client, make_user):
    admin = make_user(UserRole.ADMIN)

    r = client.post(
        "/users/",
        json={"email": "new.volunteer@example.org", "name": "New Volunteer", "role": "STAFF"},
        headers=auth_header(admin),
    )
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["status"] == "ACTIVE"
    assert body["role"] == "STAFF"
    assert body["approved_at"] is not None

    r = client.post(
        "/users/",
        json={"email": "new.volunteer@example.org", "name": "Again"},
        headers=auth_header(admin),
    )
    assert r.status_code == 409


def test_only_super_admin_creates_admin_accounts(client, make_user):
    admin = make_user(UserRole.ADMIN)
    root = make_user(UserRole.SUPER_ADMIN)
    staff = make_user(UserRole.STAFF)
    payload = {"email": "second.admin@example.org", "name": "Second Admin", "role": "ADMIN"}

    assert client.post("/users/", json=payload, headers=auth_header(staff)).status_code == 403
    r = client.post("/users/", json=payload, headers=auth_header(admin))
    assert r.status_code == 403
    assert r.json()["detail"] == "Only super admins can create admin accounts"
    assert client.post("/users/", json=payload, headers=auth_header(root)).status_code == 201


def test_admin_deletes_volunteer_and_keeps_their_work(client, make_user, db_fetch):
    admin = make_user(UserRole.ADMIN)
    staff = make_user(UserRole.STAFF)
    r = client.post("/projects/", json={"name": "Orphaned"}, headers=auth_header(staff))
    project_id = r.json()["id"]

    r = client.delete(f"/users/{staff.id}", headers=auth_header(admin))
    assert r.status_code == 204
    assert client.get(f"/users/{staff.id}", headers=auth_header(admin)).status_code == 404

    r = client.get(f"/projects/{project_id}", headers=auth_header(admin))
    assert r.status_code == 200
    assert r.json()["owner_id"] is None

    async def _logs(session):
        result = await session.execute(
            select(AuditLog).where(AuditLog.resource_type == "user", AuditLog.action == "delete")
        )
        return result.scalars().all()

    logs = db_fetch(_logs)
    assert [entry.resource_id for entry in logs] == [staff.id]


def test_delete_protections(client, make_user):
    admin = make_user(UserRole.ADMIN)
    other_admin = make_user(UserRole.ADMIN)
    root = make_user(UserRole.SUPER_ADMIN)
    staff = make_user(UserRole.STAFF)
    volunteer = make_user(UserRole.VOLUNTEER)

    assert client.delete(f"/users/{volunteer.id}", headers=auth_header(staff)).status_code == 403

    r = client.delete(f"/users/{admin.id}", headers=auth_header(admin))
    assert r.status_code == 400
    assert r.json()["detail"] == "You cannot delete your own account"

    r = client.delete(f"/users/{other_admin.id}", headers=auth_header(admin))
    assert r.status_code == 403
    assert r.json()["detail"] == "Only super admins can delete other admin accounts"

    assert client.delete(f"/users/{other_admin.id}", headers=auth_header(root)).status_code == 204
