from __future__ import annotations

from app.features.access.roles import UserRole, UserStatus

from conftest import auth_header


def _create_project(client, owner, **payload):
    payload.setdefault("name", "Community garden")
    r = client.post("/projects/", json=payload, headers=auth_header(owner))
    assert r.status_code == 201, r.text
    return r.json()


def test_volunteer_cannot_create_project(client, make_user):
    volunteer = make_user(UserRole.VOLUNTEER)
    r = client.post("/projects/", json={"name": "Nope"}, headers=auth_header(volunteer))
    assert r.status_code == 403
    assert r.json()["detail"] == "Permission denied: CREATE_PROJECTS"


def test_creator_owns_project(client, make_user):
    staff = make_user(UserRole.STAFF)
    member = make_user(UserRole.VOLUNTEER)
    project = _create_project(client, staff, member_ids=[member.id])

    assert project["owner_id"] == staff.id
    assert [m["id"] for m in project["members"]] == [member.id]

    r = client.get(f"/projects/{project['id']}/permissions", headers=auth_header(staff))
    assert r.json() == {
        "is_owner": True, "can_view": True, "can_edit": True, "can_delete": True, "can_manage_members": True,
    }


def test_unknown_member_is_rejected(client, make_user):
    staff = make_user(UserRole.STAFF)
    r = client.post("/projects/", json={"name": "X", "member_ids": ["missing"]}, headers=auth_header(staff))
    assert r.status_code == 400


def test_members_see_project_and_outsiders_do_not(client, make_user):
    staff = make_user(UserRole.STAFF)
    member = make_user(UserRole.VOLUNTEER)
    outsider = make_user(UserRole.VOLUNTEER)
    project = _create_project(client, staff, member_ids=[member.id])

    r = client.get("/projects/", headers=auth_header(member))
    assert [p["id"] for p in r.json()] == [project["id"]]
    assert client.get(f"/projects/{project['id']}", headers=auth_header(member)).status_code == 200

    assert client.get("/projects/", headers=auth_header(outsider)).json() == []
    r = client.get(f"/projects/{project['id']}", headers=auth_header(outsider))
    assert r.status_code == 403
    assert r.json()["detail"] == "You do not have permission to view this project"


def test_member_cannot_edit(client, make_user):
    staff = make_user(UserRole.STAFF)
    member = make_user(UserRole.VOLUNTEER)
    project = _create_project(client, staff, member_ids=[member.id])

    r = client.patch(f"/projects/{project['id']}", json={"name": "Mine now"}, headers=auth_header(member))
    assert r.status_code == 403


def test_owner_updates_project_and_members(client, make_user):
    staff = make_user(UserRole.STAFF)
    first = make_user(UserRole.VOLUNTEER)
    second = make_user(UserRole.VOLUNTEER)
    project = _create_project(client, staff, member_ids=[first.id])

    r = client.patch(
        f"/projects/{project['id']}",
        json={"status": "ACTIVE", "member_ids": [second.id]},
        headers=auth_header(staff),
    )
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "ACTIVE"
    assert [m["id"] for m in r.json()["members"]] == [second.id]


def test_other_staff_can_view_but_not_edit(client, make_user):
    owner = make_user(UserRole.STAFF)
    other = make_user(UserRole.STAFF)
    project = _create_project(client, owner)

    assert client.get(f"/projects/{project['id']}", headers=auth_header(other)).status_code == 200
    r = client.patch(f"/projects/{project['id']}", json={"name": "Hijack"}, headers=auth_header(other))
    assert r.status_code == 403
    assert client.delete(f"/projects/{project['id']}", headers=auth_header(other)).status_code == 403


def test_admin_edits_any_project(client, make_user):
    owner = make_user(UserRole.STAFF)
    admin = make_user(UserRole.ADMIN)
    project = _create_project(client, owner)

    r = client.patch(f"/projects/{project['id']}", json={"name": "Renamed"}, headers=auth_header(admin))
    assert r.status_code == 200
    assert r.json()["name"] == "Renamed"


def test_end_date_before_start_date_is_rejected(client, make_user):
    staff = make_user(UserRole.STAFF)
    r = client.post(
        "/projects/",
        json={"name": "Backwards", "start_date": "2025-02-01T00:00:00Z", "end_date": "2025-01-01T00:00:00Z"},
        headers=auth_header(staff),
    )
    assert r.status_code == 400


def test_delete_is_audited(client, make_user):
    owner = make_user(UserRole.STAFF)
    admin = make_user(UserRole.ADMIN)
    project = _create_project(client, owner)

    r = client.delete(f"/projects/{project['id']}", headers=auth_header(owner))
    assert r.status_code == 204
    assert client.get(f"/projects/{project['id']}", headers=auth_header(owner)).status_code == 404

    r = client.get("/audit-logs/", params={"resource_type": "project"}, headers=auth_header(admin))
    assert r.status_code == 200
    entries = r.json()["items"]
    assert len(entries) == 1
    assert entries[0]["action"] == "delete"
    assert entries[0]["resource_id"] == project["id"]
    assert entries[0]["user_id"] == owner.id


def test_suspended_owner_gets_all_false_decision(client, make_user):
    owner = make_user(UserRole.STAFF)
    project = _create_project(client, owner)
    suspended = make_user(UserRole.SUPER_ADMIN, UserStatus.SUSPENDED)

    r = client.get(f"/projects/{project['id']}/permissions", headers=auth_header(suspended))
    assert r.status_code == 200
    assert r.json() == {
        "is_owner": False, "can_view": False, "can_edit": False, "can_delete": False, "can_manage_members": False,
    }


def test_patch_end_date_after_stored_start_date(client, make_user):
    staff = make_user(UserRole.STAFF)
    project = _create_project(client, staff, start_date="2025-01-01T00:00:00Z")

    r = client.patch(
        f"/projects/{project['id']}", json={"end_date": "2025-03-01T00:00:00Z"}, headers=auth_header(staff)
    )
    assert r.status_code == 200, r.text
    assert r.json()["end_date"].startswith("2025-03-01")

    r = client.patch(
        f"/projects/{project['id']}", json={"end_date": "2024-12-01T00:00:00Z"}, headers=auth_header(staff)
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "end_date must not be before start_date"


def test_mutations_are_rate_limited(client, make_user, monkeypatch):
    from app.core import config

    monkeypatch.setattr(config, "MUTATION_RATE_LIMIT", "2/minute")
    staff = make_user(UserRole.STAFF)
    headers = auth_header(staff)

    for name in ("One", "Two"):
        assert client.post("/projects/", json={"name": name}, headers=headers).status_code == 201

    r = client.post("/projects/", json={"name": "Three"}, headers=headers)
    assert r.status_code == 429
    assert r.json() == {"error": "You are going too fast"}

    # Reads are not limited
    assert client.get("/projects/", headers=headers).status_code == 200
