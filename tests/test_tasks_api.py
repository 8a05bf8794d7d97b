from __future__ import annotations

from app.features.access.roles import UserRole

from conftest import auth_header


def _create_task(client, creator, **payload):
    payload.setdefault("title", "Pack food parcels")
    r = client.post("/tasks/", json=payload, headers=auth_header(creator))
    assert r.status_code == 201, r.text
    return r.json()


def test_volunteer_cannot_create_task(client, make_user):
    volunteer = make_user(UserRole.VOLUNTEER)
    r = client.post("/tasks/", json={"title": "Nope"}, headers=auth_header(volunteer))
    assert r.status_code == 403
    assert r.json()["detail"] == "Permission denied: CREATE_TASKS"


def test_assignee_edits_but_cannot_delete(client, make_user):
    staff = make_user(UserRole.STAFF)
    volunteer = make_user(UserRole.VOLUNTEER)
    task = _create_task(client, staff, assignee_ids=[volunteer.id])

    r = client.get(f"/tasks/{task['id']}/permissions", headers=auth_header(volunteer))
    assert r.json() == {
        "is_owner": False, "can_view": True, "can_edit": True, "can_delete": False, "can_manage_members": None,
    }

    r = client.patch(f"/tasks/{task['id']}", json={"status": "IN_PROGRESS"}, headers=auth_header(volunteer))
    assert r.status_code == 200
    assert r.json()["status"] == "IN_PROGRESS"

    r = client.delete(f"/tasks/{task['id']}", headers=auth_header(volunteer))
    assert r.status_code == 403
    assert r.json()["detail"] == "You do not have permission to delete this task"


def test_completion_is_stamped_and_cleared(client, make_user):
    staff = make_user(UserRole.STAFF)
    task = _create_task(client, staff)
    assert task["completed_at"] is None

    r = client.patch(f"/tasks/{task['id']}", json={"status": "COMPLETED"}, headers=auth_header(staff))
    assert r.json()["completed_at"] is not None

    r = client.patch(f"/tasks/{task['id']}", json={"status": "TODO"}, headers=auth_header(staff))
    assert r.json()["completed_at"] is None


def test_unrelated_volunteer_sees_nothing(client, make_user):
    staff = make_user(UserRole.STAFF)
    assignee = make_user(UserRole.VOLUNTEER)
    outsider = make_user(UserRole.VOLUNTEER)
    task = _create_task(client, staff, assignee_ids=[assignee.id])

    assert [t["id"] for t in client.get("/tasks/", headers=auth_header(assignee)).json()] == [task["id"]]
    assert client.get("/tasks/", headers=auth_header(outsider)).json() == []
    assert client.get(f"/tasks/{task['id']}", headers=auth_header(outsider)).status_code == 403
    r = client.patch(f"/tasks/{task['id']}", json={"title": "Mine"}, headers=auth_header(outsider))
    assert r.status_code == 403


def test_assignee_cannot_reassign(client, make_user):
    staff = make_user(UserRole.STAFF)
    volunteer = make_user(UserRole.VOLUNTEER)
    friend = make_user(UserRole.VOLUNTEER)
    task = _create_task(client, staff, assignee_ids=[volunteer.id])

    r = client.patch(
        f"/tasks/{task['id']}",
        json={"assignee_ids": [volunteer.id, friend.id]},
        headers=auth_header(volunteer),
    )
    assert r.status_code == 403
    assert r.json()["detail"] == "Permission denied: ASSIGN_TASKS"


def test_staff_reassigns(client, make_user):
    staff = make_user(UserRole.STAFF)
    first = make_user(UserRole.VOLUNTEER)
    second = make_user(UserRole.VOLUNTEER)
    task = _create_task(client, staff, assignee_ids=[first.id])

    r = client.patch(f"/tasks/{task['id']}", json={"assignee_ids": [second.id]}, headers=auth_header(staff))
    assert r.status_code == 200
    assert [a["id"] for a in r.json()["assignees"]] == [second.id]


def test_project_owner_views_tasks_in_project(client, make_user):
    owner = make_user(UserRole.STAFF)
    other_staff = make_user(UserRole.STAFF)
    r = client.post("/projects/", json={"name": "Shelter"}, headers=auth_header(owner))
    project_id = r.json()["id"]

    task = _create_task(client, other_staff, project_id=project_id)
    assert task["project_id"] == project_id

    r = client.get("/tasks/", params={"project_id": project_id}, headers=auth_header(owner))
    assert [t["id"] for t in r.json()] == [task["id"]]


def test_task_for_unknown_project_is_rejected(client, make_user):
    staff = make_user(UserRole.STAFF)
    r = client.post("/tasks/", json={"title": "Orphan", "project_id": "missing"}, headers=auth_header(staff))
    assert r.status_code == 400


def test_creator_deletes_own_task(client, make_user):
    staff = make_user(UserRole.STAFF)
    task = _create_task(client, staff)

    assert client.delete(f"/tasks/{task['id']}", headers=auth_header(staff)).status_code == 204
    assert client.get(f"/tasks/{task['id']}", headers=auth_header(staff)).status_code == 404


def test_super_admin_decides_universally(client, make_user):
    staff = make_user(UserRole.STAFF)
    root = make_user(UserRole.SUPER_ADMIN)
    task = _create_task(client, staff)

    r = client.get(f"/tasks/{task['id']}/permissions", headers=auth_header(root))
    assert r.json() == {
        "is_owner": False, "can_view": True, "can_edit": True, "can_delete": True, "can_manage_members": True,
    }


def test_task_dates_must_be_in_order(client, make_user):
    staff = make_user(UserRole.STAFF)
    r = client.post(
        "/tasks/",
        json={"title": "Backwards", "start_date": "2025-02-01T00:00:00Z", "end_date": "2025-01-01T00:00:00Z"},
        headers=auth_header(staff),
    )
    assert r.status_code == 400

    task = _create_task(client, staff, start_date="2025-02-01T00:00:00Z")
    r = client.patch(f"/tasks/{task['id']}", json={"end_date": "2025-01-15T00:00:00Z"}, headers=auth_header(staff))
    assert r.status_code == 400
    assert r.json()["detail"] == "end_date must not be before start_date"

    r = client.patch(f"/tasks/{task['id']}", json={"end_date": "2025-03-01T00:00:00Z"}, headers=auth_header(staff))
    assert r.status_code == 200
