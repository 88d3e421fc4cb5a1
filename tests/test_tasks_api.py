from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import delete, func, select

from taskmanager.core.database import async_session_maker
from taskmanager.core.errors import ValidationError
from taskmanager.models import Task, User
from taskmanager.services.task_service import check_due_date

from conftest import create_task, days_from_today_iso, make_user, today_iso, unique_name


# =============================================================================
# Create
# =============================================================================

def test_create_task_defaults(client, user):
    response = create_task(client, user["headers"], dueDate=today_iso())

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Task created successfully"
    task = body["task"]
    assert task["isCompleted"] is False
    assert task["priority"] == "Medium"
    assert task["userId"] == user["id"]
    assert task["username"] == user["username"]
    assert task["createdAt"]
    assert response.headers["Location"] == f"/api/tasks/{task['id']}"


def test_create_task_due_yesterday_fails(client, user):
    response = create_task(client, user["headers"], dueDate=days_from_today_iso(-1))
    assert response.status_code == 400
    assert response.json() == {"message": "Due date cannot be in the past"}


def test_create_task_blank_title_fails(client, user):
    response = create_task(client, user["headers"], title="   ")
    assert response.status_code == 400
    assert response.json() == {"message": "Task title is required"}


def test_create_task_title_too_long(client, user):
    response = create_task(client, user["headers"], title="x" * 201)
    assert response.status_code == 400


def test_create_task_priority_is_case_insensitive(client, user):
    response = create_task(client, user["headers"], priority="high")
    assert response.status_code == 201
    assert response.json()["task"]["priority"] == "High"


def test_create_task_invalid_priority(client, user):
    response = create_task(client, user["headers"], priority="Urgent")
    assert response.status_code == 400


def test_create_task_due_date_normalized_to_utc(client, user):
    local = datetime.now(timezone(timedelta(hours=5))) + timedelta(days=2)
    response = create_task(client, user["headers"], dueDate=local.isoformat())

    assert response.status_code == 201
    due = datetime.fromisoformat(response.json()["task"]["dueDate"].replace("Z", "+00:00"))
    assert due.utcoffset() == timedelta(0)
    assert due == local


def test_tasks_require_authentication(client):
    assert client.get("/api/tasks").status_code == 401
    assert client.post("/api/tasks", json={"title": "x", "dueDate": today_iso()}).status_code == 401


def test_due_date_check_ignores_time_of_day():
    start_of_today = datetime.now(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
    assert check_due_date(start_of_today) == start_of_today

    with pytest.raises(ValidationError):
        check_due_date(start_of_today - timedelta(seconds=1))


def test_due_date_check_treats_naive_as_utc():
    naive = datetime.now(timezone.utc).replace(tzinfo=None) + timedelta(days=1)
    assert check_due_date(naive).tzinfo == timezone.utc


# =============================================================================
# Read / ownership
# =============================================================================

def test_owner_can_get_task(client, user):
    task_id = create_task(client, user["headers"]).json()["task"]["id"]

    response = client.get(f"/api/tasks/{task_id}", headers=user["headers"])
    assert response.status_code == 200
    assert response.json()["id"] == task_id


def test_missing_task_is_404(client, user):
    response = client.get("/api/tasks/987654", headers=user["headers"])
    assert response.status_code == 404
    assert response.json() == {"message": "Task not found"}


def test_non_owner_is_forbidden(client, user, other_user):
    task_id = create_task(client, user["headers"]).json()["task"]["id"]
    headers = other_user["headers"]

    assert client.get(f"/api/tasks/{task_id}", headers=headers).status_code == 403
    assert client.put(f"/api/tasks/{task_id}", json={"title": "mine now"}, headers=headers).status_code == 403
    assert client.patch(f"/api/tasks/{task_id}/complete", headers=headers).status_code == 403
    assert client.delete(f"/api/tasks/{task_id}", headers=headers).status_code == 403

    # Untouched
    task = client.get(f"/api/tasks/{task_id}", headers=user["headers"]).json()
    assert task["title"] == "Write report"
    assert task["isCompleted"] is False


def test_admin_can_act_on_any_task(client, admin, user):
    task_id = create_task(client, user["headers"]).json()["task"]["id"]

    assert client.get(f"/api/tasks/{task_id}", headers=admin["headers"]).status_code == 200

    updated = client.put(f"/api/tasks/{task_id}", json={"priority": "Low"}, headers=admin["headers"])
    assert updated.status_code == 200
    assert updated.json()["task"]["priority"] == "Low"
    assert updated.json()["task"]["userId"] == user["id"]

    assert client.delete(f"/api/tasks/{task_id}", headers=admin["headers"]).status_code == 204
    assert client.get(f"/api/tasks/{task_id}", headers=user["headers"]).status_code == 404


def test_list_is_scoped_to_owner(client, user, other_user):
    mine = create_task(client, user["headers"]).json()["task"]["id"]
    theirs = create_task(client, other_user["headers"]).json()["task"]["id"]

    response = client.get("/api/tasks", headers=user["headers"])
    assert response.status_code == 200
    body = response.json()
    ids = {t["id"] for t in body["tasks"]}
    assert mine in ids
    assert theirs not in ids
    assert body["count"] == len(body["tasks"])
    assert body["message"] == "Your tasks"

    my = client.get("/api/tasks/my", headers=user["headers"]).json()
    assert {t["id"] for t in my["tasks"]} == ids


def test_admin_list_sees_everyone(client, admin, user, other_user):
    a = create_task(client, user["headers"]).json()["task"]["id"]
    b = create_task(client, other_user["headers"]).json()["task"]["id"]

    body = client.get("/api/tasks", headers=admin["headers"]).json()
    assert body["message"] == "Admin view: All tasks"
    assert {a, b} <= {t["id"] for t in body["tasks"]}

    # /my stays personal for admins too
    mine = client.get("/api/tasks/my", headers=admin["headers"]).json()
    assert a not in {t["id"] for t in mine["tasks"]}


# =============================================================================
# Update
# =============================================================================

def test_partial_update_only_changes_supplied_fields(client, user):
    original = create_task(
        client, user["headers"], title="Plan trip", description="Book flights", priority="High"
    ).json()["task"]

    response = client.put(
        f"/api/tasks/{original['id']}", json={"isCompleted": True}, headers=user["headers"]
    )
    assert response.status_code == 200
    updated = response.json()["task"]
    assert updated["isCompleted"] is True
    for field in ("title", "description", "dueDate", "priority", "createdAt", "userId"):
        assert updated[field] == original[field]


def test_update_with_empty_strings_leaves_fields_untouched(client, user):
    original = create_task(client, user["headers"], title="Keep me", description="And me").json()["task"]

    response = client.put(
        f"/api/tasks/{original['id']}",
        json={"title": "", "description": "", "priority": ""},
        headers=user["headers"],
    )
    assert response.status_code == 200
    updated = response.json()["task"]
    assert updated["title"] == "Keep me"
    assert updated["description"] == "And me"
    assert updated["priority"] == "Medium"


def test_update_changes_several_fields(client, user):
    task_id = create_task(client, user["headers"]).json()["task"]["id"]
    new_due = days_from_today_iso(10)

    response = client.put(
        f"/api/tasks/{task_id}",
        json={"title": "Renamed", "description": "New text", "dueDate": new_due, "priority": "Low"},
        headers=user["headers"],
    )
    assert response.status_code == 200
    task = response.json()["task"]
    assert task["title"] == "Renamed"
    assert task["description"] == "New text"
    assert task["priority"] == "Low"
    assert task["dueDate"][:10] == new_due[:10]


def test_update_rejects_past_due_date(client, user):
    task_id = create_task(client, user["headers"]).json()["task"]["id"]

    response = client.put(
        f"/api/tasks/{task_id}",
        json={"title": "Should not stick", "dueDate": days_from_today_iso(-2)},
        headers=user["headers"],
    )
    assert response.status_code == 400

    task = client.get(f"/api/tasks/{task_id}", headers=user["headers"]).json()
    assert task["title"] == "Write report"


def test_update_missing_task_is_404(client, user):
    response = client.put("/api/tasks/987654", json={"title": "x"}, headers=user["headers"])
    assert response.status_code == 404


def test_complete_and_incomplete(client, user):
    task_id = create_task(client, user["headers"]).json()["task"]["id"]

    done = client.patch(f"/api/tasks/{task_id}/complete", headers=user["headers"])
    assert done.status_code == 200
    assert done.json()["message"] == "Task marked as complete"
    assert done.json()["task"]["isCompleted"] is True

    undone = client.patch(f"/api/tasks/{task_id}/incomplete", headers=user["headers"])
    assert undone.status_code == 200
    assert undone.json()["task"]["isCompleted"] is False


# =============================================================================
# Delete
# =============================================================================

def test_delete_task(client, user):
    task_id = create_task(client, user["headers"]).json()["task"]["id"]

    assert client.delete(f"/api/tasks/{task_id}", headers=user["headers"]).status_code == 204
    assert client.delete(f"/api/tasks/{task_id}", headers=user["headers"]).status_code == 404


# =============================================================================
# Filters
# =============================================================================

def test_search_is_case_insensitive_and_scoped(client, user, other_user):
    marker = unique_name("Groceries")
    mine = create_task(client, user["headers"], title=f"Buy {marker}").json()["task"]["id"]
    create_task(client, other_user["headers"], title=f"Also {marker}")

    response = client.get("/api/tasks/search", params={"title": marker.lower()}, headers=user["headers"])
    assert response.status_code == 200
    body = response.json()
    assert [t["id"] for t in body["tasks"]] == [mine]
    assert body["searchTerm"] == marker.lower()


def test_admin_search_covers_all_users(client, admin, user, other_user):
    marker = unique_name("shared")
    create_task(client, user["headers"], title=marker)
    create_task(client, other_user["headers"], title=marker.upper())

    body = client.get("/api/tasks/search", params={"title": marker}, headers=admin["headers"]).json()
    assert body["count"] == 2


def test_search_requires_term(client, user):
    response = client.get("/api/tasks/search", params={"title": "  "}, headers=user["headers"])
    assert response.status_code == 400
    assert response.json() == {"message": "Search term is required"}


def test_completed_and_pending_filters(client, user):
    done_id = create_task(client, user["headers"], title="done").json()["task"]["id"]
    open_id = create_task(client, user["headers"], title="open").json()["task"]["id"]
    client.patch(f"/api/tasks/{done_id}/complete", headers=user["headers"])

    completed = client.get("/api/tasks/completed", headers=user["headers"]).json()
    pending = client.get("/api/tasks/pending", headers=user["headers"]).json()

    assert {t["id"] for t in completed["tasks"]} == {done_id}
    assert {t["id"] for t in pending["tasks"]} == {open_id}


def test_priority_filter(client, user):
    high = create_task(client, user["headers"], priority="High").json()["task"]["id"]
    create_task(client, user["headers"], priority="Low")

    response = client.get("/api/tasks/priority/high", headers=user["headers"])
    assert response.status_code == 200
    body = response.json()
    assert [t["id"] for t in body["tasks"]] == [high]
    assert body["priority"] == "High"


def test_priority_filter_rejects_unknown_value(client, user):
    response = client.get("/api/tasks/priority/urgent", headers=user["headers"])
    assert response.status_code == 400
    assert response.json() == {"message": "Invalid priority. Must be: Low, Medium, or High"}


# =============================================================================
# Cascade
# =============================================================================

async def delete_user_and_count_tasks(user_id: int) -> int:
    async with async_session_maker() as session:
        # Core delete, so only the database foreign key can remove the tasks
        await session.execute(delete(User).where(User.id == user_id))
        await session.commit()
        result = await session.execute(select(func.count(Task.id)).where(Task.user_id == user_id))
        return result.scalar()


def test_deleting_user_deletes_their_tasks(client):
    doomed = make_user(client)
    create_task(client, doomed["headers"], title="first")
    create_task(client, doomed["headers"], title="second")

    assert client.portal.call(delete_user_and_count_tasks, doomed["id"]) == 0
