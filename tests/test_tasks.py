"""Tests for the task CRUD endpoints."""

from fastapi.testclient import TestClient

from tasks_api.config import Settings
from tasks_api.errors import ConstraintViolation
from tasks_api.main import create_app
from tasks_api.models import Task, TaskDraft
from tasks_api.sqlite_store import SqliteTaskStore
from tasks_api.store import InMemoryTaskStore


def test_list_tasks_empty(client: TestClient) -> None:
    """Test listing tasks when none exist."""
    response = client.get("/api/tasks")
    assert response.status_code == 200
    assert response.json() == []


def test_create_task(client: TestClient) -> None:
    """Test creating a new task."""
    response = client.post("/api/tasks", json={"title": "Write report", "status": "PENDING"})
    assert response.status_code == 201
    data = response.json()
    assert data == {
        "id": 1,
        "title": "Write report",
        "description": None,
        "status": "PENDING",
        "createdAt": "2025-01-15T14:30:45Z",
    }
    assert "updatedAt" not in data


def test_create_task_defaults_status(client: TestClient) -> None:
    """Test that a missing status defaults to PENDING."""
    response = client.post("/api/tasks", json={"title": "No status", "description": ""})
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "PENDING"
    assert data["description"] == ""


def test_create_task_ignores_system_fields(client: TestClient) -> None:
    """Test that id and timestamps in the body are not taken from the client."""
    response = client.post(
        "/api/tasks",
        json={"title": "Sneaky", "id": 42, "createdAt": "2020-01-01T00:00:00Z", "updatedAt": "2020-01-01T00:00:00Z"},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["id"] == 1
    assert data["createdAt"] == "2025-01-15T14:30:45Z"
    assert "updatedAt" not in data


def test_create_task_duplicate_title(client: TestClient) -> None:
    """Test that a duplicate title is reported as a conflict."""
    client.post("/api/tasks", json={"title": "Write report"})
    response = client.post("/api/tasks", json={"title": "Write report"})
    assert response.status_code == 409
    assert response.json() == {
        "error": "Conflict",
        "message": "A task with the title 'Write report' already exists",
        "field": "title",
    }
    assert len(client.get("/api/tasks").json()) == 1


def test_create_task_title_is_case_sensitive(client: TestClient) -> None:
    """Test that titles differing only in case do not conflict."""
    client.post("/api/tasks", json={"title": "Write report"})
    response = client.post("/api/tasks", json={"title": "write report"})
    assert response.status_code == 201


def test_create_task_missing_title(client: TestClient) -> None:
    """Test that a missing title is rejected per field."""
    response = client.post("/api/tasks", json={"description": "no title"})
    assert response.status_code == 400
    assert response.json() == {"title": "Title is required"}


def test_create_task_blank_title(client: TestClient) -> None:
    """Test that a blank title is rejected."""
    response = client.post("/api/tasks", json={"title": "   "})
    assert response.status_code == 400
    assert response.json()["title"] == "Title is required"


def test_create_task_title_too_long(client: TestClient) -> None:
    """Test that too-long title is rejected."""
    response = client.post("/api/tasks", json={"title": "x" * 256})
    assert response.status_code == 400
    assert response.json()["title"] == "Title must be under 256 characters"


def test_create_task_title_at_limit(client: TestClient) -> None:
    """Test that a 255 character title is accepted."""
    response = client.post("/api/tasks", json={"title": "x" * 255})
    assert response.status_code == 201


def test_create_task_description_too_long(client: TestClient) -> None:
    """Test that too-long description is rejected."""
    response = client.post("/api/tasks", json={"title": "Long", "description": "d" * 501})
    assert response.status_code == 400
    assert response.json()["description"] == "Description must be under 500 characters"


def test_create_task_invalid_status(client: TestClient) -> None:
    """Test that status values outside the enumeration are rejected."""
    for value in ("DONE", "pending", "Completed"):
        response = client.post("/api/tasks", json={"title": f"Bad {value}", "status": value})
        assert response.status_code == 400
        assert response.json() == {"status": "Status must be one of: PENDING, COMPLETED"}
    assert client.get("/api/tasks").json() == []


def test_create_task_reports_every_invalid_field(client: TestClient) -> None:
    """Test that all invalid fields are reported together."""
    response = client.post("/api/tasks", json={"title": "", "description": "d" * 501, "status": "NOPE"})
    assert response.status_code == 400
    assert set(response.json()) == {"title", "description", "status"}


def test_get_task(client: TestClient) -> None:
    """Test retrieving a specific task."""
    create_response = client.post("/api/tasks", json={"title": "Find me", "description": "here"})
    task_id = create_response.json()["id"]

    response = client.get(f"/api/tasks/{task_id}")
    assert response.status_code == 200
    data = response.json()
    assert data["title"] == "Find me"
    assert data["description"] == "here"
    assert data["createdAt"] == "2025-01-15T14:30:45Z"


def test_get_task_not_found(client: TestClient) -> None:
    """Test retrieving a non-existent task."""
    response = client.get("/api/tasks/999")
    assert response.status_code == 404
    assert response.json()["detail"] == "Task not found"


def test_get_task_invalid_id(client: TestClient) -> None:
    """Test that a non-numeric id is a bad request."""
    response = client.get("/api/tasks/abc")
    assert response.status_code == 400
    assert response.json() == {
        "error": "Invalid Parameter",
        "message": "Invalid task_id: 'abc'. Expected a valid integer.",
        "field": "task_id",
    }


def test_update_task(client: TestClient) -> None:
    """Test replacing a task's fields."""
    create_response = client.post("/api/tasks", json={"title": "Write report", "description": "draft"})
    task_id = create_response.json()["id"]

    response = client.put(f"/api/tasks/{task_id}", json={"title": "Write report", "status": "COMPLETED"})
    assert response.status_code == 200
    data = response.json()
    assert data["id"] == task_id
    assert data["status"] == "COMPLETED"
    assert data["description"] is None
    assert data["createdAt"] == "2025-01-15T14:30:45Z"
    assert data["updatedAt"] == "2025-01-15T14:35:45Z"


def test_update_task_defaults_status(client: TestClient) -> None:
    """Test that a replace without status resets it to PENDING."""
    create_response = client.post("/api/tasks", json={"title": "Done", "status": "COMPLETED"})
    task_id = create_response.json()["id"]

    response = client.put(f"/api/tasks/{task_id}", json={"title": "Done"})
    assert response.status_code == 200
    assert response.json()["status"] == "PENDING"


def test_update_task_not_found(client: TestClient) -> None:
    """Test updating a non-existent task."""
    response = client.put("/api/tasks/999", json={"title": "Nope"})
    assert response.status_code == 404


def test_update_task_duplicate_title(client: TestClient) -> None:
    """Test that renaming onto another task's title is a conflict."""
    client.post("/api/tasks", json={"title": "Taken"})
    create_response = client.post("/api/tasks", json={"title": "Mine"})
    task_id = create_response.json()["id"]

    response = client.put(f"/api/tasks/{task_id}", json={"title": "Taken"})
    assert response.status_code == 409
    assert response.json() == {
        "error": "Conflict",
        "message": "A task with the title 'Taken' already exists",
        "field": "title",
    }
    assert client.get(f"/api/tasks/{task_id}").json()["title"] == "Mine"


def test_update_task_invalid_body(client: TestClient) -> None:
    """Test that validation runs before the task is looked up."""
    response = client.put("/api/tasks/999", json={"title": ""})
    assert response.status_code == 400
    assert response.json() == {"title": "Title is required"}


def test_delete_task(client: TestClient) -> None:
    """Test deleting a task."""
    create_response = client.post("/api/tasks", json={"title": "Delete me"})
    task_id = create_response.json()["id"]

    response = client.delete(f"/api/tasks/{task_id}")
    assert response.status_code == 204

    get_response = client.get(f"/api/tasks/{task_id}")
    assert get_response.status_code == 404


def test_delete_task_not_found(client: TestClient) -> None:
    """Test deleting a non-existent task."""
    response = client.delete("/api/tasks/999")
    assert response.status_code == 404


def test_list_tasks_after_creating(client: TestClient) -> None:
    """Test that created tasks appear in the list."""
    client.post("/api/tasks", json={"title": "Task 1"})
    client.post("/api/tasks", json={"title": "Task 2"})
    client.post("/api/tasks", json={"title": "Task 3"})

    response = client.get("/api/tasks")
    assert response.status_code == 200
    tasks = response.json()
    assert len(tasks) == 3
    assert {t["title"] for t in tasks} == {"Task 1", "Task 2", "Task 3"}
    assert all("updatedAt" not in t for t in tasks)


class BrokenConstraintStore(InMemoryTaskStore):
    """Store that rejects every insert with a non-title constraint."""

    def insert(self, draft: TaskDraft) -> Task:
        raise ConstraintViolation("check", "title_length", "CHECK constraint failed: title_length")


def test_create_task_other_constraint_violation() -> None:
    """Test that a non-title constraint failure is a generic bad request."""
    app = create_app(Settings(store="memory"), store=BrokenConstraintStore())
    with TestClient(app) as client:
        response = client.post("/api/tasks", json={"title": "Anything"})
    assert response.status_code == 400
    assert response.json() == {
        "error": "Data Integrity Error",
        "message": "A database constraint was violated",
        "field": "unknown",
    }


def test_out_of_range_id_is_invalid_parameter(tmp_path) -> None:
    """Test that ids beyond the 64-bit range are rejected before reaching the store."""
    app = create_app(Settings(), store=SqliteTaskStore(tmp_path / "tasks.sqlite3"))
    huge = "99999999999999999999"
    expected = {
        "error": "Invalid Parameter",
        "message": f"Invalid task_id: '{huge}'. Expected a valid integer.",
        "field": "task_id",
    }
    with TestClient(app) as client:
        responses = [
            client.get(f"/api/tasks/{huge}"),
            client.put(f"/api/tasks/{huge}", json={"title": "Too far"}),
            client.delete(f"/api/tasks/{huge}"),
        ]
    for response in responses:
        assert response.status_code == 400
        assert response.json() == expected
