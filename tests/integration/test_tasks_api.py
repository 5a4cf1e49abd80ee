"""Integration tests for task API endpoints."""

import pytest


@pytest.fixture
def authed(client, members):
    """Client logged in as team acme with john active."""
    return client


def test_health_check(client):
    """Test basic health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "version" in data


def test_health_ready(client):
    """Test readiness health check endpoint."""
    response = client.get("/health/ready")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ready"
    assert data["database"] == "connected"


def test_requires_session(client):
    response = client.get("/api/tasks")
    assert response.status_code == 401
    assert response.json()["detail"] == "Not authenticated"


def test_create_task(authed, sample_task_data, members):
    """Test creating a task via API."""
    response = authed.post("/api/tasks", json=sample_task_data)
    assert response.status_code == 201

    data = response.json()
    assert data["title"] == sample_task_data["title"]
    assert data["description"] == sample_task_data["description"]
    assert data["status"] == "new"
    assert data["position"] == 0
    assert data["user_id"] == members[0].id
    assert data["user_name"] == "john"


def test_create_task_for_member(authed, members):
    response = authed.post("/api/tasks", json={"title": "Review", "user_id": members[2].id, "status": "current"})
    assert response.status_code == 201
    assert response.json()["user_name"] == "bob"
    assert response.json()["status"] == "current"


def test_create_task_blank_title(authed):
    response = authed.post("/api/tasks", json={"title": "   "})
    assert response.status_code == 400
    assert "Task title is required" in response.json()["detail"]


def test_create_task_schema_validation(authed):
    response = authed.post("/api/tasks", json={"title": "x" * 256})
    assert response.status_code == 422


def test_get_task(authed, sample_task_data):
    """Test retrieving a task by ID."""
    task_id = authed.post("/api/tasks", json=sample_task_data).json()["id"]

    response = authed.get(f"/api/tasks/{task_id}")

    assert response.status_code == 200
    assert response.json()["id"] == task_id


def test_get_task_not_found(authed):
    response = authed.get("/api/tasks/9999")
    assert response.status_code == 404


def test_list_and_search(authed):
    authed.post("/api/tasks", json={"title": "Fix header"})
    authed.post("/api/tasks", json={"title": "Write docs"})

    listing = authed.get("/api/tasks").json()
    assert listing["total"] == 2

    found = authed.get("/api/tasks", params={"search": "header"}).json()
    assert [t["title"] for t in found["tasks"]] == ["Fix header"]


def test_list_by_status(authed):
    authed.post("/api/tasks", json={"title": "Open"})
    authed.post("/api/tasks", json={"title": "Done", "status": "completed"})

    data = authed.get("/api/tasks", params={"status": "completed"}).json()

    assert [t["title"] for t in data["tasks"]] == ["Done"]


def test_update_task(authed):
    task_id = authed.post("/api/tasks", json={"title": "Old"}).json()["id"]

    response = authed.put(f"/api/tasks/{task_id}", json={"title": "New", "description": "More"})

    assert response.status_code == 200
    assert response.json()["title"] == "New"
    assert response.json()["description"] == "More"


def test_update_task_nothing_valid(authed):
    task_id = authed.post("/api/tasks", json={"title": "Old"}).json()["id"]
    response = authed.put(f"/api/tasks/{task_id}", json={})
    assert response.status_code == 400


def test_update_status(authed):
    task_id = authed.post("/api/tasks", json={"title": "Go"}).json()["id"]

    response = authed.patch(f"/api/tasks/{task_id}/status", json={"status": "in_progress"})

    assert response.status_code == 200
    assert response.json()["status"] == "in_progress"


def test_move_and_board(authed, members):
    ids = [authed.post("/api/tasks", json={"title": title}).json()["id"] for title in ("c", "b", "a")]

    response = authed.post(f"/api/tasks/{ids[2]}/move", json={"status": "new", "index": 2})
    assert response.status_code == 200

    board = authed.get(f"/api/tasks/board/{members[0].id}").json()
    assert [t["title"] for t in board["columns"]["new"]] == ["b", "c", "a"]
    assert board["columns"]["completed"] == []


def test_delete_task(authed):
    task_id = authed.post("/api/tasks", json={"title": "Gone"}).json()["id"]

    response = authed.delete(f"/api/tasks/{task_id}")

    assert response.status_code == 204
    assert authed.get(f"/api/tasks/{task_id}").status_code == 404
