"""Integration tests for command bar API endpoints."""


def test_classify_add(client):
    response = client.post("/api/commands/classify", json={"input": ":add @john - Fix the header bug"})

    assert response.status_code == 200
    data = response.json()
    assert data["kind"] == "add_task"
    assert data["title"] == "Fix the header bug"
    assert data["assignee_username"] == "john"
    assert data["description"] == 'Add task "Fix the header bug" to @john'


def test_classify_invalid(client):
    data = client.post("/api/commands/classify", json={"input": ":add @bad!name - t"}).json()

    assert data["kind"] == "invalid"
    assert data["reason"] == "Username can only contain letters, numbers, and underscores"
    assert data["title"] == "t"


def test_classify_implicit_search(client):
    data = client.post("/api/commands/classify", json={"input": "  bug fix "}).json()
    assert data["kind"] == "search"
    assert data["query"] == "bug fix"


def test_suggest_uses_roster(client, members):
    data = client.post("/api/commands/suggest", json={"input": ":add @jo"}).json()
    assert data["suggestions"] == [":add @john - ", ":add @joanna - "]


def test_suggest_logged_out(client):
    data = client.post("/api/commands/suggest", json={"input": ":add @jo"}).json()
    assert data["suggestions"] == []


def test_resolve_add_task(client, members):
    response = client.post("/api/commands/resolve", json={"input": ":add @joanna - Review"})

    assert response.status_code == 200
    data = response.json()
    assert data["kind"] == "task-created"
    assert data["task"]["title"] == "Review"
    assert data["task"]["user_name"] == "joanna"


def test_resolve_unknown_user(client, members):
    data = client.post("/api/commands/resolve", json={"input": ":add @ghost - t"}).json()

    assert data["kind"] == "error"
    assert data["message"] == "User @ghost not found"
    assert client.get("/api/tasks").json()["total"] == 0


def test_resolve_search(client, members):
    client.post("/api/commands/resolve", json={"input": ":add Fix header"})

    data = client.post("/api/commands/resolve", json={"input": ":search header"}).json()

    assert data["kind"] == "searched"
    assert [t["title"] for t in data["results"]] == ["Fix header"]


def test_resolve_help(client):
    data = client.post("/api/commands/resolve", json={"input": ":help"}).json()
    assert data["kind"] == "help-shown"
    assert ":search query" in data["help_text"]


def test_resolve_not_authenticated(client):
    data = client.post("/api/commands/resolve", json={"input": ":add Something"}).json()
    assert data["kind"] == "error"
    assert data["message"] == "Not authenticated"


def test_resolve_runs_off_the_event_loop():
    """Blocking database work must not run on the server's event loop."""
    import inspect

    from taskboard.api.routes.commands import resolve_command

    assert not inspect.iscoroutinefunction(resolve_command)


def test_resolve_twice_in_a_row(client, members):
    first = client.post("/api/commands/resolve", json={"input": ":add One"}).json()
    second = client.post("/api/commands/resolve", json={"input": ":add Two"}).json()

    assert first["kind"] == second["kind"] == "task-created"
    assert client.get("/api/tasks").json()["total"] == 2
