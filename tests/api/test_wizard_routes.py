from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from prompt_studio.integrations.backend_client import BackendError, get_backend_client
from prompt_studio.main import app
from prompt_studio.services.wizard_registry import WizardRegistry, get_wizard_registry


class _FakeBackend:
    def __init__(self) -> None:
        self.created: list[dict] = []
        self.projects_error: BackendError | None = None

    def create_prompt(self, payload):
        self.created.append(payload.to_body())
        return {"id": 100, **payload.to_body()}

    def update_prompt(self, prompt_id, payload):
        return {"id": prompt_id, **payload.to_body()}

    def list_projects(self):
        if self.projects_error is not None:
            raise self.projects_error
        return [{"id": 1, "name": "Demo", "description": "d", "status": "active", "tags": ["x"]}]


@pytest.fixture()
def backend() -> _FakeBackend:
    return _FakeBackend()


@pytest.fixture()
def registry() -> WizardRegistry:
    return WizardRegistry(max_open=2, default_max_tokens=1500, default_temperature=0.5)


@pytest.fixture()
def client(backend: _FakeBackend, registry: WizardRegistry):
    app.dependency_overrides[get_backend_client] = lambda: backend
    app.dependency_overrides[get_wizard_registry] = lambda: registry
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_create_wizard_end_to_end(client: TestClient, backend: _FakeBackend, registry: WizardRegistry) -> None:
    resp = client.post("/api/v1/wizards", json={"project_id": 3})
    assert resp.status_code == 201
    state = resp.json()
    wizard_id = state["id"]
    assert state["mode"] == "create"
    assert state["step"]["number"] == 1
    assert state["step"]["total"] == 2
    assert state["draft"]["max_tokens"] == 1500

    state = client.patch(
        f"/api/v1/wizards/{wizard_id}/draft",
        json={"name": "greet-1", "content": "Hi {user}"},
    ).json()
    assert state["extracted_variables"] == ["user"]
    assert state["step"]["total"] == 3

    state = client.post(f"/api/v1/wizards/{wizard_id}/next").json()
    assert state["step"]["role"] == "configuration"
    state = client.post(f"/api/v1/wizards/{wizard_id}/next").json()
    assert state["step"]["role"] == "variable"
    assert state["step"]["variable_name"] == "user"
    assert state["step"]["action_label"] == "Create"

    client.put(f"/api/v1/wizards/{wizard_id}/variables/0", json={"description": "Person"})
    state = client.post(f"/api/v1/wizards/{wizard_id}/next").json()

    assert state["status"] == "completed"
    assert state["record"]["id"] == 100
    assert state["draft"] is None
    assert backend.created[0]["variables"] == [
        {"name": "user", "type": "string", "required": True, "description": "Person"}
    ]
    assert len(registry) == 0
    assert client.get(f"/api/v1/wizards/{wizard_id}").status_code == 404


def test_validation_errors_stay_in_state(client: TestClient) -> None:
    wizard_id = client.post("/api/v1/wizards", json={"project_id": 3}).json()["id"]

    state = client.post(f"/api/v1/wizards/{wizard_id}/next").json()

    assert state["status"] == "open"
    assert state["step"]["number"] == 1
    assert state["error"] == "Name and content are required"


def test_illegal_transitions_return_conflict(client: TestClient) -> None:
    wizard_id = client.post("/api/v1/wizards", json={"project_id": 3}).json()["id"]

    assert client.post(f"/api/v1/wizards/{wizard_id}/back").status_code == 409
    assert client.put(f"/api/v1/wizards/{wizard_id}/variables/0", json={"description": "x"}).status_code == 409
    assert client.patch(f"/api/v1/wizards/{wizard_id}/draft", json={"bogus": 1}).status_code == 422


def test_cancel_releases_wizard(client: TestClient, backend: _FakeBackend) -> None:
    wizard_id = client.post("/api/v1/wizards", json={"project_id": 3}).json()["id"]

    state = client.delete(f"/api/v1/wizards/{wizard_id}").json()

    assert state["status"] == "cancelled"
    assert backend.created == []
    assert client.get(f"/api/v1/wizards/{wizard_id}").status_code == 404


def test_edit_mode_is_seeded(client: TestClient) -> None:
    seed = {
        "id": 8,
        "name": "greeter",
        "content": "Hello {name}",
        "variables": [{"name": "name", "type": "string", "description": "Person", "required": True}],
        "status": "published",
    }

    state = client.post("/api/v1/wizards", json={"project_id": 3, "seed": seed}).json()

    assert state["mode"] == "edit"
    assert state["prompt_id"] == 8
    assert state["step"]["title"] == "Edit Prompt"
    assert state["draft"]["variables"][0]["description"] == "Person"
    assert state["draft"]["status"] == "published"


def test_open_limit(client: TestClient) -> None:
    for _ in range(2):
        assert client.post("/api/v1/wizards", json={"project_id": 3}).status_code == 201
    assert client.post("/api/v1/wizards", json={"project_id": 3}).status_code == 429


def test_backend_errors_are_forwarded(client: TestClient, backend: _FakeBackend) -> None:
    assert client.get("/api/v1/projects").json()[0]["status"] == "ACTIVE"

    backend.projects_error = BackendError("Backend down")
    resp = client.get("/api/v1/projects")

    assert resp.status_code == 502
    assert resp.json()["detail"] == "Backend down"
