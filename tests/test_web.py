"""Tests for the web dashboard API."""

import tempfile
from pathlib import Path

import pytest
from starlette.testclient import TestClient

from task_dashboard.core.api import ApiClient
from task_dashboard.core.controller import DashboardController
from task_dashboard.core.mock_store import MockStore
from task_dashboard.core.ui_state import ExpandedStateStore
from task_dashboard.db.models import CreateSubTaskPayload
from task_dashboard.web.app import create_app


@pytest.fixture
def web_env():
    """A test client over a seeded mock store; the poller is not started."""
    with tempfile.TemporaryDirectory() as tmp:
        db_path = Path(tmp) / "state.db"
        store = MockStore(db_path, sleep=lambda s: None)
        store.create_sub_task(CreateSubTaskPayload(task_id="LOOSE-1", sub_task_id="LOOSE-1a",
                                                   repo_url="https://example.com/r"))
        controller = DashboardController(ApiClient(store), ui_state=ExpandedStateStore(db_path))
        controller.load_tasks()

        app = create_app(controller)
        client = TestClient(app)
        yield client, store


class TestDashboardPage:
    def test_index_returns_html(self, web_env):
        client, _ = web_env
        resp = client.get("/")
        assert resp.status_code == 200
        assert "text/html" in resp.headers["content-type"]
        assert "Task Dashboard" in resp.text


class TestStateAPI:
    def test_state(self, web_env):
        client, _ = web_env
        data = client.get("/api/state").json()
        assert [t["task_id"] for t in data["tasks"]] == ["LOOSE-1", "KAN-10"]
        assert data["tasks"][0]["synthesized"] is True
        assert data["tasks"][1]["synthesized"] is False
        assert data["error"] is None

    def test_reload_picks_up_changes(self, web_env):
        client, store = web_env
        store.update_task("KAN-10", {"status": "FAILURE"})
        data = client.post("/api/reload").json()
        assert data["ok"] is True
        kan = next(t for t in data["tasks"] if t["task_id"] == "KAN-10")
        assert kan["status"] == "FAILURE"

    def test_toggle_expand(self, web_env):
        client, _ = web_env
        data = client.post("/api/expand/1").json()
        assert data["expanded"] == ["1"]
        data = client.post("/api/expand/1").json()
        assert data["expanded"] == []


class TestModalAPI:
    def test_new_and_save(self, web_env):
        client, store = web_env
        data = client.post("/api/modal/new").json()
        assert data["modal"]["mode"] == "new"
        draft = data["modal"]["editing"]

        data = client.post("/api/modal/save", json={"summary": "Docs", "repo_url": "r"}).json()
        assert data["ok"] is True
        assert data["modal"]["mode"] is None
        assert store.list_records()[-1].task_id == draft["task_id"]

    def test_save_failure_keeps_modal(self, web_env):
        client, _ = web_env
        client.post("/api/modal/new")
        data = client.post("/api/modal/save", json={"task_id": ""}).json()
        assert data["ok"] is False
        assert data["error"] == "task_id is required."
        assert data["modal"]["mode"] == "new"

    def test_save_without_form(self, web_env):
        client, _ = web_env
        resp = client.post("/api/modal/save", json={})
        assert resp.status_code == 400

    def test_subtask(self, web_env):
        client, _ = web_env
        data = client.post("/api/modal/subtask", json={"task_id": "KAN-10"}).json()
        assert data["modal"]["parent_task_id"] == "KAN-10"
        assert data["modal"]["editing"]["sub_task_id"] == "SUB-003"

    def test_edit_and_view(self, web_env):
        client, _ = web_env
        data = client.post("/api/modal/edit", json={"id": "KAN-11"}).json()
        assert data["modal"]["editing"]["sub_task_id"] == "KAN-11"

        data = client.post("/api/modal/view", json={"id": "KAN-11"}).json()
        assert data["modal"]["viewing"]["sub_task_id"] == "KAN-11"
        data = client.post("/api/modal/parent").json()
        assert data["modal"]["viewing"]["task_id"] == "KAN-10"
        assert data["modal"]["viewing"]["sub_task_id"] is None

        data = client.post("/api/modal/close").json()
        assert data["modal"]["mode"] is None

    def test_edit_save_ignores_identity_changes(self, web_env):
        client, store = web_env
        client.post("/api/modal/edit", json={"id": "KAN-11"})
        data = client.post("/api/modal/save",
                           json={"sub_task_id": "KAN-12", "task_id": "LOOSE-1", "prompt": "edited"}).json()
        assert data["ok"] is True
        by_sub = {r.sub_task_id: r for r in store.list_records()}
        assert by_sub["KAN-11"].prompt == "edited"
        assert by_sub["KAN-11"].task_id == "KAN-10"
        assert by_sub["KAN-12"].prompt != "edited"
        assert by_sub["LOOSE-1a"].prompt != "edited"

    def test_unknown_target(self, web_env):
        client, _ = web_env
        assert client.post("/api/modal/edit", json={"id": "NOPE"}).status_code == 404

    def test_unknown_mode(self, web_env):
        client, _ = web_env
        assert client.post("/api/modal/bogus").status_code == 400

    def test_bad_body(self, web_env):
        client, _ = web_env
        assert client.post("/api/modal/edit", json=["KAN-11"]).status_code == 400


class TestActionsAPI:
    def test_plan(self, web_env):
        client, _ = web_env
        data = client.post("/api/actions/plan", json={"id": "KAN-10"}).json()
        assert data["ok"] is True
        kan = next(t for t in data["tasks"] if t["task_id"] == "KAN-10")
        assert kan["status"] == "READY"
        assert data["action_loading_key"] is None

    def test_missing_repo_url(self, web_env):
        client, store = web_env
        store.update_sub_task("KAN-12", {"repo_url": ""})
        client.post("/api/reload")
        data = client.post("/api/actions/develop", json={"id": "KAN-12"}).json()
        assert data["ok"] is False
        assert data["error"] == "Repository URL is required to run tasks."

        data = client.post("/api/error/dismiss").json()
        assert data["error"] is None

    def test_unknown_action(self, web_env):
        client, _ = web_env
        assert client.post("/api/actions/deploy", json={"id": "KAN-10"}).status_code == 400

    def test_unknown_task(self, web_env):
        client, _ = web_env
        assert client.post("/api/actions/plan", json={"id": "NOPE"}).status_code == 404
