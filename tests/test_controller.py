"""Tests for the dashboard controller."""

import tempfile
import threading
import time
from pathlib import Path

import pytest

from task_dashboard.config import Config
from task_dashboard.core.api import ApiClient
from task_dashboard.core.controller import (
    REPO_URL_REQUIRED,
    DashboardController,
    action_key,
    create_controller,
)
from task_dashboard.core.mock_store import MockStore
from task_dashboard.core.ui_state import ExpandedStateStore
from task_dashboard.db.models import CreateTaskPayload
from task_dashboard.errors import ServerError, TransportError


@pytest.fixture
def tmp_dir():
    with tempfile.TemporaryDirectory() as tmp:
        yield Path(tmp)


@pytest.fixture
def store(tmp_dir):
    return MockStore(tmp_dir / "state.db", sleep=lambda s: None)


@pytest.fixture
def controller(store, tmp_dir):
    c = DashboardController(ApiClient(store), ui_state=ExpandedStateStore(tmp_dir / "state.db"))
    assert c.load_tasks()
    return c


class TestLoad:
    def test_builds_tree(self, controller):
        tree = controller.state.tasks
        assert [n.record.task_id for n in tree] == ["KAN-10"]
        assert len(tree[0].subtasks) == 2
        assert controller.state.last_loaded_at is not None
        assert controller.state.error is None

    def test_failure_sets_error_and_keeps_tree(self, controller, store, monkeypatch):
        def boom():
            raise TransportError("Could not reach backend: refused")

        monkeypatch.setattr(store, "list_records", boom)
        assert controller.load_tasks() is False
        assert controller.state.error == "Could not reach backend: refused"
        assert len(controller.state.tasks) == 1

    def test_success_clears_error(self, controller):
        controller.state.error = "old"
        controller.load_tasks()
        assert controller.state.error is None


class TestExpand:
    def test_toggle_persists(self, controller, tmp_dir):
        assert controller.toggle_expand("1") is True
        assert controller.is_expanded("1")
        assert ExpandedStateStore(tmp_dir / "state.db").load() == {"1"}

        assert controller.toggle_expand("1") is False
        assert ExpandedStateStore(tmp_dir / "state.db").load() == set()

    def test_restored_on_start(self, store, tmp_dir):
        ExpandedStateStore(tmp_dir / "state.db").save({"1", "7"})
        c = DashboardController(ApiClient(store), ui_state=ExpandedStateStore(tmp_dir / "state.db"),
                                poll_interval=60)
        c.start()
        try:
            assert c.state.expanded == {"1", "7"}
        finally:
            c.stop()

    def test_unreadable_state_ignored(self, tmp_dir):
        from task_dashboard.db.engine import get_db, write_value

        ui = ExpandedStateStore(tmp_dir / "state.db")
        with get_db(ui.db_path) as db:
            write_value(db, ui.key, "not json")
        assert ui.load() == set()

    def test_numeric_ids_become_strings(self, tmp_dir):
        from task_dashboard.db.engine import get_db, write_value

        ui = ExpandedStateStore(tmp_dir / "state.db")
        with get_db(ui.db_path) as db:
            write_value(db, ui.key, "[1, 2]")
        assert ui.load() == {"1", "2"}


class TestModals:
    def test_new_task_draft(self, controller):
        draft = controller.open_new_task()
        assert draft["task_id"] == "TASK-002"
        assert draft["base_branch"] == "main"
        assert draft["status"] == "PENDING"
        assert controller.state.modal_mode == "new"
        assert controller.form_open

    def test_subtask_draft(self, controller):
        node = controller.state.tasks[0]
        draft = controller.open_add_subtask(node)
        assert draft["sub_task_id"] == "SUB-003"
        assert draft["task_id"] == "KAN-10"
        assert controller.state.parent_task_id == "KAN-10"

    def test_view_and_parent(self, controller):
        controller.open_view(controller.find_record("KAN-11"))
        assert not controller.form_open
        parent = controller.view_parent()
        assert parent.task_id == "KAN-10"
        assert controller.state.viewing is parent
        # Already at the top level.
        assert controller.view_parent() is None

    def test_close(self, controller):
        controller.open_edit(controller.find_record("KAN-10"))
        controller.close_modal()
        assert controller.state.modal_mode is None
        assert controller.state.editing is None
        assert controller.state.viewing is None


class TestSave:
    def test_new_task(self, controller, store):
        controller.open_new_task()
        assert controller.save({"summary": "Write docs", "repo_url": "https://example.com/r"})
        assert controller.state.modal_mode is None
        created = store.list_records()[-1]
        assert created.task_id == "TASK-002"
        assert created.summary == "Write docs"
        assert created.task_type == "TASK"
        assert [n.record.task_id for n in controller.state.tasks] == ["TASK-002", "KAN-10"]

    def test_subtask(self, controller, store):
        controller.open_add_subtask(controller.state.tasks[0])
        assert controller.save({"summary": "More"})
        created = store.list_records()[-1]
        assert created.task_id == "KAN-10"
        assert created.sub_task_id == "SUB-003"
        assert len(controller.state.tasks[0].subtasks) == 3

    def test_edit_sub_task(self, controller, store):
        controller.open_edit(controller.find_record("KAN-12"))
        assert controller.save({"status": "FAILURE", "summary": ""})
        rec = next(r for r in store.list_records() if r.sub_task_id == "KAN-12")
        assert rec.status == "FAILURE"
        # Empty optional strings are not sent.
        assert rec.summary == "Remove Verified Dead Code and Validate App"

    def test_jira(self, controller, store):
        controller.open_jira_import()
        assert controller.save({"jira_task_id": "KAN-50", "repo_url": "r"})
        rec = store.list_records()[-1]
        assert rec.task_id == "KAN-50"
        assert rec.base_branch == "main"

    def test_failure_keeps_modal(self, controller):
        controller.open_new_task()
        assert controller.save({"task_id": ""}) is False
        assert controller.state.error == "task_id is required."
        assert controller.state.modal_mode == "new"
        assert controller.state.editing["task_id"] == ""

    def test_server_failure_keeps_modal(self, controller, store, monkeypatch):
        def reject(payload):
            raise ServerError("Duplicate task", status_code=409)

        monkeypatch.setattr(store, "create_task", reject)
        controller.open_new_task()
        assert controller.save({"summary": "x"}) is False
        assert controller.state.error == "Duplicate task"
        assert controller.state.editing["summary"] == "x"

    def test_nothing_open(self, controller):
        assert controller.save({"summary": "x"}) is False

    def test_edit_cannot_move_to_another_task(self, controller, store):
        store.create_task(CreateTaskPayload(task_id="OTHER", summary="untouched"))
        controller.load_tasks()

        controller.open_edit(controller.find_record("KAN-10"))
        assert controller.save({"task_id": "OTHER", "task_type": "SUBTASK", "summary": "edited"})
        by_task = {r.task_id: r for r in store.list_records() if not r.sub_task_id}
        assert by_task["KAN-10"].summary == "edited"
        assert by_task["KAN-10"].task_type == "TASK"
        assert by_task["OTHER"].summary == "untouched"

    def test_edit_cannot_move_to_another_sub_task(self, controller, store):
        controller.open_edit(controller.find_record("KAN-11"))
        assert controller.save({"sub_task_id": "KAN-12", "summary": "edited"})
        by_sub = {r.sub_task_id: r for r in store.list_records() if r.sub_task_id}
        assert by_sub["KAN-11"].summary == "edited"
        assert by_sub["KAN-12"].summary == "Remove Verified Dead Code and Validate App"

    def test_edit_draft_keeps_identity(self, controller, monkeypatch, store):
        def reject(sub_task_id, fields):
            raise ServerError("Conflict", status_code=409)

        monkeypatch.setattr(store, "update_sub_task", reject)
        controller.open_edit(controller.find_record("KAN-11"))
        assert controller.save({"task_id": "X", "sub_task_id": "Y", "prompt": "p"}) is False
        draft = controller.state.editing
        assert (draft["task_id"], draft["sub_task_id"], draft["prompt"]) == ("KAN-10", "KAN-11", "p")


class TestActions:
    def test_missing_repo_url_skips_store(self, controller, store, monkeypatch):
        calls = []
        monkeypatch.setattr(store, "start", lambda payload: calls.append(payload))
        store.update_task("KAN-10", {"repo_url": ""})
        controller.load_tasks()

        assert controller.run_action(controller.find_record("KAN-10"), "develop") is False
        assert controller.state.error == REPO_URL_REQUIRED
        assert calls == []
        assert controller.state.action_loading_key is None

    def test_runs_and_reloads(self, controller):
        record = controller.find_record("KAN-11")
        assert controller.run_action(record, "plan")
        assert controller.find_record("KAN-11").status == "READY"
        assert controller.state.action_loading_key is None

    def test_payload(self, controller, store, monkeypatch):
        seen = []
        monkeypatch.setattr(store, "auto", lambda payload: seen.append(payload) or {"ok": True})
        store.update_task("KAN-10", {"base_branch": ""})
        controller.load_tasks()
        controller.run_action(controller.find_record("KAN-10"), "auto-develop")
        assert seen[0].task_id == "KAN-10"
        assert seen[0].base_branch == "main"

    def test_failure_sets_error(self, controller, store, monkeypatch):
        def fail(payload):
            raise ServerError("Agent busy", status_code=503)

        monkeypatch.setattr(store, "orchestrate", fail)
        assert controller.run_action(controller.find_record("KAN-10"), "plan") is False
        assert controller.state.error == "Agent busy"
        assert controller.state.action_loading_key is None

    def test_unknown_action(self, controller):
        with pytest.raises(ValueError):
            controller.run_action(controller.find_record("KAN-10"), "deploy")

    def test_loading_key_while_running(self, controller, store, monkeypatch):
        seen = []

        def start(payload):
            seen.append(controller.state.action_loading_key)
            return {"ok": True}

        monkeypatch.setattr(store, "start", start)
        record = controller.find_record("KAN-12")
        controller.run_action(record, "develop")
        assert seen == [action_key(record, "develop")] == ["KAN-12-develop"]

    def test_newer_run_keeps_its_key(self, controller, store, monkeypatch):
        # The first run finishes while a second run on the same key is in flight.
        first_entered = threading.Event()
        release_first = threading.Event()
        second_entered = threading.Event()
        release_second = threading.Event()
        calls = []

        def start(payload):
            calls.append(payload)
            if len(calls) == 1:
                first_entered.set()
                release_first.wait(5)
            else:
                second_entered.set()
                release_second.wait(5)
            return {"ok": True}

        monkeypatch.setattr(store, "start", start)
        record = controller.find_record("KAN-10")

        t1 = threading.Thread(target=controller.run_action, args=(record, "develop"))
        t1.start()
        assert first_entered.wait(5)
        t2 = threading.Thread(target=controller.run_action, args=(record, "develop"))
        t2.start()
        assert second_entered.wait(5)

        release_first.set()
        t1.join(5)
        assert controller.state.action_loading_key == "KAN-10-develop"

        release_second.set()
        t2.join(5)
        assert controller.state.action_loading_key is None


class TestPolling:
    def test_poll_loop_reports_unexpected_errors(self, controller, store, monkeypatch):
        def broken():
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(store, "list_records", broken)
        controller.poll_interval = 0.01
        controller.start()
        try:
            deadline = time.time() + 5
            while controller.state.error is None and time.time() < deadline:
                time.sleep(0.01)
        finally:
            controller.stop()
        assert controller.state.error == "Unable to load tasks"

    def test_start_is_idempotent(self, controller):
        controller.poll_interval = 60
        controller.start()
        thread = controller._thread
        controller.start()
        assert controller._thread is thread
        controller.stop()
        assert not thread.is_alive()


class TestSnapshot:
    def test_shape(self, controller):
        controller.toggle_expand("1")
        snap = controller.snapshot()
        assert snap["expanded"] == ["1"]
        assert snap["tasks"][0]["expanded"] is True
        assert snap["tasks"][0]["key"] == "1"
        assert [s["sub_task_id"] for s in snap["tasks"][0]["subtasks"]] == ["KAN-11", "KAN-12"]
        assert snap["modal"] == {"mode": None, "editing": None, "parent_task_id": None, "viewing": None}
        assert snap["error"] is None
        assert snap["last_loaded_at"]


class TestCreateController:
    def test_demo_mode(self, tmp_dir):
        config = Config(demo_mode=True, state_path=tmp_dir / "state.db", poll_interval=2.0)
        c = create_controller(config)
        assert isinstance(c.client.store, MockStore)
        assert c.poll_interval == 2.0
        assert c.load_tasks()
        assert c.find_record("KAN-10") is not None
