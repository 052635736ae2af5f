"""Dashboard view-model: task tree, modal state, polling and action dispatch."""

import itertools
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from task_dashboard.core.api import ApiClient
from task_dashboard.core.hierarchy import find_node, find_record, normalize_tasks
from task_dashboard.core.ui_state import ExpandedStateStore
from task_dashboard.db.models import (
    IDENTITY_FIELDS,
    CreateSubTaskPayload,
    CreateTaskPayload,
    JiraImportPayload,
    TaskNode,
    TaskRecord,
    TaskRunPayload,
)
from task_dashboard.errors import DashboardError

logger = logging.getLogger(__name__)

POLL_INTERVAL = 5.0

# Action name -> ApiClient method.
ACTIONS = {
    "plan": "orchestrate_task",
    "develop": "start_task",
    "auto-develop": "auto_task",
}

MODAL_MODES = ("new", "subtask", "edit", "jira", "view")

REPO_URL_REQUIRED = "Repository URL is required to run tasks."


def action_key(record: TaskRecord, action: str) -> str:
    return f"{record.action_id}-{action}"


def _opt(value):
    """Treat empty strings as absent."""
    return value or None


@dataclass
class DashboardState:
    tasks: list[TaskNode] = field(default_factory=list)
    expanded: set[str] = field(default_factory=set)
    modal_mode: str | None = None
    editing: dict[str, Any] | None = None
    # (task_id, sub_task_id) of the record being edited.
    editing_identity: tuple[str, str | None] | None = None
    parent_task_id: str | None = None
    viewing: TaskRecord | None = None
    error: str | None = None
    action_loading_key: str | None = None
    last_loaded_at: datetime | None = None


class DashboardController:
    """Owns dashboard state and turns user intents into API calls.

    After every successful mutation the whole list is fetched again and the
    tree rebuilt; nothing is patched locally. A background thread repeats
    that fetch every poll_interval seconds between start() and stop().
    """

    def __init__(
        self,
        client: ApiClient,
        ui_state: ExpandedStateStore | None = None,
        poll_interval: float = POLL_INTERVAL,
    ):
        self.client = client
        self.ui_state = ui_state
        self.poll_interval = poll_interval
        self.state = DashboardState()
        self._lock = threading.RLock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._tokens = itertools.count(1)
        self._action_token: int | None = None

    # ── Lifecycle ────────────────────────────────────────────────────────

    def start(self):
        """Restore persisted UI state and start polling."""
        if self._thread and self._thread.is_alive():
            return
        if self.ui_state is not None:
            expanded = self.ui_state.load()
            with self._lock:
                self.state.expanded = expanded
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="task-poller", daemon=True)
        self._thread.start()
        logger.info("Task poller started (every %ss)", self.poll_interval)

    def stop(self):
        """Stop polling. Requests already in flight are left to finish."""
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=10)
        logger.info("Task poller stopped")

    def _run(self):
        while not self._stop_event.is_set():
            try:
                self.load_tasks()
            except Exception:
                logger.exception("Error in task poll loop")
                with self._lock:
                    self.state.error = "Unable to load tasks"
            self._stop_event.wait(self.poll_interval)

    # ── Loading ──────────────────────────────────────────────────────────

    def load_tasks(self) -> bool:
        """Fetch all records and replace the tree. Returns False on failure."""
        with self._lock:
            self.state.error = None
        try:
            records = self.client.list_tasks()
        except DashboardError as e:
            logger.error("Failed to load tasks: %s", e)
            with self._lock:
                self.state.error = str(e)
            return False

        tree = normalize_tasks(records)
        with self._lock:
            self.state.tasks = tree
            self.state.last_loaded_at = datetime.now()
        return True

    def find_record(self, identifier: str) -> TaskRecord | None:
        with self._lock:
            return find_record(self.state.tasks, identifier)

    def find_node(self, task_id: str) -> TaskNode | None:
        with self._lock:
            return find_node(self.state.tasks, task_id)

    # ── Expansion ────────────────────────────────────────────────────────

    def toggle_expand(self, key: str) -> bool:
        """Flip a node's expanded flag and persist the set. Returns the new flag."""
        key = str(key)
        with self._lock:
            expanded = set(self.state.expanded)
            if key in expanded:
                expanded.discard(key)
            else:
                expanded.add(key)
            self.state.expanded = expanded
        if self.ui_state is not None:
            self.ui_state.save(expanded)
        return key in expanded

    def is_expanded(self, key: str) -> bool:
        with self._lock:
            return str(key) in self.state.expanded

    # ── Modals ───────────────────────────────────────────────────────────

    def _open(self, mode: str, draft: dict[str, Any] | None, parent_task_id: str | None = None):
        self.state.modal_mode = mode
        self.state.editing = draft
        self.state.parent_task_id = parent_task_id
        self.state.editing_identity = None

    @property
    def form_open(self) -> bool:
        with self._lock:
            return self.state.editing is not None

    def open_new_task(self) -> dict[str, Any]:
        with self._lock:
            draft = {
                "task_id": f"TASK-{len(self.state.tasks) + 1:03d}",
                "sub_task_id": None,
                "task_type": "TASK",
                "description": "",
                "summary": None,
                "repo_url": "",
                "base_branch": "main",
                "status": "PENDING",
                "prompt": "",
                "agent_summary": None,
            }
            self._open("new", draft)
            return dict(draft)

    def open_add_subtask(self, node: TaskNode) -> dict[str, Any]:
        with self._lock:
            draft = {
                "task_id": node.record.task_id,
                "sub_task_id": f"SUB-{len(node.subtasks) + 1:03d}",
                "task_type": "SUBTASK",
                "description": "",
                "summary": None,
                "repo_url": None,
                "base_branch": None,
                "status": "PENDING",
                "prompt": "",
                "agent_summary": None,
            }
            self._open("subtask", draft, parent_task_id=node.record.task_id)
            return dict(draft)

    def open_edit(self, record: TaskRecord) -> dict[str, Any]:
        with self._lock:
            draft = record.to_dict()
            self._open("edit", draft)
            self.state.editing_identity = (record.task_id, record.sub_task_id)
            return dict(draft)

    def open_jira_import(self) -> dict[str, Any]:
        with self._lock:
            draft = {
                "jira_task_id": "",
                "task_id": "",
                "repo_url": "",
                "base_branch": "",
            }
            self._open("jira", draft)
            return dict(draft)

    def open_view(self, record: TaskRecord):
        with self._lock:
            self._open("view", None)
            self.state.viewing = record

    def view_parent(self) -> TaskRecord | None:
        """From a viewed subtask, switch the view to its parent task."""
        with self._lock:
            viewing = self.state.viewing
            if viewing is None or not viewing.sub_task_id:
                return None
            node = find_node(self.state.tasks, viewing.task_id)
            if node is None:
                return None
            self.state.viewing = node.record
            return node.record

    def close_modal(self):
        with self._lock:
            self._open(None, None)
            self.state.viewing = None

    def dismiss_error(self):
        with self._lock:
            self.state.error = None

    # ── Save ─────────────────────────────────────────────────────────────

    def save(self, changes: dict[str, Any] | None = None) -> bool:
        """Apply changes to the open draft and submit it.

        On success the tree is reloaded and the modal closed. On failure the
        error is shown and the modal stays open with the draft intact.
        """
        with self._lock:
            if self.state.editing is None:
                return False
            mode = self.state.modal_mode
            if changes and mode == "edit":
                # An edit cannot move to another record.
                changes = {k: v for k, v in changes.items() if k not in IDENTITY_FIELDS}
            if changes:
                self.state.editing.update(changes)
            draft = dict(self.state.editing)
            parent_task_id = self.state.parent_task_id
            identity = self.state.editing_identity

        try:
            self._submit(mode, draft, parent_task_id, identity)
        except DashboardError as e:
            logger.error("Save failed: %s", e)
            with self._lock:
                self.state.error = str(e)
            return False

        self.load_tasks()
        self.close_modal()
        return True

    def _submit(
        self,
        mode: str | None,
        draft: dict[str, Any],
        parent_task_id: str | None,
        identity: tuple[str, str | None] | None = None,
    ):
        if mode == "jira":
            self.client.import_task_from_jira(
                JiraImportPayload(
                    jira_task_id=draft.get("jira_task_id") or draft.get("task_id") or "",
                    repo_url=draft.get("repo_url") or "",
                    branch=draft.get("base_branch") or "main",
                )
            )
            return

        common = {
            "description": draft.get("description"),
            "summary": _opt(draft.get("summary")),
            "repo_url": _opt(draft.get("repo_url")),
            "base_branch": _opt(draft.get("base_branch")),
            "status": draft.get("status"),
            "prompt": draft.get("prompt"),
            "agent_summary": _opt(draft.get("agent_summary")),
        }

        if mode == "new":
            self.client.create_task(CreateTaskPayload(task_id=draft.get("task_id") or "", **common))
        elif mode == "subtask":
            self.client.create_sub_task(
                CreateSubTaskPayload(
                    task_id=draft.get("task_id") or parent_task_id or "",
                    sub_task_id=draft.get("sub_task_id") or "",
                    **common,
                )
            )
        elif mode == "edit":
            fields = {k: v for k, v in common.items() if v is not None}
            task_id, sub_task_id = identity or (draft.get("task_id") or "", draft.get("sub_task_id"))
            if sub_task_id:
                self.client.update_sub_task_record(sub_task_id, fields)
            else:
                self.client.update_task_record(task_id, fields)
        else:
            raise ValueError(f"Nothing to save in modal mode {mode!r}")

    # ── Actions ──────────────────────────────────────────────────────────

    def run_action(self, record: TaskRecord, action: str) -> bool:
        """Trigger plan, develop or auto-develop for a record.

        Returns True when the backend accepted the request.
        """
        if action not in ACTIONS:
            raise ValueError(f"Unknown action: {action}")
        if not record.task_id and not record.sub_task_id:
            return False
        if not record.repo_url:
            with self._lock:
                self.state.error = REPO_URL_REQUIRED
            return False

        payload = TaskRunPayload(
            task_id=record.action_id,
            repo_url=record.repo_url,
            base_branch=record.base_branch or "main",
        )
        key = action_key(record, action)
        with self._lock:
            self.state.error = None
            token = next(self._tokens)
            self.state.action_loading_key = key
            self._action_token = token

        try:
            getattr(self.client, ACTIONS[action])(payload)
            self.load_tasks()
            return True
        except DashboardError as e:
            logger.error("Action %s failed for %s: %s", action, record.action_id, e)
            with self._lock:
                self.state.error = str(e)
            return False
        finally:
            with self._lock:
                # Only clear the flag this call set; a newer run may own it now.
                if self.state.action_loading_key == key and self._action_token == token:
                    self.state.action_loading_key = None
                    self._action_token = None

    # ── Presentation ─────────────────────────────────────────────────────

    def snapshot(self) -> dict:
        """JSON-ready copy of the current state."""
        with self._lock:
            s = self.state
            tasks = []
            for node in s.tasks:
                d = node.to_dict()
                d["expanded"] = node.key in s.expanded
                tasks.append(d)
            return {
                "tasks": tasks,
                "expanded": sorted(s.expanded),
                "modal": {
                    "mode": s.modal_mode,
                    "editing": dict(s.editing) if s.editing is not None else None,
                    "parent_task_id": s.parent_task_id,
                    "viewing": s.viewing.to_dict() if s.viewing else None,
                },
                "error": s.error,
                "action_loading_key": s.action_loading_key,
                "last_loaded_at": s.last_loaded_at.isoformat() if s.last_loaded_at else None,
            }


def create_controller(config) -> DashboardController:
    """Wire the configured store, API client and UI state together."""
    from task_dashboard.core.store import open_store

    client = ApiClient(open_store(config))
    ui_state = ExpandedStateStore(config.state_path)
    return DashboardController(client, ui_state=ui_state, poll_interval=config.poll_interval)
