"""Local mock store used when no backend is configured.

Records live as a JSON array in a key-value slot of a local SQLite file and
are seeded from fixture data the first time the slot is read. The three
action triggers imitate the backend by writing an intermediate status,
waiting, then writing the final one.
"""

import copy
import json
import logging
import threading
import time
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from task_dashboard.core.store import RecordStore
from task_dashboard.db.engine import delete_value, get_db, read_value, write_value
from task_dashboard.db.models import (
    IDENTITY_FIELDS,
    CreateSubTaskPayload,
    CreateTaskPayload,
    JiraImportPayload,
    TaskRecord,
    TaskRunPayload,
)
from task_dashboard.db.seed import DEMO_SEED_TASKS
from task_dashboard.errors import NotFoundError

logger = logging.getLogger(__name__)

STORAGE_KEY = "e2e-demo-tasks-v1"

ORCHESTRATE_DELAY = 0.4
AUTO_DELAY = 0.5


def load_seed(path: Path | None = None) -> list[dict]:
    """Load seed records from a JSON file, or the bundled fixture."""
    if path is None:
        return copy.deepcopy(DEMO_SEED_TASKS)
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"Seed file must contain a JSON array: {path}")
    return data


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _as_int(value) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


class MockStore(RecordStore):
    def __init__(
        self,
        db_path: Path,
        seed: list[dict] | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], str] = _now_iso,
    ):
        self.db_path = Path(db_path)
        self.seed = seed if seed is not None else load_seed()
        self._sleep = sleep
        self._clock = clock
        # Held across each read-modify-write of the slot.
        self._lock = threading.RLock()

    # ── Slot access ──────────────────────────────────────────────────────

    def _seed_records(self) -> list[TaskRecord]:
        return [TaskRecord.from_dict(r) for r in copy.deepcopy(self.seed)]

    def read_records(self) -> list[TaskRecord]:
        """Read the stored list, seeding the slot if it is empty."""
        with self._lock, get_db(self.db_path) as db:
            raw = read_value(db, STORAGE_KEY)
            if raw is None:
                records = self._seed_records()
                write_value(db, STORAGE_KEY, json.dumps([r.to_dict() for r in records]))
                return records
        try:
            parsed = json.loads(raw)
            if not isinstance(parsed, list):
                logger.warning("Mock store slot %s is not a list; using seed data", STORAGE_KEY)
                return self._seed_records()
            return [TaskRecord.from_dict(r) for r in parsed]
        except (ValueError, TypeError, KeyError):
            logger.warning("Mock store slot %s is unreadable; using seed data", STORAGE_KEY, exc_info=True)
            return self._seed_records()

    def _write_records(self, records: list[TaskRecord]):
        payload = json.dumps([r.to_dict() for r in records])
        with get_db(self.db_path) as db:
            write_value(db, STORAGE_KEY, payload)

    def reset(self) -> bool:
        """Forget stored records so the next read starts from the seed."""
        with self._lock, get_db(self.db_path) as db:
            return delete_value(db, STORAGE_KEY)

    # ── RecordStore ──────────────────────────────────────────────────────

    def list_records(self) -> list[TaskRecord]:
        return self.read_records()

    def _new_record(self, records: list[TaskRecord], payload: CreateTaskPayload, **identity) -> TaskRecord:
        now = self._clock()
        next_id = max((_as_int(r.id) for r in records), default=0) + 1
        rec = TaskRecord(
            id=next_id,
            task_id=payload.task_id,
            description=payload.description if payload.description is not None else "",
            summary=payload.summary,
            repo_url=payload.repo_url,
            base_branch=payload.base_branch,
            status=payload.status or "PENDING",
            prompt=payload.prompt if payload.prompt is not None else "",
            agent_summary=payload.agent_summary,
            attachment_path=payload.attachment_path,
            additional_json=payload.additional_json,
            created_at=now,
            updated_at=now,
            **identity,
        )
        records.append(rec)
        self._write_records(records)
        return rec

    def create_task(self, payload: CreateTaskPayload) -> TaskRecord:
        with self._lock:
            rec = self._new_record(self.read_records(), payload, sub_task_id=None, task_type="TASK")
        logger.debug("Mock: created task %s (id=%s)", rec.task_id, rec.id)
        return rec

    def create_sub_task(self, payload: CreateSubTaskPayload) -> TaskRecord:
        with self._lock:
            rec = self._new_record(
                self.read_records(), payload, sub_task_id=payload.sub_task_id, task_type="SUBTASK"
            )
        logger.debug("Mock: created subtask %s/%s (id=%s)", rec.task_id, rec.sub_task_id, rec.id)
        return rec

    def _update_at(self, records: list[TaskRecord], idx: int, fields: dict[str, Any]) -> TaskRecord:
        prev = records[idx]
        values = prev.to_dict()
        values.update(fields)
        # Identity never changes, whatever the caller sent.
        for name in IDENTITY_FIELDS:
            values[name] = getattr(prev, name)
        values["updated_at"] = self._clock()
        updated = TaskRecord.from_dict(values)
        records[idx] = updated
        self._write_records(records)
        return updated

    def update_task(self, task_id: str, fields: dict[str, Any]) -> TaskRecord:
        with self._lock:
            records = self.read_records()
            idx = next(
                (i for i, r in enumerate(records) if r.task_id == task_id and not r.sub_task_id),
                None,
            )
            if idx is None:
                raise NotFoundError(f"Demo: task not found: {task_id}")
            return self._update_at(records, idx, fields)

    def update_sub_task(self, sub_task_id: str, fields: dict[str, Any]) -> TaskRecord:
        with self._lock:
            records = self.read_records()
            idx = next((i for i, r in enumerate(records) if r.sub_task_id == sub_task_id), None)
            if idx is None:
                raise NotFoundError(f"Demo: subtask not found: {sub_task_id}")
            return self._update_at(records, idx, fields)

    def import_from_jira(self, payload: JiraImportPayload) -> TaskRecord:
        # Jira is out of reach in demo mode, so create a stand-in task.
        return self.create_task(
            CreateTaskPayload(
                task_id=payload.jira_task_id,
                summary="Imported from Jira (demo)",
                description="Demo placeholder. Configure a backend to enable real Jira import.",
                repo_url=payload.repo_url,
                base_branch=payload.branch,
                status="PENDING",
                prompt="",
            )
        )

    def _set_status(self, action_id: str, status: str, agent_summary: str | None = None) -> TaskRecord:
        fields: dict[str, Any] = {"status": status}
        if agent_summary is not None:
            fields["agent_summary"] = agent_summary
        with self._lock:
            records = self.read_records()
            idx = next((i for i, r in enumerate(records) if r.sub_task_id == action_id), None)
            if idx is None:
                idx = next(
                    (i for i, r in enumerate(records) if r.task_id == action_id and not r.sub_task_id),
                    None,
                )
            if idx is None:
                raise NotFoundError(f"Demo: task not found: {action_id}")
            rec = self._update_at(records, idx, fields)
        logger.debug("Mock: %s -> %s", action_id, status)
        return rec

    def orchestrate(self, payload: TaskRunPayload) -> dict:
        self._set_status(
            payload.task_id,
            "PLANNING",
            "Demo mode: planning is mocked. Configure a backend to enable real planning.",
        )
        self._sleep(ORCHESTRATE_DELAY)
        self._set_status(payload.task_id, "READY")
        return {"ok": True}

    def start(self, payload: TaskRunPayload) -> dict:
        self._set_status(
            payload.task_id,
            "IN_PROGRESS",
            "Demo mode: development is mocked. Configure a backend to enable real execution.",
        )
        return {"ok": True}

    def auto(self, payload: TaskRunPayload) -> dict:
        self._set_status(
            payload.task_id,
            "QUEUED",
            "Demo mode: auto-develop is mocked. Configure a backend to enable real automation.",
        )
        self._sleep(AUTO_DELAY)
        self._set_status(payload.task_id, "DONE")
        return {"ok": True}
