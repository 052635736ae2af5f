"""Domain operations over a record store."""

import logging
from typing import Any

from task_dashboard.core.store import RecordStore
from task_dashboard.db.models import (
    EDITABLE_FIELDS,
    IDENTITY_FIELDS,
    TASK_STATUSES,
    CreateSubTaskPayload,
    CreateTaskPayload,
    JiraImportPayload,
    TaskRecord,
    TaskRunPayload,
)
from task_dashboard.errors import ValidationError

logger = logging.getLogger(__name__)


def _require(value: str | None, name: str):
    if not value or not str(value).strip():
        raise ValidationError(f"{name} is required.")


def _check_status(status: str | None):
    if status is not None and status not in TASK_STATUSES:
        raise ValidationError(
            f"Unknown status '{status}'. Expected one of: {', '.join(TASK_STATUSES)}"
        )


def _editable(fields: dict[str, Any]) -> dict[str, Any]:
    """Drop identity fields from a partial update; they cannot change."""
    dropped = [k for k in fields if k in IDENTITY_FIELDS]
    if dropped:
        logger.debug("Ignoring identity fields in update: %s", ", ".join(dropped))
    unknown = [k for k in fields if k not in IDENTITY_FIELDS and k not in EDITABLE_FIELDS]
    if unknown:
        raise ValidationError(f"Unknown task field(s): {', '.join(unknown)}")
    editable = {k: v for k, v in fields.items() if k in EDITABLE_FIELDS}
    _check_status(editable.get("status"))
    return editable


class ApiClient:
    """Thin typed wrapper over a RecordStore.

    Validation that can fail without I/O happens here, so a bad request
    never reaches the store.
    """

    def __init__(self, store: RecordStore):
        self.store = store

    def list_tasks(self) -> list[TaskRecord]:
        records = self.store.list_records()
        logger.debug("Loaded %d task records", len(records))
        return records

    def create_task(self, payload: CreateTaskPayload) -> TaskRecord:
        _require(payload.task_id, "task_id")
        _check_status(payload.status)
        record = self.store.create_task(payload)
        logger.info("Created task %s", record.task_id)
        return record

    def create_sub_task(self, payload: CreateSubTaskPayload) -> TaskRecord:
        _require(payload.task_id, "task_id")
        _require(payload.sub_task_id, "sub_task_id")
        _check_status(payload.status)
        record = self.store.create_sub_task(payload)
        logger.info("Created subtask %s under %s", record.sub_task_id, record.task_id)
        return record

    def update_task_record(self, task_id: str, fields: dict[str, Any]) -> TaskRecord:
        _require(task_id, "task_id")
        record = self.store.update_task(task_id, _editable(fields))
        logger.info("Updated task %s", task_id)
        return record

    def update_sub_task_record(self, sub_task_id: str, fields: dict[str, Any]) -> TaskRecord:
        _require(sub_task_id, "sub_task_id")
        record = self.store.update_sub_task(sub_task_id, _editable(fields))
        logger.info("Updated subtask %s", sub_task_id)
        return record

    def import_task_from_jira(self, payload: JiraImportPayload) -> TaskRecord:
        _require(payload.jira_task_id, "jira_task_id")
        record = self.store.import_from_jira(payload)
        logger.info("Imported %s from Jira", payload.jira_task_id)
        return record

    def _check_run(self, payload: TaskRunPayload):
        _require(payload.task_id, "task_id")
        if not payload.repo_url or not payload.repo_url.strip():
            raise ValidationError("Repository URL is required to run tasks.")

    def orchestrate_task(self, payload: TaskRunPayload) -> dict:
        self._check_run(payload)
        logger.info("Requesting plan for %s", payload.task_id)
        return self.store.orchestrate(payload)

    def start_task(self, payload: TaskRunPayload) -> dict:
        self._check_run(payload)
        logger.info("Requesting development for %s", payload.task_id)
        return self.store.start(payload)

    def auto_task(self, payload: TaskRunPayload) -> dict:
        self._check_run(payload)
        logger.info("Requesting auto-develop for %s", payload.task_id)
        return self.store.auto(payload)
