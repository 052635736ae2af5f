"""HTTP client for the task backend REST API."""

import json
import logging
from typing import Any
from urllib.parse import quote

import httpx

from task_dashboard.core.store import RecordStore
from task_dashboard.db.models import (
    CreateSubTaskPayload,
    CreateTaskPayload,
    JiraImportPayload,
    TaskRecord,
    TaskRunPayload,
)
from task_dashboard.errors import ProtocolError, ServerError, TransportError

logger = logging.getLogger(__name__)

LIST_LIMIT = 1000


def _error_message(body: Any, reason: str) -> str:
    """Pick the most useful error text from a failed response."""
    if isinstance(body, dict):
        for key in ("message", "detail"):
            value = body.get(key)
            if value:
                return value if isinstance(value, str) else json.dumps(value)
    return reason or "Request failed"


def _unwrap(body: Any) -> Any:
    """Strip the optional {"data": ...} envelope."""
    if isinstance(body, dict) and "data" in body:
        return body["data"]
    return body


def _to_record(body: Any) -> TaskRecord:
    if not isinstance(body, dict):
        raise ProtocolError("Unexpected response from server: expected a task object")
    try:
        return TaskRecord.from_dict(body)
    except (TypeError, KeyError) as e:
        raise ProtocolError(f"Malformed task record in response: {e}") from e


class RemoteStore(RecordStore):
    """Record store backed by the remote REST API."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    def close(self):
        self.client.close()

    def _request(
        self,
        method: str,
        path: str,
        body: dict | None = None,
        params: dict | None = None,
    ) -> Any:
        """Send a JSON request and return the unwrapped JSON response."""
        content = json.dumps(body) if body is not None else None
        try:
            response = self.client.request(method, path, content=content, params=params)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise TransportError(f"Could not reach backend: {e}") from e

        text = response.text
        parsed: Any = None
        if text:
            try:
                parsed = json.loads(text)
            except ValueError as e:
                raise ProtocolError(text or "Unexpected response from server") from e

        if not response.is_success:
            message = _error_message(parsed, response.reason_phrase)
            logger.warning("%s %s -> %s: %s", method, path, response.status_code, message)
            raise ServerError(message, status_code=response.status_code)

        logger.debug("%s %s -> %s", method, path, response.status_code)
        return _unwrap(parsed)

    # ── RecordStore ──────────────────────────────────────────────────────

    def list_records(self) -> list[TaskRecord]:
        data = self._request("GET", "/db/tasks", params={"limit": LIST_LIMIT})
        if not isinstance(data, dict) or not isinstance(data.get("tasks"), list):
            raise ProtocolError("Unexpected response from server: missing task list")
        return [_to_record(t) for t in data["tasks"]]

    def create_task(self, payload: CreateTaskPayload) -> TaskRecord:
        body = {**payload.to_dict(), "task_type": "TASK"}
        return _to_record(self._request("POST", "/db/tasks", body))

    def create_sub_task(self, payload: CreateSubTaskPayload) -> TaskRecord:
        body = {**payload.to_dict(), "task_type": "SUBTASK"}
        return _to_record(self._request("POST", "/db/tasks/sub-task", body))

    def update_task(self, task_id: str, fields: dict[str, Any]) -> TaskRecord:
        path = f"/db/tasks/{quote(task_id, safe='')}"
        return _to_record(self._request("PUT", path, fields))

    def update_sub_task(self, sub_task_id: str, fields: dict[str, Any]) -> TaskRecord:
        path = f"/db/tasks/sub-task/{quote(sub_task_id, safe='')}"
        return _to_record(self._request("PUT", path, fields))

    def import_from_jira(self, payload: JiraImportPayload) -> TaskRecord:
        return _to_record(self._request("POST", "/db/tasks/import-from-jira", payload.to_dict()))

    def _run(self, path: str, payload: TaskRunPayload) -> dict:
        ack = self._request("POST", path, payload.to_dict())
        return ack if isinstance(ack, dict) else {"result": ack}

    def orchestrate(self, payload: TaskRunPayload) -> dict:
        return self._run("/tasks/orchestrator", payload)

    def start(self, payload: TaskRunPayload) -> dict:
        return self._run("/tasks/start", payload)

    def auto(self, payload: TaskRunPayload) -> dict:
        return self._run("/tasks/auto", payload)
